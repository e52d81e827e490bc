"""
Mockingbird Definition Loader

Reads endpoint definitions from JSON or YAML documents.

Accepted formats:
- Format 1: [...]                 (list of definitions)
- Format 2: {"endpoints": [...]}  (wrapped format)
- Format 3: {...}                 (a single definition)
"""

import json
from pathlib import Path
from typing import List, Dict, Any, Union

import yaml

from .errors import EndpointValidationError
from .models import EndpointDefinition


def parse_definitions(data: Any, source: str = "<payload>") -> List[EndpointDefinition]:
    """
    Validate decoded definition data.

    Args:
        data: Decoded JSON/YAML document
        source: Name used in error messages

    Returns:
        List of EndpointDefinition in document order

    Raises:
        EndpointValidationError: naming the first invalid entry
    """
    if isinstance(data, dict) and 'endpoints' in data:
        data = data['endpoints']
    elif isinstance(data, dict):
        data = [data]

    if not isinstance(data, list):
        raise EndpointValidationError(
            f"{source}: expected a list of endpoint definitions, got {type(data).__name__}"
        )

    definitions = []
    for index, item in enumerate(data):
        try:
            definitions.append(EndpointDefinition.from_dict(item))
        except EndpointValidationError as e:
            raise EndpointValidationError(f"{source}: endpoint #{index}: {e}", field=e.field) from e
    return definitions


class DefinitionLoader:
    """
    Loader for endpoint definition files.

    Example:
        loader = DefinitionLoader("endpoints.yaml")
        for endpoint in loader.load():
            registry.upsert(endpoint)
    """

    def __init__(self, file_path: Union[str, Path]):
        self.file_path = Path(file_path)

    def read(self) -> Any:
        """
        Decode the file as YAML (.yaml/.yml) or JSON.

        Raises:
            FileNotFoundError: If the file doesn't exist
            EndpointValidationError: If the file can't be decoded
        """
        if not self.file_path.exists():
            raise FileNotFoundError(f"Definition file not found: {self.file_path}")

        with open(self.file_path, 'r', encoding='utf-8') as f:
            try:
                if self.file_path.suffix.lower() in ('.yaml', '.yml'):
                    return yaml.safe_load(f)
                return json.load(f)
            except (yaml.YAMLError, json.JSONDecodeError) as e:
                raise EndpointValidationError(f"{self.file_path}: cannot decode file: {e}") from e

    def load(self) -> List[EndpointDefinition]:
        return parse_definitions(self.read(), source=str(self.file_path))


def demo_endpoints() -> List[EndpointDefinition]:
    """Endpoints registered on startup and after a reset."""
    payloads: List[Dict[str, Any]] = [
        {
            'endpointId': '/users/:id',
            'method': 'GET',
            'statusCode': 200,
            'delay': 0,
            'responseTemplate': (
                '{\n'
                '  "status": "success",\n'
                '  "message": "User {{path.id}} details retrieved.",\n'
                '  "query_filter": "{{query.filter}}",\n'
                '  "data_received": {{body}}\n'
                '}'
            ),
            'scenarios': [
                {
                    'name': 'Error Scenario',
                    'condition': "path.id === 'error'",
                    'statusCode': 404,
                    'delay': 500,
                    'responseTemplate': '{\n  "error": "User {{path.id}} not found or is disabled."\n}'
                }
            ]
        },
        {
            'endpointId': '/orders',
            'method': 'GET',
            'statusCode': 200,
            'delay': 100,
            'responseTemplate': (
                '{\n'
                '  "status": "success",\n'
                '  "count": 50,\n'
                '  "query_status": "{{query.status}}",\n'
                '  "message": "Successfully fetched 50 orders."\n'
                '}'
            ),
            'scenarios': [
                {
                    'name': 'Pending Orders Response',
                    'condition': "query.status === 'pending'",
                    'statusCode': 202,
                    'delay': 2000,
                    'responseTemplate': (
                        '{\n'
                        '  "status": "processing",\n'
                        '  "count": 5,\n'
                        '  "message": "Only 5 pending orders found. Please wait 2 seconds."\n'
                        '}'
                    )
                }
            ]
        }
    ]
    return parse_definitions(payloads, source='demo')

"""
Tests for Mockingbird Definition Loader

Tests reading endpoint definitions from JSON and YAML files.
"""

import json

import pytest

from mockingbird.errors import EndpointValidationError
from mockingbird.loader import DefinitionLoader, demo_endpoints, parse_definitions


@pytest.fixture
def sample_definitions():
    """Sample endpoint definitions."""
    return [
        {
            'endpointId': '/products/:sku',
            'method': 'GET',
            'responseTemplate': '{"sku": "{{path.sku}}"}',
            'scenarios': [
                {'name': 'Discontinued', 'condition': "path.sku === 'old'", 'statusCode': 410}
            ]
        },
        {
            'endpointId': '/products',
            'method': 'POST',
            'statusCode': 201,
            'responseTemplate': '{"created": {{body}}}'
        }
    ]


class TestParseDefinitions:
    """Test parse_definitions()."""

    def test_list_format(self, sample_definitions):
        """Test a plain list of definitions."""
        endpoints = parse_definitions(sample_definitions)

        assert [e.identity for e in endpoints] == ['/products/:sku-GET', '/products-POST']

    def test_wrapped_format(self, sample_definitions):
        """Test the {"endpoints": [...]} format."""
        endpoints = parse_definitions({'endpoints': sample_definitions})

        assert len(endpoints) == 2

    def test_single_definition(self, sample_definitions):
        """Test a single definition object."""
        endpoints = parse_definitions(sample_definitions[0])

        assert endpoints[0].scenarios[0].name == 'Discontinued'

    def test_invalid_entry_names_position(self, sample_definitions):
        """Test errors report the source and the entry index."""
        sample_definitions.append({'method': 'GET'})

        with pytest.raises(EndpointValidationError) as exc_info:
            parse_definitions(sample_definitions, source='endpoints.json')

        assert 'endpoints.json: endpoint #2' in str(exc_info.value)
        assert exc_info.value.field == 'endpointId'

    def test_invalid_document(self):
        """Test a document that is neither list nor object."""
        with pytest.raises(EndpointValidationError):
            parse_definitions('nope')


class TestDefinitionLoader:
    """Test DefinitionLoader."""

    def test_load_json(self, tmp_path, sample_definitions):
        """Test loading a JSON file."""
        path = tmp_path / 'endpoints.json'
        path.write_text(json.dumps(sample_definitions))

        endpoints = DefinitionLoader(path).load()

        assert len(endpoints) == 2
        assert endpoints[1].status_code == 201

    def test_load_yaml(self, tmp_path):
        """Test loading a YAML file."""
        path = tmp_path / 'endpoints.yaml'
        path.write_text(
            "endpoints:\n"
            "  - endpointId: /health\n"
            "    responseTemplate: '{\"status\": \"OK\"}'\n"
            "    headers:\n"
            "      Cache-Control: no-store\n"
        )

        endpoints = DefinitionLoader(str(path)).load()

        assert endpoints[0].identity == '/health-GET'
        assert endpoints[0].headers == {'Cache-Control': 'no-store'}

    def test_file_not_found(self, tmp_path):
        """Test loading a missing file."""
        with pytest.raises(FileNotFoundError):
            DefinitionLoader(tmp_path / 'missing.json').load()

    def test_undecodable_file(self, tmp_path):
        """Test a file that is not valid JSON."""
        path = tmp_path / 'broken.json'
        path.write_text('{not json')

        with pytest.raises(EndpointValidationError):
            DefinitionLoader(path).load()


class TestDemoEndpoints:
    """Test the demo endpoints."""

    def test_demo_endpoints(self):
        """Test the two demo endpoints and their scenarios."""
        endpoints = demo_endpoints()

        assert [e.identity for e in endpoints] == ['/users/:id-GET', '/orders-GET']
        assert endpoints[0].scenarios[0].condition == "path.id === 'error'"
        assert endpoints[1].scenarios[0].delay_ms == 2000

    def test_demo_endpoints_are_fresh(self):
        """Test each call returns new objects."""
        assert demo_endpoints()[0] is not demo_endpoints()[0]

"""
Mockingbird Data Model

Endpoint definitions, conditional scenarios and the per-request context.

Endpoint definitions are authored as camelCase JSON payloads:

    {
        "endpointId": "/users/:id",
        "method": "GET",
        "statusCode": 200,
        "delay": 0,
        "responseTemplate": "{\"id\": \"{{path.id}}\"}",
        "scenarios": [...]
    }

and converted to dataclasses with `EndpointDefinition.from_dict()`.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional

from .errors import EndpointValidationError
from .jsvalues import canonical_json


ALLOWED_METHODS = ('GET', 'POST', 'PUT', 'DELETE', 'PATCH')
WILDCARD_METHOD = 'ALL'
WILDCARD_ALIASES = ('ALL', '*', 'ANY')

DEFAULT_STATUS_CODE = 200
DEFAULT_DELAY_MS = 0
DEFAULT_RESPONSE_TEMPLATE = '{}'


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_method(method: Any) -> str:
    """
    Upper-case an HTTP method and fold wildcard aliases to `ALL`.

    Raises:
        EndpointValidationError: if the method is not supported
    """
    if not isinstance(method, str) or not method.strip():
        raise EndpointValidationError("method must be a non-empty string", field='method')

    upper = method.strip().upper()
    if upper in WILDCARD_ALIASES:
        return WILDCARD_METHOD
    if upper not in ALLOWED_METHODS:
        raise EndpointValidationError(
            f"Unsupported method '{method}'. Expected one of: {', '.join(ALLOWED_METHODS)} or {WILDCARD_METHOD}",
            field='method'
        )
    return upper


def _coerce_int(value: Any, field_name: str, minimum: Optional[int] = None, maximum: Optional[int] = None) -> int:
    if isinstance(value, bool):
        raise EndpointValidationError(f"{field_name} must be an integer", field=field_name)

    if isinstance(value, float) and value.is_integer():
        value = int(value)
    elif isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            raise EndpointValidationError(f"{field_name} must be an integer, got '{value}'", field=field_name)

    if not isinstance(value, int):
        raise EndpointValidationError(f"{field_name} must be an integer", field=field_name)
    if minimum is not None and value < minimum:
        raise EndpointValidationError(f"{field_name} must be >= {minimum}", field=field_name)
    if maximum is not None and value > maximum:
        raise EndpointValidationError(f"{field_name} must be <= {maximum}", field=field_name)
    return value


def _coerce_template(data: Dict[str, Any], default: str, field_name: str = 'responseTemplate') -> str:
    """Read `responseTemplate`, falling back to the legacy `response` key."""
    if data.get('responseTemplate') is not None:
        template = data['responseTemplate']
    elif data.get('response') is not None:
        template = data['response']
        # Legacy payloads carried the response as structured data
        if not isinstance(template, str):
            template = canonical_json(template)
    else:
        return default

    if not isinstance(template, str):
        raise EndpointValidationError(f"{field_name} must be a string", field=field_name)
    return template


@dataclass
class Scenario:
    """Conditional override of status code, delay and response template."""

    name: str = ""
    condition: str = ""
    status_code: int = DEFAULT_STATUS_CODE
    delay_ms: int = DEFAULT_DELAY_MS
    response_template: str = DEFAULT_RESPONSE_TEMPLATE

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        index: int = 0,
        defaults: Optional['EndpointDefinition'] = None
    ) -> 'Scenario':
        """
        Create Scenario from an authoring payload.

        Args:
            data: Scenario payload
            index: Position in the scenario list (used for default names)
            defaults: Endpoint whose values fill in missing fields

        Returns:
            Scenario instance
        """
        if not isinstance(data, dict):
            raise EndpointValidationError(f"scenarios[{index}] must be an object", field='scenarios')

        condition = data.get('condition') or ''
        if not isinstance(condition, str):
            raise EndpointValidationError(f"scenarios[{index}].condition must be a string", field='condition')

        status_default = defaults.status_code if defaults else DEFAULT_STATUS_CODE
        delay_default = defaults.delay_ms if defaults else DEFAULT_DELAY_MS
        template_default = defaults.response_template if defaults else DEFAULT_RESPONSE_TEMPLATE

        return cls(
            name=str(data.get('name') or f"Scenario {index + 1}"),
            condition=condition,
            status_code=_coerce_int(data.get('statusCode', status_default), 'statusCode', 100, 599),
            delay_ms=_coerce_int(data.get('delay', delay_default), 'delay', 0),
            response_template=_coerce_template(data, template_default)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to authoring payload."""
        return {
            'name': self.name,
            'condition': self.condition,
            'statusCode': self.status_code,
            'delay': self.delay_ms,
            'responseTemplate': self.response_template
        }


@dataclass
class EndpointDefinition:
    """
    A registered (path pattern, method) pair with a default response and
    zero or more conditional scenarios.

    The `identity` of a definition is derived from its path pattern and
    method; registering another definition with the same identity replaces
    this one.
    """

    path_pattern: str
    method: str = 'GET'
    status_code: int = DEFAULT_STATUS_CODE
    delay_ms: int = DEFAULT_DELAY_MS
    response_template: str = DEFAULT_RESPONSE_TEMPLATE
    scenarios: List[Scenario] = field(default_factory=list)
    headers: Dict[str, str] = field(default_factory=dict)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def identity(self) -> str:
        return make_identity(self.path_pattern, self.method)

    def matches_method(self, method: str) -> bool:
        """True if this endpoint answers `method` (wildcard answers any)."""
        return self.method == WILDCARD_METHOD or self.method == method.upper()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EndpointDefinition':
        """
        Create and validate an EndpointDefinition from an authoring payload.

        Args:
            data: Payload with endpointId, method, statusCode, delay,
                  responseTemplate (or response), headers and scenarios

        Returns:
            EndpointDefinition instance

        Raises:
            EndpointValidationError: if the payload is malformed
        """
        if not isinstance(data, dict):
            raise EndpointValidationError("endpoint definition must be an object")

        path_pattern = data.get('endpointId')
        if not isinstance(path_pattern, str) or not path_pattern.strip():
            raise EndpointValidationError("endpointId is required", field='endpointId')
        path_pattern = path_pattern.strip()
        if not path_pattern.startswith('/'):
            path_pattern = '/' + path_pattern

        headers = data.get('headers') or {}
        if not isinstance(headers, dict):
            raise EndpointValidationError("headers must be an object", field='headers')

        endpoint = cls(
            path_pattern=path_pattern,
            method=normalize_method(data.get('method', 'GET')),
            status_code=_coerce_int(data.get('statusCode', DEFAULT_STATUS_CODE), 'statusCode', 100, 599),
            delay_ms=_coerce_int(data.get('delay', DEFAULT_DELAY_MS), 'delay', 0),
            response_template=_coerce_template(data, DEFAULT_RESPONSE_TEMPLATE),
            headers={str(k): str(v) for k, v in headers.items()},
            created_at=data.get('createdAt'),
            updated_at=data.get('updatedAt')
        )

        scenarios_raw = data.get('scenarios') or []
        if not isinstance(scenarios_raw, list):
            raise EndpointValidationError("scenarios must be a list", field='scenarios')
        endpoint.scenarios = [
            Scenario.from_dict(item, index=i, defaults=endpoint)
            for i, item in enumerate(scenarios_raw)
        ]
        return endpoint

    def to_dict(self) -> Dict[str, Any]:
        """Convert to authoring payload (plus bookkeeping fields)."""
        return {
            'id': self.identity,
            'endpointId': self.path_pattern,
            'method': self.method,
            'statusCode': self.status_code,
            'delay': self.delay_ms,
            'responseTemplate': self.response_template,
            'headers': dict(self.headers),
            'scenarios': [s.to_dict() for s in self.scenarios],
            'createdAt': self.created_at,
            'updatedAt': self.updated_at
        }


def make_identity(path_pattern: str, method: str) -> str:
    """Registry key for a (path pattern, method) pair."""
    return f"{path_pattern}-{method.upper()}"


@dataclass
class RequestContext:
    """Path, query and body data of one dispatched request."""

    path_params: Dict[str, Any] = field(default_factory=dict)
    query_params: Dict[str, Any] = field(default_factory=dict)
    body_params: Any = None

    def bindings(self) -> Dict[str, Any]:
        """Names visible to scenario conditions; missing maps bind to {}."""
        return {
            'path': self.path_params if self.path_params is not None else {},
            'query': self.query_params if self.query_params is not None else {},
            'body': self.body_params if self.body_params is not None else {}
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'pathParams': self.path_params,
            'queryParams': self.query_params,
            'bodyParams': self.body_params
        }

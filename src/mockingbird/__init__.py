"""
Mockingbird

Mock HTTP server with conditional scenarios and templated responses.

This package provides:
- Endpoint definitions with conditional scenarios
- Path matching, condition evaluation and placeholder rendering
- FastAPI-based mock server with an admin API
- Command line interface for serving and validating definitions
"""

__version__ = '1.0.0'

from .config import MockConfig
from .errors import (
    MockingbirdError,
    NotFoundError,
    RenderError,
    ConditionEvaluationError,
    EndpointValidationError,
    ConfigError
)
from .models import EndpointDefinition, Scenario, RequestContext
from .engine import Dispatcher, DispatchResult, EndpointRegistry
from .loader import DefinitionLoader, parse_definitions, demo_endpoints
from .server import MockServer, MockMetrics, create_mock_server

__all__ = [
    # Model
    'EndpointDefinition',
    'Scenario',
    'RequestContext',

    # Engine
    'Dispatcher',
    'DispatchResult',
    'EndpointRegistry',

    # Loading & config
    'DefinitionLoader',
    'parse_definitions',
    'demo_endpoints',
    'MockConfig',

    # Server
    'MockServer',
    'MockMetrics',
    'create_mock_server',

    # Errors
    'MockingbirdError',
    'NotFoundError',
    'RenderError',
    'ConditionEvaluationError',
    'EndpointValidationError',
    'ConfigError',
]

"""
Mockingbird Engine

Request matching, conditional scenarios and response rendering.

This package provides:
- Path pattern matching with parameter capture
- Placeholder rendering for response templates
- Condition evaluation for scenarios
- Thread-safe endpoint registry
- Async dispatcher with simulated latency
"""

from .matcher import PathMatch, match_path, match_segments, split_path
from .renderer import render, find_placeholders, RENDER_MODES
from .conditions import CompiledCondition, compile_condition, evaluate_condition
from .scenarios import SelectedResponse, select_scenario
from .registry import EndpointRegistry
from .dispatcher import (
    Dispatcher,
    DispatchResult,
    normalize_path,
    parse_query_string
)

__all__ = [
    # Matcher
    'PathMatch',
    'match_path',
    'match_segments',
    'split_path',

    # Renderer
    'render',
    'find_placeholders',
    'RENDER_MODES',

    # Conditions
    'CompiledCondition',
    'compile_condition',
    'evaluate_condition',

    # Scenarios
    'SelectedResponse',
    'select_scenario',

    # Registry & dispatch
    'EndpointRegistry',
    'Dispatcher',
    'DispatchResult',
    'normalize_path',
    'parse_query_string',
]

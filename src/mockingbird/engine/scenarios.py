"""
Mockingbird Scenario Selector

Chooses which response an endpoint gives for a request: the first scenario
(in stored order) whose condition holds, otherwise the endpoint defaults.
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional

from ..models import EndpointDefinition, RequestContext
from .conditions import evaluate_condition


@dataclass(frozen=True)
class SelectedResponse:
    """Status code, delay and template chosen for one request."""

    status_code: int
    delay_ms: int
    response_template: str
    scenario_name: Optional[str] = None

    @property
    def is_default(self) -> bool:
        return self.scenario_name is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'statusCode': self.status_code,
            'delay': self.delay_ms,
            'responseTemplate': self.response_template,
            'scenario': self.scenario_name
        }


def select_scenario(endpoint: EndpointDefinition, context: RequestContext) -> SelectedResponse:
    """
    Select the active response for a request.

    Args:
        endpoint: Matched endpoint definition
        context: Request context the conditions are evaluated against

    Returns:
        SelectedResponse from the first matching scenario, or the defaults
    """
    for scenario in endpoint.scenarios:
        if evaluate_condition(scenario.condition, context):
            return SelectedResponse(
                status_code=scenario.status_code,
                delay_ms=scenario.delay_ms,
                response_template=scenario.response_template,
                scenario_name=scenario.name
            )

    return SelectedResponse(
        status_code=endpoint.status_code,
        delay_ms=endpoint.delay_ms,
        response_template=endpoint.response_template
    )

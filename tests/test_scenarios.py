"""
Tests for Mockingbird Scenario Selection

Tests that the first scenario whose condition holds wins and that the
endpoint defaults apply otherwise.
"""

import pytest

from mockingbird.engine.scenarios import SelectedResponse, select_scenario
from mockingbird.models import EndpointDefinition, RequestContext


@pytest.fixture
def endpoint():
    """Endpoint with three scenarios; S2 and S3 both hold for id=2."""
    return EndpointDefinition.from_dict({
        'endpointId': '/items/:id',
        'statusCode': 200,
        'delay': 10,
        'responseTemplate': '{"default": true}',
        'scenarios': [
            {'name': 'S1', 'condition': "path.id === '1'", 'statusCode': 201, 'responseTemplate': '{"s": 1}'},
            {'name': 'S2', 'condition': "path.id === '2'", 'statusCode': 202, 'responseTemplate': '{"s": 2}'},
            {'name': 'S3', 'condition': "path.id > 0", 'statusCode': 203, 'delay': 0, 'responseTemplate': '{"s": 3}'},
        ]
    })


class TestSelectScenario:
    """Test scenario selection."""

    def test_first_matching_scenario_wins(self, endpoint):
        """Test S2 is chosen over S3 when both hold."""
        selected = select_scenario(endpoint, RequestContext(path_params={'id': '2'}))

        assert selected.scenario_name == 'S2'
        assert selected.status_code == 202
        assert selected.response_template == '{"s": 2}'

    def test_later_scenario_when_earlier_fail(self, endpoint):
        """Test S3 is chosen when S1 and S2 do not hold."""
        selected = select_scenario(endpoint, RequestContext(path_params={'id': '7'}))

        assert selected.scenario_name == 'S3'
        assert selected.delay_ms == 0

    def test_defaults_when_no_scenario_holds(self, endpoint):
        """Test the endpoint defaults apply when no condition holds."""
        selected = select_scenario(endpoint, RequestContext(path_params={'id': 'abc'}))

        assert selected == SelectedResponse(status_code=200, delay_ms=10, response_template='{"default": true}')
        assert selected.is_default is True

    def test_scenario_inherits_endpoint_delay(self, endpoint):
        """Test scenarios without a delay use the endpoint delay."""
        selected = select_scenario(endpoint, RequestContext(path_params={'id': '1'}))

        assert selected.delay_ms == 10

    def test_empty_condition_never_selected(self):
        """Test a scenario with an empty condition is skipped."""
        endpoint = EndpointDefinition.from_dict({
            'endpointId': '/x',
            'scenarios': [{'name': 'Always?', 'condition': '', 'statusCode': 500}]
        })

        selected = select_scenario(endpoint, RequestContext())

        assert selected.is_default is True
        assert selected.status_code == 200

    def test_broken_condition_does_not_block_others(self):
        """Test a malformed condition counts as false."""
        endpoint = EndpointDefinition.from_dict({
            'endpointId': '/x',
            'scenarios': [
                {'name': 'Broken', 'condition': 'path.id ===', 'statusCode': 500},
                {'name': 'Fallback', 'condition': 'true', 'statusCode': 418},
            ]
        })

        selected = select_scenario(endpoint, RequestContext())

        assert selected.scenario_name == 'Fallback'
        assert selected.status_code == 418

    def test_to_dict(self, endpoint):
        """Test converting a selection to a dictionary."""
        data = select_scenario(endpoint, RequestContext(path_params={'id': '2'})).to_dict()

        assert data == {
            'statusCode': 202,
            'delay': 10,
            'responseTemplate': '{"s": 2}',
            'scenario': 'S2'
        }

"""
Tests for Mockingbird Placeholder Renderer

Tests template rendering including:
- Path, query and body placeholders
- Whole-body substitution
- Value formatting
- Single-pass and sequential modes
"""

import json

import pytest

from mockingbird.engine.renderer import find_placeholders, format_value, render
from mockingbird.models import RequestContext


@pytest.fixture
def context():
    """Request context with path, query and body data."""
    return RequestContext(
        path_params={'id': '42'},
        query_params={'filter': 'all', 'page': 2},
        body_params={'a': 1, 'b': 2}
    )


class TestRender:
    """Test placeholder substitution."""

    def test_path_placeholder_is_string(self, context):
        """Test path parameters render inside a quoted string."""
        text = render('{"id":"{{path.id}}"}', context)

        assert json.loads(text) == {'id': '42'}

    def test_query_placeholder(self, context):
        """Test query parameters render with their JavaScript string form."""
        text = render('{"filter":"{{query.filter}}","page":{{query.page}}}', context)

        assert json.loads(text) == {'filter': 'all', 'page': 2}

    def test_body_field(self, context):
        """Test top-level body fields."""
        text = render('{"a":{{body.a}}}', context)

        assert json.loads(text) == {'a': 1}

    def test_whole_body(self, context):
        """Test {{body}} renders the whole body as compact JSON."""
        text = render('{"data":{{body}}}', context)

        assert text == '{"data":{"a":1,"b":2}}'

    def test_whitespace_inside_braces(self, context):
        """Test whitespace around the placeholder name is ignored."""
        assert render('{{ path.id }}', context) == '42'
        assert render('{{  body  }}', context) == '{"a":1,"b":2}'

    def test_unknown_name_left_untouched(self, context):
        """Test placeholders for missing names stay in the output."""
        assert render('{{path.missing}}', context) == '{{path.missing}}'
        assert render('{{other.id}}', context) == '{{other.id}}'

    def test_whole_body_without_body_left_untouched(self):
        """Test {{body}} stays when no body was supplied."""
        assert render('{{body}}', RequestContext()) == '{{body}}'

    @pytest.mark.parametrize('body', [0, '', False])
    def test_whole_body_left_untouched_for_falsy_body(self, body):
        """Test {{body}} is only replaced when the body is truthy."""
        assert render('{{body}}', RequestContext(body_params=body)) == '{{body}}'
        assert render('{{body}}', RequestContext(body_params=body), mode='sequential') == '{{body}}'

    def test_whole_body_empty_object(self):
        """Test an empty object body still renders."""
        assert render('{{body}}', RequestContext(body_params={})) == '{}'

    def test_composite_values_render_as_json(self):
        """Test objects and arrays render as compact JSON."""
        context = RequestContext(body_params={'user': {'name': 'Ann'}, 'tags': ['x', 'y']})

        assert render('{{body.user}}', context) == '{"name":"Ann"}'
        assert render('{{body.tags}}', context) == '["x","y"]'

    def test_scalar_formatting(self):
        """Test booleans, null and numbers render like JavaScript."""
        context = RequestContext(body_params={'flag': True, 'none': None, 'ratio': 1.5, 'whole': 3.0})

        assert render('{{body.flag}}', context) == 'true'
        assert render('{{body.none}}', context) == 'null'
        assert render('{{body.ratio}}', context) == '1.5'
        assert render('{{body.whole}}', context) == '3'

    def test_no_placeholders(self, context):
        """Test templates without placeholders render unchanged."""
        assert render('{"ok": true}', context) == '{"ok": true}'

    def test_unknown_mode(self, context):
        """Test an unknown render mode is rejected."""
        with pytest.raises(ValueError):
            render('{}', context, mode='twice')


class TestRenderModes:
    """Test single-pass versus sequential rendering."""

    def test_single_pass_does_not_rescan(self):
        """Test substituted text is not scanned again."""
        context = RequestContext(path_params={'id': '{{query.q}}'}, query_params={'q': 'leak'})

        assert render('{{path.id}}', context) == '{{query.q}}'

    def test_sequential_rescans_later_passes(self):
        """Test sequential mode replaces placeholders introduced by earlier passes."""
        context = RequestContext(path_params={'id': '{{query.q}}'}, query_params={'q': 'leak'})

        assert render('{{path.id}}', context, mode='sequential') == 'leak'

    def test_modes_agree_on_plain_templates(self, context):
        """Test both modes give the same output for ordinary values."""
        template = '{"id":"{{path.id}}","page":{{query.page}},"data":{{body}}}'

        assert render(template, context) == render(template, context, mode='sequential')

    def test_sequential_escapes_keys(self):
        """Test keys with regex metacharacters are matched literally."""
        context = RequestContext(query_params={'a.b': 'x', 'aXb': 'y'})

        assert render('{{query.a.b}}|{{query.aXb}}', context, mode='sequential') == 'x|y'


class TestHelpers:
    """Test renderer helpers."""

    def test_format_value(self):
        """Test replacement text for values."""
        assert format_value('text') == 'text'
        assert format_value(False) == 'false'
        assert format_value({'k': [1, 2]}) == '{"k":[1,2]}'

    def test_find_placeholders(self):
        """Test listing referenced names per namespace."""
        found = find_placeholders('{{path.id}} {{ query.page }} {{body.name}} {{body}} {{path.id}}')

        assert found == {'path': ['id'], 'query': ['page'], 'body': ['name']}

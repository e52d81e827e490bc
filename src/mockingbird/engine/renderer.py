"""
Mockingbird Placeholder Renderer

Substitutes request data into response templates.

Placeholder forms (whitespace inside the braces is ignored):
- {{path.NAME}}   - captured or explicit path parameter
- {{query.NAME}}  - query parameter
- {{body.NAME}}   - top-level field of the request body
- {{body}}        - the whole request body as compact JSON (only when the
                    body is truthy: 0, "", false and null leave it untouched)

Composite values (objects, arrays) are substituted as compact JSON, scalars
with their JavaScript string form (`true`, `null`, `42`). Placeholders that
reference unknown names are left in the output untouched.

Two rendering modes are available:
- single_pass: every `{{...}}` span is resolved in one scan over the
  template; substituted text is never scanned again.
- sequential: path, query, body-field and whole-body placeholders are
  replaced in four successive passes over the growing text, so a substituted
  value that looks like a later placeholder gets replaced too.
  Use it for templates that rely on that re-scan.
"""

import re
from typing import Dict, Any

from ..models import RequestContext
from ..jsvalues import canonical_json, is_object, to_js_string, truthy


RENDER_MODES = ('single_pass', 'sequential')

PLACEHOLDER_RE = re.compile(r'\{\{\s*(path|query|body)(?:\.([^{}]*?))?\s*\}\}')


def format_value(value: Any) -> str:
    """Replacement text for a single substituted value."""
    if is_object(value):
        return canonical_json(value)
    return to_js_string(value)


def _entries(params: Any) -> Dict[str, Any]:
    """Key/value view of a parameter set (list bodies are keyed by index)."""
    if params is None:
        return {}
    if isinstance(params, dict):
        return {str(k): v for k, v in params.items()}
    if isinstance(params, list):
        return {str(i): v for i, v in enumerate(params)}
    return {}


def build_lookup(context: RequestContext) -> Dict[str, Dict[str, Any]]:
    """Lookup tables per placeholder namespace."""
    return {
        'path': _entries(context.path_params),
        'query': _entries(context.query_params),
        'body': _entries(context.body_params)
    }


def render(template: str, context: RequestContext, mode: str = 'single_pass') -> str:
    """
    Render a response template against a request context.

    Args:
        template: Response template text
        context: Request path/query/body data
        mode: 'single_pass' (default) or 'sequential'

    Returns:
        Rendered text (not yet parsed)
    """
    if mode == 'single_pass':
        return _render_single_pass(template, context)
    if mode == 'sequential':
        return _render_sequential(template, context)
    raise ValueError(f"Unknown render mode '{mode}'. Expected one of: {', '.join(RENDER_MODES)}")


def _render_single_pass(template: str, context: RequestContext) -> str:
    lookup = build_lookup(context)
    has_body = truthy(context.body_params)

    def replace(match: 're.Match') -> str:
        namespace, name = match.group(1), match.group(2)
        if name is None:
            # Bare {{path}} and {{query}} are not placeholders
            if namespace == 'body' and has_body:
                return canonical_json(context.body_params)
            return match.group(0)

        name = name.strip()
        table = lookup[namespace]
        if name in table:
            return format_value(table[name])
        return match.group(0)

    return PLACEHOLDER_RE.sub(replace, template)


def _replace_namespace(text: str, namespace: str, params: Dict[str, Any]) -> str:
    for key, value in params.items():
        placeholder = re.compile(r'\{\{\s*' + namespace + r'\.' + re.escape(key) + r'\s*\}\}')
        replacement = format_value(value)
        text = placeholder.sub(lambda _m: replacement, text)
    return text


def _render_sequential(template: str, context: RequestContext) -> str:
    text = template
    text = _replace_namespace(text, 'path', _entries(context.path_params))
    text = _replace_namespace(text, 'query', _entries(context.query_params))

    if truthy(context.body_params):
        text = _replace_namespace(text, 'body', _entries(context.body_params))
        body_json = canonical_json(context.body_params)
        text = re.sub(r'\{\{\s*body\s*\}\}', lambda _m: body_json, text)

    return text


def find_placeholders(template: str) -> Dict[str, list]:
    """
    List the names referenced by a template, per namespace.

    Used by validation to report what a template expects.
    """
    found: Dict[str, list] = {'path': [], 'query': [], 'body': []}
    for match in PLACEHOLDER_RE.finditer(template):
        namespace, name = match.group(1), match.group(2)
        if name is None:
            continue
        name = name.strip()
        if name not in found[namespace]:
            found[namespace].append(name)
    return found


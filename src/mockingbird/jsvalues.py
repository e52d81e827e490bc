"""
Mockingbird JavaScript Value Semantics

Response templates and scenario conditions were authored against JavaScript
behaviour: `String(value)` for substitutions, `JSON.stringify` for composite
values, and the usual dynamic coercions for `==`, `<` and friends. This module
reproduces those rules for plain Python values decoded from JSON.

Value mapping:
- None        -> null
- UNDEFINED   -> undefined
- bool        -> boolean
- int / float -> number
- str         -> string
- dict / list -> object / array
"""

import json
import math
import re
from typing import Any, Optional


class _Undefined:
    """Singleton standing in for JavaScript `undefined`."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'undefined'

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()

_DECIMAL_RE = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$')
_RADIX_RE = re.compile(r'^0([xXoObB])([0-9a-fA-F]+)$')
_RADIX = {'x': 16, 'o': 8, 'b': 2}


def is_number(value: Any) -> bool:
    """True for int/float values (bool is not a number here)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_nullish(value: Any) -> bool:
    return value is None or value is UNDEFINED


def is_object(value: Any) -> bool:
    return isinstance(value, (dict, list))


def format_number(value: float) -> str:
    """Format a number the way `String(n)` does."""
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return 'NaN'
    if math.isinf(value):
        return 'Infinity' if value > 0 else '-Infinity'
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    text = repr(value)
    # 1e-07 -> 1e-7
    return re.sub(r'e([+-])0*(\d)', r'e\1\2', text)


def to_js_string(value: Any) -> str:
    """Equivalent of JavaScript `String(value)`."""
    if value is None:
        return 'null'
    if value is UNDEFINED:
        return 'undefined'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if is_number(value):
        return format_number(value)
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return ','.join('' if is_nullish(item) else to_js_string(item) for item in value)
    if isinstance(value, dict):
        return '[object Object]'
    return str(value)


def to_json_compatible(value: Any) -> Any:
    """Copy of `value` with NaN, infinities and undefined mapped to None, as `JSON.stringify` does."""
    if isinstance(value, float) and not isinstance(value, bool):
        if math.isnan(value) or math.isinf(value):
            return None
        if value.is_integer() and abs(value) < 1e21:
            return int(value)
        return value
    if isinstance(value, dict):
        return {str(k): to_json_compatible(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_compatible(v) for v in value]
    if value is UNDEFINED:
        return None
    return value


def canonical_json(value: Any) -> str:
    """Compact JSON text matching `JSON.stringify(value)`."""
    return json.dumps(to_json_compatible(value), separators=(',', ':'), ensure_ascii=False)


def parse_number(text: str) -> Optional[float]:
    """
    Parse a string with JavaScript `Number(text)` rules.

    Returns:
        int for integral decimal text, float otherwise, None when the text is
        not numeric (where JavaScript would produce NaN).
    """
    stripped = text.strip()
    if stripped == '':
        return 0
    if stripped in ('Infinity', '+Infinity'):
        return math.inf
    if stripped == '-Infinity':
        return -math.inf

    radix = _RADIX_RE.match(stripped)
    if radix:
        try:
            return int(radix.group(2), _RADIX[radix.group(1).lower()])
        except ValueError:
            return None

    if not _DECIMAL_RE.match(stripped):
        return None
    if re.match(r'^[+-]?\d+$', stripped):
        try:
            return int(stripped)
        except ValueError:
            # int() rejects very long digit strings
            return float(stripped)
    return float(stripped)


def to_number(value: Any) -> float:
    """Equivalent of JavaScript `Number(value)`; NaN is returned as float('nan')."""
    if value is None:
        return 0
    if value is UNDEFINED:
        return math.nan
    if isinstance(value, bool):
        return 1 if value else 0
    if is_number(value):
        return value
    if isinstance(value, str):
        parsed = parse_number(value)
        return math.nan if parsed is None else parsed
    return to_number(to_primitive(value))


def to_primitive(value: Any) -> Any:
    """Objects and arrays collapse to their string form; primitives pass through."""
    if is_object(value):
        return to_js_string(value)
    return value


def truthy(value: Any) -> bool:
    """JavaScript truthiness."""
    if is_nullish(value):
        return False
    if isinstance(value, bool):
        return value
    if is_number(value):
        return not (value == 0 or math.isnan(value))
    if isinstance(value, str):
        return value != ''
    return True


def _type_tag(value: Any) -> str:
    if value is None:
        return 'null'
    if value is UNDEFINED:
        return 'undefined'
    if isinstance(value, bool):
        return 'boolean'
    if is_number(value):
        return 'number'
    if isinstance(value, str):
        return 'string'
    return 'object'


def strict_equals(left: Any, right: Any) -> bool:
    """JavaScript `===`."""
    tag = _type_tag(left)
    if tag != _type_tag(right):
        return False
    if tag == 'object':
        return left is right
    if tag in ('null', 'undefined'):
        return True
    return left == right


def loose_equals(left: Any, right: Any) -> bool:
    """JavaScript `==` (abstract equality)."""
    left_tag, right_tag = _type_tag(left), _type_tag(right)
    if left_tag == right_tag:
        return strict_equals(left, right)
    if is_nullish(left) or is_nullish(right):
        return is_nullish(left) and is_nullish(right)
    if left_tag == 'boolean':
        return loose_equals(to_number(left), right)
    if right_tag == 'boolean':
        return loose_equals(left, to_number(right))
    if left_tag == 'number' and right_tag == 'string':
        return left == to_number(right)
    if left_tag == 'string' and right_tag == 'number':
        return to_number(left) == right
    if left_tag == 'object':
        return loose_equals(to_primitive(left), right)
    if right_tag == 'object':
        return loose_equals(left, to_primitive(right))
    return False


def compare(left: Any, right: Any, operator: str) -> bool:
    """JavaScript relational comparison for `<`, `<=`, `>`, `>=`."""
    left, right = to_primitive(left), to_primitive(right)
    if isinstance(left, str) and isinstance(right, str):
        a, b = left, right
    else:
        a, b = to_number(left), to_number(right)
        if math.isnan(a) or math.isnan(b):
            return False

    if operator == '<':
        return a < b
    if operator == '<=':
        return a <= b
    if operator == '>':
        return a > b
    if operator == '>=':
        return a >= b
    raise ValueError(f"Unknown relational operator: {operator}")


def add(left: Any, right: Any) -> Any:
    """JavaScript binary `+`: concatenates when either operand is a string."""
    left, right = to_primitive(left), to_primitive(right)
    if isinstance(left, str) or isinstance(right, str):
        return to_js_string(left) + to_js_string(right)
    return to_number(left) + to_number(right)


def arithmetic(left: Any, right: Any, operator: str) -> float:
    """JavaScript `-`, `*`, `/`, `%` on numbers."""
    a, b = to_number(left), to_number(right)
    if math.isnan(a) or math.isnan(b):
        return math.nan
    if operator == '-':
        return a - b
    if operator == '*':
        return a * b
    if operator == '/':
        if b == 0:
            if a == 0:
                return math.nan
            return math.copysign(math.inf, a) * math.copysign(1, b)
        return a / b
    if operator == '%':
        if b == 0 or math.isinf(a):
            return math.nan
        if math.isinf(b):
            return a
        return math.fmod(a, b)
    raise ValueError(f"Unknown arithmetic operator: {operator}")


def get_property(target: Any, key: Any) -> Any:
    """
    Property access `target[key]` / `target.key`.

    Raises:
        TypeError: when reading a property of null or undefined
    """
    if is_nullish(target):
        raise TypeError(f"Cannot read properties of {to_js_string(target)} (reading '{to_js_string(key)}')")

    name = to_js_string(key)

    if isinstance(target, dict):
        return target.get(name, UNDEFINED)

    if isinstance(target, (list, str)):
        if name == 'length':
            return len(target)
        if name.isdigit() and str(int(name)) == name:
            index = int(name)
            if index < len(target):
                return target[index]
        return UNDEFINED

    return UNDEFINED

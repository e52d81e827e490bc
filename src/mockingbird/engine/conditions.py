"""
Mockingbird Condition Evaluator

Evaluates scenario conditions such as

    path.id === 'error'
    query.status === 'pending' || path.id > 100
    !body.active && body.items.length >= 3

against the request context. Conditions are parsed by a small
recursive-descent parser into a tree and walked by an evaluator that follows
JavaScript coercion rules (see `mockingbird.jsvalues`). Nothing is passed to
`eval`; only the grammar below is understood:

    expr           := or
    or             := and ( '||' and )*
    and            := equality ( '&&' equality )*
    equality       := relational ( ('===' | '!==' | '==' | '!=') relational )*
    relational     := additive ( ('<' | '<=' | '>' | '>=') additive )*
    additive       := multiplicative ( ('+' | '-') multiplicative )*
    multiplicative := unary ( ('*' | '/' | '%') unary )*
    unary          := ('!' | '-' | '+') unary | member
    member         := primary ( '.' IDENT | '[' expr ']' )*
    primary        := NUMBER | STRING | true | false | null | undefined
                    | path | query | body | '(' expr ')'

Conditions are trusted input. The restricted grammar rules out arbitrary code
execution but does not bound evaluation cost; do not expose condition
authoring to untrusted users.
"""

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Dict, Any, Optional, Tuple

from ..errors import ConditionEvaluationError
from ..models import RequestContext
from ..jsvalues import (
    UNDEFINED,
    add,
    arithmetic,
    compare,
    get_property,
    loose_equals,
    parse_number,
    strict_equals,
    to_number,
    truthy,
)


logger = logging.getLogger("mockingbird.engine")

BOUND_NAMES = ('path', 'query', 'body')
KEYWORDS = {'true': True, 'false': False, 'null': None, 'undefined': UNDEFINED}

_TOKEN_RE = re.compile(r"""
    (?P<ws>\s+)
  | (?P<number>0[xX][0-9a-fA-F]+|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
  | (?P<string>'(?:[^'\\\n]|\\.)*'|"(?:[^"\\\n]|\\.)*")
  | (?P<ident>[A-Za-z_$][A-Za-z0-9_$]*)
  | (?P<punct>===|!==|==|!=|<=|>=|&&|\|\||[<>!+\-*/%().\[\]])
""", re.VERBOSE)

_ESCAPES = {'n': '\n', 't': '\t', 'r': '\r', 'b': '\b', 'f': '\f', 'v': '\v', '0': '\0'}


@dataclass(frozen=True)
class Token:
    kind: str
    value: Any
    position: int


def _unescape(raw: str) -> str:
    result = []
    i = 0
    while i < len(raw):
        char = raw[i]
        if char != '\\':
            result.append(char)
            i += 1
            continue

        escaped = raw[i + 1]
        if escaped in _ESCAPES:
            result.append(_ESCAPES[escaped])
            i += 2
        elif escaped == 'u' and re.match(r'[0-9a-fA-F]{4}', raw[i + 2:i + 6]):
            result.append(chr(int(raw[i + 2:i + 6], 16)))
            i += 6
        elif escaped == 'x' and re.match(r'[0-9a-fA-F]{2}', raw[i + 2:i + 4]):
            result.append(chr(int(raw[i + 2:i + 4], 16)))
            i += 4
        else:
            result.append(escaped)
            i += 2
    return ''.join(result)


def tokenize(source: str) -> List[Token]:
    """
    Split a condition into tokens.

    Raises:
        ConditionEvaluationError: on characters outside the grammar
    """
    tokens: List[Token] = []
    position = 0
    while position < len(source):
        match = _TOKEN_RE.match(source, position)
        if not match:
            raise ConditionEvaluationError(
                f"Unexpected character {source[position]!r} at position {position}"
            )

        kind = match.lastgroup
        text = match.group(kind)
        if kind == 'number':
            tokens.append(Token('number', parse_number(text), position))
        elif kind == 'string':
            tokens.append(Token('string', _unescape(text[1:-1]), position))
        elif kind in ('ident', 'punct'):
            tokens.append(Token(kind, text, position))
        position = match.end()

    tokens.append(Token('eof', None, len(source)))
    return tokens


# Tree nodes are plain tuples: (node_type, ...)
Node = Tuple[Any, ...]


class _Parser:
    """Recursive-descent parser producing a tuple tree."""

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.index = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def _accept(self, *values: str) -> Optional[str]:
        token = self.current
        if token.kind == 'punct' and token.value in values:
            self.index += 1
            return token.value
        return None

    def _expect(self, value: str) -> None:
        if not self._accept(value):
            raise ConditionEvaluationError(
                f"Expected '{value}' at position {self.current.position}"
            )

    def parse(self) -> Node:
        node = self._or()
        if self.current.kind != 'eof':
            raise ConditionEvaluationError(
                f"Unexpected token {self.current.value!r} at position {self.current.position}"
            )
        return node

    def _or(self) -> Node:
        node = self._and()
        while self._accept('||'):
            node = ('logical', '||', node, self._and())
        return node

    def _and(self) -> Node:
        node = self._equality()
        while self._accept('&&'):
            node = ('logical', '&&', node, self._equality())
        return node

    def _equality(self) -> Node:
        node = self._relational()
        while True:
            operator = self._accept('===', '!==', '==', '!=')
            if not operator:
                return node
            node = ('binary', operator, node, self._relational())

    def _relational(self) -> Node:
        node = self._additive()
        while True:
            operator = self._accept('<=', '>=', '<', '>')
            if not operator:
                return node
            node = ('binary', operator, node, self._additive())

    def _additive(self) -> Node:
        node = self._multiplicative()
        while True:
            operator = self._accept('+', '-')
            if not operator:
                return node
            node = ('binary', operator, node, self._multiplicative())

    def _multiplicative(self) -> Node:
        node = self._unary()
        while True:
            operator = self._accept('*', '/', '%')
            if not operator:
                return node
            node = ('binary', operator, node, self._unary())

    def _unary(self) -> Node:
        operator = self._accept('!', '-', '+')
        if operator:
            return ('unary', operator, self._unary())
        return self._member()

    def _member(self) -> Node:
        node = self._primary()
        while True:
            if self._accept('.'):
                token = self.current
                if token.kind != 'ident':
                    raise ConditionEvaluationError(
                        f"Expected property name at position {token.position}"
                    )
                self.index += 1
                node = ('member', node, ('literal', token.value))
            elif self._accept('['):
                key = self._or()
                self._expect(']')
                node = ('member', node, key)
            else:
                return node

    def _primary(self) -> Node:
        token = self.current

        if token.kind in ('number', 'string'):
            self.index += 1
            return ('literal', token.value)

        if token.kind == 'ident':
            self.index += 1
            if token.value in KEYWORDS:
                return ('literal', KEYWORDS[token.value])
            if token.value in BOUND_NAMES:
                return ('name', token.value)
            raise ConditionEvaluationError(f"{token.value} is not defined")

        if self._accept('('):
            node = self._or()
            self._expect(')')
            return node

        if token.kind == 'eof':
            raise ConditionEvaluationError("Unexpected end of condition")
        raise ConditionEvaluationError(
            f"Unexpected token {token.value!r} at position {token.position}"
        )


def _evaluate(node: Node, scope: Dict[str, Any]) -> Any:
    node_type = node[0]

    if node_type == 'literal':
        return node[1]

    if node_type == 'name':
        return scope[node[1]]

    if node_type == 'member':
        return get_property(_evaluate(node[1], scope), _evaluate(node[2], scope))

    if node_type == 'unary':
        operator, operand = node[1], _evaluate(node[2], scope)
        if operator == '!':
            return not truthy(operand)
        if operator == '-':
            return -to_number(operand)
        return to_number(operand)

    if node_type == 'logical':
        left = _evaluate(node[2], scope)
        if node[1] == '&&':
            return _evaluate(node[3], scope) if truthy(left) else left
        return left if truthy(left) else _evaluate(node[3], scope)

    operator = node[1]
    left = _evaluate(node[2], scope)
    right = _evaluate(node[3], scope)
    if operator == '===':
        return strict_equals(left, right)
    if operator == '!==':
        return not strict_equals(left, right)
    if operator == '==':
        return loose_equals(left, right)
    if operator == '!=':
        return not loose_equals(left, right)
    if operator in ('<', '<=', '>', '>='):
        return compare(left, right, operator)
    if operator == '+':
        return add(left, right)
    return arithmetic(left, right, operator)


class CompiledCondition:
    """A parsed condition, reusable across requests."""

    def __init__(self, source: str, tree: Node):
        self.source = source
        self.tree = tree

    def evaluate(self, bindings: Dict[str, Any]) -> Any:
        """
        Evaluate against `path`/`query`/`body` bindings.

        Returns:
            The raw expression value (not coerced to bool)

        Raises:
            ConditionEvaluationError: on runtime failures
        """
        scope = {name: bindings.get(name, {}) for name in BOUND_NAMES}
        try:
            return _evaluate(self.tree, scope)
        except (TypeError, ValueError, OverflowError, RecursionError) as e:
            raise ConditionEvaluationError(f"Error evaluating condition {self.source!r}: {e}") from e

    def test(self, bindings: Dict[str, Any]) -> bool:
        return truthy(self.evaluate(bindings))

    def __repr__(self) -> str:
        return f"CompiledCondition({self.source!r})"


@lru_cache(maxsize=512)
def compile_condition(source: str) -> CompiledCondition:
    """
    Parse a condition string.

    Raises:
        ConditionEvaluationError: if the condition is malformed
    """
    try:
        tree = _Parser(tokenize(source)).parse()
    except RecursionError as e:
        raise ConditionEvaluationError(f"Condition too deeply nested: {source!r}") from e
    except (ValueError, TypeError, OverflowError) as e:
        raise ConditionEvaluationError(f"Cannot parse condition {source!r}: {e}") from e
    return CompiledCondition(source, tree)


def is_blank(condition: Optional[str]) -> bool:
    return not isinstance(condition, str) or condition.strip() == ''


def evaluate_condition(condition: Optional[str], context: RequestContext) -> bool:
    """
    Evaluate a scenario condition against a request context.

    Blank conditions are never true. Malformed conditions and runtime errors
    count as false so one broken scenario cannot block the others.

    Args:
        condition: Condition expression (may be None or empty)
        context: Request context providing path, query and body

    Returns:
        True if the condition holds
    """
    if is_blank(condition):
        return False

    try:
        return compile_condition(condition.strip()).test(context.bindings())
    except ConditionEvaluationError as e:
        logger.debug(f"Condition treated as false: {e}")
        return False

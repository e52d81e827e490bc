"""
Mockingbird Path Matcher

Segment-by-segment matching of request paths against registered path
patterns such as `/users/:id/orders`.

Rules:
- Pattern and request must have the same number of segments
- `:name` segments capture the request segment verbatim as a string
- Literal segments must match exactly (case-sensitive)
- The first mismatching segment aborts the match
"""

from dataclasses import dataclass, field
from typing import List, Dict, Sequence


@dataclass
class PathMatch:
    """Result of matching a request path against a pattern."""

    matched: bool
    params: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return {'matched': self.matched, 'params': dict(self.params)}


def split_path(path: str) -> List[str]:
    """Split a path into its non-empty segments."""
    return [segment for segment in path.split('/') if segment]


def match_segments(pattern_segments: Sequence[str], request_segments: Sequence[str]) -> PathMatch:
    """
    Match request segments against pattern segments.

    Args:
        pattern_segments: Segments of the registered pattern
        request_segments: Segments of the incoming request path

    Returns:
        PathMatch with captured parameters, or a non-match
    """
    if len(pattern_segments) != len(request_segments):
        return PathMatch(matched=False)

    params: Dict[str, str] = {}
    for pattern_segment, request_segment in zip(pattern_segments, request_segments):
        if pattern_segment.startswith(':'):
            params[pattern_segment[1:]] = request_segment
        elif pattern_segment != request_segment:
            return PathMatch(matched=False)

    return PathMatch(matched=True, params=params)


def match_path(pattern: str, path: str) -> PathMatch:
    """
    Match a request path against a path pattern.

    Example:
        >>> match_path('/users/:id', '/users/42')
        PathMatch(matched=True, params={'id': '42'})
        >>> match_path('/users/:id', '/users/42/extra').matched
        False
    """
    return match_segments(split_path(pattern), split_path(path))

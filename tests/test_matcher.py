"""
Tests for Mockingbird Path Matcher

Tests segment matching including:
- Literal and parameter segments
- Segment count mismatches
- Parameter capture
"""

import pytest

from mockingbird.engine.matcher import PathMatch, match_path, match_segments, split_path


class TestSplitPath:
    """Test path splitting."""

    def test_leading_and_trailing_slashes_ignored(self):
        """Test that empty segments are dropped."""
        assert split_path('/users/42/') == ['users', '42']

    def test_root_has_no_segments(self):
        """Test splitting the root path."""
        assert split_path('/') == []

    def test_double_slashes_collapse(self):
        """Test that repeated slashes do not produce empty segments."""
        assert split_path('//users//42') == ['users', '42']


class TestMatchPath:
    """Test matching request paths against patterns."""

    def test_literal_match(self):
        """Test exact literal match."""
        result = match_path('/orders', '/orders')

        assert result.matched is True
        assert result.params == {}

    def test_parameter_capture(self):
        """Test :name segments capture the request segment as a string."""
        result = match_path('/users/:id', '/users/42')

        assert result.matched is True
        assert result.params == {'id': '42'}

    def test_multiple_parameters(self):
        """Test capturing several parameters."""
        result = match_path('/users/:userId/orders/:orderId', '/users/7/orders/abc')

        assert result.matched is True
        assert result.params == {'userId': '7', 'orderId': 'abc'}

    @pytest.mark.parametrize('path', ['/users', '/users/42/extra', '/'])
    def test_segment_count_mismatch(self, path):
        """Test that different segment counts never match."""
        assert match_path('/users/:id', path).matched is False

    def test_literal_mismatch(self):
        """Test that a differing literal segment rejects the match."""
        result = match_path('/users/:id/orders', '/users/42/invoices')

        assert result.matched is False
        assert result.params == {}

    def test_literals_are_case_sensitive(self):
        """Test that literal comparison is case-sensitive."""
        assert match_path('/Users/:id', '/users/42').matched is False

    def test_trailing_slash_ignored(self):
        """Test that a trailing slash still matches."""
        assert match_path('/orders', '/orders/').matched is True

    def test_root_pattern(self):
        """Test root pattern matches only the root path."""
        assert match_path('/', '/').matched is True
        assert match_path('/', '/users').matched is False


class TestMatchSegments:
    """Test matching pre-split segments."""

    def test_match_segments(self):
        """Test matching segment lists directly."""
        result = match_segments(['items', ':sku'], ['items', 'X-1'])

        assert result == PathMatch(matched=True, params={'sku': 'X-1'})

    def test_to_dict(self):
        """Test converting a match to a dictionary."""
        result = match_segments([':a'], ['1'])

        assert result.to_dict() == {'matched': True, 'params': {'a': '1'}}

"""
Mockingbird Dispatcher

Turns a request (method, URL, explicit path/query parameters, body) into a
mock response:

1. Normalize the path (drop query string and API prefix)
2. Find the first registered endpoint whose method and path match
3. Merge path parameters (values captured from the URL win)
4. Merge query parameters (explicitly supplied values win)
5. Select the scenario
6. Wait for the scenario delay
7. Render the template and parse it as JSON

Failures are returned in the DispatchResult, never raised.
"""

from __future__ import annotations  # Enable forward references for type hints

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Dict, Any, Optional, Callable, Awaitable, Tuple
from urllib.parse import unquote, urlsplit

from ..errors import MockingbirdError, NotFoundError, RenderError, ConfigError
from ..jsvalues import parse_number, to_json_compatible
from ..models import EndpointDefinition, RequestContext
from .matcher import match_path
from .renderer import RENDER_MODES, render
from .scenarios import SelectedResponse, select_scenario


logger = logging.getLogger("mockingbird.engine")

ROUTE_POLICIES = ('first_match',)

SleepFn = Callable[[float], Awaitable[Any]]


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def parse_query_string(url: str) -> Dict[str, Any]:
    """
    Parse the query string of a URL into a flat mapping.

    Pairs are split on '&' and '='; keys and values are percent-decoded.
    Pairs with an empty key or value are skipped, numeric values become
    numbers, and a repeated key keeps its last value.

    Example:
        >>> parse_query_string('/orders?status=pending&page=2')
        {'status': 'pending', 'page': 2}
    """
    if '?' not in url:
        return {}

    query = url.split('?', 1)[1].split('#', 1)[0]
    params: Dict[str, Any] = {}
    for pair in query.split('&'):
        parts = pair.split('=')
        key = unquote(parts[0])
        value = unquote(parts[1]) if len(parts) > 1 else ''
        if not key or not value:
            continue
        number = parse_number(value)
        params[key] = value if number is None else number
    return params


def normalize_path(url: str, api_prefix: Optional[str] = None) -> str:
    """
    Reduce a request URL to the path matched against endpoint patterns.

    Strips scheme and host, the query string and fragment, and `api_prefix`
    when the path is the prefix or continues below it.
    """
    if '://' in url:
        parts = urlsplit(url)
        path = parts.path
    else:
        path = url.split('?', 1)[0].split('#', 1)[0]

    if api_prefix:
        prefix = api_prefix.rstrip('/')
        if prefix and (path == prefix or path.startswith(prefix + '/')):
            path = path[len(prefix):]

    return path or '/'


@dataclass
class DispatchResult:
    """
    Outcome of one dispatched request.

    On success `body` holds the parsed response. On failure `error` holds a
    NotFoundError or RenderError; for render errors `status_code` is still
    the status the selected scenario intended to return.
    """

    status_code: int
    body: Any = None
    error: Optional[MockingbirdError] = None
    endpoint: Optional[EndpointDefinition] = None
    scenario_name: Optional[str] = None
    delay_ms: int = 0
    elapsed_ms: float = 0.0
    context: Optional[RequestContext] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> str:
        return 'ok' if self.error is None else self.error.kind

    def raise_for_error(self) -> None:
        """Raise the carried error, if any."""
        if self.error is not None:
            raise self.error

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = {
            'kind': self.kind,
            'statusCode': self.status_code,
            'endpoint': self.endpoint.identity if self.endpoint else None,
            'scenario': self.scenario_name,
            'delay': self.delay_ms,
            'latencyMs': round(self.elapsed_ms, 2)
        }
        if self.ok:
            data['body'] = self.body
        else:
            data.update(self.error.to_dict())
        if self.context is not None:
            data['request'] = to_json_compatible(self.context.to_dict())
        return data


class Dispatcher:
    """
    Matches requests against an EndpointRegistry and produces responses.

    Example:
        dispatcher = Dispatcher(registry)
        result = await dispatcher.dispatch('GET', '/api/users/42?filter=all')
        if result.ok:
            print(result.status_code, result.body)
    """

    def __init__(
        self,
        registry,
        api_prefix: Optional[str] = '/api',
        render_mode: str = 'single_pass',
        route_policy: str = 'first_match',
        sleep: Optional[SleepFn] = None
    ):
        """
        Initialize dispatcher.

        Args:
            registry: EndpointRegistry to scan
            api_prefix: Path prefix stripped before matching (None to disable)
            render_mode: Placeholder rendering mode (single_pass, sequential)
            route_policy: How overlapping patterns are resolved (first_match)
            sleep: Coroutine used for simulated latency (defaults to asyncio.sleep)
        """
        if render_mode not in RENDER_MODES:
            raise ConfigError(f"Unknown render mode '{render_mode}'. Expected one of: {', '.join(RENDER_MODES)}")
        if route_policy not in ROUTE_POLICIES:
            raise ConfigError(f"Unknown route policy '{route_policy}'. Expected one of: {', '.join(ROUTE_POLICIES)}")

        self.registry = registry
        self.api_prefix = api_prefix
        self.render_mode = render_mode
        self.route_policy = route_policy
        self._sleep = sleep

    def find_endpoint(self, method: str, path: str) -> Tuple[Optional[EndpointDefinition], Dict[str, str]]:
        """
        Scan one registry snapshot for the first endpoint matching method and path.

        Returns:
            Tuple of (endpoint or None, captured path parameters)
        """
        for endpoint in self.registry.snapshot():
            if not endpoint.matches_method(method):
                continue
            match = match_path(endpoint.path_pattern, path)
            if match.matched:
                return endpoint, match.params
        return None, {}

    @staticmethod
    def build_context(
        url: str,
        extracted_path_params: Dict[str, str],
        path_params: Optional[Dict[str, Any]] = None,
        query_params: Optional[Dict[str, Any]] = None,
        body: Any = None
    ) -> RequestContext:
        """
        Build the request context.

        Path parameters captured from the URL override explicit ones, while
        explicit query parameters override those parsed from the URL.
        """
        return RequestContext(
            path_params={**(path_params or {}), **extracted_path_params},
            query_params={**parse_query_string(url), **(query_params or {})},
            body_params=body
        )

    async def _simulate_latency(self, delay_ms: int) -> None:
        if delay_ms <= 0:
            return
        sleep = self._sleep or asyncio.sleep
        await sleep(delay_ms / 1000)

    def _render_response(self, selected: SelectedResponse, context: RequestContext) -> Tuple[Any, Optional[RenderError]]:
        text = render(selected.response_template, context, mode=self.render_mode)
        try:
            return json.loads(text, parse_constant=_reject_constant), None
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            return None, RenderError(selected.status_code, text, reason=str(e))

    async def dispatch(
        self,
        method: str,
        url: str,
        path_params: Optional[Dict[str, Any]] = None,
        query_params: Optional[Dict[str, Any]] = None,
        body: Any = None
    ) -> DispatchResult:
        """
        Dispatch one request.

        Args:
            method: HTTP method
            url: Request path, optionally with query string
            path_params: Explicitly supplied path parameters
            query_params: Explicitly supplied query parameters
            body: Parsed request body

        Returns:
            DispatchResult (success, not found, or render error)
        """
        start_time = time.perf_counter()
        method = method.upper()
        path = normalize_path(url, self.api_prefix)

        logger.debug(f"Dispatching {method} {url} (path: {path})")

        endpoint, extracted = self.find_endpoint(method, path)
        if endpoint is None:
            error = NotFoundError(method, url, self.registry.identities())
            logger.warning(f"No endpoint matches {method} {url}")
            return DispatchResult(
                status_code=404,
                error=error,
                elapsed_ms=(time.perf_counter() - start_time) * 1000
            )

        context = self.build_context(url, extracted, path_params, query_params, body)
        selected = select_scenario(endpoint, context)

        if not selected.is_default:
            logger.debug(f"{endpoint.identity}: scenario '{selected.scenario_name}' selected")

        await self._simulate_latency(selected.delay_ms)

        response_body, error = self._render_response(selected, context)
        elapsed_ms = (time.perf_counter() - start_time) * 1000

        if error is not None:
            logger.error(f"{endpoint.identity}: rendered template is not valid JSON ({error.reason})")

        return DispatchResult(
            status_code=selected.status_code,
            body=response_body,
            error=error,
            endpoint=endpoint,
            scenario_name=selected.scenario_name,
            delay_ms=selected.delay_ms,
            elapsed_ms=elapsed_ms,
            context=context
        )

    def dispatch_request(
        self,
        method: str,
        url: str,
        path_params: Optional[Dict[str, Any]] = None,
        query_params: Optional[Dict[str, Any]] = None,
        body: Any = None
    ) -> DispatchResult:
        """Synchronous wrapper around dispatch() for callers without an event loop."""
        return asyncio.run(self.dispatch(method, url, path_params, query_params, body))

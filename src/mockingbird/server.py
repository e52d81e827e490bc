"""
Mockingbird Mock Server

FastAPI-based HTTP server exposing the mock engine.

Features:
- Catch-all route dispatching every request to the endpoint registry
- Conditional scenarios, templated bodies and simulated latency
- Admin API for authoring endpoints at runtime
- Metrics and logging
"""

from __future__ import annotations  # Enable forward references for type hints

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Dict, Any, Optional

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from . import __version__
from .config import MockConfig
from .engine import Dispatcher, DispatchResult, EndpointRegistry
from .errors import EndpointValidationError, RenderError
from .loader import DefinitionLoader, demo_endpoints, parse_definitions
from .models import EndpointDefinition


MOCK_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]
EMPTY_BODY_STATUSES = {204, 304}


@dataclass
class MockMetrics:
    """Track mock server metrics."""

    total_requests: int = 0
    matched_requests: int = 0
    unmatched_requests: int = 0
    render_errors: int = 0
    requests_by_method: Dict[str, int] = field(default_factory=dict)
    start_time: str = field(default_factory=lambda: datetime.now().isoformat())

    def record(self, method: str, result: DispatchResult) -> None:
        """Count one dispatched request."""
        self.total_requests += 1
        self.requests_by_method[method] = self.requests_by_method.get(method, 0) + 1
        if result.endpoint is None:
            self.unmatched_requests += 1
            return
        self.matched_requests += 1
        if isinstance(result.error, RenderError):
            self.render_errors += 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        uptime_seconds = (datetime.now() - datetime.fromisoformat(self.start_time)).total_seconds()
        return {
            'total_requests': self.total_requests,
            'matched_requests': self.matched_requests,
            'unmatched_requests': self.unmatched_requests,
            'render_errors': self.render_errors,
            'requests_by_method': dict(self.requests_by_method),
            'match_rate': round((self.matched_requests / self.total_requests * 100) if self.total_requests > 0 else 0, 2),
            'uptime_seconds': round(uptime_seconds, 2),
            'start_time': self.start_time
        }


class MockServer:
    """
    FastAPI-based mock server for endpoint definitions.

    Example:
        # Serve the demo endpoints
        server = MockServer()
        server.start(port=5000)

        # Serve definitions from a file, without demo endpoints
        config = MockConfig(seed_demo=False, definition_files=['endpoints.yaml'])
        server = MockServer(config=config)
        server.start()
    """

    def __init__(
        self,
        config: Optional[MockConfig] = None,
        registry: Optional[EndpointRegistry] = None
    ):
        """
        Initialize mock server.

        Args:
            config: Optional MockConfig for server behavior
            registry: Optional EndpointRegistry (a new one is created if None)
        """
        self.config = (config or MockConfig()).validate()
        self.metrics = MockMetrics()

        self.logger = logging.getLogger("mockingbird.server")
        self.logger.setLevel(self.config.logging_level)
        logging.getLogger("mockingbird").setLevel(self.config.logging_level)

        self.registry = registry if registry is not None else EndpointRegistry()
        self._seed_registry()

        self.dispatcher = Dispatcher(
            self.registry,
            api_prefix=self.config.api_prefix,
            render_mode=self.config.render_mode,
            route_policy=self.config.route_policy
        )

        self.app = self._create_app()

    def _seed_registry(self) -> None:
        """Register demo endpoints and definition files."""
        if self.config.seed_demo:
            for endpoint in demo_endpoints():
                self.registry.upsert(endpoint)

        for path in self.config.definition_files:
            definitions = DefinitionLoader(path).load()
            for endpoint in definitions:
                self.registry.upsert(endpoint)
            self.logger.info(f"Loaded {len(definitions)} endpoints from {path}")

    def _create_app(self) -> FastAPI:
        """Create FastAPI application with routes."""
        app = FastAPI(
            title="Mockingbird Mock Server",
            description="Mock HTTP server with conditional scenarios and templated responses",
            version=__version__
        )

        if self.config.admin_enabled:
            self._add_admin_routes(app)

        # Main catch-all route for mocking
        @app.api_route("/{path:path}", methods=MOCK_METHODS)
        async def mock_request(request: Request, path: str):
            """Handle incoming requests and serve mock responses."""
            return await self._handle_request(request)

        return app

    def _add_admin_routes(self, app: FastAPI) -> None:
        prefix = self.config.admin_prefix.rstrip('/')

        @app.get(f"{prefix}/health")
        async def health():
            """Health check."""
            return JSONResponse(content={
                'status': 'OK',
                'timestamp': datetime.now().isoformat(),
                'totalEndpoints': len(self.registry),
                'version': __version__
            })

        @app.get(f"{prefix}/metrics")
        async def get_metrics():
            """Get server metrics."""
            data = self.metrics.to_dict()
            data['endpoints_by_method'] = self._endpoints_by_method()
            return JSONResponse(content=data)

        @app.get(f"{prefix}/endpoints")
        async def list_endpoints():
            """List all endpoint definitions in match order."""
            endpoints = [e.to_dict() for e in self.registry.snapshot()]
            return JSONResponse(content={'total': len(endpoints), 'endpoints': endpoints})

        @app.post(f"{prefix}/endpoints")
        async def upsert_endpoint(request: Request):
            """Create or replace one endpoint definition."""
            payload = await self._read_json(request)
            try:
                endpoint = EndpointDefinition.from_dict(payload)
            except EndpointValidationError as e:
                return JSONResponse(content=e.to_dict(), status_code=400)

            stored, created = self.registry.upsert(endpoint)
            return JSONResponse(
                content={
                    'message': f"Endpoint {stored.path_pattern} ({stored.method}) saved successfully.",
                    'created': created,
                    'endpoint': stored.to_dict()
                },
                status_code=201 if created else 200
            )

        @app.post(f"{prefix}/endpoints/import")
        async def import_endpoints(request: Request):
            """Create or replace a batch of endpoint definitions."""
            payload = await self._read_json(request)
            try:
                definitions = parse_definitions(payload, source='import')
            except EndpointValidationError as e:
                return JSONResponse(content=e.to_dict(), status_code=400)

            created = 0
            for endpoint in definitions:
                _, was_created = self.registry.upsert(endpoint)
                created += int(was_created)

            return JSONResponse(content={
                'message': f"Successfully loaded {len(definitions)} endpoints.",
                'total': len(definitions),
                'created': created,
                'updated': len(definitions) - created
            })

        @app.get(f"{prefix}/endpoint")
        async def get_endpoint(id: str):
            """Get one endpoint definition by identity."""
            endpoint = self.registry.get(id)
            if endpoint is None:
                return JSONResponse(content={'error': 'Endpoint not found'}, status_code=404)
            return JSONResponse(content=endpoint.to_dict())

        @app.delete(f"{prefix}/endpoint")
        async def delete_endpoint(id: str):
            """Delete one endpoint definition by identity."""
            if not self.registry.delete(id):
                return JSONResponse(content={'error': 'Endpoint not found'}, status_code=404)
            return JSONResponse(content={'message': f"Endpoint {id} deleted."})

        @app.post(f"{prefix}/test")
        async def test_endpoint(request: Request):
            """
            Dispatch a request with explicit parameters.

            POST body:
                {"method": "GET", "url": "/users/42?filter=all",
                 "pathParams": {}, "queryParams": {}, "body": {}}
            """
            payload = await self._read_json(request)
            if not isinstance(payload, dict) or not payload.get('url'):
                return JSONResponse(content={'error': 'url is required'}, status_code=400)

            path_params = payload.get('pathParams') or {}
            query_params = payload.get('queryParams') or {}
            for name, value in (('pathParams', path_params), ('queryParams', query_params)):
                if not isinstance(value, dict):
                    return JSONResponse(content={'error': f'{name} must be an object'}, status_code=400)

            result = await self.dispatcher.dispatch(
                str(payload.get('method', 'GET')),
                str(payload['url']),
                path_params=path_params,
                query_params=query_params,
                body=payload.get('body', {})
            )
            return JSONResponse(content=result.to_dict())

        @app.post(f"{prefix}/reset")
        async def reset():
            """Clear all endpoints, reseed demo endpoints and reset metrics."""
            deleted = self.registry.clear()
            seeded = 0
            if self.config.seed_demo:
                for endpoint in demo_endpoints():
                    self.registry.upsert(endpoint)
                    seeded += 1
            self.metrics = MockMetrics()
            return JSONResponse(content={
                'message': 'All data cleared successfully',
                'deletedEndpoints': deleted,
                'demoEndpointsAdded': seeded
            })

    def _endpoints_by_method(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for endpoint in self.registry.snapshot():
            counts[endpoint.method] = counts.get(endpoint.method, 0) + 1
        return counts

    @staticmethod
    async def _read_json(request: Request) -> Any:
        """Request body as JSON; empty or invalid bodies give {}."""
        raw = await request.body()
        if not raw:
            return {}
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return {}

    async def _handle_request(self, request: Request) -> Response:
        """
        Handle incoming request and serve mock response.

        Args:
            request: FastAPI Request object

        Returns:
            FastAPI Response with mocked data
        """
        method = request.method
        url = request.url.path
        if request.url.query:
            url = f"{url}?{request.url.query}"

        body = await self._read_json(request)

        self.logger.debug(f"Incoming: {method} {url}")

        result = await self.dispatcher.dispatch(method, url, body=body)
        self.metrics.record(method, result)

        return self._create_response(result)

    def _create_response(self, result: DispatchResult) -> Response:
        """
        Convert a DispatchResult to an HTTP response.

        Not-found results map to 404; render errors map to 500 while the
        body reports the status the scenario intended.
        """
        if result.ok:
            headers = dict(result.endpoint.headers)
            headers['X-Mockingbird-Endpoint'] = result.endpoint.identity
            if result.scenario_name:
                headers['X-Mockingbird-Scenario'] = result.scenario_name

            if result.status_code in EMPTY_BODY_STATUSES:
                return Response(status_code=result.status_code, headers=headers)
            return JSONResponse(content=result.body, status_code=result.status_code, headers=headers)

        if isinstance(result.error, RenderError):
            return JSONResponse(
                content={
                    'error': f"Internal Mock Error: {result.error}",
                    'scenarioStatus': result.error.status_code,
                    'responseText': result.error.response_text
                },
                status_code=500,
                headers={'X-Mockingbird-Endpoint': result.endpoint.identity}
            )

        return JSONResponse(
            content={
                'error': str(result.error),
                'availableEndpoints': result.error.available_endpoints
            },
            status_code=404
        )

    def start(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        access_log: bool = True
    ):
        """
        Start the mock server.

        Args:
            host: Host to bind to (overrides config)
            port: Port to bind to (overrides config)
            access_log: Enable access logging
        """
        actual_host = host or self.config.host
        actual_port = port or self.config.port

        print(f"Mockingbird Mock Server starting...")
        print(f"   Host: {actual_host}:{actual_port}")
        print(f"   Endpoints loaded: {len(self.registry)}")
        print(f"   Render mode: {self.config.render_mode}")

        if self.config.admin_enabled:
            print(f"   Admin API: http://{actual_host}:{actual_port}{self.config.admin_prefix}/endpoints")

        print()

        uvicorn.run(
            self.app,
            host=actual_host,
            port=actual_port,
            log_level=self.config.log_level,
            access_log=access_log
        )

    def get_app(self) -> FastAPI:
        """
        Get the FastAPI app instance for testing or custom deployment.

        Returns:
            FastAPI application instance
        """
        return self.app


def create_mock_server(
    definition_files: Optional[List[str]] = None,
    host: str = "127.0.0.1",
    port: int = 5000,
    api_prefix: str = "/api",
    render_mode: str = "single_pass",
    seed_demo: bool = True,
    admin_enabled: bool = True,
    log_level: str = "info"
) -> MockServer:
    """
    Convenience function to create and configure a mock server.

    Args:
        definition_files: JSON/YAML files with endpoint definitions
        host: Host to bind to
        port: Port to bind to
        api_prefix: Path prefix stripped before matching
        render_mode: Placeholder rendering mode (single_pass, sequential)
        seed_demo: Register the demo endpoints
        admin_enabled: Enable the admin API
        log_level: Log level (debug, info, warning, error)

    Returns:
        Configured MockServer instance
    """
    config = MockConfig(
        host=host,
        port=port,
        api_prefix=api_prefix,
        render_mode=render_mode,
        seed_demo=seed_demo,
        admin_enabled=admin_enabled,
        log_level=log_level,
        definition_files=list(definition_files or [])
    )

    return MockServer(config=config)

"""
Mockingbird CLI

Serve, validate and exercise endpoint definitions from the command line.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import MockConfig
from .engine import Dispatcher, EndpointRegistry, compile_condition, find_placeholders, split_path
from .errors import MockingbirdError
from .loader import DefinitionLoader, demo_endpoints
from .models import EndpointDefinition
from .server import MockServer


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )


def _load_files(paths: List[str]) -> List[EndpointDefinition]:
    endpoints = []
    for path in paths:
        endpoints.extend(DefinitionLoader(path).load())
    return endpoints


def _parse_json_option(value: Optional[str], option: str):
    if value is None:
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"{option} must be valid JSON: {e}")


def cmd_serve(args):
    """
    Start the mock HTTP server.

    Args:
        args: Parsed command-line arguments
    """
    try:
        config = MockConfig.from_yaml(args.config) if args.config else MockConfig()
        config = MockConfig.from_env(base=config)

        overrides = {
            'host': args.host,
            'port': args.port,
            'api_prefix': args.api_prefix,
            'render_mode': args.render_mode,
            'log_level': args.log_level
        }
        for name, value in overrides.items():
            if value is not None:
                setattr(config, name, value)
        if args.no_admin:
            config.admin_enabled = False
        if args.no_demo:
            config.seed_demo = False
        config.definition_files = list(config.definition_files) + list(args.files)
        config.validate()
    except (MockingbirdError, OSError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    _configure_logging(config.log_level)

    try:
        server = MockServer(config=config)
    except (MockingbirdError, OSError) as e:
        print(f"Failed to create mock server: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        server.start()
    except KeyboardInterrupt:
        print("\nMock server stopped")


def validate_endpoints(endpoints: List[EndpointDefinition]):
    """
    Check scenario conditions and template placeholders.

    Returns:
        Tuple of (errors, warnings) as lists of messages
    """
    errors = []
    warnings = []

    for endpoint in endpoints:
        params = {segment[1:] for segment in split_path(endpoint.path_pattern) if segment.startswith(':')}
        templates = [('default response', endpoint.response_template)]

        for scenario in endpoint.scenarios:
            label = f"{endpoint.identity} scenario '{scenario.name}'"
            templates.append((f"scenario '{scenario.name}'", scenario.response_template))
            if not scenario.condition.strip():
                warnings.append(f"{label}: empty condition, scenario is never selected")
                continue
            try:
                compile_condition(scenario.condition)
            except MockingbirdError as e:
                errors.append(f"{label}: {e}")

        for where, template in templates:
            for name in find_placeholders(template)['path']:
                if name not in params:
                    warnings.append(
                        f"{endpoint.identity} {where}: {{{{path.{name}}}}} is not captured by the pattern"
                    )

    return errors, warnings


def cmd_validate(args):
    """
    Validate endpoint definition files and report issues.

    Args:
        args: Parsed command-line arguments
    """
    errors = []
    warnings = []
    total = 0

    for path in args.files:
        try:
            endpoints = DefinitionLoader(path).load()
        except (MockingbirdError, OSError) as e:
            errors.append(str(e))
            continue
        total += len(endpoints)
        file_errors, file_warnings = validate_endpoints(endpoints)
        errors.extend(f"{path}: {message}" for message in file_errors)
        warnings.extend(f"{path}: {message}" for message in file_warnings)

    print(f"Endpoints checked: {total}")

    if errors:
        print("Errors found:")
        for error in errors:
            print(f"   - {error}")

    if warnings:
        print("Warnings:")
        for warning in warnings:
            print(f"   - {warning}")

    if not errors and not warnings:
        print("All validations passed!")

    if errors:
        sys.exit(1)


async def _skip_delay(seconds: float) -> None:
    return None


def cmd_call(args):
    """
    Dispatch one request against definition files without starting a server.

    Args:
        args: Parsed command-line arguments
    """
    try:
        path_params = _parse_json_option(args.path_params, '--path-params')
        query_params = _parse_json_option(args.query_params, '--query-params')
        body = _parse_json_option(args.body, '--body')
        for option, value in (('--path-params', path_params), ('--query-params', query_params)):
            if value is not None and not isinstance(value, dict):
                raise argparse.ArgumentTypeError(f"{option} must be a JSON object")
        endpoints = _load_files(args.files) if args.files else demo_endpoints()
    except (argparse.ArgumentTypeError, MockingbirdError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    dispatcher = Dispatcher(
        EndpointRegistry(endpoints),
        api_prefix=args.api_prefix,
        render_mode=args.render_mode,
        sleep=_skip_delay if args.no_delay else None
    )
    result = dispatcher.dispatch_request(
        args.method,
        args.url,
        path_params=path_params,
        query_params=query_params,
        body=body if body is not None else {}
    )

    print(json.dumps(result.to_dict(), indent=2))

    if not result.ok:
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='mockingbird',
        description="Mockingbird - mock HTTP server with conditional scenarios and templated responses",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve the demo endpoints on port 5000
  %(prog)s serve

  # Serve definitions from a file without the demo endpoints
  %(prog)s serve endpoints.yaml --no-demo --port 8080

  # Check definitions before loading them
  %(prog)s validate endpoints.yaml

  # Dispatch one request offline
  %(prog)s call GET "/api/orders?status=pending" --no-delay
        """
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # --- SERVE command ---
    serve_parser = subparsers.add_parser('serve', help='Start mock HTTP server')
    serve_parser.add_argument('files', nargs='*', help='Endpoint definition files (JSON or YAML)')
    serve_parser.add_argument('--config', help='YAML config file')
    serve_parser.add_argument('--host', help='Host to bind (default: 127.0.0.1)')
    serve_parser.add_argument('-p', '--port', type=int, help='Port to bind (default: 5000)')
    serve_parser.add_argument('--api-prefix', help='Path prefix stripped before matching (default: /api)')
    serve_parser.add_argument('--render-mode', choices=['single_pass', 'sequential'],
                              help='Placeholder rendering mode (default: single_pass)')
    serve_parser.add_argument('--no-admin', action='store_true', help='Disable admin API')
    serve_parser.add_argument('--no-demo', action='store_true', help='Do not register demo endpoints')
    serve_parser.add_argument('--log-level', choices=['debug', 'info', 'warning', 'error'],
                              help='Log level (default: info)')

    # --- VALIDATE command ---
    validate_parser = subparsers.add_parser('validate', help='Validate endpoint definition files')
    validate_parser.add_argument('files', nargs='+', help='Endpoint definition files (JSON or YAML)')

    # --- CALL command ---
    call_parser = subparsers.add_parser('call', help='Dispatch one request offline')
    call_parser.add_argument('method', help='HTTP method')
    call_parser.add_argument('url', help='Request path with optional query string')
    call_parser.add_argument('files', nargs='*', help='Endpoint definition files (default: demo endpoints)')
    call_parser.add_argument('--path-params', help='Explicit path parameters as JSON')
    call_parser.add_argument('--query-params', help='Explicit query parameters as JSON')
    call_parser.add_argument('--body', help='Request body as JSON')
    call_parser.add_argument('--api-prefix', default='/api', help='Path prefix stripped before matching (default: /api)')
    call_parser.add_argument('--render-mode', choices=['single_pass', 'sequential'], default='single_pass',
                             help='Placeholder rendering mode (default: single_pass)')
    call_parser.add_argument('--no-delay', action='store_true', help='Skip simulated latency')

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == 'serve':
        cmd_serve(args)
    elif args.command == 'validate':
        cmd_validate(args)
    elif args.command == 'call':
        cmd_call(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == '__main__':
    main()

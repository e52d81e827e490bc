"""
Mockingbird Configuration

Server and engine settings, loadable from YAML files or MOCKINGBIRD_*
environment variables.
"""

import logging
import os
from dataclasses import dataclass, field, fields
from typing import List, Dict, Any, Optional

import yaml

from .errors import ConfigError
from .engine.renderer import RENDER_MODES
from .engine.dispatcher import ROUTE_POLICIES


LOG_LEVELS = ('debug', 'info', 'warning', 'error')
ENV_PREFIX = 'MOCKINGBIRD_'


@dataclass
class MockConfig:
    """Configuration for mock server behavior."""

    # Server options
    host: str = "127.0.0.1"
    port: int = 5000
    log_level: str = "info"

    # Routing
    api_prefix: str = "/api"  # Stripped from request paths before matching
    route_policy: str = "first_match"

    # Rendering
    render_mode: str = "single_pass"  # single_pass, sequential

    # Admin API
    admin_enabled: bool = True
    admin_prefix: str = "/__admin__"

    # Registry seeding
    seed_demo: bool = True  # Register demo endpoints on start and reset
    definition_files: List[str] = field(default_factory=list)

    def validate(self) -> 'MockConfig':
        """
        Check option values.

        Raises:
            ConfigError: if any value is out of range
        """
        if self.render_mode not in RENDER_MODES:
            raise ConfigError(f"render_mode must be one of {', '.join(RENDER_MODES)}, got '{self.render_mode}'")
        if self.route_policy not in ROUTE_POLICIES:
            raise ConfigError(f"route_policy must be one of {', '.join(ROUTE_POLICIES)}, got '{self.route_policy}'")
        if self.log_level.lower() not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got '{self.log_level}'")
        if not 0 < int(self.port) < 65536:
            raise ConfigError(f"port must be between 1 and 65535, got {self.port}")
        if not self.admin_prefix.startswith('/'):
            raise ConfigError(f"admin_prefix must start with '/', got '{self.admin_prefix}'")
        if self.api_prefix and not self.api_prefix.startswith('/'):
            raise ConfigError(f"api_prefix must start with '/', got '{self.api_prefix}'")
        return self

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level.upper())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MockConfig':
        """Create config from a dictionary of option names to values."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config option(s): {', '.join(unknown)}")

        values = dict(data)
        if isinstance(values.get('definition_files'), str):
            values['definition_files'] = [values['definition_files']]
        return cls(**values).validate()

    @classmethod
    def from_yaml(cls, yaml_path: str) -> 'MockConfig':
        """Load config from a YAML file (an empty file gives the defaults)."""
        with open(yaml_path, 'r') as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Cannot parse config file {yaml_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {yaml_path} must contain a mapping")
        return cls.from_dict(data)

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None, base: Optional['MockConfig'] = None) -> 'MockConfig':
        """
        Apply MOCKINGBIRD_* environment variables on top of `base`.

        Example:
            MOCKINGBIRD_PORT=8080 MOCKINGBIRD_RENDER_MODE=sequential
        """
        env = os.environ if environ is None else environ
        config = base or cls()
        values: Dict[str, Any] = {}

        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            if f.name == 'port':
                try:
                    values[f.name] = int(raw)
                except ValueError:
                    raise ConfigError(f"{ENV_PREFIX}PORT must be an integer, got '{raw}'")
            elif f.name in ('admin_enabled', 'seed_demo'):
                values[f.name] = raw.strip().lower() in ('1', 'true', 'yes', 'on')
            elif f.name == 'definition_files':
                values[f.name] = [p for p in raw.split(os.pathsep) if p]
            else:
                values[f.name] = raw

        merged = {f.name: getattr(config, f.name) for f in fields(cls)}
        merged.update(values)
        return cls(**merged).validate()

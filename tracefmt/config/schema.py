"""
Configuration schema for tracefmt.

Supports:
- YAML file loading
- Environment variable substitution (${VAR_NAME})
- Validation with error messages

Example config (tracefmt.yml):
    version: 1

    abi:
      name: ${TRACEFMT_ABI}

    registry:
      replace_existing: false

    logging:
      level: INFO
"""

import logging
import os
import re
from pathlib import Path
from dataclasses import dataclass, field, asdict
from typing import Optional, List, Any

import yaml

from ..core.errors import ConfigError, ErrorCode
from ..formats.canonical import ABI_PROFILES, DEFAULT_ABI, AbiProfile, get_abi


def _substitute_env_vars(value: Any) -> Any:
    """
    Substitute ${VAR_NAME} with environment variable values.

    Example:
        ${TRACEFMT_ABI} → os.environ.get('TRACEFMT_ABI')
    """
    if isinstance(value, str):
        pattern = r'\$\{([^}]+)\}'

        def replace(match):
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                return match.group(0)  # Keep original if not found
            return env_value

        return re.sub(pattern, replace, value)

    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [_substitute_env_vars(v) for v in value]

    return value


@dataclass
class AbiConfig:
    """Target ABI for named C element types of dynamic arrays."""
    name: str = DEFAULT_ABI

    @property
    def profile(self) -> AbiProfile:
        return get_abi(self.name)


@dataclass
class RegistryConfig:
    """Format registry policy."""
    replace_existing: bool = False


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = 'WARNING'

    @property
    def level_value(self) -> int:
        return logging.getLevelName(self.level.upper())


@dataclass
class TracefmtConfig:
    """Root configuration."""

    version: int = 1
    abi: AbiConfig = field(default_factory=AbiConfig)
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, path: Path) -> 'TracefmtConfig':
        """Load from YAML file with env var substitution."""
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Config not found: {path}")

        with open(path) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(
                    ErrorCode.E4001_INVALID_CONFIG,
                    {'path': str(path), 'error': str(e)},
                ) from e

        data = _substitute_env_vars(data)
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'TracefmtConfig':
        """Create from dictionary."""
        if not isinstance(data, dict):
            raise ConfigError(ErrorCode.E4001_INVALID_CONFIG, {'config': data})
        try:
            return cls(
                version=data.get('version', 1),
                abi=AbiConfig(**(data.get('abi') or {})),
                registry=RegistryConfig(**(data.get('registry') or {})),
                logging=LoggingConfig(**(data.get('logging') or {})),
            )
        except TypeError as e:
            raise ConfigError(ErrorCode.E4001_INVALID_CONFIG, {'error': str(e)}) from e

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)

    def to_yaml(self) -> str:
        """Convert to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def validate(self) -> List[str]:
        """Validate config. Returns list of errors (empty if valid)."""
        errors = []

        if self.version != 1:
            errors.append(f"Unsupported config version: {self.version}")

        if self.abi.name not in ABI_PROFILES:
            errors.append(
                f"Unknown ABI: {self.abi.name} (expected one of {', '.join(sorted(ABI_PROFILES))})"
            )

        if not isinstance(self.logging.level_value, int):
            errors.append(f"Invalid logging level: {self.logging.level}")

        return errors


def load_config(path: Optional[Path] = None) -> TracefmtConfig:
    """Load config from file or return defaults."""
    if path and Path(path).exists():
        return TracefmtConfig.load(path)

    search_paths = [
        Path('./tracefmt.yml'),
        Path('./tracefmt.yaml'),
        Path.home() / '.tracefmt' / 'config.yml',
    ]

    for p in search_paths:
        if p.exists():
            return TracefmtConfig.load(p)

    return TracefmtConfig()


def generate_default_config() -> str:
    """Generate default config as YAML."""
    return """# tracefmt configuration
version: 1

abi:
  # lp64 (long = 8 bytes) or ilp32 (long = 4 bytes)
  name: lp64

registry:
  replace_existing: false

logging:
  level: WARNING
"""

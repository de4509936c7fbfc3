"""Configuration management for tracefmt."""

from .schema import (
    TracefmtConfig,
    AbiConfig,
    RegistryConfig,
    LoggingConfig,
    load_config,
    generate_default_config,
)

__all__ = [
    'TracefmtConfig',
    'AbiConfig',
    'RegistryConfig',
    'LoggingConfig',
    'load_config',
    'generate_default_config',
]

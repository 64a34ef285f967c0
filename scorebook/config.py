"""
Configuration loading and logging setup.

Configuration is a plain dict. Values come from ``DEFAULT_CONFIG``, then an
optional JSON file, then ``SCOREBOOK_*`` environment variables.
"""

import copy
import json
import logging
import os
from typing import Any, Dict, Mapping, Optional

from .core.enums import BackendType
from .core.exceptions import ConfigurationError

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

DEFAULT_CONFIG: Dict[str, Any] = {
    'backend_type': None,
    'local_storage_path': 'scorebook_local.json',
    'local_namespace': 'scorebook_data',
    'database_type': 'sqlite',
    'database_config': None,
    'collection': 'gradebooks',
    'endpoint_url': None,
    'endpoint_timeout': 15.0,
    'saving_indicator_hold': None,
    'master_roster_path': None,
    'seed_subject': None,
    'min_password_length': 4,
    'log_level': 'INFO',
}

# Environment variable -> (config key, converter)
ENV_OVERRIDES = {
    'SCOREBOOK_BACKEND': ('backend_type', str),
    'SCOREBOOK_ENDPOINT_URL': ('endpoint_url', str),
    'SCOREBOOK_LOCAL_PATH': ('local_storage_path', str),
    'SCOREBOOK_ROSTER_PATH': ('master_roster_path', str),
    'SCOREBOOK_LOG_LEVEL': ('log_level', str),
}


def load_config(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Build the effective configuration."""
    config = copy.deepcopy(DEFAULT_CONFIG)

    if path:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                file_config = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Cannot read configuration file {path}: {str(e)}")
        if not isinstance(file_config, dict):
            raise ConfigurationError(f"Configuration file {path} must hold a JSON object")
        config.update(file_config)

    environ = os.environ if environ is None else environ
    for variable, (key, convert) in ENV_OVERRIDES.items():
        if environ.get(variable):
            config[key] = convert(environ[variable])

    database_path = environ.get('SCOREBOOK_DATABASE_PATH')
    if database_path:
        config['database_type'] = 'sqlite'
        config['database_config'] = {'database_path': database_path}

    return config


def resolve_backend_type(config: Mapping[str, Any]) -> BackendType:
    """Pick the backend: explicit type, else endpoint, else document store, else local."""
    explicit = config.get('backend_type')
    if explicit:
        try:
            return BackendType(str(explicit).lower())
        except ValueError:
            raise ConfigurationError(f"Unsupported backend type: {explicit}")
    if config.get('endpoint_url'):
        return BackendType.ENDPOINT
    if config.get('database_config'):
        return BackendType.DOCUMENT
    return BackendType.LOCAL


def configure_logging(level: str = 'INFO') -> None:
    """Set up root logging in the project's format."""
    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        raise ConfigurationError(f"Unknown log level: {level}")
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)

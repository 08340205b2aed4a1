from __future__ import annotations
"""
Layered configuration.

`resolve_config` merges four layers, highest priority first:

    CLI flags > environment > config file (TOML) > built-in defaults

Every layer is reduced to a plain ``dict`` of known keys before merging, and
the merged result is validated once into an immutable `AppConfig`. Invalid
values raise `ConfigError` (exit code 2).
"""

import argparse
import logging
import math
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from aicli.constants import DEFAULT_BASE_URL, DEFAULT_MODEL, DEFAULT_TIMEOUT_SECS, TEMPERATURE_RANGE
from aicli.core.models import RequestParameters
from aicli.errors import ConfigError
from aicli.logging.helpers import get_logger

_log = get_logger('config')

CONFIG_ENV = 'AI_CLI_CONFIG'

# env var → config key
ENV_KEYS: Dict[str, str] = {
    'AI_CLI_MODEL': 'model',
    'AI_CLI_BASE_URL': 'base_url',
    'AI_CLI_API_KEY': 'api_key',
    'AI_CLI_TEMPERATURE': 'temperature',
    'AI_CLI_TIMEOUT': 'timeout_secs',
}

# argparse dest → config key
CLI_KEYS: Dict[str, str] = {
    'model': 'model',
    'base_url': 'base_url',
    'api_key': 'api_key',
    'prompt': 'default_prompt',
    'system_prompt': 'system_prompt',
    'temperature': 'temperature',
    'timeout': 'timeout_secs',
    'stall_timeout': 'stall_timeout_secs',
}

DEFAULT_CONFIG_TEMPLATE = f"""\
# ai-cli configuration
model = "{DEFAULT_MODEL}"
base_url = "{DEFAULT_BASE_URL}"
timeout_secs = {DEFAULT_TIMEOUT_SECS:g}

# Uncomment to override.
# api_key = ""
# temperature = 0.7
# stall_timeout_secs = 60
# default_prompt = ""
# system_prompt = ""
# allowed_dirs = []
# escape_output = true
"""


@dataclass(frozen=True)
class AppConfig:
    """Effective settings for one invocation."""
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    api_key: Optional[str] = field(default=None, repr=False)
    default_prompt: Optional[str] = None
    system_prompt: Optional[str] = None
    temperature: Optional[float] = None
    timeout_secs: float = DEFAULT_TIMEOUT_SECS
    stall_timeout_secs: Optional[float] = None
    allowed_dirs: tuple[str, ...] = ()
    escape_output: bool = True

    def to_request_parameters(self) -> RequestParameters:
        return RequestParameters(
            model=self.model,
            base_url=self.base_url,
            api_key=self.api_key,
            temperature=self.temperature,
            timeout=self.timeout_secs,
            stall_timeout=self.stall_timeout_secs,
            system_prompt=self.system_prompt,
        )


# --------------------------------------------------------------------------- #
#  Coercion                                                                    #
# --------------------------------------------------------------------------- #
def validate_temperature(value: Any) -> float:
    lo, hi = TEMPERATURE_RANGE
    temp = _as_float('temperature', value)
    if not lo <= temp <= hi:
        raise ConfigError(f'temperature must be between {lo:g} and {hi:g} (got {temp:g})')
    return temp


def _as_float(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ConfigError(f'{key} must be a number, not a boolean')
    try:
        num = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f'{key} must be a number (got {value!r})') from exc
    if math.isnan(num) or math.isinf(num):
        raise ConfigError(f'{key} must be a finite number (got {value!r})')
    return num


def _as_positive(key: str, value: Any) -> float:
    num = _as_float(key, value)
    if num <= 0:
        raise ConfigError(f'{key} must be greater than zero (got {num:g})')
    return num


def _as_str(key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ConfigError(f'{key} must be a string (got {type(value).__name__})')
    return value


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {'1', 'true', 'yes', 'on', '0', 'false', 'no', 'off'}:
        return value.strip().lower() in {'1', 'true', 'yes', 'on'}
    raise ConfigError(f'{key} must be a boolean (got {value!r})')


def _as_dirs(key: str, value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f'{key} must be a list of strings')
    return tuple(value)


_COERCE = {
    'model': _as_str,
    'base_url': _as_str,
    'api_key': _as_str,
    'default_prompt': _as_str,
    'system_prompt': _as_str,
    'temperature': lambda _k, v: validate_temperature(v),
    'timeout_secs': _as_positive,
    'stall_timeout_secs': _as_positive,
    'allowed_dirs': _as_dirs,
    'escape_output': _as_bool,
}


def build_config(values: Mapping[str, Any]) -> AppConfig:
    """Validate a merged mapping of known keys into an `AppConfig`."""
    clean: Dict[str, Any] = {}
    for key, value in values.items():
        if key not in _COERCE:
            raise ConfigError(f'unknown configuration key {key!r}')
        if value is None:
            continue
        clean[key] = _COERCE[key](key, value)
    base_url = clean.get('base_url')
    if base_url is not None and not base_url.startswith(('http://', 'https://')):
        raise ConfigError(f'base_url must start with http:// or https:// (got {base_url!r})')
    if 'model' in clean and not clean['model'].strip():
        raise ConfigError('model must not be empty')
    return AppConfig(**clean)


# --------------------------------------------------------------------------- #
#  Layers                                                                      #
# --------------------------------------------------------------------------- #
def default_config_path(env: Optional[Mapping[str, str]] = None) -> Path:
    env = os.environ if env is None else env
    base = env.get('XDG_CONFIG_HOME') or str(Path.home() / '.config')
    return Path(base) / 'ai-cli' / 'config.toml'


def write_default_config(path: Path) -> bool:
    """Create *path* with the default template; False when it cannot be written."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(DEFAULT_CONFIG_TEMPLATE, encoding='utf-8')
    except OSError as exc:
        _log.warning('could not create default config at %s: %s', path, exc)
        return False
    _log.info('created default config at %s', path)
    return True


def load_config_file(path: Path, *, create_if_missing: bool = False) -> Dict[str, Any]:
    """Parse the TOML file at *path* into a dict of known keys.

    A missing file is an error unless *create_if_missing* is set, in which
    case the default template is written and an empty layer returned.
    """
    if not path.exists():
        if create_if_missing:
            write_default_config(path)
            return {}
        raise ConfigError(f'config file {path} not found')
    try:
        with path.open('rb') as fh:
            data = tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f'invalid TOML in {path}: {exc}') from exc
    except OSError as exc:
        raise ConfigError(f'cannot read config file {path}: {exc}') from exc

    unknown = sorted(set(data) - set(_COERCE))
    if unknown:
        raise ConfigError(f'{path}: unknown key(s): {", ".join(unknown)}')
    _log.debug('loaded config %s (%d key(s))', path, len(data))
    return dict(data)


def config_from_env(env: Mapping[str, str]) -> Dict[str, Any]:
    layer: Dict[str, Any] = {}
    for var, key in ENV_KEYS.items():
        value = env.get(var)
        if value:
            layer[key] = value
    if 'api_key' not in layer and env.get('OPENAI_API_KEY'):
        layer['api_key'] = env['OPENAI_API_KEY']
    return layer


def config_from_namespace(ns: argparse.Namespace) -> Dict[str, Any]:
    layer: Dict[str, Any] = {}
    for dest, key in CLI_KEYS.items():
        value = getattr(ns, dest, None)
        if value is not None:
            layer[key] = value
    if getattr(ns, 'allow_dir', None):
        layer['allowed_dirs'] = list(ns.allow_dir)
    if getattr(ns, 'no_escape_output', False):
        layer['escape_output'] = False
    return layer


def resolve_config(
    ns: argparse.Namespace,
    *,
    env: Optional[Mapping[str, str]] = None,
    logger: Optional[logging.Logger] = None,
) -> AppConfig:
    """Merge CLI, environment, config file and defaults into an `AppConfig`."""
    log = logger or _log
    env = os.environ if env is None else env

    explicit = getattr(ns, 'config', None) or env.get(CONFIG_ENV)
    if explicit:
        path = Path(explicit).expanduser()
        file_layer = load_config_file(path)
    else:
        path = default_config_path(env)
        file_layer = load_config_file(path, create_if_missing=True)

    merged: Dict[str, Any] = {}
    merged.update(file_layer)
    env_layer = config_from_env(env)
    merged.update(env_layer)
    cli_layer = config_from_namespace(ns)
    if 'allowed_dirs' in cli_layer and 'allowed_dirs' in merged:
        cli_layer['allowed_dirs'] = list(_as_dirs('allowed_dirs', merged['allowed_dirs'])) + cli_layer['allowed_dirs']
    merged.update(cli_layer)

    cfg = build_config(merged)
    log.debug(
        'config: file=%s keys(file=%s env=%s cli=%s) model=%s base_url=%s',
        path,
        sorted(file_layer),
        sorted(env_layer),
        sorted(cli_layer),
        cfg.model,
        cfg.base_url,
    )
    return cfg

"""
Kiosk configuration

Loaded once at startup from ``config.yaml`` and the environment, then handed
to every actor as an explicit value.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = 'https://drink.csh.rit.edu'
DEFAULT_CONFIG_PATH = 'config.yaml'


class ConfigError(ValueError):
    """Raised when the kiosk configuration is missing or invalid"""


@dataclass(frozen=True)
class MemberConfig:
    """Member backend used to resolve tag associations"""
    endpoint: str = ''
    realm: str = 'drink'
    token: Optional[str] = None


@dataclass(frozen=True)
class KioskConfig:
    """Runtime configuration shared (read-only) by all actors"""
    machine_secret: str
    displayable_machines: List[int]
    endpoint: str = DEFAULT_ENDPOINT
    device: str = ''
    require_online: bool = False
    poll_interval: float = 60.0         # Catalog refresh period (seconds)
    cancel_poll_interval: float = 0.25  # Bounds cancellation latency
    result_hold: float = 5.0            # Dropped/Failed message display time
    request_timeout: float = 10.0
    members: MemberConfig = field(default_factory=MemberConfig)
    log_level: str = 'INFO'
    log_file: Optional[str] = None
    development: bool = False

    @classmethod
    def from_dict(cls, data: Mapping) -> 'KioskConfig':
        """
        Build a configuration from a parsed YAML mapping

        Args:
            data: Mapping with the keys documented in config.yaml

        Returns:
            Validated KioskConfig

        Raises:
            ConfigError: If a required key is missing or a value is invalid
        """
        members = data.get('members') or {}
        logging_section = data.get('logging') or {}

        secret = data.get('machine_secret')
        if not secret:
            raise ConfigError("machine_secret is required (or set MACHINE_SECRET)")

        config = cls(
            machine_secret=str(secret),
            displayable_machines=parse_machine_ids(data.get('displayable_machines')),
            endpoint=str(data.get('endpoint') or DEFAULT_ENDPOINT).rstrip('/'),
            device=str(data.get('device') or ''),
            require_online=bool(data.get('require_online', False)),
            poll_interval=_positive(data, 'poll_interval', 60.0),
            cancel_poll_interval=_positive(data, 'cancel_poll_interval', 0.25),
            result_hold=_non_negative(data, 'result_hold', 5.0),
            request_timeout=_positive(data, 'request_timeout', 10.0),
            members=MemberConfig(
                endpoint=str(members.get('endpoint') or '').rstrip('/'),
                realm=str(members.get('realm') or 'drink'),
                token=members.get('token'),
            ),
            log_level=str(logging_section.get('level', 'INFO')).upper(),
            log_file=logging_section.get('file'),
            development=bool(data.get('development', False)),
        )
        return config


def parse_machine_ids(value) -> List[int]:
    """
    Parse the machine allow-list

    Accepts a YAML list or a comma separated string (as DISPLAYABLE_MACHINES
    is given in the environment). Order is preserved, it is the display order.
    """
    if value is None:
        raise ConfigError("displayable_machines is required (or set DISPLAYABLE_MACHINES)")

    if isinstance(value, str):
        parts = [part.strip() for part in value.split(',') if part.strip()]
    elif isinstance(value, (list, tuple)):
        parts = list(value)
    else:
        parts = [value]

    machine_ids = []
    for part in parts:
        if isinstance(part, bool):
            raise ConfigError(f"Invalid machine id: {part!r}")
        try:
            machine_ids.append(int(part))
        except (TypeError, ValueError):
            raise ConfigError(f"Invalid machine id: {part!r}") from None

    if not machine_ids:
        raise ConfigError("displayable_machines must not be empty")
    return machine_ids


def _positive(data: Mapping, key: str, default: float) -> float:
    value = _number(data, key, default)
    if value <= 0:
        raise ConfigError(f"{key} must be positive, got {value}")
    return value


def _non_negative(data: Mapping, key: str, default: float) -> float:
    value = _number(data, key, default)
    if value < 0:
        raise ConfigError(f"{key} must not be negative, got {value}")
    return value


def _number(data: Mapping, key: str, default: float) -> float:
    value = data.get(key, default)
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be a number, got {value!r}") from None


def apply_environment(data: Dict, environ: Mapping[str, str]) -> Dict:
    """Overlay environment variables on top of the file configuration"""
    merged = dict(data)

    if environ.get('MACHINE_SECRET'):
        merged['machine_secret'] = environ['MACHINE_SECRET']
    if environ.get('DISPLAYABLE_MACHINES'):
        merged['displayable_machines'] = environ['DISPLAYABLE_MACHINES']
    if environ.get('DRINK_ENDPOINT'):
        merged['endpoint'] = environ['DRINK_ENDPOINT']
    if environ.get('MINERAL_DEVICE'):
        merged['device'] = environ['MINERAL_DEVICE']
    if 'DEVELOPMENT' in environ:
        merged['development'] = environ['DEVELOPMENT'] == 'true'

    return merged


def load_config(config_path: Optional[str] = DEFAULT_CONFIG_PATH,
                environ: Optional[Mapping[str, str]] = None) -> KioskConfig:
    """
    Load kiosk configuration

    Args:
        config_path: YAML file path; skipped when None or missing
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated KioskConfig
    """
    if environ is None:
        environ = os.environ

    data = {}
    if config_path and os.path.exists(config_path):
        with open(config_path, 'r') as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{config_path} must contain a mapping")
        logger.info("Loaded configuration from %s", config_path)
    elif config_path:
        logger.warning("Config file %s not found, using environment only", config_path)

    return KioskConfig.from_dict(apply_environment(data, environ))

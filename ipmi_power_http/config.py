"""Load and validate the YAML service configuration."""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

import yaml

from .errors import ConfigError
from .executor import DEFAULT_INTERFACE, DEFAULT_IPMITOOL, DEFAULT_TIMEOUT
from .topology import Endpoint, Group, Topology

DEFAULT_LISTEN_ADDR = '0.0.0.0'

# ${VAR} anywhere, or a whole value of $VAR, left behind by expandvars for an unset variable
UNEXPANDED_VAR = re.compile(r"\$\{\w+\}|^\$\w+$")


@dataclass
class ServiceConfig:
    """Everything the server needs at startup."""
    listen_port: int
    topology: Topology
    listen_addr: str = DEFAULT_LISTEN_ADDR
    # Executable path for ipmitool
    ipmitool: str = DEFAULT_IPMITOOL
    # ipmitool -I value
    interface: str = DEFAULT_INTERFACE
    # Upper bound on one ipmitool run, in seconds
    command_timeout: float = DEFAULT_TIMEOUT


def _require(data: Dict[str, Any], key: str, where: str, kind=str):
    if key not in data or data[key] is None:
        raise ConfigError(f"Missing '{where}{key}' in configuration")
    value = data[key]
    if kind is str and isinstance(value, (int, float)) and not isinstance(value, bool):
        # YAML turns unquoted numeric names/passwords into numbers
        value = str(value)
    if not isinstance(value, kind) or isinstance(value, bool):
        raise ConfigError(f"'{where}{key}' must be of type {kind.__name__}")
    if kind is str and UNEXPANDED_VAR.search(value):
        raise ConfigError(f"'{where}{key}' references an unset environment variable")
    return value


def _parse_endpoint(data: Any, where: str) -> Endpoint:
    if not isinstance(data, dict):
        raise ConfigError(f"'{where}' must be a mapping")
    # 'address' is an alias; errors name the documented key
    address_key = 'address' if 'address' in data and 'ipmi_address' not in data else 'ipmi_address'
    return Endpoint(
        name=_require(data, 'name', f'{where}.'),
        address=_require(data, address_key, f'{where}.'),
        username=_require(data, 'username', f'{where}.'),
        password=_require(data, 'password', f'{where}.'),
    )


def _parse_groups(groups_data: Any) -> List[Group]:
    if not isinstance(groups_data, list):
        raise ConfigError("'groups' must be a list")
    groups = []
    for gidx, group_data in enumerate(groups_data):
        where = f'groups[{gidx}]'
        if not isinstance(group_data, dict):
            raise ConfigError(f"'{where}' must be a mapping")
        endpoints_data = group_data.get('endpoints') or []
        if not isinstance(endpoints_data, list):
            raise ConfigError(f"'{where}.endpoints' must be a list")
        groups.append(Group(
            name=_require(group_data, 'name', f'{where}.'),
            token=_require(group_data, 'token', f'{where}.'),
            endpoints=tuple(
                _parse_endpoint(ep, f'{where}.endpoints[{eidx}]')
                for eidx, ep in enumerate(endpoints_data)
            ),
        ))
    return groups


def parse_config(data: Any) -> ServiceConfig:
    """
    Build a ServiceConfig from already-parsed YAML data.

    Raises:
        ConfigError: If required keys are missing, have the wrong type, or
            the groups conflict with each other
    """
    if not data:
        raise ConfigError('Configuration is empty')
    if not isinstance(data, dict):
        raise ConfigError('Configuration must be a mapping')

    listen_port = _require(data, 'listen_port', '', int)
    if not 0 < listen_port < 65536:
        raise ConfigError("'listen_port' must be between 1 and 65535")

    timeout = data.get('command_timeout', DEFAULT_TIMEOUT)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ConfigError("'command_timeout' must be a positive number")

    return ServiceConfig(
        listen_port=listen_port,
        topology=Topology(_parse_groups(data.get('groups', []))),
        listen_addr=str(data.get('listen_addr', DEFAULT_LISTEN_ADDR)),
        ipmitool=str(data.get('ipmitool', DEFAULT_IPMITOOL)),
        interface=str(data.get('interface', DEFAULT_INTERFACE)),
        command_timeout=float(timeout),
    )


def load_config(config_path: str) -> ServiceConfig:
    """
    Load configuration from YAML file. Environment variables in the file
    (e.g. ${RACK_A_TOKEN}) are expanded before parsing.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigError: If config is invalid
    """
    path = Path(config_path)
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(os.path.expandvars(f.read()))
        except yaml.YAMLError as e:
            # The YAML error text quotes the offending line, which may hold a secret
            mark = getattr(e, 'problem_mark', None)
            where = f' at line {mark.line + 1}' if mark is not None else ''
            raise ConfigError(f"Invalid YAML in '{config_path}'{where}") from None
    return parse_config(data)

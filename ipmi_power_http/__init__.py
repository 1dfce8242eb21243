"""IPMI power control over HTTP, scoped by per-group bearer tokens."""

from .auth import authorize, parse_bearer
from .dispatcher import PowerApp
from .errors import (
    ConfigError,
    ExecutionFailed,
    FailureReason,
    InvalidAction,
    NotFound,
    ParseError,
    PowerError,
    TopologyError,
    Unauthorized,
)
from .executor import IpmiToolExecutor, RawResult
from .models import PowerAction, PowerStatus
from .status import format_status, parse_control_ack, parse_status
from .topology import Endpoint, Group, Topology

__version__ = '0.1.0'

__all__ = [
    'PowerApp',
    'authorize',
    'parse_bearer',
    'Endpoint',
    'Group',
    'Topology',
    'IpmiToolExecutor',
    'RawResult',
    'PowerAction',
    'PowerStatus',
    'parse_status',
    'format_status',
    'parse_control_ack',
    'PowerError',
    'InvalidAction',
    'Unauthorized',
    'NotFound',
    'ExecutionFailed',
    'FailureReason',
    'ParseError',
    'ConfigError',
    'TopologyError',
]

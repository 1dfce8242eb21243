"""
Error taxonomy for the power control service.

Every error raised while handling a request derives from PowerError and
carries the HTTP status it maps to plus a short message that is safe to
return to the caller. Diagnostic detail (tool stderr/stdout) lives on the
exception for server-side logging only.
"""

from enum import Enum
from typing import Optional


class PowerError(Exception):
    """Base class for request handling errors."""
    http_status = 500
    message = 'Internal error'

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidAction(PowerError):
    """Requested action is not one of on/off/reset/cycle."""
    http_status = 400
    message = 'Invalid action'


class Unauthorized(PowerError):
    """No group owns the presented token (or no token was presented)."""
    http_status = 401
    message = 'Invalid token'


class NotFound(PowerError):
    """Endpoint absent within the authorized group, or unmatched route."""
    http_status = 404
    message = 'Endpoint not found'


class FailureReason(Enum):
    """Classification of an ipmitool failure"""
    COMMAND_NOT_SUPPORTED = 'Command not supported in present state'
    AUTHENTICATION_FAILED = 'Authentication failed'
    CONNECTION_FAILED = 'Unable to connect to IPMI endpoint'
    INVALID_STATE = 'Invalid system state for this command'
    TIMEOUT = 'IPMI endpoint did not respond in time'
    SPAWN_FAILED = 'Unable to run IPMI tool'
    UNKNOWN = 'An unknown error occurred'


class ExecutionFailed(PowerError):
    """ipmitool exited non-zero, could not be spawned, or timed out."""
    http_status = 500

    def __init__(self, reason: FailureReason = FailureReason.UNKNOWN, stderr: str = ''):
        self.reason = reason
        self.stderr = stderr
        super().__init__(reason.value)


class ParseError(PowerError):
    """ipmitool output did not match the known vocabulary."""
    http_status = 500
    message = 'Unexpected response from IPMI endpoint'

    def __init__(self, output: str = ''):
        self.output = output
        super().__init__()


class ConfigError(ValueError):
    """Configuration file is malformed or incomplete."""


class TopologyError(ConfigError):
    """Groups/endpoints/tokens are ambiguous or conflicting."""

"""
Command Executor Adapter

The only place that talks to ipmitool. The endpoint password is handed to
the child through its environment (ipmitool -E reads IPMI_PASSWORD), so it
never appears on a command line or in the logs.
"""

import logging
import os
import subprocess
from dataclasses import dataclass
from typing import Dict, List, Optional

from .errors import ExecutionFailed, FailureReason
from .models import PowerAction
from .topology import Endpoint

DEFAULT_IPMITOOL = 'ipmitool'
DEFAULT_INTERFACE = 'lanplus'
DEFAULT_TIMEOUT = 15.0

# Substrings of ipmitool stderr, checked in order
STDERR_REASONS = [
    ('Command not supported in present state', FailureReason.COMMAND_NOT_SUPPORTED),
    ('Invalid user name', FailureReason.AUTHENTICATION_FAILED),
    ('authentication failure', FailureReason.AUTHENTICATION_FAILED),
    ('Unable to establish IPMI v2 / RMCP+ session', FailureReason.CONNECTION_FAILED),
    ('Invalid command', FailureReason.INVALID_STATE),
]


@dataclass
class RawResult:
    """Captured outcome of one ipmitool run."""
    exit_success: bool
    stdout: str
    stderr: str


def classify_stderr(stderr: str) -> FailureReason:
    for needle, reason in STDERR_REASONS:
        if needle in (stderr or ''):
            return reason
    return FailureReason.UNKNOWN


class IpmiToolExecutor:
    """Runs 'ipmitool ... power <action>' against one endpoint."""

    def __init__(self, ipmitool: str = DEFAULT_IPMITOOL,
                 interface: str = DEFAULT_INTERFACE,
                 timeout: float = DEFAULT_TIMEOUT):
        self.ipmitool = ipmitool
        self.interface = interface
        self.timeout = timeout
        self._logger = logging.getLogger(f"{__name__}.IpmiToolExecutor")

    def build_command(self, endpoint: Endpoint, action: PowerAction) -> List[str]:
        return [
            self.ipmitool,
            '-I', self.interface,
            '-H', endpoint.address,
            '-U', endpoint.username,
            '-E',
            'power', action.value,
        ]

    def _child_env(self, endpoint: Endpoint) -> Dict[str, str]:
        env = dict(os.environ)
        env['IPMI_PASSWORD'] = endpoint.password
        return env

    def execute(self, endpoint: Endpoint, action: PowerAction) -> RawResult:
        """
        Run one power command and capture its output.

        Args:
            endpoint: Target management controller
            action: Power sub-command to issue

        Returns:
            RawResult with exit_success=True

        Raises:
            ExecutionFailed: On non-zero exit, spawn failure or timeout
        """
        cmd = self.build_command(endpoint, action)
        self._logger.debug("Running: %s", ' '.join(cmd))
        try:
            proc = subprocess.run(
                cmd,
                env=self._child_env(endpoint),
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False
            )
        except subprocess.TimeoutExpired as ex:
            self._logger.error("ipmitool timed out after %.1f s (endpoint=%s, action=%s)",
                               self.timeout, endpoint.name, action.value)
            raise ExecutionFailed(FailureReason.TIMEOUT, _text(ex.stderr)) from ex
        except OSError as ex:
            self._logger.error("Failed to run %s: %s", self.ipmitool, ex)
            raise ExecutionFailed(FailureReason.SPAWN_FAILED, str(ex)) from ex

        result = RawResult(exit_success=proc.returncode == 0,
                           stdout=proc.stdout or '', stderr=proc.stderr or '')
        if not result.exit_success:
            reason = classify_stderr(result.stderr)
            self._logger.error("ipmitool exited with %d (endpoint=%s, action=%s, reason=%s)",
                               proc.returncode, endpoint.name, action.value, reason.name)
            raise ExecutionFailed(reason, result.stderr)
        return result


def _text(data: Optional[object]) -> str:
    # TimeoutExpired carries bytes even when text=True was requested
    if isinstance(data, bytes):
        return data.decode('utf-8', errors='replace')
    return data or ''

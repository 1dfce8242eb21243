"""
Status Parser

ipmitool's output is an unversioned text contract. Everything that knows
about its wording lives here.
"""

from typing import Optional

from .errors import ParseError
from .models import PowerAction, PowerStatus

STATUS_PREFIX = 'Chassis Power is'
CONTROL_PREFIX = 'Chassis Power Control:'

_STATUS_WORDS = {
    'on': PowerStatus.ON,
    'off': PowerStatus.OFF,
}

_CONTROL_WORDS = {
    'up/on': PowerAction.ON,
    'on': PowerAction.ON,
    'down/off': PowerAction.OFF,
    'off': PowerAction.OFF,
    # Soft shutdown via ACPI
    'soft': PowerAction.OFF,
    'reset': PowerAction.RESET,
    'cycle': PowerAction.CYCLE,
}


def _last_line(text: str) -> str:
    lines = [line.strip() for line in (text or '').splitlines() if line.strip()]
    return lines[-1] if lines else ''


def parse_status(stdout: str) -> PowerStatus:
    """
    Parse the output of 'ipmitool power status'.

    The last whitespace-separated token of the last non-empty line decides
    the state, matched case-insensitively against on/off.

    Raises:
        ParseError: If the output is empty or the state word is unknown
    """
    toks = _last_line(stdout).split()
    if not toks:
        raise ParseError(stdout)
    try:
        return _STATUS_WORDS[toks[-1].lower()]
    except KeyError:
        raise ParseError(stdout) from None


def format_status(status: PowerStatus) -> str:
    """Canonical ipmitool text for a power state"""
    return f'{STATUS_PREFIX} {status.value}'


def parse_control_ack(stdout: str) -> Optional[PowerAction]:
    """
    Recognize the confirmation ipmitool prints after a control command.
    Returns None when the output is not a known confirmation.
    """
    line = _last_line(stdout)
    if not line.lower().startswith(CONTROL_PREFIX.lower()):
        return None
    word = line[len(CONTROL_PREFIX):].strip().lower()
    return _CONTROL_WORDS.get(word)

"""Power actions and states."""

from enum import Enum

from .errors import InvalidAction


class PowerAction(Enum):
    """Enumeration of ipmitool 'power' sub-commands"""
    ON = 'on'
    OFF = 'off'
    RESET = 'reset'
    CYCLE = 'cycle'
    # Read-only query, never accepted from a request body
    STATUS = 'status'

    @classmethod
    def parse_control(cls, value) -> 'PowerAction':
        """Parse a control action from its wire value (case-sensitive)."""
        if isinstance(value, str):
            for action in cls:
                if action.is_control and action.value == value:
                    return action
        raise InvalidAction()

    @property
    def is_control(self) -> bool:
        return self is not PowerAction.STATUS


CONTROL_ACTIONS = tuple(action for action in PowerAction if action.is_control)


class PowerStatus(Enum):
    """Normalized chassis power state"""
    ON = 'on'
    OFF = 'off'

#!/usr/bin/env python3
"""Client for the IPMI power HTTP service."""

import argparse
import os
import sys
from urllib.parse import quote

import requests

from .errors import InvalidAction
from .models import PowerAction, PowerStatus

# pylint: disable=C0116

TOKEN_ENV = 'IPMI_POWER_TOKEN'


class PowerClientError(Exception):
    """Non-200 response from the service"""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f'HTTP {status_code}: {message}')


class PowerClient:
    def __init__(self, base_url: str, token: str, timeout: float = 10):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self._headers = {'Authorization': f'Bearer {token}'}

    def _url(self, endpoint_name: str) -> str:
        return f'{self.base_url}/power/{quote(endpoint_name, safe="")}'

    @staticmethod
    def _check(response):
        if response.status_code != 200:
            try:
                message = response.json().get('error', response.reason)
            except ValueError:
                message = response.text or response.reason
            raise PowerClientError(response.status_code, message)

    def get_status(self, endpoint_name: str) -> PowerStatus:
        response = requests.get(self._url(endpoint_name), headers=self._headers,
                                timeout=self.timeout)
        self._check(response)
        return PowerStatus(response.json()['status'])

    def set_power(self, endpoint_name: str, action) -> None:
        if isinstance(action, PowerAction):
            action = action.value
        # Same validation the server does, without a round trip
        action = PowerAction.parse_control(action)
        response = requests.post(self._url(endpoint_name), headers=self._headers,
                                 json={'action': action.value}, timeout=self.timeout)
        self._check(response)


def main(argv=None):
    parser = argparse.ArgumentParser(description='IPMI Power Control Client')
    parser.add_argument('--url', type=str, required=True,
                        help='Service base URL, e.g. http://10.0.0.2:8080')
    parser.add_argument('--token', type=str, default=os.environ.get(TOKEN_ENV),
                        help=f'Bearer token (default: ${TOKEN_ENV})')
    parser.add_argument('--timeout', type=float, default=10,
                        help='Request timeout in seconds')
    parser.add_argument('endpoint', type=str, help='Endpoint name')
    parser.add_argument('action', type=str, nargs='?', default=None,
                        help='on, off, reset or cycle (omit to query status)')
    args = parser.parse_args(argv)

    if not args.token:
        parser.error(f'--token or ${TOKEN_ENV} is required')

    client = PowerClient(args.url, args.token, timeout=args.timeout)
    try:
        if args.action is None:
            print(client.get_status(args.endpoint).value)
        else:
            client.set_power(args.endpoint, args.action)
            print('ok')
    except InvalidAction:
        print(f'ERROR: Invalid action={args.action}. Must be on/off/reset/cycle.', file=sys.stderr)
        sys.exit(2)
    except (PowerClientError, requests.RequestException) as e:
        print(f'ERROR: {e}', file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()

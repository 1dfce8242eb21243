"""
Request Dispatcher

WSGI application serving:
    GET  /power/<endpoint_name>   -> 200 {"status": "on"|"off"}
    POST /power/<endpoint_name>   -> 200 ok   (body {"action": "on"|"off"|"reset"|"cycle"})

Non-200 responses carry {"error": "<message>"}.
"""

import json
import logging

from werkzeug.exceptions import MethodNotAllowed, NotFound as RouteNotFound
from werkzeug.routing import Map, Rule
from werkzeug.wrappers import Request, Response

from .auth import authorize, parse_bearer
from .errors import ExecutionFailed, InvalidAction, NotFound, ParseError, PowerError, Unauthorized
from .models import PowerAction
from .status import parse_control_ack, parse_status
from .topology import Topology

# pylint: disable=C0116

logger = logging.getLogger(__name__)


def json_response(code, data):
    return Response(json.dumps(data), status=code, mimetype='application/json')


def error_response(code, message):
    return json_response(code, {'error': message})


class PowerApp:
    """Ties authorization, ipmitool execution and status parsing together."""

    def __init__(self, topology: Topology, executor):
        # executor: anything with execute(endpoint, action) -> RawResult
        self.topology = topology
        self.executor = executor
        # '//power/x' and '/power//x' are unmatched routes, never redirects
        self.url_map = Map([
            Rule('/power/<endpoint_name>', endpoint='power', methods=['GET', 'POST']),
        ], merge_slashes=False)

    def __call__(self, environ, start_response):
        request = Request(environ)
        response = self.dispatch_request(request)
        return response(environ, start_response)

    def dispatch_request(self, request: Request) -> Response:
        adapter = self.url_map.bind_to_environ(request.environ)
        try:
            _, values = adapter.match()
        except RouteNotFound:
            logger.info('Got request for unknown path %s', request.path)
            return error_response(404, 'Not found')
        except MethodNotAllowed:
            logger.info('Method %s not allowed on %s', request.method, request.path)
            return error_response(405, 'Method not allowed')

        endpoint_name = values['endpoint_name']
        action_name = PowerAction.STATUS.value if request.method != 'POST' else '-'
        try:
            if request.method == 'POST':
                action = self._read_action(request)
                action_name = action.value
                return self.handle_control(request, endpoint_name, action)
            return self.handle_status(request, endpoint_name)
        except PowerError as ex:
            self._log_failure(request, endpoint_name, action_name, ex)
            return error_response(ex.http_status, ex.message)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception('Unhandled error (endpoint=%s, action=%s)',
                             endpoint_name, action_name)
            return error_response(500, 'Internal server error')

    def handle_status(self, request: Request, endpoint_name: str) -> Response:
        logger.info('Got request for power status of endpoint %s', endpoint_name)
        endpoint = authorize(self.topology, _request_token(request), endpoint_name)
        raw = self.executor.execute(endpoint, PowerAction.STATUS)
        status = parse_status(raw.stdout)
        logger.info('endpoint=%s action=status outcome=ok status=%s',
                    endpoint_name, status.value)
        return json_response(200, {'status': status.value})

    def handle_control(self, request: Request, endpoint_name: str,
                       action: PowerAction) -> Response:
        logger.info('Got request to power %s endpoint %s', action.value, endpoint_name)
        endpoint = authorize(self.topology, _request_token(request), endpoint_name)
        raw = self.executor.execute(endpoint, action)
        ack = parse_control_ack(raw.stdout)
        if ack is None:
            logger.warning('Unrecognized ipmitool confirmation for %s: %r',
                           endpoint_name, raw.stdout.strip())
        logger.info('endpoint=%s action=%s outcome=ok', endpoint_name, action.value)
        return Response('ok', status=200, mimetype='text/plain')

    @staticmethod
    def _read_action(request: Request) -> PowerAction:
        # Validated before any authorization or execution work
        payload = request.get_json(force=True, silent=True)
        if not isinstance(payload, dict):
            raise InvalidAction()
        return PowerAction.parse_control(payload.get('action'))

    @staticmethod
    def _log_failure(request: Request, endpoint_name: str, action_name: str,
                     ex: PowerError):
        outcome = type(ex).__name__
        if isinstance(ex, ExecutionFailed):
            logger.error('endpoint=%s action=%s outcome=%s reason=%s stderr=%r',
                         endpoint_name, action_name, outcome, ex.reason.name,
                         ex.stderr.strip())
        elif isinstance(ex, ParseError):
            logger.error('endpoint=%s action=%s outcome=%s output=%r',
                         endpoint_name, action_name, outcome, ex.output.strip())
        elif isinstance(ex, Unauthorized):
            logger.warning('endpoint=%s action=%s outcome=%s remote=%s',
                           endpoint_name, action_name, outcome, request.remote_addr)
        elif isinstance(ex, (InvalidAction, NotFound)):
            logger.warning('endpoint=%s action=%s outcome=%s',
                           endpoint_name, action_name, outcome)
        else:
            logger.error('endpoint=%s action=%s outcome=%s: %s',
                         endpoint_name, action_name, outcome, ex.message)


def _request_token(request: Request):
    return parse_bearer(request.headers.get('Authorization'))

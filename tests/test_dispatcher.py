import logging

import pytest

from ipmi_power_http.errors import ExecutionFailed, FailureReason
from ipmi_power_http.models import PowerAction

from conftest import E1_PASSWORD, bearer


class TestGetStatus:

    def test_powered_endpoint_reports_on(self, client, executor, e1):
        resp = client.get('/power/e1', headers=bearer('T1'))
        assert resp.status_code == 200
        assert resp.mimetype == 'application/json'
        assert resp.get_json() == {'status': 'on'}
        assert executor.calls == [(e1, PowerAction.STATUS)]

    def test_off(self, client, executor):
        executor.stdout[PowerAction.STATUS] = 'Chassis Power is off\n'
        resp = client.get('/power/e1', headers=bearer('T1'))
        assert resp.status_code == 200
        assert resp.get_json() == {'status': 'off'}

    @pytest.mark.parametrize('headers', [{}, bearer('WRONG'), {'Authorization': 'Basic VDE6'}])
    def test_bad_or_absent_token(self, client, executor, headers):
        resp = client.get('/power/e1', headers=headers)
        assert resp.status_code == 401
        assert 'error' in resp.get_json()
        assert executor.calls == []

    def test_other_groups_token_is_not_found(self, client, executor):
        resp = client.get('/power/e1', headers=bearer('T2'))
        assert resp.status_code == 404
        assert 'error' in resp.get_json()
        assert executor.calls == []

    def test_unknown_endpoint_with_bad_token_is_unauthorized(self, client):
        assert client.get('/power/nope', headers=bearer('WRONG')).status_code == 401

    def test_unparseable_status_is_500_without_detail(self, client, executor):
        executor.stdout[PowerAction.STATUS] = 'Chassis Power is confused\n'
        resp = client.get('/power/e1', headers=bearer('T1'))
        assert resp.status_code == 500
        assert 'confused' not in resp.get_data(as_text=True)
        assert resp.get_json() == {'error': 'Unexpected response from IPMI endpoint'}

    def test_execution_failure_is_500_without_stderr(self, client, executor):
        executor.error = ExecutionFailed(FailureReason.CONNECTION_FAILED,
                                         'Unable to establish IPMI v2 / RMCP+ session to ADMIN@x')
        resp = client.get('/power/e1', headers=bearer('T1'))
        assert resp.status_code == 500
        body = resp.get_json()
        assert body == {'error': FailureReason.CONNECTION_FAILED.value}
        assert 'ADMIN' not in resp.get_data(as_text=True)


class TestPowerControl:

    @pytest.mark.parametrize('action', ['on', 'off', 'reset', 'cycle'])
    def test_success(self, client, executor, e1, action):
        resp = client.post('/power/e1', json={'action': action}, headers=bearer('T1'))
        assert resp.status_code == 200
        assert resp.get_data(as_text=True) == 'ok'
        assert resp.mimetype == 'text/plain'
        assert executor.calls == [(e1, PowerAction(action))]

    def test_wrong_token_never_invokes_tool(self, client, executor):
        resp = client.post('/power/e1', json={'action': 'off'}, headers=bearer('WRONG'))
        assert resp.status_code == 401
        assert 'error' in resp.get_json()
        assert executor.calls == []

    @pytest.mark.parametrize('body', [
        {'action': 'explode'},
        {'action': 'status'},
        {'action': 'ON'},
        {'action': None},
        {'action': 1},
        {},
        ['on'],
        'on',
    ])
    def test_invalid_action_never_invokes_tool(self, client, executor, body):
        resp = client.post('/power/e1', json=body, headers=bearer('T1'))
        assert resp.status_code == 400
        assert resp.get_json() == {'error': 'Invalid action'}
        assert executor.calls == []

    def test_malformed_body(self, client, executor):
        resp = client.post('/power/e1', data='{not json', content_type='application/json',
                           headers=bearer('T1'))
        assert resp.status_code == 400
        assert executor.calls == []

    def test_empty_body(self, client, executor):
        resp = client.post('/power/e1', headers=bearer('T1'))
        assert resp.status_code == 400
        assert executor.calls == []

    def test_action_validated_before_authorization(self, client, executor):
        resp = client.post('/power/e1', json={'action': 'explode'}, headers=bearer('WRONG'))
        assert resp.status_code == 400
        assert executor.calls == []

    def test_other_groups_token_is_not_found(self, client, executor):
        resp = client.post('/power/e1', json={'action': 'on'}, headers=bearer('T2'))
        assert resp.status_code == 404
        assert executor.calls == []

    def test_execution_failure_is_reported_once(self, client, executor):
        executor.error = ExecutionFailed(FailureReason.TIMEOUT)
        resp = client.post('/power/e1', json={'action': 'cycle'}, headers=bearer('T1'))
        assert resp.status_code == 500
        assert 'error' in resp.get_json()
        assert len(executor.calls) == 1

    def test_unrecognized_confirmation_still_succeeds(self, client, executor):
        executor.stdout[PowerAction.OFF] = 'done\n'
        resp = client.post('/power/e1', json={'action': 'off'}, headers=bearer('T1'))
        assert resp.status_code == 200


class TestRouting:

    @pytest.mark.parametrize('path', [
        '/', '/power', '/power/', '/power/e1/extra', '/status/e1',
        '/power//e1', '//power/e1',
    ])
    def test_unmatched_route(self, client, path):
        resp = client.get(path, headers=bearer('T1'))
        assert resp.status_code == 404
        assert resp.get_json() == {'error': 'Not found'}

    def test_method_not_allowed(self, client, executor):
        resp = client.put('/power/e1', headers=bearer('T1'))
        assert resp.status_code == 405
        assert 'error' in resp.get_json()
        assert executor.calls == []

    def test_unexpected_exception_is_500(self, client, executor):
        executor.error = RuntimeError('boom')
        resp = client.get('/power/e1', headers=bearer('T1'))
        assert resp.status_code == 500
        assert resp.get_json() == {'error': 'Internal server error'}


def test_logs_never_contain_token_or_password(client, executor, caplog):
    caplog.set_level(logging.DEBUG)
    client.get('/power/e1', headers=bearer('T1'))
    client.post('/power/e1', json={'action': 'reset'}, headers=bearer('T1'))
    client.post('/power/e1', json={'action': 'reset'}, headers=bearer('SECRET-WRONG'))
    executor.error = ExecutionFailed(FailureReason.UNKNOWN, 'oops')
    client.get('/power/e1', headers=bearer('T1'))
    assert 'outcome=ok' in caplog.text
    assert 'outcome=Unauthorized' in caplog.text
    assert 'outcome=ExecutionFailed' in caplog.text
    assert 'T1' not in caplog.text
    assert 'SECRET-WRONG' not in caplog.text
    assert E1_PASSWORD not in caplog.text


def test_double_slash_path_is_not_redirected(client, executor):
    resp = client.post('/power//e1', json={'action': 'on'}, headers=bearer('T1'))
    assert resp.status_code == 404
    assert resp.get_json() == {'error': 'Not found'}
    assert executor.calls == []

"""Shared fixtures: a two-group topology and a recording fake ipmitool."""

import pytest
from werkzeug.test import Client

from ipmi_power_http.dispatcher import PowerApp
from ipmi_power_http.executor import RawResult
from ipmi_power_http.models import PowerAction
from ipmi_power_http.topology import Endpoint, Group, Topology

E1_PASSWORD = 'e1-bmc-password'


class FakeExecutor:
    """Stands in for IpmiToolExecutor; records every call."""

    def __init__(self):
        self.calls = []
        self.stdout = {
            PowerAction.STATUS: 'Chassis Power is on\n',
            PowerAction.ON: 'Chassis Power Control: Up/On\n',
            PowerAction.OFF: 'Chassis Power Control: Down/Off\n',
            PowerAction.RESET: 'Chassis Power Control: Reset\n',
            PowerAction.CYCLE: 'Chassis Power Control: Cycle\n',
        }
        self.error = None

    def execute(self, endpoint, action):
        self.calls.append((endpoint, action))
        if self.error is not None:
            raise self.error
        return RawResult(exit_success=True, stdout=self.stdout[action], stderr='')


@pytest.fixture
def e1():
    return Endpoint(name='e1', address='10.0.0.11', username='ADMIN', password=E1_PASSWORD)


@pytest.fixture
def topology(e1):
    return Topology([
        Group(name='g1', token='T1', endpoints=(
            e1,
            Endpoint(name='e3', address='10.0.0.13', username='ADMIN', password='p3'),
        )),
        Group(name='g2', token='T2', endpoints=(
            Endpoint(name='e2', address='10.0.0.12', username='root', password='p2'),
        )),
    ])


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def app(topology, executor):
    return PowerApp(topology, executor)


@pytest.fixture
def client(app):
    return Client(app)


def bearer(token):
    return {'Authorization': f'Bearer {token}'}

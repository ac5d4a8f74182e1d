from unittest.mock import MagicMock

import pytest

from cloudstack_collector.accumulator import Accumulator
from cloudstack_collector.cs_common import CloudStackClient


@pytest.fixture
def acc():
    """Fresh accumulator for each test."""
    return Accumulator()


@pytest.fixture
def client():
    """CloudStackClient stand-in with no VMs and a working refresh."""
    mock = MagicMock(spec=CloudStackClient)
    mock.update_resource_count.return_value = {}
    mock.list_virtual_machines.return_value = []
    mock.list_domains.return_value = []
    return mock


@pytest.fixture
def cfg():
    return {
        "API_URL": "http://cloudstack.test:8080/client/api",
        "API_KEY": "test-api-key",
        "SECRET_KEY": "test-secret-key",
        "VERIFY_SSL": True,
        "REQUEST_TIMEOUT": "30",
        "PAGE_SIZE": "500",
        "ALL_DOMAINS": True,
        "DOMAIN_IDS": [],
        "POLL_INTERVAL": "60",
        "LOG_LEVEL": "INFO",
        "JSON_LOGS": False,
    }

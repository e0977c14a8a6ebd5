"""Shared fixtures for the devx-config test suite."""
from pathlib import Path
from unittest import mock

import pytest
from botocore.exceptions import ClientError

from devx_config.store.domains import preferences
from devx_config.store.domains.models import Service


class FakeClients:
    """Stands in for AWSClients: one MagicMock per AWS service, records timeouts."""

    def __init__(self):
        self.clients = {
            "ssm": mock.MagicMock(name="ssm"),
            "secretsmanager": mock.MagicMock(name="secretsmanager"),
        }
        self.requested = []

    def get(self, service_name, timeout=10.0):
        self.requested.append((service_name, timeout))
        return self.clients[service_name]


def client_error(code, operation="Operation", message="boom"):
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


def serve_pages(client, pages):
    """Make client.get_paginator(...).paginate(...) yield pages; returns the paginator mock."""
    paginator = client.get_paginator.return_value
    paginator.paginate.return_value = pages
    return paginator


@pytest.fixture
def service():
    return Service(stage="TEST", stack="my-stack", app="my-app")


@pytest.fixture
def fake_clients():
    return FakeClients()


@pytest.fixture
def ssm_client(fake_clients):
    return fake_clients.clients["ssm"]


@pytest.fixture
def sm_client(fake_clients):
    return fake_clients.clients["secretsmanager"]


@pytest.fixture
def temp_home(tmp_path, monkeypatch):
    """Fixture to create a temporary home directory for testing."""
    fake_home = tmp_path / "home"
    fake_home.mkdir()
    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.setattr(Path, "home", lambda: fake_home)
    monkeypatch.delenv("DEVX_CONFIG_REGION", raising=False)
    monkeypatch.delenv("DEVX_CONFIG_PROFILE", raising=False)

    fake_config_dir = fake_home / ".config" / "devx-config"
    monkeypatch.setattr(preferences, "PREFERENCES_DIR", fake_config_dir)
    monkeypatch.setattr(preferences, "PREFERENCES_FILE", fake_config_dir / "preferences.json")

    return fake_home

"""Tests for the Secrets Manager backend."""
from datetime import datetime, timezone

import pytest

from devx_config.store.domains.errors import (
    BackendError,
    ErrorKind,
    NotFoundError,
    ValidationError,
)
from devx_config.store.domains.models import Parameter
from devx_config.store.domains.secrets_store import SecretsManagerStore, version_token

from conftest import client_error, serve_pages


class InMemorySecretsManager:
    """
    Minimal Secrets Manager keeping versions per secret name.

    Like the real service, a ClientRequestToken that already names a
    version of the secret is a no-op when the value matches and an
    error otherwise; the current version does not move.
    """

    def __init__(self):
        self.secrets = {}
        self.current = {}
        self.calls = []

    def _response(self, name, token):
        return {"ARN": f"arn:{name}", "Name": name, "VersionId": token}

    def create_secret(self, Name, ClientRequestToken, SecretString, Tags):
        self.calls.append("create_secret")
        if Name in self.secrets:
            raise client_error("ResourceExistsException", "CreateSecret")
        self.secrets[Name] = {ClientRequestToken: SecretString}
        self.current[Name] = ClientRequestToken
        return self._response(Name, ClientRequestToken)

    def put_secret_value(self, SecretId, ClientRequestToken, SecretString):
        self.calls.append("put_secret_value")
        if SecretId not in self.secrets:
            raise client_error("ResourceNotFoundException", "PutSecretValue")
        versions = self.secrets[SecretId]
        if ClientRequestToken in versions:
            if versions[ClientRequestToken] != SecretString:
                raise client_error("ResourceExistsException", "PutSecretValue")
            return self._response(SecretId, ClientRequestToken)
        versions[ClientRequestToken] = SecretString
        self.current[SecretId] = ClientRequestToken
        return self._response(SecretId, ClientRequestToken)

    def get_secret_value(self, SecretId):
        self.calls.append("get_secret_value")
        if SecretId not in self.secrets:
            raise client_error("ResourceNotFoundException", "GetSecretValue")
        token = self.current[SecretId]
        return {"Name": SecretId, "SecretString": self.secrets[SecretId][token], "VersionId": token}


def list_page(names, next_token=None):
    page = {"SecretList": [{"ARN": f"arn:aws:secretsmanager:::{n}", "Name": n} for n in names]}
    if next_token:
        page["NextToken"] = next_token
    return page


@pytest.fixture
def store(fake_clients):
    return SecretsManagerStore(fake_clients, retention_days=0, timeout=5)


class TestConstruction:

    @pytest.mark.parametrize("days", [0, 7, 15, 30])
    def test_accepts_zero_or_seven_to_thirty(self, fake_clients, days):
        assert SecretsManagerStore(fake_clients, retention_days=days).retention_days == days

    @pytest.mark.parametrize("days", [5, 6, 31, -1])
    def test_rejects_other_retention_periods(self, fake_clients, days):
        with pytest.raises(ValidationError) as exc_info:
            SecretsManagerStore(fake_clients, retention_days=days)

        assert exc_info.value.kind is ErrorKind.VALIDATION
        assert fake_clients.requested == []


class TestGet:

    def test_get_returns_string_value(self, store, sm_client, service):
        sm_client.get_secret_value.return_value = {
            "ARN": "arn:aws:some-region::::/TEST/my-stack/my-app/some-parameter/path",
            "Name": "/TEST/my-stack/my-app/some-parameter/path",
            "SecretString": "somevaluehere",
            "VersionId": "dshjdfsdfs",
        }

        result = store.get(service, "some-parameter/path")

        sm_client.get_secret_value.assert_called_once_with(
            SecretId="/TEST/my-stack/my-app/some-parameter/path"
        )
        assert result == Parameter(
            service=service,
            name="/TEST/my-stack/my-app/some-parameter/path",
            value="somevaluehere",
            is_secret=True,
        )

    def test_binary_secret_reads_as_empty(self, store, sm_client, service):
        sm_client.get_secret_value.return_value = {
            "Name": "/TEST/my-stack/my-app/cert",
            "SecretBinary": b"\x00\x01",
        }

        assert store.get(service, "cert").value == ""

    def test_get_missing_raises_not_found(self, store, sm_client, service):
        sm_client.get_secret_value.side_effect = client_error("ResourceNotFoundException")

        with pytest.raises(NotFoundError):
            store.get(service, "missing")


class TestVersionToken:

    def test_token_is_deterministic(self):
        assert version_token("value") == version_token("value")

    def test_token_differs_per_value(self):
        assert version_token("a") != version_token("b")

    def test_token_length_fits_client_request_token(self):
        assert 32 <= len(version_token("")) <= 64


class TestSet:

    def test_non_secret_is_rejected_without_network_calls(self, store, sm_client, service, fake_clients):
        with pytest.raises(ValidationError):
            store.set(service, "name", "value", False)

        assert fake_clients.requested == []
        sm_client.create_secret.assert_not_called()
        sm_client.put_secret_value.assert_not_called()

    def test_new_secret_is_created_with_tags_and_token(self, store, sm_client, service):
        store.set(service, "db/password", "hunter2", True)

        sm_client.create_secret.assert_called_once_with(
            Name="/TEST/my-stack/my-app/db/password",
            ClientRequestToken=version_token("hunter2"),
            SecretString="hunter2",
            Tags=[
                {"Key": "App", "Value": "my-app"},
                {"Key": "Stack", "Value": "my-stack"},
                {"Key": "Stage", "Value": "TEST"},
            ],
        )
        sm_client.put_secret_value.assert_not_called()

    def test_existing_secret_falls_back_to_update(self, store, sm_client, service):
        sm_client.create_secret.side_effect = client_error("ResourceExistsException", "CreateSecret")

        store.set(service, "db/password", "hunter2", True)

        assert sm_client.create_secret.call_count == 1
        sm_client.put_secret_value.assert_called_once_with(
            SecretId="/TEST/my-stack/my-app/db/password",
            ClientRequestToken=version_token("hunter2"),
            SecretString="hunter2",
        )

    def test_create_then_update_order(self, fake_clients, service):
        fake = InMemorySecretsManager()
        fake_clients.clients["secretsmanager"] = fake
        store = SecretsManagerStore(fake_clients)

        store.set(service, "key", "v1", True)
        store.set(service, "key", "v2", True)

        assert fake.calls == ["create_secret", "create_secret", "put_secret_value"]

    def test_other_create_error_does_not_update(self, store, sm_client, service):
        sm_client.create_secret.side_effect = client_error("AccessDeniedException", "CreateSecret")

        with pytest.raises(BackendError) as exc_info:
            store.set(service, "db/password", "hunter2", True)

        assert exc_info.value.kind is ErrorKind.TRANSPORT
        assert sm_client.create_secret.call_count == 1
        sm_client.put_secret_value.assert_not_called()

    def test_failed_update_is_surfaced(self, store, sm_client, service):
        sm_client.create_secret.side_effect = client_error("ResourceExistsException")
        sm_client.put_secret_value.side_effect = client_error("LimitExceededException")

        with pytest.raises(BackendError) as exc_info:
            store.set(service, "db/password", "hunter2", True)

        assert exc_info.value.cause.response["Error"]["Code"] == "LimitExceededException"

    @pytest.mark.parametrize("value", ["plain", "", "multi\nline", "ünïcode=="])
    @pytest.mark.parametrize("preexisting", [False, True])
    def test_set_then_get_round_trip(self, fake_clients, service, value, preexisting):
        fake = InMemorySecretsManager()
        fake_clients.clients["secretsmanager"] = fake
        store = SecretsManagerStore(fake_clients)
        if preexisting:
            store.set(service, "key", "old", True)

        store.set(service, "key", value, True)

        assert store.get(service, "key").value == value

    def test_repeating_a_write_adds_no_version(self, fake_clients, service):
        fake = InMemorySecretsManager()
        fake_clients.clients["secretsmanager"] = fake
        store = SecretsManagerStore(fake_clients)

        store.set(service, "key", "v1", True)
        store.set(service, "key", "v1", True)

        assert list(fake.secrets["/TEST/my-stack/my-app/key"].values()) == ["v1"]

    def test_restoring_an_earlier_value_keeps_the_later_one_current(self, fake_clients, service):
        # Tokens are derived from the value, so writing v1 again reuses the
        # v1 token and Secrets Manager treats it as a retry.
        fake = InMemorySecretsManager()
        fake_clients.clients["secretsmanager"] = fake
        store = SecretsManagerStore(fake_clients)

        store.set(service, "key", "v1", True)
        store.set(service, "key", "v2", True)
        store.set(service, "key", "v1", True)

        assert store.get(service, "key").value == "v2"
        assert fake.calls.count("put_secret_value") == 2


class TestList:

    def test_list_fetches_every_page_and_value(self, store, sm_client, service):
        serve_pages(sm_client, [
            list_page(["/TEST/my-stack/my-app/a", "/TEST/my-stack/my-app/b"], next_token="t1"),
            list_page(["/TEST/my-stack/my-app/c"], next_token="t2"),
            list_page(["/TEST/my-stack/my-app/d", "/TEST/my-stack/my-app/e"]),
        ])
        sm_client.get_secret_value.side_effect = lambda SecretId: {
            "Name": SecretId.rsplit(":", 1)[-1],
            "SecretString": f"value-of-{SecretId.rsplit('/', 1)[-1]}",
        }

        items = store.list(service)

        assert sm_client.get_secret_value.call_count == 5
        assert [i.name for i in items] == [
            "/TEST/my-stack/my-app/a",
            "/TEST/my-stack/my-app/b",
            "/TEST/my-stack/my-app/c",
            "/TEST/my-stack/my-app/d",
            "/TEST/my-stack/my-app/e",
        ]
        assert [i.value for i in items] == [f"value-of-{k}" for k in "abcde"]
        assert all(i.is_secret for i in items)
        assert all(i.service == service for i in items)

    def test_list_request_shape(self, store, sm_client, service):
        paginator = serve_pages(sm_client, [list_page([])])

        store.list(service)

        sm_client.get_paginator.assert_called_once_with("list_secrets")
        paginator.paginate.assert_called_once_with(
            Filters=[{"Key": "name", "Values": ["/TEST/my-stack/my-app"]}],
            SortOrder="desc",
        )

    def test_list_skips_names_outside_the_service(self, store, sm_client, service):
        serve_pages(sm_client, [list_page([
            "/TEST/my-stack/my-app2/b",
            "/test/my-stack/my-app/c",
            "/TEST/my-stack/my-app/a",
            "/TEST/my-stack/my-app",
        ])])
        sm_client.get_secret_value.return_value = {"Name": "/TEST/my-stack/my-app/a", "SecretString": "v"}

        items = store.list(service)

        assert [str(p) for p in items] == ["a=v"]
        sm_client.get_secret_value.assert_called_once_with(
            SecretId="arn:aws:secretsmanager:::/TEST/my-stack/my-app/a"
        )

    def test_values_are_fetched_by_arn(self, store, sm_client, service):
        serve_pages(sm_client, [list_page(["/TEST/my-stack/my-app/a"])])
        sm_client.get_secret_value.return_value = {"Name": "/TEST/my-stack/my-app/a", "SecretString": "x"}

        store.list(service)

        sm_client.get_secret_value.assert_called_once_with(
            SecretId="arn:aws:secretsmanager:::/TEST/my-stack/my-app/a"
        )

    def test_entry_failure_aborts_whole_listing(self, store, sm_client, service):
        serve_pages(sm_client, [
            list_page(["/TEST/my-stack/my-app/a"], next_token="t"),
            list_page(["/TEST/my-stack/my-app/b", "/TEST/my-stack/my-app/c"]),
        ])
        sm_client.get_secret_value.side_effect = [
            {"Name": "/TEST/my-stack/my-app/a", "SecretString": "1"},
            client_error("AccessDeniedException", "GetSecretValue"),
        ]

        with pytest.raises(BackendError) as exc_info:
            store.list(service)

        assert exc_info.value.operation == "get"
        assert sm_client.get_secret_value.call_count == 2

    def test_page_failure_raises_list_error(self, store, sm_client, service):
        def pages():
            yield list_page(["/TEST/my-stack/my-app/a"], next_token="t")
            raise client_error("ThrottlingException", "ListSecrets")

        serve_pages(sm_client, pages())
        sm_client.get_secret_value.return_value = {"Name": "/TEST/my-stack/my-app/a", "SecretString": "1"}

        with pytest.raises(BackendError) as exc_info:
            store.list(service)

        assert exc_info.value.operation == "list"
        assert exc_info.value.name == "/TEST/my-stack/my-app"

    def test_binary_entries_list_as_empty(self, store, sm_client, service):
        serve_pages(sm_client, [list_page(["/TEST/my-stack/my-app/bin"])])
        sm_client.get_secret_value.return_value = {"Name": "/TEST/my-stack/my-app/bin", "SecretBinary": b"x"}

        assert store.list(service)[0].value == ""

    def test_pages_are_lazy(self, store, sm_client, service):
        paginator = serve_pages(sm_client, [list_page([], next_token="t"), list_page([])])

        pages = store.iter_pages(service)
        paginator.paginate.assert_not_called()
        assert next(pages) == []
        paginator.paginate.assert_called_once()

    def test_each_round_trip_gets_the_timeout(self, store, sm_client, service, fake_clients):
        serve_pages(sm_client, [list_page(["/TEST/my-stack/my-app/a"])])
        sm_client.get_secret_value.return_value = {"Name": "/TEST/my-stack/my-app/a", "SecretString": "1"}

        store.list(service, timeout=3)

        assert fake_clients.requested == [("secretsmanager", 3), ("secretsmanager", 3)]


class TestDelete:

    def test_zero_retention_forces_immediate_delete(self, fake_clients, sm_client, service):
        sm_client.delete_secret.return_value = {
            "ARN": "arn:aws::::/TEST/my-stack/my-app/some-secret-name",
            "Name": "/TEST/my-stack/my-app/some-secret-name",
            "DeletionDate": datetime.now(timezone.utc),
        }
        store = SecretsManagerStore(fake_clients, retention_days=0)

        store.delete(service, "some-secret-name")

        sm_client.delete_secret.assert_called_once_with(
            SecretId="/TEST/my-stack/my-app/some-secret-name",
            ForceDeleteWithoutRecovery=True,
        )
        assert "RecoveryWindowInDays" not in sm_client.delete_secret.call_args.kwargs

    def test_retention_schedules_delete(self, fake_clients, sm_client, service):
        sm_client.delete_secret.return_value = {"ARN": "arn", "DeletionDate": datetime.now(timezone.utc)}
        store = SecretsManagerStore(fake_clients, retention_days=7)

        store.delete(service, "some-secret-name")

        kwargs = sm_client.delete_secret.call_args.kwargs
        assert kwargs == {
            "SecretId": "/TEST/my-stack/my-app/some-secret-name",
            "RecoveryWindowInDays": 7,
        }
        assert "ForceDeleteWithoutRecovery" not in kwargs

    def test_delete_missing_raises_not_found(self, store, sm_client, service):
        sm_client.delete_secret.side_effect = client_error("ResourceNotFoundException")

        with pytest.raises(NotFoundError):
            store.delete(service, "gone")

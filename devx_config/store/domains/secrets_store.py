"""AWS Secrets Manager backend."""
import base64
import hashlib
import logging
from typing import Any, Dict, Iterator, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .aws_client import DEFAULT_TIMEOUT, AWSClients
from .errors import ErrorKind, ValidationError, translate_error
from .interface import Store
from .models import Parameter, Service

logger = logging.getLogger(__name__)

MIN_RETENTION_DAYS = 7
MAX_RETENTION_DAYS = 30


def version_token(value: str) -> str:
    """
    Return a deterministic ClientRequestToken for a secret value.

    Base64 SHA-256 of the value, so repeating an identical write does not
    create a new version.
    """
    digest = hashlib.sha256(value.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


def validate_retention_days(retention_days: int) -> None:
    """Raise ValidationError unless retention is 0 or inside 7..30."""
    if retention_days == 0:
        return
    if not MIN_RETENTION_DAYS <= retention_days <= MAX_RETENTION_DAYS:
        raise ValidationError(
            f"Secrets Manager only supports post-deletion retention periods of between "
            f"{MIN_RETENTION_DAYS} and {MAX_RETENTION_DAYS} days (got {retention_days}). "
            f"Use 0 to delete immediately.",
            operation="configure",
        )


class SecretsManagerStore(Store):
    """
    Config store backed by AWS Secrets Manager.

    Every write adds a new version of a named secret. Only string secrets
    are supported; binary secrets read back as an empty value.

    Args:
        clients: AWS client factory
        retention_days: Recovery window applied on delete. 0 deletes
            immediately with no recovery, otherwise 7..30.
        timeout: Default per round trip timeout in seconds
    """

    backend_type = "secretsmanager"

    def __init__(
        self,
        clients: AWSClients,
        retention_days: int = 0,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        validate_retention_days(retention_days)
        self.clients = clients
        self.retention_days = retention_days
        self.timeout = timeout

    def _client(self, timeout: Optional[float]):
        return self.clients.get("secretsmanager", timeout if timeout is not None else self.timeout)

    def _fetch_value(self, secret_id: str, timeout: Optional[float]) -> Dict[str, Any]:
        try:
            return self._client(timeout).get_secret_value(SecretId=secret_id)
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, "get", secret_id) from e

    def get(self, service: Service, name: str, timeout: Optional[float] = None) -> Parameter:
        response = self._fetch_value(service.path(name), timeout)
        return Parameter(
            service=service,
            name=response["Name"],
            value=response.get("SecretString") or "",
            is_secret=True,
        )

    def iter_pages(self, service: Service, timeout: Optional[float] = None) -> Iterator[List[Parameter]]:
        """
        Yield decrypted pages of secrets under the service prefix.

        ListSecrets only returns metadata, so every entry costs one extra
        GetSecretValue call. A failing call ends the iteration with an error.

        The ``name`` filter is a case-insensitive prefix match, so entries
        not under ``{prefix}/`` (``my-app2``, other casings) are skipped
        before their value is fetched.
        """
        prefix = service.prefix()
        namespace = prefix + "/"

        try:
            paginator = self._client(timeout).get_paginator("list_secrets")
            pages = paginator.paginate(
                Filters=[{"Key": "name", "Values": [prefix]}],
                SortOrder="desc",
            )
            for page_number, response in enumerate(pages, start=1):
                logger.debug(f"Loaded page {page_number} of secrets under {prefix}")
                page = []
                for entry in response.get("SecretList", []):
                    if not entry["Name"].startswith(namespace):
                        logger.debug(f"Skipping secret {entry['Name']} outside {namespace}")
                        continue
                    secret = self._fetch_value(entry["ARN"], timeout)
                    page.append(Parameter(
                        service=service,
                        name=entry["Name"],
                        value=secret.get("SecretString") or "",
                        is_secret=True,
                    ))
                yield page
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, "list", prefix) from e

    def list(self, service: Service, timeout: Optional[float] = None) -> List[Parameter]:
        items: List[Parameter] = []
        for page in self.iter_pages(service, timeout):
            items.extend(page)
        return items

    def _create(self, service: Service, path: str, value: str, token: str, timeout: Optional[float]) -> None:
        response = self._client(timeout).create_secret(
            Name=path,
            ClientRequestToken=token,
            SecretString=value,
            Tags=[
                {"Key": "App", "Value": service.app},
                {"Key": "Stack", "Value": service.stack},
                {"Key": "Stage", "Value": service.stage},
            ],
        )
        logger.debug(f"Created new secret with version ID {response.get('VersionId')} and ARN {response.get('ARN')}")

    def _update(self, path: str, value: str, token: str, timeout: Optional[float]) -> None:
        try:
            response = self._client(timeout).put_secret_value(
                SecretId=path,
                ClientRequestToken=token,
                SecretString=value,
            )
        except (ClientError, BotoCoreError) as e:
            logger.info(f"Could not update value for secret {path}: {e}")
            raise translate_error(e, "set", path) from e
        logger.debug(f"Updated secret with new version ID {response.get('VersionId')} and ARN {response.get('ARN')}")

    def set(
        self,
        service: Service,
        name: str,
        value: str,
        is_secret: bool,
        timeout: Optional[float] = None,
    ) -> None:
        path = service.path(name)
        if not is_secret:
            raise ValidationError(
                "You cannot create something that is not a secret in Secrets Manager. "
                "Use the SSM parameter store instead.",
                operation="set",
                name=path,
            )

        token = version_token(value)
        try:
            self._create(service, path, value, token, timeout)
            return
        except (ClientError, BotoCoreError) as e:
            error = translate_error(e, "set", path)
            if error.kind is not ErrorKind.CONFLICT:
                raise error from e

        logger.debug(f"Secret already exists for name {path}, updating existing")
        self._update(path, value, token, timeout)

    def delete(self, service: Service, name: str, timeout: Optional[float] = None) -> None:
        path = service.path(name)
        if self.retention_days > 0:
            request = {"SecretId": path, "RecoveryWindowInDays": self.retention_days}
        else:
            request = {"SecretId": path, "ForceDeleteWithoutRecovery": True}

        try:
            response = self._client(timeout).delete_secret(**request)
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, "delete", path) from e

        deletion_date = response.get("DeletionDate")
        logger.debug(
            f"Requested secret deletion for {response.get('ARN')}. "
            f"Actual removal should occur at {deletion_date.isoformat() if deletion_date else 'unknown'}"
        )

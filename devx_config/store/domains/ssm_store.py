"""SSM Parameter Store backend."""
import logging
from typing import Any, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .aws_client import DEFAULT_TIMEOUT, AWSClients
from .errors import translate_error
from .interface import Store
from .models import Parameter, Service

logger = logging.getLogger(__name__)

STRING = "String"
SECURE_STRING = "SecureString"


def as_parameter(service: Service, param: Dict[str, Any]) -> Parameter:
    """Build a Parameter from an SSM API parameter dict."""
    return Parameter(
        service=service,
        name=param["Name"],
        value=param["Value"],
        is_secret=param.get("Type") == SECURE_STRING,
    )


class ParameterStore(Store):
    """
    Config store backed by SSM Parameter Store.

    Plain and secret items both live as parameters under the service prefix;
    secrets are stored as SecureString. PutParameter overwrites, so set
    needs no existence check.
    """

    backend_type = "ssm"

    def __init__(self, clients: AWSClients, timeout: float = DEFAULT_TIMEOUT):
        self.clients = clients
        self.timeout = timeout

    def _client(self, timeout: Optional[float]):
        return self.clients.get("ssm", timeout if timeout is not None else self.timeout)

    def get(self, service: Service, name: str, timeout: Optional[float] = None) -> Parameter:
        path = service.path(name)
        try:
            response = self._client(timeout).get_parameter(Name=path, WithDecryption=True)
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, "get", path) from e

        return as_parameter(service, response["Parameter"])

    def list(self, service: Service, timeout: Optional[float] = None) -> List[Parameter]:
        prefix = service.prefix()
        items: List[Parameter] = []

        try:
            paginator = self._client(timeout).get_paginator("get_parameters_by_path")
            pages = paginator.paginate(Path=prefix, Recursive=True, WithDecryption=True)
            for page_number, page in enumerate(pages, start=1):
                logger.debug(f"Loaded page {page_number} of parameters under {prefix}")
                items.extend(as_parameter(service, p) for p in page.get("Parameters", []))
        except (ClientError, BotoCoreError) as e:
            # items fetched so far are dropped
            raise translate_error(e, "list", prefix) from e

        return items

    def set(
        self,
        service: Service,
        name: str,
        value: str,
        is_secret: bool,
        timeout: Optional[float] = None,
    ) -> None:
        path = service.path(name)
        try:
            self._client(timeout).put_parameter(
                Name=path,
                Value=value,
                Type=SECURE_STRING if is_secret else STRING,
                Overwrite=True,
            )
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, "set", path) from e
        logger.debug(f"Stored parameter {path}")

    def delete(self, service: Service, name: str, timeout: Optional[float] = None) -> None:
        path = service.path(name)
        try:
            self._client(timeout).delete_parameter(Name=path)
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, "delete", path) from e
        logger.debug(f"Deleted parameter {path}")

"""Workflow for config item operations across the two backends."""
import logging
from functools import partial
from typing import Callable, Iterable, List, Optional

from ..domains.aws_client import AWSClients
from ..domains.config_loader import ToolConfig
from ..domains.interface import Store
from ..domains.models import Parameter, Service
from ..domains.secrets_store import SecretsManagerStore
from ..domains.ssm_store import ParameterStore

logger = logging.getLogger(__name__)


class Stores:
    """
    The stores a command works with.

    Plain items always live in ``parameters``. Secrets go to ``secrets``
    when Secrets Manager is configured, otherwise to ``parameters`` as
    SecureString. A ``secrets_factory`` is only called the first time a
    secret is routed, so a bad secrets setting does not block plain items.
    """

    def __init__(
        self,
        parameters: Store,
        secrets: Optional[Store] = None,
        secrets_factory: Optional[Callable[[], Store]] = None,
    ):
        self.parameters = parameters
        self._secrets = secrets
        self._secrets_factory = secrets_factory

    @property
    def secrets(self) -> Optional[Store]:
        if self._secrets is None and self._secrets_factory is not None:
            self._secrets = self._secrets_factory()
        return self._secrets

    @property
    def has_secrets_backend(self) -> bool:
        return self._secrets is not None or self._secrets_factory is not None

    def for_item(self, is_secret: bool) -> Store:
        if is_secret and self.has_secrets_backend:
            return self.secrets
        return self.parameters

    def all(self) -> List[Store]:
        stores = [self.parameters]
        if self.has_secrets_backend:
            stores.append(self.secrets)
        return stores


def build_stores(config: ToolConfig, clients: Optional[AWSClients] = None) -> Stores:
    """
    Construct the stores described by config.

    The Secrets Manager store is built on first use. Its retention period
    is validated then, so the ValidationError surfaces from the first
    secret operation rather than from here.
    """
    if clients is None:
        clients = AWSClients(
            region=config.region,
            profile=config.profile,
            max_attempts=config.max_attempts,
        )

    parameters = ParameterStore(clients, timeout=config.timeout_seconds)
    secrets_factory = None
    if config.secrets_backend == "secretsmanager":
        secrets_factory = partial(
            SecretsManagerStore,
            clients,
            retention_days=config.secret_retention_days,
            timeout=config.timeout_seconds,
        )
    logger.debug(f"Secrets backend: {config.secrets_backend}")
    return Stores(parameters=parameters, secrets_factory=secrets_factory)


def get_item(stores: Stores, service: Service, name: str, is_secret: bool = False) -> Parameter:
    return stores.for_item(is_secret).get(service, name)


def list_items(stores: Stores, service: Service) -> List[Parameter]:
    """List every item of service, parameter store first."""
    items: List[Parameter] = []
    for store in stores.all():
        found = store.list(service)
        logger.debug(f"Found {len(found)} items in {store.backend_type} under {service.prefix()}")
        items.extend(found)
    return items


def set_item(stores: Stores, service: Service, name: str, value: str, is_secret: bool) -> None:
    store = stores.for_item(is_secret)
    store.set(service, name, value, is_secret)
    logger.info(f"Set '{name}' for service '{service.prefix()}' in {store.backend_type}")


def delete_item(stores: Stores, service: Service, name: str, is_secret: bool = False) -> None:
    store = stores.for_item(is_secret)
    store.delete(service, name)
    logger.info(f"Deleted '{name}' for service '{service.prefix()}' from {store.backend_type}")


def render_items(items: Iterable[Parameter]) -> List[str]:
    """Return KEY=value lines, one per item."""
    return [str(item) for item in items]

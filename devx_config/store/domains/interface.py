"""
Abstract interface for config stores.

Both backends (SSM Parameter Store and Secrets Manager) implement this
contract. Callers hold a Store and never build backend requests themselves.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from .models import Parameter, Service


class Store(ABC):
    """Abstract base class for config stores."""

    backend_type: str = "base"

    @abstractmethod
    def get(self, service: Service, name: str, timeout: Optional[float] = None) -> Parameter:
        """
        Fetch one item.

        Args:
            service: Owning service
            name: Item name relative to the service prefix
            timeout: Per round trip timeout in seconds (backend default if None)

        Returns:
            The item, with its fully-qualified name

        Raises:
            NotFoundError: If the item does not exist
            BackendError: For any other failure
        """
        pass

    @abstractmethod
    def list(self, service: Service, timeout: Optional[float] = None) -> List[Parameter]:
        """
        Fetch every item under the service prefix.

        Ordering is backend-defined. An empty namespace gives an empty list.

        Raises:
            BackendError: If any round trip fails
        """
        pass

    @abstractmethod
    def set(
        self,
        service: Service,
        name: str,
        value: str,
        is_secret: bool,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Create or overwrite one item.

        Raises:
            ValidationError: If the backend cannot store this kind of item
            BackendError: For any other failure
        """
        pass

    @abstractmethod
    def delete(self, service: Service, name: str, timeout: Optional[float] = None) -> None:
        """
        Remove one item.

        Raises:
            NotFoundError: If the item does not exist
            BackendError: For any other failure
        """
        pass

"""boto3 client construction for the config stores."""
import logging
from typing import Any, Dict, Optional, Tuple

import boto3
from botocore.config import Config

logger = logging.getLogger(__name__)

DEFAULT_REGION = "eu-west-1"
DEFAULT_TIMEOUT = 10.0


class AWSClients:
    """
    Hands out boto3 clients bound to one session.

    A client is built per (service, timeout) pair so every round trip can
    carry its own connect/read timeout. Clients are memoised.
    """

    def __init__(
        self,
        region: str = DEFAULT_REGION,
        profile: Optional[str] = None,
        max_attempts: int = 1,
    ):
        self.region = region
        self.profile = profile
        self.max_attempts = max_attempts
        self._session = None
        self._clients: Dict[Tuple[str, float], Any] = {}

    @property
    def session(self) -> boto3.session.Session:
        """Lazy-initialize session."""
        if self._session is None:
            self._session = boto3.session.Session(
                profile_name=self.profile or None,
                region_name=self.region,
            )
            logger.debug(f"AWS session created: region={self.region}, profile={self.profile or 'default'}")
        return self._session

    def get(self, service_name: str, timeout: float = DEFAULT_TIMEOUT):
        """
        Get a client for an AWS service.

        Args:
            service_name: boto3 service name, e.g. "ssm" or "secretsmanager"
            timeout: Connect and read timeout in seconds for each request

        Returns:
            boto3 client
        """
        cache_key = (service_name, float(timeout))
        if cache_key not in self._clients:
            client_config = Config(
                connect_timeout=timeout,
                read_timeout=timeout,
                retries={"total_max_attempts": self.max_attempts, "mode": "standard"},
            )
            self._clients[cache_key] = self.session.client(service_name, config=client_config)
            logger.debug(f"{service_name} client initialized with timeout={timeout}s")
        return self._clients[cache_key]

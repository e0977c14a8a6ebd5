"""Domain models for config items."""
from dataclasses import dataclass


def clean_key(name: str, prefix: str) -> str:
    """
    Turn a fully-qualified item name into a flat, shell-safe key.

    The leading "{prefix}/" is stripped first (only when the name starts with
    it), then every "." and "/" becomes "_".

    Args:
        name: Item name, usually as returned by a backend
        prefix: Namespace prefix of the owning service

    Returns:
        Key suitable for use as an environment variable name
    """
    head = f"{prefix}/"
    if name.startswith(head):
        name = name[len(head):]
    return name.replace(".", "_").replace("/", "_")


@dataclass(frozen=True)
class Service:
    """Stage, stack and app triple that scopes a set of items."""
    stage: str
    stack: str
    app: str

    def prefix(self) -> str:
        # stage, stack, app: order is fixed
        return f"/{self.stage}/{self.stack}/{self.app}"

    def path(self, name: str) -> str:
        return f"{self.prefix()}/{name}"


@dataclass
class Parameter:
    """A single config entry or secret belonging to a service."""
    service: Service
    name: str
    value: str
    is_secret: bool = False

    @property
    def key(self) -> str:
        return clean_key(self.name, self.service.prefix())

    def __str__(self) -> str:
        return f"{self.key}={self.value}"

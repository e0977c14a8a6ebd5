"""Error types raised by the config stores."""
from enum import Enum
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

NOT_FOUND_CODES = ("ParameterNotFound", "ResourceNotFoundException")
CONFLICT_CODES = ("ResourceExistsException",)


class ErrorKind(Enum):
    """Coarse classification of store failures."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    TRANSPORT = "transport"


class StoreError(Exception):
    """Base exception for store operations."""

    kind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        name: Optional[str] = None,
        cause: Optional[Exception] = None,
        kind: Optional[ErrorKind] = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.name = name
        self.cause = cause
        if kind is not None:
            self.kind = kind


class NotFoundError(StoreError):
    """The addressed item does not exist."""

    kind = ErrorKind.NOT_FOUND


class ValidationError(StoreError):
    """A caller broke a precondition of the store. Never retried."""

    kind = ErrorKind.VALIDATION


class BackendError(StoreError):
    """Any other failure reported by the backing service."""
    pass


def error_code(error: Exception) -> str:
    """Return the AWS error code of a ClientError, or an empty string."""
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Code", "")
    return ""


def classify_client_error(error: Exception) -> ErrorKind:
    """
    Map a botocore exception onto an ErrorKind.

    Args:
        error: Exception raised by a boto3 client call

    Returns:
        NOT_FOUND or CONFLICT for the codes the stores react to,
        TRANSPORT for everything else
    """
    code = error_code(error)
    if code in NOT_FOUND_CODES:
        return ErrorKind.NOT_FOUND
    if code in CONFLICT_CODES:
        return ErrorKind.CONFLICT
    return ErrorKind.TRANSPORT


def translate_error(error: Exception, operation: str, name: str) -> StoreError:
    """Convert a boto3 exception to a StoreError, keeping it as the cause."""
    if isinstance(error, ClientError):
        message = error.response.get("Error", {}).get("Message", str(error))
    elif isinstance(error, BotoCoreError):
        message = str(error)
    else:
        message = repr(error)

    kind = classify_client_error(error)
    if kind is ErrorKind.NOT_FOUND:
        return NotFoundError(
            f"{name} not found", operation=operation, name=name, cause=error
        )
    return BackendError(
        f"{operation} failed for {name}: {message}",
        operation=operation,
        name=name,
        cause=error,
        kind=kind,
    )

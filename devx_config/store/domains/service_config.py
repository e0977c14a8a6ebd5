"""Resolve the stage/stack/app of a service from flags and local files."""
import json
import logging
from pathlib import Path
from typing import Iterable, Optional

from .models import Service

logger = logging.getLogger(__name__)

DEFAULT_LOCAL_PATH = Path(".devx-config")
DEFAULT_EC2_PATH = Path("/etc/config/tags.json")  # written by the cdk-base AMI role


class ServiceConfigError(Exception):
    """Stage, stack or app could not be determined."""
    pass


def default_files():
    return [DEFAULT_LOCAL_PATH, DEFAULT_EC2_PATH]


def parse_service(data: str) -> Service:
    """
    Parse a JSON service config.

    Keys are matched case-insensitively (``App``, ``app``, ``APP``...).
    Missing keys become empty strings.

    Raises:
        ServiceConfigError: If the content is not a JSON object
    """
    try:
        raw = json.loads(data)
    except json.JSONDecodeError as e:
        raise ServiceConfigError(f"Invalid service config JSON: {e}")
    if not isinstance(raw, dict):
        raise ServiceConfigError("Service config must be a JSON object")

    fields = {str(k).lower(): v for k, v in raw.items()}
    return Service(
        stage=str(fields.get("stage") or ""),
        stack=str(fields.get("stack") or ""),
        app=str(fields.get("app") or ""),
    )


def read_file_config(paths: Iterable[Path]) -> Service:
    """
    Read the first readable file in paths.

    Returns:
        The parsed Service, or an all-empty Service when no file is readable
    """
    for path in paths:
        try:
            data = Path(path).read_text()
        except OSError:
            continue
        logger.debug(f"Reading service config from {path}")
        return parse_service(data)
    return Service(stage="", stack="", app="")


def merge(*services: Service) -> Service:
    """Combine services field by field; later non-empty values win."""
    stage = stack = app = ""
    for service in services:
        stage = service.stage or stage
        stack = service.stack or stack
        app = service.app or app
    return Service(stage=stage, stack=stack, app=app)


def resolve_service(
    app: Optional[str] = None,
    stack: Optional[str] = None,
    stage: Optional[str] = None,
    files: Optional[Iterable[Path]] = None,
) -> Service:
    """
    Merge file config with flag values; flags take precedence.

    Args:
        app, stack, stage: Values from command line flags (may be empty)
        files: Candidate config files, first readable one wins.
            Defaults to .devx-config then /etc/config/tags.json.

    Raises:
        ServiceConfigError: If any field is still empty after merging
    """
    file_service = read_file_config(default_files() if files is None else files)
    flag_service = Service(stage=stage or "", stack=stack or "", app=app or "")
    merged = merge(file_service, flag_service)

    if not (merged.app and merged.stack and merged.stage):
        raise ServiceConfigError(
            f"mandatory flag missing or empty "
            f"(got app='{merged.app}', stack='{merged.stack}', stage='{merged.stage}')"
        )
    return merged


def write_local_config(service: Service, path: Optional[Path] = None) -> None:
    """Write service to a local config file so later commands can omit the flags."""
    path = DEFAULT_LOCAL_PATH if path is None else path
    data = {"App": service.app, "Stack": service.stack, "Stage": service.stage}
    try:
        Path(path).write_text(json.dumps(data))
    except OSError as e:
        raise ServiceConfigError(f"unable to write config file {path}: {e}")
    logger.info(f"Wrote service config to {path}")

"""
Service config loader — reads service.yml into a GenerationContext.

The YAML may be nested or flat, camelCase or snake_case:

    # nested                          # flat
    coreInputs:                       serviceName: demo
      serviceName: demo               serviceType: static-site
      serviceType: static-site        features: [d1, kv]
    confirmedValues:
      features: {d1: true}

A top-level ``service:`` key wrapping either shape is also accepted.
Relative ``servicePath`` values resolve against the YAML file's
directory; when absent, the output directory is ``./<serviceName>``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from svcforge.core.errors import ServiceForgeError
from svcforge.core.models.context import GenerationContext, normalize_context

logger = logging.getLogger(__name__)

SERVICE_CONFIG_FILE = "service.yml"
_ALT_CONFIG_FILES = ("service.yaml",)

_PATH_KEYS = ("servicePath", "service_path", "outputDir", "output_dir")


class ConfigError(ServiceForgeError):
    """service.yml is missing, unreadable or invalid."""


def find_service_file(start_dir: Path | None = None) -> Path | None:
    """Look for service.yml (or .yaml) in ``start_dir`` and its parents."""
    current = (start_dir or Path.cwd()).resolve()
    names = (SERVICE_CONFIG_FILE, *_ALT_CONFIG_FILES)

    while True:
        for name in names:
            candidate = current / name
            if candidate.is_file():
                return candidate
        if current.parent == current:
            return None
        current = current.parent


def read_service_file(path: Path) -> dict[str, Any]:
    """Parse the YAML mapping at ``path``.

    Raises:
        ConfigError: unreadable, invalid YAML, or not a mapping.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    if isinstance(data.get("service"), dict):
        data = data["service"]
    return data


def load_service_config(
    path: Path | None = None,
    output_dir: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> GenerationContext:
    """Load and validate a service definition.

    Args:
        path: Explicit service.yml. Searched upward from cwd when None.
        output_dir: Overrides ``servicePath`` from the file.
        overrides: Extra top-level keys (e.g. ``middlewareStrategy``).

    Raises:
        ConfigError: the file is missing or the inputs are invalid.
    """
    if path is None:
        path = find_service_file()
    if path is None:
        raise ConfigError(f"No {SERVICE_CONFIG_FILE} found. Create one or pass --config.")
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading service config from %s", path)
    data = read_service_file(path)
    data.update(overrides or {})

    base_dir = path.parent.resolve()
    if output_dir is not None:
        service_path = Path(output_dir)
    else:
        declared = next((data[k] for k in _PATH_KEYS if data.get(k)), None)
        service_path = Path(declared) if declared else Path(_service_name(data) or "service")
    if not service_path.is_absolute():
        service_path = base_dir / service_path

    for key in _PATH_KEYS:
        data.pop(key, None)
    data["servicePath"] = str(service_path)

    try:
        context = normalize_context(data)
    except (ValidationError, TypeError) as e:
        raise ConfigError(f"Invalid service configuration in {path}: {e}") from e

    logger.info("Loaded service '%s' (%s) from %s", context.service_name, context.service_type, path)
    return context


def _service_name(data: dict[str, Any]) -> str | None:
    core = data.get("coreInputs") or data.get("core_inputs") or data
    if isinstance(core, dict):
        return core.get("serviceName") or core.get("service_name")
    return None

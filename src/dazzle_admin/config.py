"""
Admin configuration.

Values come from the ``[admin]`` table of a project's ``dazzle.toml`` and can
be overridden per process with environment variables:

    [admin]
    settings_db = ".dazzle/admin.db"
    order_key = "admin_model_order"
    default_per_page = 20
    allowed_per_page = [20, 50, 100]
    log_level = "INFO"
    log_dir = ".dazzle/logs"

Environment overrides:
    DAZZLE_ADMIN_SETTINGS_DB, DAZZLE_ADMIN_ORDER_KEY,
    DAZZLE_ADMIN_LOG_LEVEL, DAZZLE_ADMIN_LOG_DIR
"""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from dazzle_admin.errors import AdminError
from dazzle_admin.pagination import ALLOWED_PER_PAGE, DEFAULT_PER_PAGE
from dazzle_admin.registry import DEFAULT_ORDER_KEY

logger = logging.getLogger(__name__)

DEFAULT_MANIFEST = "dazzle.toml"

ENV_OVERRIDES = {
    "DAZZLE_ADMIN_SETTINGS_DB": "settings_db",
    "DAZZLE_ADMIN_ORDER_KEY": "order_key",
    "DAZZLE_ADMIN_LOG_LEVEL": "log_level",
    "DAZZLE_ADMIN_LOG_DIR": "log_dir",
}


class ConfigError(AdminError):
    """Raised when the admin configuration is invalid."""

    pass


@dataclass(frozen=True)
class AdminConfig:
    """Admin runtime configuration."""

    settings_db: Path = Path(".dazzle/admin.db")
    order_key: str = DEFAULT_ORDER_KEY
    default_per_page: int = DEFAULT_PER_PAGE
    allowed_per_page: tuple[int, ...] = field(default=ALLOWED_PER_PAGE)
    log_level: str = "INFO"
    log_dir: Path = Path(".dazzle/logs")

    def __post_init__(self) -> None:
        if self.default_per_page not in self.allowed_per_page:
            raise ConfigError(
                f"default_per_page {self.default_per_page} is not one of {self.allowed_per_page}"
            )
        if logging.getLevelName(self.log_level.upper()) == f"Level {self.log_level.upper()}":
            raise ConfigError(f"Unknown log_level '{self.log_level}'")

    @property
    def level(self) -> int:
        """Numeric logging level."""
        return logging.getLevelName(self.log_level.upper())


def _from_table(table: dict[str, Any]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    if "settings_db" in table:
        values["settings_db"] = Path(table["settings_db"])
    if "order_key" in table:
        values["order_key"] = str(table["order_key"])
    if "default_per_page" in table:
        values["default_per_page"] = int(table["default_per_page"])
    if "allowed_per_page" in table:
        values["allowed_per_page"] = tuple(int(n) for n in table["allowed_per_page"])
    if "log_level" in table:
        values["log_level"] = str(table["log_level"])
    if "log_dir" in table:
        values["log_dir"] = Path(table["log_dir"])
    return values


def _from_env(environ: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for var, name in ENV_OVERRIDES.items():
        value = environ.get(var, "").strip()
        if not value:
            continue
        values[name] = Path(value) if name in ("settings_db", "log_dir") else value
    return values


def load_config(
    manifest_path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> AdminConfig:
    """
    Load admin configuration.

    Args:
        manifest_path: dazzle.toml to read; defaults to ./dazzle.toml when present
        environ: Environment mapping (defaults to os.environ)

    Returns:
        AdminConfig with file values, then environment overrides applied

    Raises:
        ConfigError: The manifest is unreadable or holds invalid values
    """
    config = AdminConfig()
    path = Path(manifest_path) if manifest_path else Path(DEFAULT_MANIFEST)

    if path.exists():
        try:
            with path.open("rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(f"Cannot read {path}: {e}") from e
        table = data.get("admin", {})
        if not isinstance(table, dict):
            raise ConfigError(f"[admin] in {path} must be a table")
        try:
            config = replace(config, **_from_table(table))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid [admin] value in {path}: {e}") from e
    elif manifest_path:
        raise ConfigError(f"Manifest not found: {path}")

    overrides = _from_env(os.environ if environ is None else environ)
    if overrides:
        logger.debug("Admin config overrides from environment: %s", ", ".join(sorted(overrides)))
        config = replace(config, **overrides)
    return config

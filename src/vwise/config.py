"""Configuration loading from environment variables and vwise.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_DEFAULT_STORE_DIR = Path.home() / ".vwise" / "store"
_CONFIG_FILENAME = "vwise.toml"


@dataclass
class StoreConfig:
    """Key-value store backend selection."""

    backend: str = "file"
    path: Path = _DEFAULT_STORE_DIR


@dataclass
class VwiseConfig:
    """Top-level vwise configuration."""

    store: StoreConfig = field(default_factory=StoreConfig)
    namespace: str = "vwise"
    log_level: str = "INFO"


def load_config(config_path: Path | None = None) -> VwiseConfig:
    """Load configuration from environment variables and optional vwise.toml.

    Priority: environment variables > vwise.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        for candidate in [Path.cwd() / _CONFIG_FILENAME, Path.home() / ".vwise" / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    store_data = file_data.get("store", {})

    return VwiseConfig(
        store=StoreConfig(
            backend=os.getenv("VWISE_STORE", store_data.get("backend", "file")),
            path=Path(
                os.getenv("VWISE_STORE_DIR", store_data.get("path", str(_DEFAULT_STORE_DIR)))
            ).expanduser(),
        ),
        namespace=os.getenv("VWISE_NAMESPACE", file_data.get("namespace", "vwise")),
        log_level=os.getenv("VWISE_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )

"""Configuration loading helpers for oidc-scout."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from .models import ScoutConfig

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")
DEFAULT_CONFIG_FILENAME = "oidc_scout.yaml"


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from the scout home directory."""

    project_root: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get("OIDC_SCOUT_HOME")
        if self.project_root is not None:
            root = self.project_root
        elif env_root:
            root = Path(env_root).expanduser()
        else:
            root = Path.cwd()
        self.project_root = root.resolve()
        self.logs_dir = (self.project_root / "logs").resolve()

    def default_config_path(self) -> Path:
        return self.project_root / DEFAULT_CONFIG_FILENAME


class ConfigRepository:
    """Repository encapsulating config IO and schema validation."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._cache: ScoutConfig | None = None

    def load_config(self, path: Path | None = None) -> ScoutConfig:
        """Load settings from ``path`` or the default file under the home.

        An explicit path must exist. The default file is optional and its
        absence simply yields the model defaults.
        """

        if path is None and self._cache is not None:
            return self._cache
        if path is not None:
            if path.suffix not in CONFIG_EXTENSIONS:
                raise ValueError(f"Unsupported configuration format: {path}")
            if not path.exists():
                raise FileNotFoundError(f"Configuration file not found: {path}")
            source = path
        else:
            source = self.locator.default_config_path()
        if source.exists():
            payload = _read_file(source)
            config = ScoutConfig.model_validate(payload).resolved(source.resolve().parent)
        else:
            config = ScoutConfig()
        if path is None:
            self._cache = config
        return config

    def save_config(self, config: ScoutConfig, path: Path | None = None) -> Path:
        target = path or self.locator.default_config_path()
        _write_file(target, config.model_dump(mode="json"))
        if path is None:
            self._cache = config
        return target


__all__ = ["CONFIG_EXTENSIONS", "ConfigLocator", "ConfigRepository", "DEFAULT_CONFIG_FILENAME"]

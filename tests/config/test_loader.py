from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from oidc_scout.config import ConfigLocator, ConfigRepository, ScoutConfig


def test_locator_uses_env_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    home = tmp_path / "home"
    monkeypatch.setenv("OIDC_SCOUT_HOME", str(home))
    locator = ConfigLocator()
    assert locator.project_root == home.resolve()
    assert locator.logs_dir == (home / "logs").resolve()
    assert locator.default_config_path() == home.resolve() / "oidc_scout.yaml"


def test_locator_falls_back_to_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OIDC_SCOUT_HOME", raising=False)
    monkeypatch.chdir(tmp_path)
    assert ConfigLocator().project_root == tmp_path.resolve()


def test_missing_default_file_gives_defaults(tmp_path: Path) -> None:
    repo = ConfigRepository(ConfigLocator(project_root=tmp_path))
    assert repo.load_config() == ScoutConfig()


def test_default_yaml_file_is_loaded_and_resolved(tmp_path: Path) -> None:
    (tmp_path / "oidc_scout.yaml").write_text(
        yaml.safe_dump({"store_path": "state/domains.db", "parallel": 8, "prefix": "auth"}),
        encoding="utf-8",
    )
    config = ConfigRepository(ConfigLocator(project_root=tmp_path)).load_config()
    assert config.parallel == 8
    assert config.prefix == "auth"
    assert config.store_path == (tmp_path / "state" / "domains.db").resolve()


def test_explicit_json_file(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"timeout": 5, "user_agent": "scout"}), encoding="utf-8")
    config = ConfigRepository(ConfigLocator(project_root=tmp_path)).load_config(path)
    assert config.timeout == 5
    assert config.user_agent == "scout"


def test_explicit_missing_file_raises(tmp_path: Path) -> None:
    repo = ConfigRepository(ConfigLocator(project_root=tmp_path))
    with pytest.raises(FileNotFoundError):
        repo.load_config(tmp_path / "absent.yaml")


def test_non_mapping_file_rejected(tmp_path: Path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        ConfigRepository(ConfigLocator(project_root=tmp_path)).load_config(path)


def test_save_then_load(tmp_path: Path) -> None:
    repo = ConfigRepository(ConfigLocator(project_root=tmp_path))
    saved = ScoutConfig(store_path=tmp_path / "x.db", parallel=4, verify_tls=False)
    target = repo.save_config(saved, tmp_path / "saved.yaml")
    loaded = ConfigRepository(ConfigLocator(project_root=tmp_path)).load_config(target)
    assert loaded == saved

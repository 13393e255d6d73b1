"""Tests for the dazzle-admin CLI commands."""

from __future__ import annotations

import json
import logging

import pytest
from typer.testing import CliRunner

from dazzle_admin.cli import app, load_registry
from dazzle_admin.config import ConfigError
from dazzle_admin.logging import ROOT_LOGGER
from dazzle_admin.registry import ModelRegistry
from dazzle_admin.settings_store import SQLiteSettingsStore

runner = CliRunner()


@pytest.fixture(autouse=True)
def _reset_admin_logger():
    yield
    root = logging.getLogger(ROOT_LOGGER)
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)


@pytest.fixture()
def env(tmp_path, monkeypatch):
    """Environment pointing the CLI at the seeded fake registry."""
    monkeypatch.chdir(tmp_path)
    return {
        "DAZZLE_ADMIN_APP": "fakes:build_registry",
        "DAZZLE_ADMIN_SETTINGS_DB": str(tmp_path / "admin.db"),
        "DAZZLE_ADMIN_LOG_DIR": str(tmp_path / "logs"),
        "DAZZLE_ADMIN_LOG_LEVEL": "WARNING",
    }


# =============================================================================
# models / order
# =============================================================================


class TestModels:
    def test_lists_registered_models(self, env) -> None:
        result = runner.invoke(app, ["models"], env=env)

        assert result.exit_code == 0
        assert "User" in result.output
        assert "Posts" in result.output
        assert "Fruits" in result.output

    def test_no_registry(self, tmp_path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("DAZZLE_ADMIN_APP", raising=False)
        result = runner.invoke(app, ["models"], env={"DAZZLE_ADMIN_LOG_DIR": str(tmp_path)})

        assert result.exit_code == 1
        assert "No registry given" in result.output

    def test_bad_registry_target(self, env) -> None:
        result = runner.invoke(app, ["--app", "fakes:nothing", "models"], env=env)

        assert result.exit_code == 1
        assert "has no attribute nothing" in result.output

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "dazzle-admin" in result.output


class TestOrder:
    def test_persists_order(self, env, tmp_path) -> None:
        result = runner.invoke(app, ["order", "fruit", "User"], env=env)

        assert result.exit_code == 0
        assert "Saved model order: Fruit, User" in result.output
        assert "Display order: Fruit, User, Post" in result.output

        stored = SQLiteSettingsStore(tmp_path / "admin.db").get("admin_model_order")
        assert json.loads(stored) == ["Fruit", "User"]

    def test_order_applies_to_later_runs(self, env) -> None:
        runner.invoke(app, ["order", "Post", "Fruit"], env=env)
        result = runner.invoke(app, ["models"], env=env)

        assert result.exit_code == 0
        assert result.output.index("Posts") < result.output.index("Fruits") < result.output.index("Users")

    def test_reports_unknown_names(self, env) -> None:
        result = runner.invoke(app, ["order", "Ghost", "Post"], env=env)

        assert result.exit_code == 0
        assert "Ignored unknown models: Ghost" in result.output
        assert "Saved model order: Post" in result.output

    def test_configured_order_key(self, env, tmp_path) -> None:
        (tmp_path / "dazzle.toml").write_text('[admin]\norder_key = "blog_model_order"\n')

        result = runner.invoke(app, ["order", "Fruit"], env=env)

        assert result.exit_code == 0
        store = SQLiteSettingsStore(tmp_path / "admin.db")
        assert json.loads(store.get("blog_model_order")) == ["Fruit"]
        assert store.get("admin_model_order") is None

    def test_order_key_from_env(self, env, tmp_path) -> None:
        env = {**env, "DAZZLE_ADMIN_ORDER_KEY": "ops_model_order"}

        runner.invoke(app, ["order", "Post"], env=env)
        result = runner.invoke(app, ["models"], env=env)

        assert result.exit_code == 0
        assert result.output.index("Posts") < result.output.index("Users")
        store = SQLiteSettingsStore(tmp_path / "admin.db")
        assert json.loads(store.get("ops_model_order")) == ["Post"]


# =============================================================================
# fields / records / show
# =============================================================================


class TestFields:
    def test_shows_descriptors(self, env) -> None:
        result = runner.invoke(app, ["fields", "post"], env=env)

        assert result.exit_code == 0
        assert "author_id" in result.output
        assert "Author ID" in result.output
        assert "text" in result.output

    def test_unknown_model(self, env) -> None:
        result = runner.invoke(app, ["fields", "Missing"], env=env)

        assert result.exit_code == 1
        assert "model Missing not found" in result.output


class TestRecords:
    def test_second_page(self, env) -> None:
        result = runner.invoke(app, ["records", "Fruit", "--page", "2"], env=env)

        assert result.exit_code == 0
        assert "Fruit 21" in result.output
        assert "Fruit 3 " not in result.output
        assert "Page 2 of 2 (25 fruits)" in result.output

    def test_disallowed_per_page_falls_back(self, env) -> None:
        result = runner.invoke(app, ["records", "Fruit", "--per-page", "7"], env=env)

        assert result.exit_code == 0
        assert "Page 1 of 2" in result.output

    def test_relationship_column(self, env) -> None:
        result = runner.invoke(app, ["records", "Post"], env=env)

        assert result.exit_code == 0
        assert "Hello" in result.output
        assert "alice@example.com" in result.output

    def test_empty_page(self, env) -> None:
        result = runner.invoke(app, ["records", "Fruit", "--page", "9"], env=env)

        assert result.exit_code == 0
        assert "No fruits found." in result.output


class TestShow:
    def test_shows_record(self, env) -> None:
        result = runner.invoke(app, ["show", "User", "1"], env=env)

        assert result.exit_code == 0
        assert "alice@example.com" in result.output
        assert "Jan 15, 2024 9:30 AM" in result.output
        assert "hashed:secret" not in result.output

    def test_unknown_record(self, env) -> None:
        result = runner.invoke(app, ["show", "Fruit", "99"], env=env)

        assert result.exit_code == 1
        assert "Fruit 99 not found" in result.output


# =============================================================================
# Registry loading
# =============================================================================


class TestLoadRegistry:
    def test_factory_receives_settings(self, tmp_path) -> None:
        store = SQLiteSettingsStore(tmp_path / "admin.db")
        registry = load_registry("fakes:build_registry", store)

        assert isinstance(registry, ModelRegistry)
        assert registry.display_order.store is store

    def test_factory_receives_order_key(self, tmp_path) -> None:
        store = SQLiteSettingsStore(tmp_path / "admin.db")
        registry = load_registry("fakes:build_keyed_registry", store, order_key="blog_model_order")

        assert registry.display_order.key == "blog_model_order"
        assert registry.display_order.store is store

    def test_order_key_rebinds_loaded_registry(self, tmp_path) -> None:
        store = SQLiteSettingsStore(tmp_path / "admin.db")
        registry = load_registry("fakes:build_registry", store, order_key="blog_model_order")

        registry.save_order(["Fruit"])

        assert registry.display_order.store is store
        assert json.loads(store.get("blog_model_order")) == ["Fruit"]
        assert store.get("admin_model_order") is None

    def test_registry_instance(self, monkeypatch) -> None:
        import fakes

        instance = fakes.build_registry()
        monkeypatch.setattr(fakes, "REGISTRY", instance, raising=False)

        assert load_registry("fakes:REGISTRY") is instance

    @pytest.mark.parametrize("target", ["fakes", ":build_registry", "no_such_module_xyz:app", "fakes:ALICE"])
    def test_bad_targets(self, target: str) -> None:
        with pytest.raises(ConfigError):
            load_registry(target)

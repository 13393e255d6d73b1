"""Tests for the model registry, display ordering and end-to-end writes."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any

import pytest

from dazzle_admin.errors import (
    HookFailure,
    ModelNotFoundError,
    RegistrationError,
    SettingsError,
    ValidationFailure,
)
from dazzle_admin.registry import DEFAULT_ORDER_KEY, ModelRegistry, merge_order
from dazzle_admin.settings_store import InMemorySettingsStore
from dazzle_admin.specs import EntityRegistration, FieldDescriptor, SemanticType
from fakes import FakeClient, Fruit, Post, User, fruit_handle, post_handle, user_handle


def _run(coro: Any) -> Any:
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@dataclass
class Bus:
    id: int = 0
    route: str = ""


class BrokenStore:
    def get(self, key: str) -> str | None:
        raise OSError("disk unavailable")

    def upsert(self, key: str, value: str) -> None:
        raise OSError("disk unavailable")


def _client() -> FakeClient:
    return FakeClient(
        User=user_handle(),
        Post=post_handle(),
        Fruit=fruit_handle(),
        Bus=fruit_handle(),
    )


def _registry(settings: Any = None) -> ModelRegistry:
    registry = ModelRegistry(_client(), settings=settings)
    registry.register_model(EntityRegistration(model=User(), icon="👤"))
    registry.register_model(EntityRegistration(model=Post(), icon="📝"))
    registry.register_model(EntityRegistration(model=Fruit(), icon="🍎"))
    return registry


def _names(registry: ModelRegistry) -> list[str]:
    return [config.name for config in registry.list()]


# =============================================================================
# Registration
# =============================================================================


class TestRegistration:
    def test_register_model(self) -> None:
        registry = ModelRegistry(_client())
        config = registry.register_model(EntityRegistration(model=Fruit(), icon="🍎"))

        assert config.name == "Fruit"
        assert config.name_plural == "Fruits"
        assert config.icon == "🍎"
        assert [f.name for f in config.fields] == ["id", "name", "stock"]
        assert "Fruit" in registry
        assert len(registry) == 1

    def test_class_or_instance(self) -> None:
        registry = ModelRegistry(_client())
        assert registry.register_model(EntityRegistration(model=Fruit)).name == "Fruit"

    def test_plural_ending_in_s(self) -> None:
        registry = ModelRegistry(_client())
        assert registry.register_model(EntityRegistration(model=Bus())).name_plural == "Buses"

    def test_explicit_plural(self) -> None:
        registry = ModelRegistry(_client())
        config = registry.register_model(EntityRegistration(model=User(), name_plural="People"))

        assert config.name_plural == "People"

    def test_duplicate_rejected(self) -> None:
        registry = ModelRegistry(_client())
        registry.register_model(EntityRegistration(model=Fruit()))

        with pytest.raises(RegistrationError, match="already registered"):
            registry.register_model(EntityRegistration(model=Fruit()))

    def test_no_client_and_no_adapter(self) -> None:
        with pytest.raises(RegistrationError):
            ModelRegistry().register_model(EntityRegistration(model=Fruit()))

    def test_extra_fields_appended(self) -> None:
        password = FieldDescriptor(name="password", label="Password", semantic_type=SemanticType.PASSWORD)
        registry = ModelRegistry(_client())
        config = registry.register_model(EntityRegistration(model=User(), extra_fields=[password]))

        assert config.fields[-1] == password

    def test_extra_field_cannot_shadow_declared(self) -> None:
        email = FieldDescriptor(name="email", label="Email")
        with pytest.raises(RegistrationError):
            ModelRegistry(_client()).register_model(
                EntityRegistration(model=User(), extra_fields=[email])
            )


# =============================================================================
# Lookup
# =============================================================================


class TestLookup:
    def test_case_insensitive(self) -> None:
        registry = _registry()

        assert registry.get("fruit") is registry.get("FRUIT")
        assert registry.get("Fruit").name == "Fruit"

    def test_unknown_model(self) -> None:
        with pytest.raises(ModelNotFoundError) as exc_info:
            _registry().get("Missing")

        assert str(exc_info.value) == "model Missing not found"

    def test_list_defaults_to_registration_order(self) -> None:
        assert _names(_registry()) == ["User", "Post", "Fruit"]


# =============================================================================
# Display Order
# =============================================================================


class TestMergeOrder:
    def test_drops_unknown_and_appends_missing(self) -> None:
        assert merge_order(["Fruit", "Ghost"], ["user", "post", "fruit"]) == ["fruit", "user", "post"]

    def test_deduplicates(self) -> None:
        assert merge_order(["post", "POST"], ["user", "post"]) == ["post", "user"]


class TestDisplayOrder:
    def test_save_order(self) -> None:
        store = InMemorySettingsStore()
        registry = _registry(store)

        assert registry.save_order(["Fruit", "User"]) == ["Fruit", "User"]
        assert _names(registry) == ["Fruit", "User", "Post"]
        assert json.loads(store.get(DEFAULT_ORDER_KEY)) == ["Fruit", "User"]

    def test_save_order_two_names(self) -> None:
        registry = ModelRegistry(FakeClient(A=fruit_handle(), B=fruit_handle()))

        @dataclass
        class A:
            id: int = 0

        @dataclass
        class B:
            id: int = 0

        registry.register_model(EntityRegistration(model=A()))
        registry.register_model(EntityRegistration(model=B()))
        registry.save_order(["B", "A"])

        assert _names(registry) == ["B", "A"]

    def test_save_order_drops_unknown_names(self) -> None:
        registry = _registry()

        assert registry.save_order(["Ghost", "post"]) == ["Post"]
        assert _names(registry) == ["Post", "User", "Fruit"]

    def test_order_survives_a_new_registry(self) -> None:
        store = InMemorySettingsStore()
        _registry(store).save_order(["Post", "Fruit", "User"])

        assert _names(_registry(store)) == ["Post", "Fruit", "User"]

    def test_list_rereads_the_store(self) -> None:
        store = InMemorySettingsStore()
        registry = _registry(store)
        store.upsert(DEFAULT_ORDER_KEY, json.dumps(["Fruit"]))

        assert _names(registry) == ["Fruit", "User", "Post"]

    @pytest.mark.parametrize("stored", ["not json", '{"a": 1}', "[1, 2]", ""])
    def test_unusable_saved_order(self, stored: str) -> None:
        store = InMemorySettingsStore({DEFAULT_ORDER_KEY: stored})

        assert _names(_registry(store)) == ["User", "Post", "Fruit"]

    def test_unknown_saved_names_are_ignored(self) -> None:
        store = InMemorySettingsStore({DEFAULT_ORDER_KEY: '["Fruit", "Ghost"]'})

        assert _names(_registry(store)) == ["Fruit", "User", "Post"]

    def test_unreadable_store_falls_back(self) -> None:
        assert _names(_registry(BrokenStore())) == ["User", "Post", "Fruit"]

    def test_unwritable_store(self) -> None:
        with pytest.raises(SettingsError):
            _registry(BrokenStore()).save_order(["Fruit"])

    def test_custom_order_key(self) -> None:
        store = InMemorySettingsStore()
        registry = ModelRegistry(_client(), settings=store, order_key="dashboard_order")
        registry.register_model(EntityRegistration(model=Fruit()))
        registry.save_order(["Fruit"])

        assert store.get("dashboard_order") == '["Fruit"]'
        assert store.get(DEFAULT_ORDER_KEY) is None


# =============================================================================
# End-to-end writes
# =============================================================================


def _hash_password(ctx: Any, data: dict[str, Any]) -> None:
    password = data.pop("password", "")
    if password:
        data["password_hash"] = f"hashed:{password}"


class TestWrites:
    def test_create_parses_submitted_strings(self) -> None:
        handle = fruit_handle()
        registry = ModelRegistry(FakeClient(Fruit=handle))
        config = registry.register_model(EntityRegistration(model=Fruit()))

        record = _run(config.create(None, {"name": "Apple", "stock": "5"}))

        assert record == Fruit(id=1, name="Apple", stock=5)
        builder = handle.builders[-1]
        assert builder.calls == [("set_name", "Apple"), ("set_stock", 5)]
        assert builder.saves == 1

    def test_invalid_number(self) -> None:
        handle = fruit_handle()
        config = ModelRegistry(FakeClient(Fruit=handle)).register_model(EntityRegistration(model=Fruit()))

        with pytest.raises(ValidationFailure) as exc_info:
            _run(config.create(None, {"name": "Apple", "stock": "lots"}))

        assert exc_info.value.errors == {"stock": "Stock must be a whole number"}
        assert handle.builders == []

    def test_before_save_transforms_data(self) -> None:
        handle = user_handle()
        password = FieldDescriptor(name="password", label="Password", semantic_type=SemanticType.PASSWORD)
        config = ModelRegistry(FakeClient(User=handle)).register_model(
            EntityRegistration(model=User(), extra_fields=[password], before_save=_hash_password)
        )

        record = _run(config.create(None, {"email": "carol@example.com", "password": "pw"}))

        assert handle.builders[-1].calls == [
            ("set_email", "carol@example.com"),
            ("set_password_hash", "hashed:pw"),
        ]
        assert record.password_hash == "hashed:pw"

    def test_async_before_save_sees_context(self) -> None:
        seen: list[Any] = []

        async def stamp(ctx: Any, data: dict[str, Any]) -> None:
            seen.append(ctx)
            data["body"] = "stamped"

        handle = post_handle()
        config = ModelRegistry(FakeClient(Post=handle)).register_model(
            EntityRegistration(model=Post(), before_save=stamp)
        )
        _run(config.create("request-ctx", {"subject": "Hi"}))

        assert seen == ["request-ctx"]
        assert ("set_body", "stamped") in handle.builders[-1].calls

    def test_before_save_rejection_aborts(self) -> None:
        def unique_email(ctx: Any, data: dict[str, Any]) -> None:
            raise ValueError("email already exists")

        handle = user_handle()
        config = ModelRegistry(FakeClient(User=handle)).register_model(
            EntityRegistration(model=User(), before_save=unique_email)
        )

        with pytest.raises(HookFailure, match="email already exists"):
            _run(config.create(None, {"email": "alice@example.com"}))
        assert handle.builders == []

    def test_before_save_validation_keeps_type(self) -> None:
        def reject(ctx: Any, data: dict[str, Any]) -> None:
            raise ValidationFailure({"email": "Email is already taken"})

        config = ModelRegistry(FakeClient(User=user_handle())).register_model(
            EntityRegistration(model=User(), before_save=reject)
        )

        with pytest.raises(ValidationFailure) as exc_info:
            _run(config.update(None, 1, {"email": "alice@example.com"}))
        assert exc_info.value.errors == {"email": "Email is already taken"}

    def test_update_and_delete(self) -> None:
        handle = fruit_handle(Fruit(id=1, name="Apple", stock=5))
        config = ModelRegistry(FakeClient(Fruit=handle)).register_model(EntityRegistration(model=Fruit()))

        updated = _run(config.update(None, 1, {"stock": "8"}))
        assert updated == Fruit(id=1, name="Apple", stock=8)

        _run(config.delete(None, 1))
        assert handle.records == {}

    def test_caller_data_is_not_mutated(self) -> None:
        config = ModelRegistry(FakeClient(User=user_handle())).register_model(
            EntityRegistration(model=User(), before_save=_hash_password)
        )
        data = {"email": "dan@example.com", "password": "pw"}
        _run(config.create(None, data))

        assert data == {"email": "dan@example.com", "password": "pw"}

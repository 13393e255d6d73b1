"""
Model registry - the catalogue of entities managed by the admin.

Registration happens once, sequentially, at process start::

    registry = ModelRegistry(client, settings=SQLiteSettingsStore())
    registry.register_model(EntityRegistration(model=Post, icon="📝", list_fields=["subject"]))

After that the registry is only read: ``get`` for one model, ``list`` for all
of them in display order. The display order starts as registration order and
can be replaced by a user-customised order persisted through a settings
store (``save_order``). ``list`` re-reads that persisted order on every call;
when the record is missing or unparsable, registration order applies again.
Registering after startup is not supported.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

from dazzle_admin.adapters import ConventionAdapter, EntityAdapter
from dazzle_admin.dispatcher import CRUDDispatcher
from dazzle_admin.errors import ModelNotFoundError, RegistrationError, SettingsError
from dazzle_admin.fields import extract_fields
from dazzle_admin.model_config import ModelConfig
from dazzle_admin.settings_store import InMemorySettingsStore, SettingsStore
from dazzle_admin.specs import EntityRegistration, FieldDescriptor
from dazzle_admin.strings import pluralize

logger = logging.getLogger(__name__)

DEFAULT_ORDER_KEY = "admin_model_order"


def entity_name(model: Any) -> str:
    """Entity name of an example value (or of a class passed directly)."""
    cls = model if isinstance(model, type) else type(model)
    return cls.__name__


def merge_order(saved: Iterable[str], registered: Iterable[str]) -> list[str]:
    """
    Combine a saved order with the registered keys.

    Saved names that are no longer registered are dropped; registered keys
    missing from the saved order are appended in registration order, so new
    models always show up.
    """
    registered = list(registered)
    known = set(registered)
    keys: list[str] = []
    for name in saved:
        key = name.casefold()
        if key in known and key not in keys:
            keys.append(key)
    keys.extend(key for key in registered if key not in keys)
    return keys


# =============================================================================
# Display Order
# =============================================================================


class DisplayOrder:
    """
    The persisted model display order.

    Stored as a JSON array of model names under a single settings key. Owns
    all settings-store I/O for the registry.
    """

    def __init__(self, store: SettingsStore, key: str = DEFAULT_ORDER_KEY):
        self.store = store
        self.key = key

    def load(self) -> list[str] | None:
        """
        Read the saved order.

        Returns:
            Saved model names, or None when nothing usable is stored
        """
        try:
            raw = self.store.get(self.key)
        except Exception as e:  # noqa: BLE001 - an unreadable store means "no saved order"
            logger.warning("Could not read %s from settings store: %s", self.key, e)
            return None
        if not raw:
            return None
        try:
            names = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring unparsable %s setting", self.key)
            return None
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            logger.warning("Ignoring malformed %s setting", self.key)
            return None
        return names

    def save(self, names: list[str]) -> None:
        """
        Persist ``names`` as the display order.

        Raises:
            SettingsError: The settings store rejected the write
        """
        try:
            self.store.upsert(self.key, json.dumps(names))
        except Exception as e:
            raise SettingsError(f"failed to save model order: {e}") from e


# =============================================================================
# Registry
# =============================================================================


class ModelRegistry:
    """
    Registered models keyed by case-folded name, plus their display order.

    Args:
        client: Generated data client; each entity is reached through
            ``ConventionAdapter`` unless its registration brings an adapter
        settings: Store for the persisted display order (in-memory by default)
        order_key: Settings key holding the display order
    """

    def __init__(
        self,
        client: Any = None,
        settings: SettingsStore | None = None,
        order_key: str = DEFAULT_ORDER_KEY,
    ):
        self.client = client
        self.display_order = DisplayOrder(settings or InMemorySettingsStore(), order_key)
        self._models: dict[str, ModelConfig] = {}
        self._registration_keys: list[str] = []
        self._keys: list[str] = []

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.casefold() in self._models

    def __len__(self) -> int:
        return len(self._models)

    def __iter__(self) -> Iterator[ModelConfig]:
        return iter(self.list())

    @property
    def models(self) -> Mapping[str, ModelConfig]:
        """Read-only view of the registered models by key."""
        return MappingProxyType(self._models)

    @property
    def order(self) -> list[str]:
        """Model names in the current in-memory display order."""
        return [self._models[key].name for key in self._keys]

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def _adapter_for(self, name: str, registration: EntityRegistration) -> EntityAdapter:
        if registration.adapter is not None:
            return registration.adapter
        if self.client is None:
            raise RegistrationError(
                f"Cannot register {name}: no data client and no adapter supplied"
            )
        return ConventionAdapter(self.client, name)

    def _fields_for(self, registration: EntityRegistration) -> tuple[FieldDescriptor, ...]:
        fields = extract_fields(registration.model, registration.overrides())
        names = {f.name for f in fields}
        for extra in registration.extra_fields:
            if extra.name in names:
                raise RegistrationError(f"Extra field '{extra.name}' duplicates a declared field")
            fields.append(extra)
            names.add(extra.name)
        return tuple(fields)

    def register_model(self, registration: EntityRegistration) -> ModelConfig:
        """
        Register an entity and build its ModelConfig.

        Raises:
            RegistrationError: Name already registered, or no way to reach the data
        """
        if registration.model is None:
            raise RegistrationError("Registration has no model")

        name = entity_name(registration.model)
        if name.casefold() in self._models:
            raise RegistrationError(f"Model {name} is already registered")

        fields = self._fields_for(registration)
        dispatcher = CRUDDispatcher(
            name,
            self._adapter_for(name, registration),
            query_modifier=registration.query_modifier,
            field_order=[f.name for f in fields],
        )
        config = ModelConfig(
            name=name,
            name_plural=registration.name_plural or pluralize(name),
            icon=registration.icon,
            fields=fields,
            dispatcher=dispatcher,
            list_fields=tuple(registration.list_fields),
            before_save=registration.before_save,
        )
        self.register(config)
        logger.info(
            "Registered admin model %s (%d fields)",
            name,
            len(fields),
            extra={"context": {"model": name, "plural": config.name_plural}},
        )
        return config

    def register(self, config: ModelConfig) -> None:
        """Add a prebuilt ModelConfig, appending it to registration order."""
        key = config.key
        if key in self._models:
            raise RegistrationError(f"Model {config.name} is already registered")
        self._models[key] = config
        self._registration_keys.append(key)
        self._keys.append(key)

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def get(self, name: str) -> ModelConfig:
        """
        Case-insensitive lookup.

        Raises:
            ModelNotFoundError: Nothing registered under ``name``
        """
        config = self._models.get(name.casefold())
        if config is None:
            raise ModelNotFoundError(name)
        return config

    def list(self) -> list[ModelConfig]:
        """All models in display order, reloading the persisted order first."""
        self.refresh_order()
        return [self._models[key] for key in self._keys]

    # -------------------------------------------------------------------------
    # Ordering
    # -------------------------------------------------------------------------

    def refresh_order(self) -> list[str]:
        """
        Reload the display order from the settings store.

        Returns:
            Model names in the resulting order
        """
        saved = self.display_order.load()
        if saved is None:
            self._keys = list(self._registration_keys)
        else:
            self._keys = merge_order(saved, self._registration_keys)
        return self.order

    def save_order(self, names: Iterable[str]) -> list[str]:
        """
        Persist a display order and apply it immediately.

        Unknown names are dropped; names are stored in their registered form.

        Returns:
            The model names that were saved

        Raises:
            SettingsError: The settings store rejected the write
        """
        keys = [k for k in (n.casefold() for n in names) if k in self._models]
        canonical = [self._models[k].name for k in dict.fromkeys(keys)]
        self.display_order.save(canonical)
        self._keys = merge_order(canonical, self._registration_keys)
        logger.info("Saved admin model order: %s", ", ".join(canonical))
        return canonical

"""Settings sources: local JSON store and in-memory source."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import asdict
from pathlib import Path

from core.settings.models import (
    SettingsListener,
    SettingsSnapshot,
    SettingsUpdate,
    StoredSettings,
    Unsubscribe,
)
from core.tokens.derive import build_mapping
from core.tokens.models import DEFAULT_MODE, Mode, normalize_mode

_STORE_VERSION = 1


class _ListenerRegistry:
    def __init__(self) -> None:
        self._listeners: list[SettingsListener] = []

    def subscribe(self, listener: SettingsListener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, update: SettingsUpdate) -> None:
        if update.is_empty:
            return
        for listener in list(self._listeners):
            listener(update)


class InMemorySettingsSource(_ListenerRegistry):
    """Settings held in memory; ``update`` notifies listeners with changed fields only."""

    def __init__(self, mapping: Mapping[str, str] | None = None, mode: Mode = DEFAULT_MODE) -> None:
        super().__init__()
        self._mapping = dict(mapping or {})
        self._mode = mode

    def snapshot(self) -> SettingsSnapshot:
        return SettingsSnapshot(mapping=dict(self._mapping), mode=self._mode)

    def update(
        self, *, mapping: Mapping[str, str] | None = None, mode: Mode | None = None
    ) -> SettingsUpdate:
        changed_mapping: dict[str, str] | None = None
        changed_mode: Mode | None = None
        if mapping is not None and dict(mapping) != self._mapping:
            self._mapping = dict(mapping)
            changed_mapping = dict(mapping)
        if mode is not None and mode != self._mode:
            self._mode = mode
            changed_mode = mode

        update = SettingsUpdate(mapping=changed_mapping, mode=changed_mode)
        self._notify(update)
        return update


class SettingsStore(_ListenerRegistry):
    """Persist namespace list, derived id map and mode in a JSON file."""

    def __init__(self, store_path: Path) -> None:
        super().__init__()
        self._store_path = store_path

    @property
    def path(self) -> Path:
        return self._store_path

    def snapshot(self) -> SettingsSnapshot:
        data = self._read_data()
        return SettingsSnapshot(mapping=dict(data.id_map), mode=data.mode)

    def namespace_list(self) -> list[str]:
        return list(self._read_data().namespace_list)

    def save(self, names: Iterable[str], mode: Mode | None = None) -> SettingsUpdate:
        """Store names, rebuild the id map wholesale, and notify changed fields."""

        previous = self._read_data()
        namespace_list = [name.strip() for name in names if name.strip()]
        data = StoredSettings(
            version=_STORE_VERSION,
            namespace_list=namespace_list,
            id_map=build_mapping(namespace_list),
            mode=previous.mode if mode is None else mode,
        )
        self._write_data(data)

        update = SettingsUpdate(
            mapping=dict(data.id_map) if data.id_map != previous.id_map else None,
            mode=data.mode if data.mode != previous.mode else None,
        )
        self._notify(update)
        return update

    def set_mode(self, mode: Mode) -> SettingsUpdate:
        return self.save(self._read_data().namespace_list, mode)

    def _read_data(self) -> StoredSettings:
        if not self._store_path.exists():
            return StoredSettings(version=_STORE_VERSION)

        try:
            raw = json.loads(self._store_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid settings store JSON: {self._store_path}") from exc

        if not isinstance(raw, dict):
            raise ValueError(f"Settings store must contain an object: {self._store_path}")

        try:
            mode = normalize_mode(str(raw.get("mode", DEFAULT_MODE)))
        except ValueError as exc:
            raise ValueError(f"Invalid mode in settings store: {self._store_path}") from exc

        namespace_list = raw.get("namespace_list", [])
        id_map = raw.get("id_map", {})
        version = raw.get("version", _STORE_VERSION)
        if not isinstance(namespace_list, list) or not all(
            isinstance(item, str) for item in namespace_list
        ):
            raise ValueError(f"Invalid namespace_list in settings store: {self._store_path}")
        if not isinstance(id_map, dict) or not all(
            isinstance(value, str) for value in id_map.values()
        ):
            raise ValueError(f"Invalid id_map in settings store: {self._store_path}")
        if type(version) is not int:
            raise ValueError(f"Invalid version in settings store: {self._store_path}")

        return StoredSettings(
            version=version,
            namespace_list=list(namespace_list),
            id_map=dict(id_map),
            mode=mode,
        )

    def _write_data(self, data: StoredSettings) -> None:
        self._store_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._store_path.with_suffix(f"{self._store_path.suffix}.tmp")

        temp_path.write_text(
            json.dumps(asdict(data), sort_keys=True, separators=(",", ":"), ensure_ascii=False),
            encoding="utf-8",
        )
        temp_path.replace(self._store_path)

"""Settings snapshot/update models, the settings source protocol, and config schema."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.dom.host import DEFAULT_MAX_FLUSH_BATCHES
from core.dom.nodes import DEFAULT_EDITABLE_TAGS
from core.tokens.derive import build_mapping
from core.tokens.models import DEFAULT_MODE, Mode


@dataclass(frozen=True)
class SettingsSnapshot:
    """Full mapping/mode state read once when the engine starts."""

    mapping: dict[str, str] = field(default_factory=dict)
    mode: Mode = DEFAULT_MODE


@dataclass(frozen=True)
class SettingsUpdate:
    """Partial change notification; ``None`` means unchanged."""

    mapping: dict[str, str] | None = None
    mode: Mode | None = None

    @property
    def is_empty(self) -> bool:
        return self.mapping is None and self.mode is None


SettingsListener = Callable[[SettingsUpdate], None]
Unsubscribe = Callable[[], None]


class SettingsSource(Protocol):
    """Protocol for mapping/mode providers consumed by the engine."""

    def snapshot(self) -> SettingsSnapshot:
        """Return the current full settings."""

    def subscribe(self, listener: SettingsListener) -> Unsubscribe:
        """Register a listener for partial updates; return a callable that removes it."""


@dataclass
class StoredSettings:
    """On-disk JSON structure for the settings store."""

    version: int = 1
    namespace_list: list[str] = field(default_factory=list)
    id_map: dict[str, str] = field(default_factory=dict)
    mode: Mode = DEFAULT_MODE


class RevealConfig(BaseModel):
    """Reveal configuration loaded from YAML."""

    model_config = ConfigDict(extra="forbid")

    namespaces: list[str] = Field(default_factory=list)
    mode: Mode = DEFAULT_MODE
    editable_tags: list[str] = Field(default_factory=lambda: sorted(DEFAULT_EDITABLE_TAGS))
    max_flush_batches: int = Field(default=DEFAULT_MAX_FLUSH_BATCHES, ge=1)

    @field_validator("namespaces")
    @classmethod
    def _strip_namespaces(cls, value: list[str]) -> list[str]:
        return [item.strip() for item in value if item.strip()]

    def snapshot(self) -> SettingsSnapshot:
        return SettingsSnapshot(mapping=build_mapping(self.namespaces), mode=self.mode)

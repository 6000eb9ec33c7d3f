"""Data models shared by token derivation, scanning, and rewriting."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Literal

Mode = Literal["translate", "annotate"]

SUPPORTED_MODES: tuple[Mode, ...] = ("translate", "annotate")
DEFAULT_MODE: Mode = "translate"


@dataclass(frozen=True)
class MatchSpan:
    """One token occurrence inside a single text value."""

    start: int
    end: int
    token: str


@dataclass(frozen=True)
class RevealContext:
    """Immutable mapping/mode snapshot consulted by every rewrite decision."""

    mapping: Mapping[str, str] = field(default_factory=dict)
    mode: Mode = DEFAULT_MODE

    def __post_init__(self) -> None:
        if self.mode not in SUPPORTED_MODES:
            raise ValueError(f"Unsupported mode: {self.mode}")
        object.__setattr__(self, "mapping", MappingProxyType(dict(self.mapping)))

    def resolve(self, token: str) -> str | None:
        """Return the display name for token, or None when it is unknown."""

        name = self.mapping.get(token)
        return name or None

    def replace(
        self, *, mapping: Mapping[str, str] | None = None, mode: Mode | None = None
    ) -> RevealContext:
        """Return a new snapshot; omitted fields keep their current values."""

        return RevealContext(
            mapping=self.mapping if mapping is None else mapping,
            mode=self.mode if mode is None else mode,
        )


def normalize_mode(value: str) -> Mode:
    """Normalize user input to a supported mode or raise ValueError."""

    normalized = value.lower().strip()
    if normalized not in SUPPORTED_MODES:
        raise ValueError(f"Unsupported mode: {value}")
    return normalized  # type: ignore[return-value]

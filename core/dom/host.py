"""Mutable document host with batched mutation notifications.

The host owns the tree. Every structural or text change goes through it so that
registered observers receive ordered ``MutationRecord`` batches on ``flush()``.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Literal

from bs4 import BeautifulSoup, NavigableString, PageElement, Tag

from core.utils.errors import MutationLoopError

MutationType = Literal["childList", "characterData"]
MutationOrigin = Literal["host", "engine"]

DEFAULT_MAX_FLUSH_BATCHES = 64


@dataclass(frozen=True)
class MutationRecord:
    """One change notification, shaped like a DOM mutation record."""

    type: MutationType
    target: PageElement
    added_nodes: tuple[PageElement, ...] = ()
    removed_nodes: tuple[PageElement, ...] = ()
    origin: MutationOrigin = "host"


MutationCallback = Callable[[list[MutationRecord]], None]


class DocumentHost:
    """Own a BeautifulSoup tree and notify observers about its mutations."""

    def __init__(
        self, soup: BeautifulSoup, *, max_flush_batches: int = DEFAULT_MAX_FLUSH_BATCHES
    ) -> None:
        if max_flush_batches < 1:
            raise ValueError("max_flush_batches must be positive")
        self._soup = soup
        self._max_flush_batches = max_flush_batches
        self._observers: list[MutationCallback] = []
        self._pending: list[MutationRecord] = []

    @property
    def soup(self) -> BeautifulSoup:
        return self._soup

    def observe(self, callback: MutationCallback) -> None:
        if callback not in self._observers:
            self._observers.append(callback)

    def disconnect(self, callback: MutationCallback) -> None:
        if callback in self._observers:
            self._observers.remove(callback)
        if not self._observers:
            self._pending.clear()

    def new_tag(self, name: str, attrs: dict[str, str] | None = None) -> Tag:
        return self._soup.new_tag(name, attrs=attrs or {})

    def append_child(self, parent: Tag, child: PageElement) -> PageElement:
        parent.append(child)
        self._record("childList", parent, added=(child,))
        return child

    def insert_before(self, reference: PageElement, node: PageElement) -> PageElement:
        parent = reference.parent
        if parent is None:
            raise ValueError("reference node is detached")
        reference.insert_before(node)
        self._record("childList", parent, added=(node,))
        return node

    def remove(self, node: PageElement) -> None:
        parent = node.parent
        if parent is None:
            return
        node.extract()
        self._record("childList", parent, removed=(node,))

    def set_text(self, leaf: NavigableString, value: str) -> NavigableString:
        """Change a text leaf's value.

        bs4 strings are immutable, so the leaf is swapped for a string of the same
        class. A ``Script`` or ``Stylesheet`` leaf stays one.
        """

        if leaf.parent is None:
            raise ValueError("text leaf is detached")
        updated = type(leaf)(value)
        leaf.replace_with(updated)
        self._record("characterData", updated)
        return updated

    def replace_with(
        self,
        node: PageElement,
        replacements: Sequence[PageElement],
        *,
        origin: MutationOrigin = "host",
    ) -> None:
        """Replace ``node`` in place with ``replacements`` (same parent, same position).

        ``origin="engine"`` marks the record as the rewriter's own output.
        """

        parent = node.parent
        if parent is None:
            raise ValueError("node is detached")
        node.replace_with(*replacements)
        self._record(
            "childList", parent, added=tuple(replacements), removed=(node,), origin=origin
        )

    def take_records(self) -> list[MutationRecord]:
        records = self._pending
        self._pending = []
        return records

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def flush(self) -> int:
        """Deliver queued records until quiescent and return the number of batches.

        Records queued by observers during delivery are delivered in the next
        batch. Raises MutationLoopError when the batch limit is exceeded.
        """

        batches = 0
        while self._pending:
            if batches >= self._max_flush_batches:
                raise MutationLoopError(
                    "Mutation observers did not settle",
                    batches=batches,
                    pending_records=len(self._pending),
                )
            batch = self.take_records()
            batches += 1
            for callback in list(self._observers):
                callback(batch)
        return batches

    def _record(
        self,
        mutation_type: MutationType,
        target: PageElement,
        *,
        added: tuple[PageElement, ...] = (),
        removed: tuple[PageElement, ...] = (),
        origin: MutationOrigin = "host",
    ) -> None:
        if not self._observers:
            return
        self._pending.append(
            MutationRecord(
                type=mutation_type,
                target=target,
                added_nodes=added,
                removed_nodes=removed,
                origin=origin,
            )
        )

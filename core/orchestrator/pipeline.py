"""One-shot reveal pipeline over an HTML document: parse -> initial pass -> serialize."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from core.dom.host import DEFAULT_MAX_FLUSH_BATCHES, DocumentHost
from core.dom.nodes import (
    DEFAULT_EDITABLE_TAGS,
    editable_tags_predicate,
    parse_html,
    serialize_html,
)
from core.engine.engine import RevealEngine
from core.engine.models import RewriteReport
from core.settings.models import SettingsSnapshot
from core.settings.store import InMemorySettingsSource


@dataclass(frozen=True)
class RevealOutput:
    """In-memory reveal output (no file paths)."""

    html: str
    report: RewriteReport


def reveal_html(
    markup: str,
    snapshot: SettingsSnapshot,
    *,
    editable_tags: Iterable[str] = DEFAULT_EDITABLE_TAGS,
    max_flush_batches: int = DEFAULT_MAX_FLUSH_BATCHES,
) -> RevealOutput:
    """Rewrite every resolvable token in ``markup`` and return the serialized result."""

    host = DocumentHost(parse_html(markup), max_flush_batches=max_flush_batches)
    source = InMemorySettingsSource(snapshot.mapping, snapshot.mode)
    engine = RevealEngine(host, source, is_editable=editable_tags_predicate(editable_tags))
    try:
        engine.start()
        host.flush()
        report = engine.report()
    finally:
        engine.stop()
    return RevealOutput(html=serialize_html(host.soup), report=report)

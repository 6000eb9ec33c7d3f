"""Rewrite report models and the recorder that fills them."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from core.tokens.models import MatchSpan, RevealContext

Stage = Literal["initial", "mutation"]


class RewriteLogEntry(BaseModel):
    """Single token outcome inside a rewritten text leaf."""

    model_config = ConfigDict(extra="forbid")

    status: Literal["translated", "annotated", "unresolved"]
    token: str
    namespace: str | None = None
    stage: Stage


class RewriteSummary(BaseModel):
    """Aggregate rewrite counters for observability."""

    model_config = ConfigDict(extra="forbid")

    total_tokens: int = 0
    translated_count: int = 0
    annotated_count: int = 0
    unresolved_count: int = 0
    rewritten_leaves: int = 0
    skipped_leaves: int = 0
    batches_dispatched: int = 0


class RewriteReport(BaseModel):
    """Full rewrite report: per-token entries plus summary."""

    model_config = ConfigDict(extra="forbid")

    entries: list[RewriteLogEntry] = Field(default_factory=list)
    summary: RewriteSummary = Field(default_factory=RewriteSummary)


class RewriteRecorder:
    """Collect rewrite outcomes from the walker and the change watcher."""

    def __init__(self) -> None:
        self._entries: list[RewriteLogEntry] = []
        self._rewritten_leaves = 0
        self._skipped_leaves = 0
        self._batches = 0

    def record_rewrite(
        self, matches: Sequence[MatchSpan], context: RevealContext, stage: Stage
    ) -> None:
        self._rewritten_leaves += 1
        for match in matches:
            namespace = context.resolve(match.token)
            if namespace is None:
                status: Literal["translated", "annotated", "unresolved"] = "unresolved"
            elif context.mode == "translate":
                status = "translated"
            else:
                status = "annotated"
            self._entries.append(
                RewriteLogEntry(status=status, token=match.token, namespace=namespace, stage=stage)
            )

    def record_skip(self, matches: Sequence[MatchSpan], stage: Stage) -> None:
        """A leaf had matches but none resolved, so it was left untouched."""

        self._skipped_leaves += 1
        for match in matches:
            self._entries.append(
                RewriteLogEntry(status="unresolved", token=match.token, namespace=None, stage=stage)
            )

    def record_batch(self) -> None:
        self._batches += 1

    def build_report(self) -> RewriteReport:
        translated = sum(1 for item in self._entries if item.status == "translated")
        annotated = sum(1 for item in self._entries if item.status == "annotated")
        unresolved = sum(1 for item in self._entries if item.status == "unresolved")
        summary = RewriteSummary(
            total_tokens=len(self._entries),
            translated_count=translated,
            annotated_count=annotated,
            unresolved_count=unresolved,
            rewritten_leaves=self._rewritten_leaves,
            skipped_leaves=self._skipped_leaves,
            batches_dispatched=self._batches,
        )
        return RewriteReport(entries=list(self._entries), summary=summary)

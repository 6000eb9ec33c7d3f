"""Change watcher: re-applies the rewriter to nodes named by mutation batches."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Literal

from bs4 import PageElement

from core.dom.host import DocumentHost, MutationRecord
from core.dom.nodes import (
    EditablePredicate,
    is_editable_element,
    is_element,
    is_shielded,
    is_text_leaf,
)
from core.engine.models import RewriteRecorder
from core.engine.walker import rewrite_leaf, walk
from core.tokens.models import RevealContext
from core.utils.errors import EngineStateError
from core.utils.log_events import log_event

logger = logging.getLogger("nsreveal.engine")

WatcherState = Literal["idle", "dispatching"]
ContextProvider = Callable[[], RevealContext]


class ChangeWatcher:
    """Idle/Dispatching state machine driven by host mutation batches.

    Per record, in order:
    - added text leaf: rewrite it.
    - added element: walk its subtree.
    - removed nodes: nothing.
    - records made by the rewriter itself: nothing.
    - text changed: rewrite the leaf as if freshly added.

    The context is read once per batch so a batch never mixes two snapshots.
    """

    def __init__(
        self,
        host: DocumentHost,
        context_provider: ContextProvider,
        *,
        is_editable: EditablePredicate = is_editable_element,
        recorder: RewriteRecorder | None = None,
    ) -> None:
        self._host = host
        self._context_provider = context_provider
        self._is_editable = is_editable
        self._recorder = recorder
        self._state: WatcherState = "idle"

    @property
    def state(self) -> WatcherState:
        return self._state

    def handle_batch(self, records: list[MutationRecord]) -> None:
        if self._state != "idle":
            raise EngineStateError("mutation batch delivered while dispatching")

        context = self._context_provider()
        self._state = "dispatching"
        try:
            for record in records:
                self._dispatch(record, context)
        finally:
            self._state = "idle"

        if self._recorder is not None:
            self._recorder.record_batch()
        log_event(logger, logging.DEBUG, "batch", records=len(records), mode=context.mode)

    def _dispatch(self, record: MutationRecord, context: RevealContext) -> None:
        if record.origin == "engine":
            return
        if record.type == "characterData":
            self._process(record.target, context)
            return

        for node in record.added_nodes:
            self._process(node, context)

    def _process(self, node: PageElement, context: RevealContext) -> None:
        if node.parent is None:
            return
        if is_shielded(node, self._is_editable):
            return

        if is_text_leaf(node):
            rewrite_leaf(self._host, node, context, recorder=self._recorder, stage="mutation")
        elif is_element(node):
            walk(
                self._host,
                node,
                context,
                is_editable=self._is_editable,
                recorder=self._recorder,
                stage="mutation",
            )

"""Reveal engine: initial full pass, then reactive rewrites driven by the host."""

from __future__ import annotations

import logging

from core.dom.host import DocumentHost
from core.dom.nodes import EditablePredicate, document_root, is_editable_element
from core.engine.models import RewriteRecorder, RewriteReport
from core.engine.walker import walk
from core.engine.watcher import ChangeWatcher
from core.settings.models import SettingsSource, SettingsUpdate, Unsubscribe
from core.tokens.models import RevealContext
from core.utils.errors import EngineStateError
from core.utils.log_events import log_event

logger = logging.getLogger("nsreveal.engine")


class RevealEngine:
    """Bind a settings source to a document host.

    ``start()`` reads the settings snapshot once, rewrites the current tree,
    then registers the change watcher and subscribes to settings updates.
    Updates replace the context snapshot wholesale and apply only to rewrites
    made after they land.
    """

    def __init__(
        self,
        host: DocumentHost,
        source: SettingsSource,
        *,
        is_editable: EditablePredicate = is_editable_element,
        recorder: RewriteRecorder | None = None,
    ) -> None:
        self._host = host
        self._source = source
        self._is_editable = is_editable
        self._recorder = recorder or RewriteRecorder()
        self._context = RevealContext()
        self._watcher: ChangeWatcher | None = None
        self._unsubscribe: Unsubscribe | None = None
        self._started = False
        self._stopped = False

    @property
    def context(self) -> RevealContext:
        return self._context

    @property
    def watcher(self) -> ChangeWatcher | None:
        return self._watcher

    @property
    def running(self) -> bool:
        return self._watcher is not None

    def start(self) -> RewriteReport:
        if self._stopped:
            raise EngineStateError("engine was stopped and cannot be restarted")
        if self._started:
            raise EngineStateError("engine already started")
        self._started = True

        snapshot = self._source.snapshot()
        self._context = RevealContext(mapping=snapshot.mapping, mode=snapshot.mode)
        log_event(
            logger,
            logging.INFO,
            "start",
            mode=self._context.mode,
            mapping_size=len(self._context.mapping),
        )

        walk(
            self._host,
            document_root(self._host.soup),
            self._context,
            is_editable=self._is_editable,
            recorder=self._recorder,
            stage="initial",
        )

        self._watcher = ChangeWatcher(
            self._host,
            self._current_context,
            is_editable=self._is_editable,
            recorder=self._recorder,
        )
        self._host.observe(self._watcher.handle_batch)
        self._unsubscribe = self._source.subscribe(self.apply_update)
        return self.report()

    def apply_update(self, update: SettingsUpdate) -> None:
        """Merge a partial update; absent fields keep their prior values."""

        if update.is_empty:
            return
        self._context = self._context.replace(mapping=update.mapping, mode=update.mode)
        log_event(
            logger,
            logging.INFO,
            "update",
            mapping_changed=update.mapping is not None,
            mode=self._context.mode,
            mapping_size=len(self._context.mapping),
        )

    def stop(self) -> None:
        if self._started:
            self._stopped = True
        if self._watcher is not None:
            self._host.disconnect(self._watcher.handle_batch)
            self._watcher = None
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def report(self) -> RewriteReport:
        return self._recorder.build_report()

    def _current_context(self) -> RevealContext:
        return self._context

from __future__ import annotations

import logging

import pytest
from bs4 import NavigableString

from core.dom.host import DocumentHost
from core.dom.nodes import editable_tags_predicate, parse_html
from core.engine.engine import RevealEngine
from core.settings.models import SettingsUpdate
from core.settings.store import InMemorySettingsSource
from core.utils.errors import EngineStateError

KNOWN = "xabc0000000000001"
OTHER = "xabc0000000000003"


def _engine(
    markup: str, **source_kwargs
) -> tuple[DocumentHost, InMemorySettingsSource, RevealEngine]:
    host = DocumentHost(parse_html(markup))
    source = InMemorySettingsSource(**source_kwargs)
    return host, source, RevealEngine(host, source)


def test_start_runs_initial_pass_over_body_then_watches() -> None:
    host, _, engine = _engine(
        f"<html><head><title>{KNOWN}</title></head><body><p>see {KNOWN} now</p></body></html>",
        mapping={KNOWN: "teams-prod"},
    )

    report = engine.start()

    assert host.soup.p.get_text() == "see teams-prod now"
    assert host.soup.title.get_text() == KNOWN
    assert report.summary.translated_count == 1
    assert engine.running
    assert engine.watcher is not None and engine.watcher.state == "idle"
    assert host.pending_count == 0

    host.append_child(host.soup.body, NavigableString(f" later {KNOWN}"))
    host.flush()

    assert host.soup.body.get_text() == "see teams-prod now later teams-prod"
    assert engine.report().summary.translated_count == 2


def test_start_twice_raises() -> None:
    _, _, engine = _engine("<p></p>")
    engine.start()

    with pytest.raises(EngineStateError):
        engine.start()


def test_start_after_stop_raises() -> None:
    _, _, engine = _engine("<p></p>")
    engine.start()
    engine.stop()

    with pytest.raises(EngineStateError, match="cannot be restarted"):
        engine.start()
    assert not engine.running


def test_mode_switch_applies_to_later_rewrites_only() -> None:
    host, source, engine = _engine(f"<p>{KNOWN}</p>", mapping={KNOWN: "teams-prod"})
    engine.start()

    source.update(mode="annotate")
    host.append_child(host.soup.p, NavigableString(f" {KNOWN}"))
    host.flush()

    assert engine.context.mode == "annotate"
    assert host.soup.p.abbr.get_text() == "teams-prod"
    assert host.soup.p.get_text() == f"teams-prod {KNOWN}  (namespace: teams-prod)"


def test_mapping_update_keeps_mode_and_resolves_new_tokens() -> None:
    host, source, engine = _engine(
        f"<p>{OTHER}</p>", mapping={KNOWN: "teams-prod"}, mode="annotate"
    )
    engine.start()
    assert host.soup.p.get_text() == OTHER

    source.update(mapping={KNOWN: "teams-prod", OTHER: "billing"})
    host.append_child(host.soup.p, NavigableString(f" {OTHER}"))
    host.flush()

    assert engine.context.mode == "annotate"
    assert host.soup.p.get_text() == f"{OTHER} {OTHER}  (namespace: billing)"


def test_empty_update_keeps_prior_values() -> None:
    _, _, engine = _engine("<p></p>", mapping={KNOWN: "teams-prod"}, mode="annotate")
    engine.start()
    before = engine.context

    engine.apply_update(SettingsUpdate())

    assert engine.context is before


def test_stop_disconnects_watcher_and_updates() -> None:
    host, source, engine = _engine("<p></p>", mapping={KNOWN: "teams-prod"})
    engine.start()

    engine.stop()
    source.update(mode="annotate")
    host.append_child(host.soup.p, NavigableString(KNOWN))
    host.flush()

    assert not engine.running
    assert engine.context.mode == "translate"
    assert host.soup.p.get_text() == KNOWN


def test_custom_editable_policy_is_honored() -> None:
    host = DocumentHost(parse_html(f"<pre>{KNOWN}</pre><textarea>{KNOWN}</textarea>"))
    source = InMemorySettingsSource(mapping={KNOWN: "teams-prod"})
    engine = RevealEngine(host, source, is_editable=editable_tags_predicate(["pre"]))

    engine.start()

    assert host.soup.pre.get_text() == KNOWN
    assert host.soup.textarea.get_text() == "teams-prod"


def test_engine_logs_start_and_update(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="nsreveal.engine")
    _, source, engine = _engine("<p></p>", mapping={KNOWN: "teams-prod"})

    engine.start()
    source.update(mode="annotate")

    messages = [record.message for record in caplog.records if record.name == "nsreveal.engine"]
    assert any(
        '"event":"start"' in message and '"mapping_size":1' in message for message in messages
    )
    assert any(
        '"event":"update"' in message and '"mode":"annotate"' in message for message in messages
    )

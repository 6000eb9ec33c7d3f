from __future__ import annotations

import pytest

from core.rewrite.models import Annotation, PlainText, Substitution
from core.rewrite.rewriter import (
    has_resolved_match,
    render_text,
    rewrite_text,
    source_text,
)
from core.tokens.models import RevealContext
from core.tokens.scanner import scan_tokens

KNOWN = "xabc0000000000001"
UNKNOWN = "xabc0000000000002"
MAPPING = {KNOWN: "teams-prod"}


def _rewrite(text: str, mode: str) -> list:
    context = RevealContext(mapping=MAPPING, mode=mode)  # type: ignore[arg-type]
    return rewrite_text(text, scan_tokens(text), context)


def test_translate_scenario() -> None:
    fragments = _rewrite(f"see {KNOWN} now", "translate")

    assert fragments == [
        PlainText("see "),
        Substitution(token=KNOWN, namespace="teams-prod"),
        PlainText(" now"),
    ]
    assert render_text(fragments) == "see teams-prod now"


def test_annotate_scenario() -> None:
    fragments = _rewrite(f"see {KNOWN} now", "annotate")

    assert fragments[1] == Annotation(token=KNOWN, namespace="teams-prod")
    assert render_text(fragments) == f"see {KNOWN}  (namespace: teams-prod) now"


@pytest.mark.parametrize("mode", ["translate", "annotate"])
def test_unknown_token_passes_through_verbatim(mode: str) -> None:
    text = f"see {UNKNOWN} now"

    fragments = _rewrite(text, mode)

    assert fragments == [PlainText(text)]
    assert render_text(fragments) == text


@pytest.mark.parametrize("mode", ["translate", "annotate"])
def test_source_text_reconstructs_original(mode: str) -> None:
    text = f"{KNOWN} a {UNKNOWN} b {KNOWN}{KNOWN[:3]} c,{KNOWN}"

    fragments = _rewrite(text, mode)

    assert source_text(fragments) == text


def test_adjacent_plain_text_is_merged_around_unknown_tokens() -> None:
    fragments = _rewrite(f"a {KNOWN} b {UNKNOWN} c {KNOWN}", "translate")

    assert fragments == [
        PlainText("a "),
        Substitution(token=KNOWN, namespace="teams-prod"),
        PlainText(f" b {UNKNOWN} c "),
        Substitution(token=KNOWN, namespace="teams-prod"),
    ]


def test_modes_differ_only_in_matched_spans() -> None:
    text = f"x {KNOWN} y {UNKNOWN} z"

    translated = _rewrite(text, "translate")
    annotated = _rewrite(text, "annotate")

    plain_translated = [item for item in translated if isinstance(item, PlainText)]
    plain_annotated = [item for item in annotated if isinstance(item, PlainText)]
    assert plain_translated == plain_annotated
    assert render_text(translated) != render_text(annotated)


def test_translated_output_does_not_rescan() -> None:
    fragments = _rewrite(f"see {KNOWN} and {KNOWN}", "translate")

    assert scan_tokens(render_text(fragments)) == []


def test_has_resolved_match() -> None:
    context = RevealContext(mapping=MAPPING)

    assert has_resolved_match(scan_tokens(f"{UNKNOWN} {KNOWN}"), context) is True
    assert has_resolved_match(scan_tokens(UNKNOWN), context) is False
    assert has_resolved_match([], context) is False


def test_context_rejects_unknown_mode_and_is_read_only() -> None:
    with pytest.raises(ValueError):
        RevealContext(mode="replace")  # type: ignore[arg-type]

    context = RevealContext(mapping=MAPPING)
    with pytest.raises(TypeError):
        context.mapping[UNKNOWN] = "other"  # type: ignore[index]


def test_context_replace_keeps_omitted_fields() -> None:
    context = RevealContext(mapping=MAPPING, mode="annotate")

    updated = context.replace(mapping={UNKNOWN: "other"})

    assert updated.mode == "annotate"
    assert dict(updated.mapping) == {UNKNOWN: "other"}
    assert dict(context.mapping) == MAPPING

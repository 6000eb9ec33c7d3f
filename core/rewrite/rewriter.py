"""Fragment construction for one text value and its token matches."""

from __future__ import annotations

from collections.abc import Sequence

from core.rewrite.models import Annotation, Fragment, PlainText, Substitution
from core.tokens.models import MatchSpan, RevealContext


def rewrite_text(
    text: str, matches: Sequence[MatchSpan], context: RevealContext
) -> list[Fragment]:
    """Build the ordered replacement fragments for ``text``.

    Rules:
    - Known token, translate mode: ``Substitution`` (namespace visible, token kept).
    - Known token, annotate mode: ``Annotation`` (token visible + namespace suffix).
    - Unknown token: emitted verbatim as plain text.
    - Text outside matches is carried unchanged; adjacent plain text is merged.

    Args:
        text: Original text value.
        matches: Non-overlapping matches ordered by start, as returned by the scanner.
        context: Mapping/mode snapshot for this rewrite.

    Returns:
        Fragments whose plain/token content reconstructs ``text`` outside matched spans.
    """

    fragments: list[Fragment] = []
    pending: list[str] = []
    cursor = 0

    for match in matches:
        pending.append(text[cursor : match.start])
        cursor = match.end

        namespace = context.resolve(match.token)
        if namespace is None:
            pending.append(match.token)
            continue

        _flush_plain(pending, fragments)
        if context.mode == "translate":
            fragments.append(Substitution(token=match.token, namespace=namespace))
        else:
            fragments.append(Annotation(token=match.token, namespace=namespace))

    pending.append(text[cursor:])
    _flush_plain(pending, fragments)
    return fragments


def has_resolved_match(matches: Sequence[MatchSpan], context: RevealContext) -> bool:
    """Return True when at least one match resolves in the current mapping."""

    return any(context.resolve(match.token) is not None for match in matches)


def fragment_text(fragment: Fragment) -> str:
    """Visible text of one fragment as it renders in the tree."""

    if isinstance(fragment, PlainText):
        return fragment.text
    if isinstance(fragment, Substitution):
        return fragment.namespace
    return fragment.token + fragment.suffix


def render_text(fragments: Sequence[Fragment]) -> str:
    return "".join(fragment_text(fragment) for fragment in fragments)


def source_text(fragments: Sequence[Fragment]) -> str:
    """Reconstruct the original text: plain content plus the original tokens."""

    parts: list[str] = []
    for fragment in fragments:
        if isinstance(fragment, PlainText):
            parts.append(fragment.text)
        else:
            parts.append(fragment.token)
    return "".join(parts)


def _flush_plain(pending: list[str], fragments: list[Fragment]) -> None:
    text = "".join(pending)
    pending.clear()
    if text:
        fragments.append(PlainText(text))

"""Depth-first tree walk applying the scanner/rewriter to text leaves."""

from __future__ import annotations

from bs4 import NavigableString, PageElement

from core.dom.host import DocumentHost
from core.dom.nodes import (
    EditablePredicate,
    is_editable_element,
    is_element,
    is_raw_text_element,
    is_rewritten,
    is_text_leaf,
    materialize_fragments,
)
from core.engine.models import RewriteRecorder, Stage
from core.rewrite.rewriter import has_resolved_match, rewrite_text
from core.tokens.models import RevealContext
from core.tokens.scanner import scan_tokens


def rewrite_leaf(
    host: DocumentHost,
    leaf: NavigableString,
    context: RevealContext,
    *,
    recorder: RewriteRecorder | None = None,
    stage: Stage = "initial",
) -> bool:
    """Replace one text leaf with its rewritten fragments.

    Leaves without matches are untouched. Leaves whose matches are all unknown
    are untouched too: the rebuilt fragment would be identical and would only
    feed another mutation round. Their tokens are still logged as unresolved.

    Returns:
        True when the leaf was replaced in its parent.
    """

    if not is_text_leaf(leaf) or leaf.parent is None:
        return False

    text = str(leaf)
    matches = scan_tokens(text)
    if not matches:
        return False

    if not has_resolved_match(matches, context):
        if recorder is not None:
            recorder.record_skip(matches, stage)
        return False

    fragments = rewrite_text(text, matches, context)
    host.replace_with(leaf, materialize_fragments(host.soup, fragments), origin="engine")
    if recorder is not None:
        recorder.record_rewrite(matches, context, stage)
    return True


def walk(
    host: DocumentHost,
    node: PageElement,
    context: RevealContext,
    *,
    is_editable: EditablePredicate = is_editable_element,
    recorder: RewriteRecorder | None = None,
    stage: Stage = "initial",
) -> None:
    """Rewrite every eligible text leaf under ``node`` in pre-order.

    Editable, already-rewritten and raw-text (script, style, template)
    elements are skipped with their whole subtree. Children are snapshotted
    before descending so replacements never disturb sibling iteration.
    """

    stack: list[PageElement] = [node]
    while stack:
        current = stack.pop()
        if is_text_leaf(current):
            rewrite_leaf(host, current, context, recorder=recorder, stage=stage)
            continue

        if not is_element(current):
            continue
        if is_rewritten(current) or is_raw_text_element(current) or is_editable(current):
            continue

        stack.extend(reversed(list(current.contents)))

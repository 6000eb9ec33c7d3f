"""BeautifulSoup node helpers: node kinds, exclusion policy, fragment materialization.

All bs4-level node construction for rewritten content lives here.
Do not build rewrite markup in other modules.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence

from bs4 import BeautifulSoup, NavigableString, PageElement, Tag

from core.rewrite.models import Annotation, Fragment, PlainText, Substitution

REWRITE_MARKER = "data-ns-reveal"
DEFAULT_EDITABLE_TAGS = frozenset({"input", "textarea", "select"})
# Text under these tags is source or inert markup, never display text.
RAW_TEXT_TAGS = frozenset({"script", "style", "template"})

_SUBSTITUTION_STYLE = "border-bottom: 1px dotted currentColor"
_ANNOTATION_STYLE = "font-size: 90%; opacity: 0.75; margin-left: 4px"

EditablePredicate = Callable[[Tag], bool]


def parse_html(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, "html.parser")


def serialize_html(soup: BeautifulSoup) -> str:
    return str(soup)


def document_root(soup: BeautifulSoup) -> Tag:
    """Initial pass root: ``<body>`` when present, otherwise the whole document."""

    body = soup.body
    return body if body is not None else soup


def is_text_leaf(node: PageElement | None) -> bool:
    """True only for plain text; comments, doctype, script and style strings are excluded."""

    return type(node) is NavigableString


def is_element(node: PageElement | None) -> bool:
    return isinstance(node, Tag)


def is_rewritten(tag: Tag) -> bool:
    return tag.has_attr(REWRITE_MARKER)


def is_raw_text_element(tag: Tag) -> bool:
    return tag.name in RAW_TEXT_TAGS


def is_editable_element(tag: Tag) -> bool:
    """Default exclusion policy: form inputs and contenteditable regions."""

    if tag.name in DEFAULT_EDITABLE_TAGS:
        return True
    return _is_contenteditable(tag)


def editable_tags_predicate(tags: Iterable[str]) -> EditablePredicate:
    """Build an exclusion policy from configured tag names (plus contenteditable)."""

    names = frozenset(name.lower() for name in tags)

    def predicate(tag: Tag) -> bool:
        return tag.name in names or _is_contenteditable(tag)

    return predicate


def is_shielded(node: PageElement, is_editable: EditablePredicate) -> bool:
    """Return True when any ancestor is editable, already rewritten, or raw text."""

    for parent in node.parents:
        if isinstance(parent, BeautifulSoup):
            break
        if is_rewritten(parent) or is_raw_text_element(parent) or is_editable(parent):
            return True
    return False


def materialize_fragments(
    soup: BeautifulSoup, fragments: Sequence[Fragment]
) -> list[PageElement]:
    """Turn rewriter fragments into detached bs4 nodes, in order."""

    nodes: list[PageElement] = []
    for fragment in fragments:
        if isinstance(fragment, PlainText):
            nodes.append(NavigableString(fragment.text))
        elif isinstance(fragment, Substitution):
            nodes.append(_build_substitution(soup, fragment))
        else:
            nodes.append(_build_annotation(soup, fragment))
    return nodes


def _build_substitution(soup: BeautifulSoup, fragment: Substitution) -> Tag:
    abbr = soup.new_tag(
        "abbr",
        attrs={
            "title": fragment.token,
            "style": _SUBSTITUTION_STYLE,
            REWRITE_MARKER: "translated",
        },
    )
    abbr.string = fragment.namespace
    return abbr


def _build_annotation(soup: BeautifulSoup, fragment: Annotation) -> Tag:
    wrap = soup.new_tag("span", attrs={REWRITE_MARKER: "annotated"})

    strong = soup.new_tag("strong")
    strong.string = fragment.token

    suffix = soup.new_tag("span", attrs={"style": _ANNOTATION_STYLE})
    suffix.string = fragment.suffix

    wrap.append(strong)
    wrap.append(suffix)
    return wrap


def _is_contenteditable(tag: Tag) -> bool:
    value = tag.get("contenteditable")
    if value is None:
        return False
    if isinstance(value, list):
        value = " ".join(value)
    return value.strip().lower() != "false"

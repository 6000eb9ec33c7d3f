"""Fragment models produced by the rewriter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

ANNOTATION_SUFFIX = "  (namespace: {namespace})"


@dataclass(frozen=True)
class PlainText:
    """Untouched text between matches, or an unresolved token kept verbatim."""

    text: str


@dataclass(frozen=True)
class Substitution:
    """Namespace shown in place of the token; the token stays inspectable."""

    token: str
    namespace: str


@dataclass(frozen=True)
class Annotation:
    """Token kept visible with a de-emphasized namespace suffix."""

    token: str
    namespace: str

    @property
    def suffix(self) -> str:
        return ANNOTATION_SUFFIX.format(namespace=self.namespace)


Fragment = Union[PlainText, Substitution, Annotation]

from __future__ import annotations

from core.tokens.derive import (
    build_mapping,
    derive_token,
    md5_hex,
    parse_namespace_lines,
    preview_lines,
)
from core.tokens.scanner import scan_tokens


def _fixed_digest(value: str) -> str:
    return "0123456789abcdef" + str(len(value)).zfill(4)


def test_derive_token_uses_md5_prefix_of_lowercased_name() -> None:
    assert md5_hex("hello") == "5d41402abc4b2a76b9719d911017c592"
    assert derive_token("Hello") == "x5d41402abc4b2a76"
    assert derive_token("") == "xd41d8cd98f00b204"


def test_derive_token_is_case_insensitive_and_deterministic() -> None:
    assert derive_token("Teams-Prod") == derive_token("teams-prod")
    assert derive_token("TEAMS-PROD") == derive_token("teams-prod")
    assert derive_token("teams-prod") == derive_token("teams-prod")
    assert derive_token("teams-prod") != derive_token("teams-dev")


def test_derive_token_has_scannable_shape() -> None:
    token = derive_token("billing.payments-prod")

    assert len(token) == 17
    assert token.startswith("x")
    assert [span.token for span in scan_tokens(f"id {token} here")] == [token]


def test_derive_token_accepts_injected_digest() -> None:
    assert derive_token("ABC", digest=_fixed_digest) == "x0123456789abcdef"


def test_parse_namespace_lines_trims_and_drops_blanks() -> None:
    text = "  teams-prod \n\n\tbilling\n   \nops"

    assert parse_namespace_lines(text) == ["teams-prod", "billing", "ops"]


def test_build_mapping_preserves_display_case() -> None:
    mapping = build_mapping(["Teams-Prod", "billing"])

    assert mapping == {
        derive_token("teams-prod"): "Teams-Prod",
        derive_token("billing"): "billing",
    }


def test_build_mapping_later_duplicate_wins() -> None:
    mapping = build_mapping(["teams-prod", "TEAMS-PROD"])

    assert mapping == {derive_token("teams-prod"): "TEAMS-PROD"}


def test_preview_lines_format() -> None:
    lines = preview_lines(["Hello"])

    assert lines == ["x5d41402abc4b2a76  ->  Hello"]

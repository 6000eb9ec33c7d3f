from __future__ import annotations

from pathlib import Path

import pytest

from core.settings.config_loader import load_config
from core.tokens.derive import derive_token


def test_load_default_config() -> None:
    config = load_config()

    assert config.namespaces == []
    assert config.mode == "translate"
    assert set(config.editable_tags) == {"input", "select", "textarea"}
    assert config.max_flush_batches == 64


def test_load_config_builds_snapshot(tmp_path: Path) -> None:
    path = tmp_path / "nsreveal.yaml"
    path.write_text(
        "namespaces:\n  - ' Teams-Prod '\n  - ''\n  - billing\nmode: annotate\n",
        encoding="utf-8",
    )

    config = load_config(path)
    snapshot = config.snapshot()

    assert config.namespaces == ["Teams-Prod", "billing"]
    assert snapshot.mode == "annotate"
    assert snapshot.mapping[derive_token("teams-prod")] == "Teams-Prod"


def test_empty_config_file_uses_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")

    assert load_config(path).mode == "translate"


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ("namespaces: [unclosed", "Invalid YAML"),
        ("- a\n- b\n", "must contain a mapping"),
        ("mode: replace\n", "Invalid config schema"),
        ("unknown_key: 1\n", "Invalid config schema"),
        ("max_flush_batches: 0\n", "Invalid config schema"),
    ],
)
def test_load_config_rejects_invalid_files(tmp_path: Path, content: str, message: str) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ValueError, match=message):
        load_config(path)


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Config file not found"):
        load_config(tmp_path / "missing.yaml")

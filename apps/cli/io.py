"""CLI I/O helpers for atomic output writing."""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from core.engine.models import RewriteReport


@dataclass(frozen=True)
class OutputPaths:
    """Fixed output artifact paths for a single reveal run."""

    html: Path
    reveal_log: Path


def build_output_paths(out_dir: Path) -> OutputPaths:
    """Build fixed output file paths under out_dir."""

    return OutputPaths(
        html=out_dir / "out.html",
        reveal_log=out_dir / "out.reveal_log.json",
    )


def existing_output_files(paths: OutputPaths) -> list[Path]:
    """Return existing output files among fixed artifact paths."""

    return [path for path in (paths.html, paths.reveal_log) if path.exists()]


def write_reveal_output_atomic(paths: OutputPaths, html: str, report: RewriteReport) -> None:
    """Write rewritten HTML and the reveal log using temporary files + replace."""

    paths.html.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write_text(paths.html, html)
    _atomic_write_json(paths.reveal_log, report.model_dump(mode="json"))


def write_fallback_json_atomic(
    paths: OutputPaths, *, error_type: str, error_message: str, stage: str
) -> None:
    """Write an empty reveal log carrying error metadata."""

    payload: dict[str, Any] = RewriteReport().model_dump(mode="json")
    payload["error"] = {
        "error_type": error_type,
        "error_message": error_message,
        "stage": stage,
    }
    paths.reveal_log.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write_json(paths.reveal_log, payload)


def _atomic_write_json(path: Path, payload: dict[str, Any]) -> None:
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
        prefix=f"{path.name}.",
        suffix=".tmp",
    ) as tmp:
        tmp_path = Path(tmp.name)
        json.dump(payload, tmp, ensure_ascii=False, sort_keys=True, separators=(",", ":"))

    tmp_path.replace(path)


def _atomic_write_text(path: Path, text: str) -> None:
    fd, raw_tmp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f"{path.name}.",
        suffix=".tmp",
    )
    os.close(fd)
    tmp_path = Path(raw_tmp_path)

    try:
        tmp_path.write_text(text, encoding="utf-8")
        tmp_path.replace(path)
    except Exception:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)
        raise

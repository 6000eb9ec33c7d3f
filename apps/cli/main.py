"""Typer CLI entrypoint for nsreveal."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from apps.cli.io import (
    OutputPaths,
    build_output_paths,
    existing_output_files,
    write_fallback_json_atomic,
    write_reveal_output_atomic,
)
from core.orchestrator.pipeline import RevealOutput, reveal_html
from core.settings.config_loader import load_config
from core.settings.models import SettingsSnapshot
from core.settings.store import SettingsStore
from core.tokens.derive import parse_namespace_lines, preview_lines
from core.tokens.models import Mode, normalize_mode

app = typer.Typer(help="Namespace token reveal CLI", rich_markup_mode=None)


@app.callback()
def cli_callback() -> None:
    """CLI root callback to keep subcommands explicit."""


@app.command("ids")
def ids_command(
    names: Annotated[list[str], typer.Argument(help="Namespace names to derive tokens for.")],
) -> None:
    """Print ``<token>  ->  <namespace>`` for each name."""

    for line in preview_lines(name.strip() for name in names):
        typer.echo(line)


@app.command("save")
def save_command(
    namespaces: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, file_okay=True)],
    store: Annotated[Path, typer.Option(...)],
    mode: Annotated[str | None, typer.Option()] = None,
) -> None:
    """Store a namespace list (one per line) and its derived id map."""

    mode_typed = _normalize_mode_option(mode)
    try:
        names = parse_namespace_lines(namespaces.read_text(encoding="utf-8"))
        settings_store = SettingsStore(store)
        settings_store.save(names, mode_typed)
        saved_mode = settings_store.snapshot().mode
    except (OSError, ValueError) as exc:
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")
        raise typer.Exit(code=1) from exc

    typer.echo(f"INFO: saved {len(names)} namespaces (mode={saved_mode})")


@app.command("reveal")
def reveal_command(
    input_html: Annotated[
        Path, typer.Option("--input", exists=True, dir_okay=False, file_okay=True)
    ],
    out_dir: Annotated[Path, typer.Option()] = Path("."),
    config: Annotated[Path | None, typer.Option()] = None,
    store: Annotated[Path | None, typer.Option()] = None,
    mode: Annotated[str | None, typer.Option()] = None,
    force: Annotated[
        bool, typer.Option("--force", help="Overwrite outputs when they already exist.")
    ] = False,
) -> None:
    """Rewrite namespace tokens in one HTML file and write fixed output artifacts."""

    paths = build_output_paths(out_dir)
    mode_typed = _normalize_mode_option(mode, paths=paths)

    existing = existing_output_files(paths)
    if existing and not force:
        names = ", ".join(path.name for path in existing)
        typer.echo(f"ERROR: outputs already exist ({names}); pass --force to overwrite.")
        raise typer.Exit(code=1)

    failure_stage = "unknown"
    output: RevealOutput | None = None
    try:
        failure_stage = "load_config"
        config_model = load_config(config)
        failure_stage = "load_settings"
        snapshot = SettingsStore(store).snapshot() if store is not None else config_model.snapshot()
        if mode_typed is not None:
            snapshot = SettingsSnapshot(mapping=snapshot.mapping, mode=mode_typed)
        failure_stage = "read_input"
        markup = input_html.read_text(encoding="utf-8")
        failure_stage = "reveal"
        output = reveal_html(
            markup,
            snapshot,
            editable_tags=config_model.editable_tags,
            max_flush_batches=config_model.max_flush_batches,
        )
        failure_stage = "write_output"
        write_reveal_output_atomic(paths, output.html, output.report)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")
        _safe_write_fallback(paths, type(exc).__name__, str(exc), failure_stage)
        raise typer.Exit(code=1) from exc

    summary = output.report.summary
    typer.echo(
        "INFO(reveal): "
        f"mode={snapshot.mode} translated={summary.translated_count} "
        f"annotated={summary.annotated_count} unresolved={summary.unresolved_count}"
    )
    typer.echo("INFO: success")


def _normalize_mode_option(value: str | None, *, paths: OutputPaths | None = None) -> Mode | None:
    if value is None:
        return None
    try:
        return normalize_mode(value)
    except ValueError as exc:
        typer.echo("ERROR: --mode must be one of: translate, annotate.")
        if paths is not None:
            _safe_write_fallback(paths, "ArgumentValidationError", "invalid mode", "args")
        raise typer.Exit(code=1) from exc


def _safe_write_fallback(paths: OutputPaths, error_type: str, message: str, stage: str) -> None:
    try:
        write_fallback_json_atomic(
            paths, error_type=error_type, error_message=message, stage=stage
        )
    except Exception:  # noqa: BLE001
        pass


def main() -> None:
    """Console script entrypoint."""

    app()


if __name__ == "__main__":
    main()

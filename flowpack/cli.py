#!/usr/bin/env python3
# flowpack/cli.py

import logging
from pathlib import Path
from typing import Optional

import typer

from flowpack.config import resolve_project_dir, resolve_unpack_paths
from flowpack.errors import FlowpackError, WorkflowValidationError
from flowpack.model.layout import MANIFEST_FILE
from flowpack.pack.packer import pack_project
from flowpack.structural.validator import validate_project
from flowpack.unpack.unpacker import unpack_workflow
from flowpack.utils.logger import set_level

app = typer.Typer(help="flowpack CLI - split n8n workflows into modular projects and build them back")


def _fail(msg: str, hint: Optional[str] = None) -> None:
    typer.echo(f"Error: {msg}", err=True)
    if hint:
        typer.echo(f"Hint: {hint}", err=True)
    raise typer.Exit(code=1)


def _existing_project(identifier: str) -> Path:
    project_dir = resolve_project_dir(identifier)
    if not project_dir.is_dir():
        _fail(
            f"project directory does not exist: {project_dir}",
            "pass a workflow name under the workflows directory, or a full path",
        )
    return project_dir


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Pack, unpack and validate modular workflow projects."""
    if verbose:
        set_level(logging.DEBUG)


@app.command()
def pack(
    project: str = typer.Argument(..., help="Project directory, or a workflow name under the workflows directory"),
):
    """
    Build the single workflow JSON document from a modular project.
    """
    project_dir = _existing_project(project)
    if not (project_dir / MANIFEST_FILE).is_file():
        _fail(
            f"manifest not found: {project_dir / MANIFEST_FILE}",
            "run `flowpack unpack` first to create a modular project",
        )

    try:
        result = pack_project(project_dir)
    except WorkflowValidationError as e:
        typer.echo("Validation failed:", err=True)
        for err in e.errors:
            typer.echo(f"- {err}", err=True)
        _fail(str(e))
    except FlowpackError as e:
        _fail(f"pack failed: {e}")

    if result.warnings:
        typer.echo(f"{len(result.warnings)} file(s) skipped:", err=True)
        for w in result.warnings:
            typer.echo(f"- {w}", err=True)

    typer.echo(f"[ok] wrote {result.output_path}")
    typer.echo(f"- nodes: {result.node_count}")
    typer.echo(f"- connections: {result.connection_count}")
    typer.echo(f"- size: {round(result.size_bytes / 1024)} KB")


@app.command()
def unpack(
    document: str = typer.Argument(..., help="Workflow JSON file, or a workflow name under the workflows directory"),
    output: Optional[Path] = typer.Argument(None, help="Output project directory (required for a JSON file)"),
):
    """
    Split a workflow JSON document into a modular project directory.
    """
    try:
        document_path, output_dir = resolve_unpack_paths(document, str(output) if output else None)
    except ValueError as e:
        _fail(str(e), "usage: flowpack unpack <workflow.json> <output-directory>")

    if not document_path.is_file():
        _fail(
            f"workflow document does not exist: {document_path}",
            "pass a workflow name under the workflows directory, or a full path",
        )

    try:
        result = unpack_workflow(document_path, output_dir)
    except FlowpackError as e:
        _fail(f"unpack failed: {e}")

    typer.echo(f"[ok] unpacked {document_path} -> {result.output_dir}")
    typer.echo(f"- nodes: {result.node_count}")
    typer.echo(f"- connections: {result.flow_count}")
    typer.echo(f"- files: {len(result.files)}")


@app.command()
def validate(
    project: str = typer.Argument(..., help="Project directory, or a workflow name under the workflows directory"),
):
    """
    Check a modular project for structural problems without packing it.
    """
    project_dir = _existing_project(project)
    report = validate_project(project_dir)

    for key, value in report.stats.items():
        typer.echo(f"- {key}: {value}")

    if report.ok and not report.warnings:
        typer.echo("[ok] validation passed, no issues found")
        return

    if report.errors:
        typer.echo(f"\n{len(report.errors)} error(s):", err=True)
        for i, err in enumerate(report.errors, 1):
            typer.echo(f"{i}. {err}", err=True)

    if report.warnings:
        typer.echo(f"\n{len(report.warnings)} warning(s):", err=True)
        for i, w in enumerate(report.warnings, 1):
            typer.echo(f"{i}. {w}", err=True)

    if not report.ok:
        _fail("validation failed, fix the errors above and re-run")
    typer.echo("[ok] validation passed with warnings")


if __name__ == "__main__":
    app()

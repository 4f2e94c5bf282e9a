"""CLI presentation helpers for human and JSON output modes."""

from __future__ import annotations

import json
from typing import Any, Mapping

import click

from comicpack.domain.comic import ComicResult


class CliPresenter:
    """Render command outputs for human and machine-readable modes."""

    def __init__(self, *, json_output: bool, quiet: bool) -> None:
        """Store output-mode flags for rendering decisions."""
        self.json_output = json_output
        self.quiet = quiet

    @property
    def emits_human_output(self) -> bool:
        """Return whether human-readable output should be emitted."""
        return not self.json_output and not self.quiet

    def emit_intro(self, intro: str) -> None:
        """Emit a styled intro banner when human output is enabled."""
        if self.emits_human_output:
            click.echo(click.style(intro, fg="blue"))

    def emit_notice(self, message: str) -> None:
        """Emit one human-readable informational message."""
        if self.emits_human_output:
            click.echo(message)

    def emit_result(self, result: ComicResult) -> None:
        """Emit the assembled artifact in the current render mode."""
        if self.json_output:
            self.emit_json(
                {
                    "status": "ok",
                    "exit_code": 0,
                    "path": str(result.path),
                    "format": result.output_format.value,
                    "container": result.container,
                    "pages": result.pages,
                    "filtered_links": result.filtered_links,
                    "failed_pages": list(result.failed_pages),
                }
            )
            return

        if not self.emits_human_output:
            return

        click.echo(f"Wrote {result.path} ({result.pages} page(s), {result.skipped_pages} skipped)")
        if result.failed_pages:
            failed = " ".join(str(index) for index in result.failed_pages)
            click.echo(f"Failed page indices: {failed}")
        if result.container != result.output_format.value:
            click.echo(
                f"Note: {result.output_format.value} written as a {result.container} container"
            )

    def emit_error(self, exc: BaseException, exit_code: int) -> None:
        """Emit a failure in JSON mode, or an error line on stderr otherwise."""
        if self.json_output:
            self.emit_json(
                {
                    "status": "error",
                    "exit_code": exit_code,
                    "error": type(exc).__name__,
                    "message": str(exc),
                }
            )
            return
        click.echo(click.style(f"Error: {exc}", fg="red"), err=True)

    def emit_json(self, payload: Mapping[str, Any]) -> None:
        """Emit one machine-readable JSON object to stdout."""
        click.echo(json.dumps(payload, sort_keys=True))

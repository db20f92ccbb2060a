"""Console management with Rich integration.

This module provides a ConsoleManager that adapts output to:
- Rich-rendered live Markdown preview when attached to a TTY
- JSON lines for machine-readable consumers (``--json-output``)
- Plain text for non-TTY environments
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.live import Live
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from ..cache.translation_cache import CacheStats
from ..errors import TranslationError
from ..models.translation import HeadingInfo, TranslationOutcome, TranslationUpdate


class ConsoleManager:
    """Manages console output for the translation preview."""

    def __init__(
        self,
        verbose: bool = False,
        json_output: bool = False,
        console: Optional[Console] = None,
        output: Optional[Console] = None,
    ):
        self.verbose = verbose
        self.json_output = json_output
        # Status, logs and errors go to stderr; translations go to stdout
        self.console = console or Console(stderr=True)
        self.output = output or Console()
        self.is_tty = self.output.is_terminal
        self._live: Optional[Live] = None

    def setup_logging(self, logger: logging.Logger, level: Optional[int] = None) -> None:
        """Attach a Rich (or plain JSON-mode) handler to ``logger``.

        Sets the logger level to ``level``, or from ``verbose`` when no level
        is given. Safe to call repeatedly.
        """

        def _has_handler_of_type(h_type: type) -> bool:
            return any(isinstance(h, h_type) for h in logger.handlers)

        if self.json_output:
            if not _has_handler_of_type(logging.StreamHandler):
                handler = logging.StreamHandler(sys.stderr)
                handler.setFormatter(logging.Formatter("%(message)s"))
                logger.addHandler(handler)
        elif not _has_handler_of_type(RichHandler):
            handler = RichHandler(
                console=self.console,
                show_time=True,
                show_path=self.verbose,
                rich_tracebacks=True,
            )
            logger.addHandler(handler)
        if level is None:
            level = logging.DEBUG if self.verbose else logging.INFO
        logger.setLevel(level)

    # ------------------------------------------------------------------
    # Streaming preview
    # ------------------------------------------------------------------
    def render_update(self, update: TranslationUpdate) -> None:
        """Render a translation snapshot.

        In a TTY the snapshot replaces the previous one in a live view; in
        other environments only the final snapshot is printed.
        """
        if self.json_output:
            self._emit_json({"type": "update", **update.to_message()["payload"]}, sys.stdout)
            return

        if self.is_tty:
            renderable = Panel(
                Markdown(update.text),
                title="Translation (streaming...)" if update.is_streaming else "Translation",
                border_style="yellow" if update.is_streaming else "green",
            )
            if self._live is None:
                self._live = Live(renderable, console=self.output, refresh_per_second=8)
                self._live.start()
            else:
                self._live.update(renderable)
            if not update.is_streaming:
                self.stop_live()
        elif not update.is_streaming:
            self.output.print(update.text, markup=False, highlight=False)

    def stop_live(self) -> None:
        """Stop the live view if one is running."""
        if self._live is not None:
            self._live.stop()
            self._live = None

    def report_error(self, error: TranslationError) -> None:
        """Show a classified translation error."""
        self.stop_live()
        if self.json_output:
            self._emit_json({"type": "error", **error.to_dict()}, sys.stderr)
            return
        self.console.print(
            Panel(
                error.user_message,
                title=f"Translation failed ({error.kind.value})",
                subtitle="Retrying may succeed" if error.retriable else None,
                border_style="red",
            )
        )

    def print_outcome(self, outcome: TranslationOutcome) -> None:
        if self.json_output:
            self._emit_json({"type": "outcome", **outcome.to_dict()}, sys.stdout)
            return
        source = "cache" if outcome.from_cache else f"{outcome.chunk_count} chunks"
        self.console.print(
            f"[dim]Model {outcome.model}: {len(outcome.text or '')} chars from {source}[/dim]"
        )

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------
    def print_stats(self, stats: CacheStats, title: str = "Translation Cache") -> None:
        if self.json_output:
            self._emit_json({"type": "stats", **stats.to_dict()}, sys.stdout)
            return
        table = Table(title=title)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Entries", str(stats.entry_count))
        table.add_row("Total size (chars)", f"{stats.total_size:,}")
        self.output.print(table)

    def print_settings(self, settings: Dict[str, Any]) -> None:
        if self.json_output:
            self._emit_json({"type": "settings", "settings": settings}, sys.stdout)
            return
        table = Table(title="Translation Settings")
        table.add_column("Setting", style="cyan")
        table.add_column("Value")
        for name, value in settings.items():
            if isinstance(value, bool):
                shown = "[green]yes[/green]" if value else "[red]no[/red]"
            elif value in ("missing", "not set"):
                shown = f"[red]{value}[/red]"
            else:
                shown = str(value)
            table.add_row(name, shown)
        self.output.print(table)

    def print_headings(self, headings: List[HeadingInfo], document: str) -> None:
        if self.json_output:
            self._emit_json(
                {
                    "type": "headings",
                    "document": document,
                    "headings": [
                        {"line": h.line, "level": h.level, "title": h.title} for h in headings
                    ],
                },
                sys.stdout,
            )
            return
        table = Table(title=f"Translatable sections in {document}")
        table.add_column("Line", justify="right", style="cyan")
        table.add_column("Section")
        table.add_row("-", "[bold](whole document, no --section)[/bold]")
        for heading in headings:
            table.add_row(str(heading.line), f"{'#' * heading.level} {heading.title}")
        self.output.print(table)

    def print_message(self, message: str, status: str = "info") -> None:
        if self.json_output:
            self._emit_json({"type": status, "message": message}, sys.stderr)
            return
        color = {"info": "blue", "success": "green", "error": "red", "warning": "yellow"}.get(
            status, "white"
        )
        self.console.print(f"[{color}]{message}[/{color}]")

    def _emit_json(self, data: Dict[str, Any], stream: Any) -> None:
        data = {"timestamp": datetime.now().isoformat(), **data}
        print(json.dumps(data, ensure_ascii=False), file=stream)

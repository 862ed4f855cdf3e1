"""Progress rendering for TTY and CLI output separation with Rich."""

import os
import sys
from typing import Any, TextIO

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn


def is_tty() -> bool:
    """Check if stderr is a TTY (interactive terminal)."""
    return sys.stderr.isatty()


def is_ci() -> bool:
    """Check if running in CI environment."""
    ci_vars = ["CI", "CONTINUOUS_INTEGRATION", "GITHUB_ACTIONS", "JENKINS_URL"]
    return any(os.environ.get(var) for var in ci_vars)


def should_use_pretty() -> bool:
    """Determine if pretty output should be used based on TTY and CI detection."""
    return is_tty() and not is_ci()


class ProgressRenderer:
    """Banner, progress bar and summary for a corpus build."""

    def __init__(
        self,
        enabled: bool | None = None,
        file: TextIO | None = None,
        no_color: bool = False,
    ):
        """
        Initialize progress renderer.

        Args:
            enabled: Whether to show banner and progress bar. Auto-detected if None.
            file: Output file, defaults to stderr.
            no_color: Disable color output for Rich console.
        """
        self.enabled = enabled if enabled is not None else should_use_pretty()
        self.file = file or sys.stderr
        self.console = Console(
            file=self.file,
            color_system=None if no_color else "auto",
            force_terminal=self.enabled,
            highlight=False,
        )
        self._progress: Progress | None = None
        self._task: Any = None

    def start_banner(self, config: dict[str, Any], total_pages: int) -> None:
        if not self.enabled:
            return

        chunk = config.get("chunk", {})
        lines = [
            f"[bold]Base URL:[/bold] {config.get('baseUrl')}",
            f"[bold]URL style:[/bold] {config.get('urlStyle')}",
            f"[bold]Pages found:[/bold] {total_pages}",
            f"[bold]Tokens:[/bold] max={chunk.get('maxTokens')} min={chunk.get('minTokens')} "
            f"overlap_paragraphs={chunk.get('overlapParagraphs')}",
        ]
        self.console.print(
            Panel("\n".join(lines), title="[bold green]RAG corpus build[/bold green]", expand=False)
        )

    def start(self, total_pages: int) -> None:
        if not self.enabled:
            return
        self._progress = Progress(
            TextColumn("[bold blue]Pages"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        )
        self._progress.start()
        self._task = self._progress.add_task("pages", total=total_pages)

    def advance(self) -> None:
        if self._progress is not None:
            self._progress.advance(self._task)

    def stop(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None

    def summary(self, pages_ok: int, pages_skipped: int, total_pages: int, total_chunks: int, paths: list[str]) -> None:
        """Print the terminal summary line and the written artifacts.

        Always printed, even when the progress display is disabled.
        """
        self.console.print(
            f"RAG corpus built: pagesOk={pages_ok}, pagesSkipped={pages_skipped}, "
            f"totalPagesFound={total_pages}, totalChunks={total_chunks}",
            markup=False,
            soft_wrap=True,
        )
        for path in paths:
            self.console.print(f"Wrote: {path}", markup=False, soft_wrap=True)

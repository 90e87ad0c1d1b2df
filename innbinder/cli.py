"""
innbinder: scrape a web novel's table of contents into per-volume EPUB/PDF files.

Chapters are cached under chapters/ and recorded in chapters/manifest.json, so
later runs only fetch what is missing and --offline rebuilds need no network.

Usage:
    innbinder                                   # all volumes, EPUB
    innbinder https://example.com/toc/ 2        # volume 2 only
    innbinder --format pdf                      # PDF instead of EPUB
    innbinder --offline 3                       # rebuild volume 3 from cache
    innbinder --list                            # list volumes and exit

Exit codes:
    0  success (or no table of contents found)
    1  bad arguments or volume selector
    2  table of contents could not be fetched
    3  any other failure (missing manifest or cache file, output errors)
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from innbinder import acquire
from innbinder.cache import ChapterCache
from innbinder.client import InnClient
from innbinder.config import DEFAULT_TOC_URL, OUTPUT_FORMATS, ProjectPaths, locate_root
from innbinder.errors import InnBinderError, UserInputError
from innbinder.manifest import load_manifest
from innbinder.models import ChapterMap
from innbinder.parser import TocNotFound, disambiguate_key
from innbinder.utils import sanitize

console = Console()
log = logging.getLogger("innbinder.cli")


class _ArgumentParser(argparse.ArgumentParser):
    """argparse exits with status 2 on bad input; report it as a user error."""

    def error(self, message):
        raise UserInputError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="innbinder",
        description=__doc__.split("\n\n")[0].strip(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="\n\n".join(__doc__.split("\n\n")[2:]),
    )
    parser.add_argument(
        "url",
        nargs="?",
        help=f"Table of contents URL (default: {DEFAULT_TOC_URL})",
    )
    parser.add_argument(
        "volume",
        nargs="?",
        help="1-based volume number, or 'all' (default: all)",
    )
    parser.add_argument(
        "--format",
        default="epub",
        help="Output format: epub or pdf (default: epub)",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Rebuild from chapters/manifest.json without network access",
    )
    parser.add_argument(
        "--root",
        help="Project directory holding chapters/, volumes/ and assets/ "
        "(default: $INNBINDER_ROOT or the current directory)",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List volumes with their cached chapter counts and exit",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _looks_like_selector(token: str | None) -> bool:
    return bool(token) and (token.strip().isdigit() or token.strip().lower() == "all")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    args = build_parser().parse_args(argv)

    # `innbinder --offline 2`: a lone selector is the volume, not the URL
    if args.volume is None and _looks_like_selector(args.url):
        args.url, args.volume = None, args.url

    args.format = args.format.strip().lower()
    if args.format not in OUTPUT_FORMATS:
        raise UserInputError(
            f"Unknown format {args.format!r}. Valid formats: {', '.join(OUTPUT_FORMATS)}"
        )
    return args


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _progress() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}[/bold blue]"),
        BarColumn(bar_width=40),
        MofNCompleteColumn(),
        TextColumn("•"),
        TimeElapsedColumn(),
        console=console,
    )


class _VolumeTasks:
    """Progress callback that keeps one rich task per volume."""

    def __init__(self, progress: Progress, prefix: str):
        self.progress = progress
        self.prefix = prefix
        self._tasks: dict[str, int] = {}

    def for_volume(self, volume_key: str):
        def on_chapter(current, total):
            self(volume_key, current, total)
        return on_chapter

    def __call__(self, volume_key: str, current: int, total: int) -> None:
        task = self._tasks.get(volume_key)
        if task is None:
            task = self.progress.add_task(f"{self.prefix} {volume_key[:40]}", total=total)
            self._tasks[volume_key] = task
        self.progress.update(task, completed=current)


# ── Commands ─────────────────────────────────────────────────────────────────


def list_volumes(config: acquire.RunConfig) -> int:
    """Print the volumes a run would see, with how many chapters are cached."""
    paths = config.paths
    cache = ChapterCache(paths.chapters_dir)
    rows: list[tuple[str, int, int]] = []

    if config.offline:
        manifest = load_manifest(paths.manifest_path)
        for title, refs in manifest.volumes.items():
            cached = sum(1 for ref in refs if (paths.chapters_dir / ref.file_name).is_file())
            rows.append((title, len(refs), cached))
    else:
        with InnClient() as client:
            toc = acquire.scan_toc(client, config.toc_url or DEFAULT_TOC_URL)
        if isinstance(toc, TocNotFound):
            console.print(f"[yellow]{toc.reason}[/yellow]")
            return 0
        for title, links in toc.items():
            cached = sum(
                1 for i, link in enumerate(links, start=1)
                if cache.path_for(i, link.name).is_file()
            )
            rows.append((title, len(links), cached))

    table = Table(title="Volumes", show_header=True, header_style="bold")
    table.add_column("#", width=4, justify="right")
    table.add_column("Title", ratio=3)
    table.add_column("Chaps", width=7, justify="right")
    table.add_column("Cached", width=8, justify="right")
    for i, (title, total, cached) in enumerate(rows, start=1):
        style = "green" if cached == total else "yellow"
        table.add_row(str(i), title, str(total), f"[{style}]{cached}[/{style}]")
    console.print(table)
    return 0


def output_stems(titles) -> dict[str, str]:
    """Map each volume title to a distinct output file stem.

    Titles that sanitize to the same stem get the volume's position appended,
    the same rule the table-of-contents parser uses for duplicate titles.
    """
    stems: dict[str, str] = {}
    taken: dict[str, str] = {}
    for position, title in enumerate(titles, start=1):
        base = sanitize(title)
        stem = disambiguate_key(taken, base, position)
        if stem != base:
            log.warning(
                "Output name for %r collides with %r; writing %s",
                title, taken[base], stem,
            )
        taken[stem] = title
        stems[title] = stem
    return stems


def emit_volumes(
    chapter_map: ChapterMap,
    fmt: str,
    paths: ProjectPaths,
    progress: Progress | None = None,
) -> list[Path]:
    """Write one output file per volume.  No network, no cache access."""
    tasks = _VolumeTasks(progress, f"Writing {fmt.upper()}") if progress else None
    written: list[Path] = []
    stems = output_stems(chapter_map)

    if fmt == "epub":
        from innbinder.epub_builder import build_epub

        cover_bytes = paths.cover_path.read_bytes() if paths.cover_path.is_file() else None
        for title, chapters in chapter_map.items():
            out = paths.output_path(stems[title], "epub")
            log.info("Generating EPUB: %s", out.name)
            written.append(build_epub(
                title,
                chapters,
                out,
                cover_bytes=cover_bytes,
                progress_callback=tasks.for_volume(title) if tasks else None,
            ))
        return written

    # Playwright is only needed for PDF output
    from innbinder.pdf_builder import PdfRenderer, build_pdf

    with PdfRenderer() as renderer:
        for title, chapters in chapter_map.items():
            out = paths.output_path(stems[title], "pdf")
            log.info("Generating PDF: %s", out.name)
            written.append(build_pdf(
                title,
                chapters,
                out,
                renderer,
                progress_callback=tasks.for_volume(title) if tasks else None,
            ))
    return written


def print_summary(result: acquire.AcquisitionResult, written: list[Path]) -> None:
    stats = result.stats
    summary = (
        f"[green]{stats['fetched']}[/green] fetched  •  "
        f"[blue]{stats['cached']}[/blue] cached  •  "
        f"[red]{stats['failed']}[/red] failed  •  "
        f"[bold]{len(written)}[/bold] file(s) written"
    )
    console.print()
    console.print(
        Panel(summary, title="[bold cyan]innbinder[/bold cyan]", border_style="cyan")
    )
    for path in written:
        console.print(f"  [dim]{path}[/dim]")


def run(args: argparse.Namespace) -> int:
    config = acquire.RunConfig(
        root=locate_root(args.root),
        offline=args.offline,
        toc_url=args.url,
        volume=args.volume,
    )

    if args.list:
        return list_volumes(config)

    with _progress() as progress:
        result = acquire.run(config, progress_callback=_VolumeTasks(progress, "Chapters"))

    if result.notice is not None:
        console.print(f"[yellow]{result.notice}[/yellow]")
        return 0

    with _progress() as progress:
        written = emit_volumes(result.chapters, args.format, config.paths, progress)

    print_summary(result, written)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    try:
        args = parse_args(argv)
    except UserInputError as e:
        console.print(f"[red]{e}[/red]")
        return e.exit_code

    setup_logging(args.verbose)
    try:
        return run(args)
    except InnBinderError as e:
        log.error("%s", e)
        return e.exit_code
    except Exception as e:
        log.error("Error: %s", e)
        log.debug("Traceback", exc_info=True)
        return 3


if __name__ == "__main__":
    sys.exit(main())

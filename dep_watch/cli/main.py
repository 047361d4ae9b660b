"""Main CLI interface for DepWatch."""

import asyncio
import json
import logging
import time
from pathlib import Path
from typing import Optional, List
import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.panel import Panel
from rich.table import Table

from ..config import ScanConfig, AdvisorySource, load_sources
from ..utils.logging import setup_logging, get_logger
from ..utils.path_utils import find_dependency_files
from ..core.parsers import ManifestParser
from ..core.registry import AdvisoryRegistry
from ..core.scanner import DependencyScanner, Finding
from ..core.semver import Specifier
from ..advisories.online import AdvisoryFetcher
from ..advisories.offline import load_registry, registry_document
from ..output.formatters import ConsoleFormatter, JSONFormatter

app = typer.Typer(
    name="depwatch",
    help="Detect dependencies on package versions compromised in supply-chain attacks",
    add_completion=False
)

console = Console()
logger = get_logger("CLI")


def _build_config(sources_file: Optional[Path], max_depth: int = ScanConfig.max_depth) -> ScanConfig:
    """Build the scan configuration from CLI options."""
    if sources_file:
        return ScanConfig(max_depth=max_depth, sources=load_sources(sources_file))
    return ScanConfig(max_depth=max_depth)


async def _fetch_online(sources: List[AdvisorySource], config: ScanConfig) -> AdvisoryRegistry:
    """Fetch and merge every advisory source.

    Args:
        sources: Advisory sources
        config: Scan configuration

    Returns:
        Merged registry
    """
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True
    ) as progress:
        task = progress.add_task("Fetching advisories...", total=len(sources))

        async with AdvisoryFetcher(timeout=config.timeout, max_concurrent=config.max_concurrent) as fetcher:
            registry = await fetcher.fetch_all(sources)
            progress.update(task, completed=len(sources))

    return registry


def _load_advisories(advisories: Optional[List[Path]], config: ScanConfig) -> AdvisoryRegistry:
    """Load the registry from local files, or fetch it when none are given."""
    if advisories:
        console.print(f"Loading {len(advisories)} advisory file(s)...")
        return load_registry(advisories)

    console.print("Fetching compromised packages...")
    return asyncio.run(_fetch_online(config.sources, config))


@app.command()
def scan(
    path: Path = typer.Argument(
        Path("."),
        help="Project directory, or a single package.json / lock file"
    ),
    advisories: Optional[List[Path]] = typer.Option(
        None,
        "--advisories",
        "-a",
        help="Local advisory JSON file(s); skips fetching advisories online"
    ),
    sources_file: Optional[Path] = typer.Option(
        None,
        "--sources",
        help="JSON file listing advisory sources to fetch"
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file for JSON results"
    ),
    recursive: bool = typer.Option(
        True,
        "--recursive/--no-recursive",
        help="Search subdirectories for manifest files"
    ),
    max_depth: int = typer.Option(
        ScanConfig.max_depth,
        "--max-depth",
        help="Deepest lock file nesting level to check"
    ),
    fail: bool = typer.Option(
        False,
        "--fail",
        help="Exit with status 1 when compromised dependencies are found"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
    performance: bool = typer.Option(
        False,
        "--performance",
        help="Show performance summary"
    ),
    ignore_patterns: Optional[List[str]] = typer.Option(
        None,
        "--ignore",
        help="Additional ignore patterns"
    )
) -> None:
    """Scan a project for compromised dependencies."""
    setup_logging(level=logging.WARNING, verbose=verbose)

    try:
        if not path.exists():
            console.print(f"[red]Error: Path does not exist: {path}[/red]")
            raise typer.Exit(1)

        config = _build_config(sources_file, max_depth)
        registry = _load_advisories(advisories, config)
        snapshot = registry.snapshot()

        if not snapshot:
            console.print("[yellow]No compromised packages found in advisories. Exiting.[/yellow]")
            return

        dependency_files = find_dependency_files(path, ignore_patterns, recursive=recursive)
        if not dependency_files:
            console.print("[yellow]No package.json or lock files found[/yellow]")
            return

        scanner = DependencyScanner.from_config(config)
        findings: List[Finding] = []
        total_dependencies = 0
        start_time = time.perf_counter()

        for dep_file in dependency_files:
            try:
                parsed = ManifestParser.parse_file(dep_file.path)
            except (OSError, ValueError) as e:
                console.print(f"  ✗ {dep_file.path}: {e}")
                continue
            if parsed is None:
                continue

            file_findings = scanner.scan_parsed(parsed, snapshot)
            findings.extend(file_findings)
            total_dependencies += parsed.dependency_count
            console.print(f"  ✓ Scanned {dep_file.path} ({parsed.dependency_count} dependencies)")

        scan_time = time.perf_counter() - start_time

        formatter = ConsoleFormatter(console)
        formatter.format_scan_results(findings, total_dependencies, scan_time)
        formatter.format_advisory_summary(snapshot)

        if output:
            json_formatter = JSONFormatter(output)
            results = json_formatter.format_scan_results(
                findings=findings,
                total_dependencies=total_dependencies,
                scan_time=scan_time,
                snapshot=snapshot,
                metadata={"files": [str(dep_file.path) for dep_file in dependency_files]}
            )
            json_formatter.save_results(results)

        if performance:
            scanner.performance_monitor.print_summary()

    except typer.Exit:
        raise
    except Exception as e:
        logger.error(f"Scan failed: {e}")
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if fail and findings:
        raise typer.Exit(1)


@app.command()
def fetch(
    output: Path = typer.Option(
        Path("compromised-packages.json"),
        "--output",
        "-o",
        help="File to write the merged advisory registry to"
    ),
    sources_file: Optional[Path] = typer.Option(
        None,
        "--sources",
        help="JSON file listing advisory sources to fetch"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    )
) -> None:
    """Fetch advisories and save the merged registry for offline scans."""
    setup_logging(level=logging.WARNING, verbose=verbose)

    try:
        config = _build_config(sources_file)
        registry = asyncio.run(_fetch_online(config.sources, config))
        snapshot = registry.snapshot()

        with open(output, 'w', encoding='utf-8') as f:
            json.dump(registry_document(snapshot, config.sources), f, indent=2, ensure_ascii=False)

    except Exception as e:
        logger.error(f"Fetch failed: {e}")
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    ConsoleFormatter(console).format_advisory_summary(snapshot)
    console.print(f"[green]Advisory registry saved to: {output}[/green]")


@app.command()
def check(
    specifier: str = typer.Argument(..., help="Declared version specifier, e.g. '~4.1.0'"),
    version: str = typer.Argument(..., help="Concrete version to test, e.g. '4.1.1'")
) -> None:
    """Show how a specifier is classified and whether it matches a version."""
    parsed = Specifier.parse(specifier)

    kinds = [branch.kind.value for branch in parsed.alternatives] or [parsed.kind.value]
    console.print(f"Specifier: {specifier}")
    console.print(f"Grammar: {' || '.join(kinds)}")

    if parsed.matches(version):
        console.print(f"[red]MATCH: {specifier} can resolve to {version}[/red]")
    else:
        console.print(f"[green]NO MATCH: {specifier} cannot resolve to {version}[/green]")


@app.command()
def sources(
    sources_file: Optional[Path] = typer.Option(
        None,
        "--sources",
        help="JSON file listing advisory sources"
    )
) -> None:
    """List the advisory sources that will be fetched."""
    try:
        config = _build_config(sources_file)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title="Advisory Sources")
    table.add_column("Type", style="cyan", no_wrap=True)
    table.add_column("URL", style="white")

    for source in config.sources:
        table.add_row(source.type, source.url)

    console.print(table)


@app.command()
def info() -> None:
    """Show DepWatch information."""
    console.print(Panel.fit(
        "[bold blue]DepWatch[/bold blue]\n"
        "Detects dependencies on package versions known to be\n"
        "compromised in supply-chain attacks",
        title="Information"
    ))

    ecosystems = ManifestParser.get_supported_ecosystems()
    console.print(f"\n[bold]Supported Ecosystems:[/bold] {', '.join(ecosystems)}")

    file_names = ManifestParser.get_supported_file_names()
    console.print(f"[bold]Supported Files:[/bold] {', '.join(file_names)}")


def main() -> None:
    """Main entry point for DepWatch CLI."""
    app()


if __name__ == "__main__":
    main()

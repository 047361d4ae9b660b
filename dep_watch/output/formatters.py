"""Output formatters for DepWatch results."""

import json
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Any

from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from ..core.registry import RegistrySnapshot
from ..core.scanner import Finding
from ..utils.logging import get_logger


class ConsoleFormatter:
    """Rich console formatter for DepWatch output."""

    EXAMPLE_COUNT = 5

    def __init__(self, console: Optional[Console] = None) -> None:
        """Initialize the console formatter.

        Args:
            console: Rich console instance
        """
        self.console = console or Console()
        self.logger = get_logger("ConsoleFormatter")

    def format_scan_results(
        self,
        findings: List[Finding],
        total_dependencies: int,
        scan_time: float
    ) -> None:
        """Format and display scan results.

        Args:
            findings: Findings in scan order
            total_dependencies: Total number of declarations scanned
            scan_time: Time taken for scan in seconds
        """
        self.console.print(self._create_summary_panel(findings, total_dependencies, scan_time))

        if not findings:
            self.console.print(Panel("No compromised packages detected in your project.", style="green"))
            return

        self.console.print(self._create_findings_table(findings))

    def _create_summary_panel(
        self,
        findings: List[Finding],
        total_dependencies: int,
        scan_time: float
    ) -> Panel:
        """Create summary panel.

        Args:
            findings: Findings in scan order
            total_dependencies: Total declarations scanned
            scan_time: Scan time in seconds

        Returns:
            Rich panel with summary
        """
        affected_packages = len(set(finding.package for finding in findings))

        if findings:
            style = "red"
            title = f"Detected {len(findings)} compromised dependencies!"
        else:
            style = "green"
            title = "No compromised dependencies"

        content = (
            f"Dependencies scanned: {total_dependencies}\n"
            f"Compromised packages: {affected_packages}\n"
            f"Findings: {len(findings)}\n"
            f"Scan time: {scan_time:.2f}s"
        )

        return Panel(content, title=title, style=style)

    def _create_findings_table(self, findings: List[Finding]) -> Table:
        """Create findings table.

        Args:
            findings: Findings in scan order

        Returns:
            Rich table with one row per finding
        """
        table = Table(title="Compromised Dependencies")

        table.add_column("Package", style="cyan", no_wrap=True)
        table.add_column("Version", style="red")
        table.add_column("Section", style="yellow")
        table.add_column("Source", style="white")

        for finding in findings:
            source = finding.source or "-"
            if finding.path:
                source = f"{source} (via {' > '.join(finding.path)})"
            table.add_row(finding.package, finding.display_version, finding.section, source)

        return table

    def format_advisory_summary(self, snapshot: RegistrySnapshot) -> None:
        """Display the size of the advisory database and a few examples.

        Args:
            snapshot: Registry snapshot
        """
        lines = [f"Total compromised packages: {len(snapshot)}"]
        lines.append(f"Total compromised versions: {sum(len(v) for v in snapshot.values())}")

        examples = list(snapshot.items())[:self.EXAMPLE_COUNT]
        if examples:
            lines.append("Examples of compromised packages:")
            for package, versions in examples:
                lines.append(f"  * {package} ({len(versions)} versions)")

        self.console.print(Panel("\n".join(lines), title="Advisory database summary", style="blue"))

    def format_error(self, error: str, details: Optional[str] = None) -> None:
        """Format and display error message.

        Args:
            error: Error message
            details: Optional error details
        """
        content = f"[bold red]Error:[/bold red] {error}"
        if details:
            content += f"\n\n[dim]{details}[/dim]"

        self.console.print(Panel(content, style="red"))


class JSONFormatter:
    """JSON formatter for DepWatch output."""

    def __init__(self, output_file: Optional[Path] = None) -> None:
        """Initialize the JSON formatter.

        Args:
            output_file: Optional output file path
        """
        self.output_file = output_file
        self.logger = get_logger("JSONFormatter")

    def format_scan_results(
        self,
        findings: List[Finding],
        total_dependencies: int,
        scan_time: float,
        snapshot: Optional[RegistrySnapshot] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Format scan results as JSON.

        Args:
            findings: Findings in scan order
            total_dependencies: Total declarations scanned
            scan_time: Scan time in seconds
            snapshot: Registry snapshot the scan ran against
            metadata: Optional additional metadata

        Returns:
            Formatted JSON data
        """
        result: Dict[str, Any] = {
            "scan_summary": {
                "total_dependencies": total_dependencies,
                "compromised_packages": len(set(finding.package for finding in findings)),
                "total_findings": len(findings),
                "scan_time_seconds": scan_time,
                "timestamp": datetime.now().isoformat()
            },
            "findings": [finding.to_dict() for finding in findings]
        }

        if snapshot is not None:
            result["advisories"] = {
                "total_packages": len(snapshot),
                "total_versions": sum(len(versions) for versions in snapshot.values()),
            }

        if metadata:
            result["metadata"] = metadata

        return result

    def save_results(
        self,
        results: Dict[str, Any],
        output_file: Optional[Path] = None
    ) -> None:
        """Save results to JSON file.

        Args:
            results: Results dictionary
            output_file: Output file path (uses instance default if None)
        """
        file_path = output_file or self.output_file
        if not file_path:
            raise ValueError("No output file specified")

        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                json.dump(results, f, indent=2, ensure_ascii=False)

            self.logger.info(f"Results saved to {file_path}")
        except IOError as e:
            self.logger.error(f"Failed to save results to {file_path}: {e}")
            raise

"""DepWatch - detect dependencies on package versions compromised in supply-chain attacks."""

__version__ = "0.1.0"

from .core.registry import AdvisoryRegistry
from .core.scanner import DependencyScanner, Finding
from .core.semver import matches, parse_version
from .core.parsers import ManifestParser
from .advisories.online import AdvisoryFetcher
from .output.formatters import ConsoleFormatter, JSONFormatter

__all__ = [
    "AdvisoryRegistry",
    "DependencyScanner",
    "Finding",
    "matches",
    "parse_version",
    "ManifestParser",
    "AdvisoryFetcher",
    "ConsoleFormatter",
    "JSONFormatter",
]

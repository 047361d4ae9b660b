"""Core version matching, advisory merging and scanning logic for DepWatch."""

from .semver import Version, Specifier, SpecifierKind, VersionParseError, classify, matches, parse_version
from .registry import AdvisoryRegistry
from .scanner import DependencyScanner, Finding
from .parsers import ManifestParser, ParsedManifest

__all__ = [
    "Version",
    "Specifier",
    "SpecifierKind",
    "VersionParseError",
    "classify",
    "matches",
    "parse_version",
    "AdvisoryRegistry",
    "DependencyScanner",
    "Finding",
    "ManifestParser",
    "ParsedManifest",
]

"""Configuration for DepWatch scans and advisory sources."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

# Manifest sections checked by the scanner, in reporting order
DEPENDENCY_SECTIONS: Tuple[str, ...] = (
    "dependencies",
    "devDependencies",
    "peerDependencies",
    "optionalDependencies",
    "bundleDependencies",
    "bundledDependencies",
)

LOCK_SECTION = "package-lock"
YARN_SECTION = "yarn.lock"

DEFAULT_MAX_DEPTH = 64
DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_CONCURRENT = 6

ADVISORY_TYPES = ("generic", "stepsecurity", "ox", "wiz")


@dataclass
class AdvisorySource:
    """A web page listing compromised packages, and the layout used to read it."""

    url: str
    type: str = "generic"

    def __post_init__(self) -> None:
        """Validate the source."""
        if not self.url:
            raise ValueError("Advisory source URL cannot be empty")
        self.type = (self.type or "generic").lower()

    def to_dict(self) -> dict:
        return {"url": self.url, "type": self.type}


DEFAULT_SOURCES: Tuple[AdvisorySource, ...] = (
    AdvisorySource(
        "https://jfrog.com/blog/shai-hulud-npm-supply-chain-attack-new-compromised-packages-detected/",
        "generic",
    ),
    AdvisorySource(
        "https://semgrep.dev/blog/2025/security-advisory-npm-packages-using-secret-scanning-tools-to-steal-credentials/",
        "generic",
    ),
    AdvisorySource(
        "https://socket.dev/blog/tinycolor-supply-chain-attack-affects-40-packages",
        "generic",
    ),
    AdvisorySource(
        "https://www.ox.security/blog/npm-2-0-hack-40-npm-packages-hit-in-major-supply-chain-attack/",
        "ox",
    ),
    AdvisorySource(
        "https://www.wiz.io/blog/shai-hulud-npm-supply-chain-attack",
        "wiz",
    ),
    AdvisorySource(
        "https://www.stepsecurity.io/blog/ctrl-tinycolor-and-40-npm-packages-compromised",
        "stepsecurity",
    ),
)


@dataclass
class ScanConfig:
    """Configuration for a scan run."""

    sections: Tuple[str, ...] = DEPENDENCY_SECTIONS
    max_depth: int = DEFAULT_MAX_DEPTH
    timeout: float = DEFAULT_TIMEOUT
    max_concurrent: int = DEFAULT_MAX_CONCURRENT
    sources: List[AdvisorySource] = field(default_factory=lambda: list(DEFAULT_SOURCES))

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.max_depth <= 0:
            raise ValueError("max_depth must be positive")
        if self.max_concurrent <= 0:
            raise ValueError("max_concurrent must be positive")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        self.sections = tuple(self.sections)


def load_sources(path: Path) -> List[AdvisorySource]:
    """Load advisory sources from a JSON file.

    The file holds a list of objects with a ``url`` and an optional
    ``type`` key, for example ``[{"url": "https://...", "type": "wiz"}]``.

    Args:
        path: Path to the JSON file

    Returns:
        List of advisory sources

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file doesn't contain a list of source objects
    """
    if not path.exists():
        raise FileNotFoundError(f"Sources file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError(f"Sources file must contain a JSON list: {path}")

    sources = []
    for entry in data:
        if not isinstance(entry, dict):
            raise ValueError(f"Invalid advisory source entry: {entry!r}")
        sources.append(AdvisorySource(url=entry.get("url", ""), type=entry.get("type", "generic")))

    return sources

"""Base parser class and data models for manifest parsing."""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple


@dataclass
class ParsedManifest:
    """Dependency declarations read from one manifest or lock file.

    Which fields are filled depends on ``kind``:

    * ``manifest``: ``sections`` maps section name to package -> specifier
    * ``lock``: ``lock_tree`` holds the nested ``dependencies`` tree, or
      ``resolved`` holds flat (name, version) pairs for newer lockfiles
    * ``resolved``: ``resolved`` holds flat (name, version) pairs
    """

    kind: str
    source_file: Optional[Path] = None
    ecosystem: str = "nodejs"
    parser_type: str = ""
    sections: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    lock_tree: Optional[Dict[str, Any]] = None
    resolved: List[Tuple[str, str]] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate the manifest kind."""
        if self.kind not in ("manifest", "lock", "resolved"):
            raise ValueError(f"Unknown manifest kind: {self.kind}")

    @property
    def dependency_count(self) -> int:
        """Number of declarations or resolved nodes in this file."""
        count = sum(len(entries) for entries in self.sections.values())
        count += len(self.resolved)
        if self.lock_tree is not None:
            count += count_tree_nodes(self.lock_tree)
        return count


def count_tree_nodes(root: Mapping[str, Any]) -> int:
    """Count the nodes of a nested ``dependencies`` tree.

    Args:
        root: Tree root holding a ``dependencies`` mapping

    Returns:
        Number of dependency nodes at every depth
    """
    count = 0
    pending = [root]
    while pending:
        node = pending.pop()
        children = node.get("dependencies") if isinstance(node, Mapping) else None
        if isinstance(children, Mapping):
            count += len(children)
            pending.extend(children.values())
    return count


class BaseParser(ABC):
    """Abstract base class for manifest file parsers."""

    def __init__(self) -> None:
        """Initialize the parser."""
        self.file_names: List[str] = []
        self.ecosystem: str = "nodejs"
        self.parser_type: str = ""

    def can_parse(self, file_path: Path) -> bool:
        """Check if this parser can handle the given file.

        Args:
            file_path: Path to the file to check

        Returns:
            True if parser can handle the file
        """
        return file_path.name in self.file_names

    @abstractmethod
    def parse(self, file_path: Path) -> ParsedManifest:
        """Parse a manifest file.

        Args:
            file_path: Path to the file to parse

        Returns:
            Parsed declarations from the file
        """

    def validate_file(self, file_path: Path) -> None:
        """Validate that the file exists and is readable.

        Args:
            file_path: Path to validate

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If the path is not a regular file
            PermissionError: If file is not readable
        """
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        if not file_path.is_file():
            raise ValueError(f"Path is not a file: {file_path}")

        if not os.access(file_path, os.R_OK):
            raise PermissionError(f"File is not readable: {file_path}")

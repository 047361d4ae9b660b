"""Path utilities for finding manifest files and filtering paths."""

import fnmatch
from pathlib import Path
from typing import List, Iterator, Optional
from dataclasses import dataclass


@dataclass
class DependencyFile:
    """Represents a manifest or lock file with metadata."""

    path: Path
    ecosystem: str
    parser_type: str

    def __post_init__(self) -> None:
        """Validate the dependency file."""
        if not self.path.exists():
            raise ValueError(f"Dependency file does not exist: {self.path}")


class PathFilter:
    """Filters paths based on patterns and rules."""

    DEFAULT_IGNORE_PATTERNS = [
        "**/node_modules/**",
        "**/.git/**",
        "**/.yarn/**",
        "**/.pnpm-store/**",
        "**/dist/**",
        "**/build/**",
        "**/coverage/**",
        "**/.next/**",
    ]

    def __init__(self, ignore_patterns: Optional[List[str]] = None) -> None:
        """Initialize path filter.

        Args:
            ignore_patterns: Glob patterns to ignore on top of the defaults
        """
        self.ignore_patterns = self.DEFAULT_IGNORE_PATTERNS + list(ignore_patterns or [])

    def is_ignored(self, path: Path) -> bool:
        """Check if a path should be ignored.

        Args:
            path: Path to check, relative to the scan root

        Returns:
            True if path should be ignored
        """
        path_str = "/" + path.as_posix().lstrip("/")

        for pattern in self.ignore_patterns:
            if fnmatch.fnmatch(path_str, pattern):
                return True

        return False


class DependencyFileFinder:
    """Finds manifest and lock files in a project directory."""

    DEPENDENCY_PATTERNS = {
        "package.json": ("nodejs", "package"),
        "package-lock.json": ("nodejs", "lock"),
        "npm-shrinkwrap.json": ("nodejs", "lock"),
        "yarn.lock": ("nodejs", "yarn"),
    }

    def __init__(self, ignore_patterns: Optional[List[str]] = None, recursive: bool = True) -> None:
        """Initialize dependency file finder.

        Args:
            ignore_patterns: Additional ignore patterns
            recursive: Search subdirectories as well as the root
        """
        self.path_filter = PathFilter(ignore_patterns)
        self.recursive = recursive

    def find_dependency_files(self, root_path: Path) -> List[DependencyFile]:
        """Find all manifest files under a directory.

        A path to a single supported file is returned as-is.

        Args:
            root_path: Root directory to search, or a single file

        Returns:
            List of found dependency files
        """
        if not root_path.exists():
            raise ValueError(f"Root path does not exist: {root_path}")

        candidates = [root_path] if root_path.is_file() else self._walk_files(root_path)

        dependency_files = []
        for file_path in candidates:
            file_type = self.DEPENDENCY_PATTERNS.get(file_path.name)
            if file_type is None:
                continue
            ecosystem, parser_type = file_type
            dependency_files.append(DependencyFile(
                path=file_path,
                ecosystem=ecosystem,
                parser_type=parser_type
            ))

        # Directory by directory, manifest before lock files
        order = list(self.DEPENDENCY_PATTERNS)
        return sorted(
            dependency_files,
            key=lambda dep_file: (dep_file.path.parent.as_posix(), order.index(dep_file.path.name))
        )

    def _walk_files(self, root_path: Path) -> Iterator[Path]:
        """Walk through files in directory tree.

        Args:
            root_path: Root directory to walk

        Yields:
            File paths that are not ignored
        """
        paths = root_path.rglob("*") if self.recursive else root_path.iterdir()
        for file_path in paths:
            if file_path.is_file() and not self.path_filter.is_ignored(file_path.relative_to(root_path)):
                yield file_path


def find_dependency_files(
    root_path: Path,
    ignore_patterns: Optional[List[str]] = None,
    recursive: bool = True
) -> List[DependencyFile]:
    """Convenience function to find dependency files.

    Args:
        root_path: Root directory to search
        ignore_patterns: Additional ignore patterns
        recursive: Search subdirectories as well as the root

    Returns:
        List of found dependency files
    """
    finder = DependencyFileFinder(ignore_patterns, recursive=recursive)
    return finder.find_dependency_files(root_path)

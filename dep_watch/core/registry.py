"""Registry of compromised packages merged from advisory sources."""

import threading
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Set, Tuple

from ..utils.logging import get_logger
from .semver import version_sort_key

# package name -> versions reported by one advisory
Fragment = Mapping[str, Iterable[str]]
# package name -> ordered, de-duplicated compromised versions
RegistrySnapshot = Mapping[str, Tuple[str, ...]]


class AdvisoryRegistry:
    """Accumulates compromised package versions from many advisories.

    Merging is a set union per package, so it is idempotent and order
    independent. Versions are de-duplicated by exact string identity:
    ``"4.1.1"`` and ``"4.1.1.0"`` are separate entries. All merges go
    through one lock, which makes the registry safe to feed from several
    fetch workers.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self.logger = get_logger("AdvisoryRegistry")
        self._entries: Dict[str, Set[str]] = {}
        self._lock = threading.Lock()
        self._fragments_merged = 0

    def merge(self, fragment: Fragment) -> int:
        """Union an advisory fragment into the registry.

        Empty package names, empty version strings, version values that
        are not a list and packages without any version are dropped.

        Args:
            fragment: Mapping of package name to reported versions

        Returns:
            Number of versions that were not already known
        """
        added = 0

        with self._lock:
            for package, versions in fragment.items():
                if not isinstance(package, str) or not package.strip():
                    self.logger.debug(f"Dropping advisory entry with invalid package name: {package!r}")
                    continue

                if isinstance(versions, str):
                    versions = [versions]
                elif not isinstance(versions, (list, tuple, set, frozenset)):
                    self.logger.debug(f"Dropping advisory entry {package}: versions are not a list ({versions!r})")
                    continue

                incoming = {version for version in versions if isinstance(version, str) and version}
                if not incoming:
                    continue

                known = self._entries.setdefault(package, set())
                added += len(incoming - known)
                known.update(incoming)

            self._fragments_merged += 1

        return added

    def merge_all(self, fragments: Iterable[Fragment]) -> int:
        """Merge several fragments in sequence.

        Args:
            fragments: Advisory fragments

        Returns:
            Number of versions that were not already known
        """
        return sum(self.merge(fragment) for fragment in fragments)

    def snapshot(self) -> RegistrySnapshot:
        """Materialize the registry for scanning.

        Packages are ordered by name and each version list by numeric
        version, then text, so output is reproducible whatever order the
        advisories arrived in.

        Returns:
            Read-only mapping of package name to a tuple of versions
        """
        with self._lock:
            ordered = {
                package: tuple(sorted(self._entries[package], key=version_sort_key))
                for package in sorted(self._entries)
            }
        return MappingProxyType(ordered)

    @property
    def fragments_merged(self) -> int:
        """Number of fragments merged so far, including empty ones."""
        return self._fragments_merged

    @property
    def version_count(self) -> int:
        """Total number of compromised versions across all packages."""
        with self._lock:
            return sum(len(versions) for versions in self._entries.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, package: object) -> bool:
        with self._lock:
            return package in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())

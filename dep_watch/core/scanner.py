"""Cross-referencing of project dependencies against compromised packages."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..config import DEFAULT_MAX_DEPTH, DEPENDENCY_SECTIONS, LOCK_SECTION, YARN_SECTION, ScanConfig
from ..utils.logging import get_logger
from ..utils.performance import PerformanceMonitor, benchmark
from .parsers.base import ParsedManifest
from .registry import RegistrySnapshot
from .semver import Specifier, SpecifierKind, version_sort_key


@dataclass(frozen=True)
class Finding:
    """A dependency declaration that could resolve to a compromised version."""

    package: str
    version: str
    section: str
    matched_version: Optional[str] = None
    source: Optional[str] = None
    path: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_exact(self) -> bool:
        """True when the declared text is itself a compromised version."""
        return self.matched_version is None

    @property
    def display_version(self) -> str:
        """Declared text, annotated with the compromised version a range matched."""
        if self.matched_version is None:
            return self.version
        return f"{self.version} (matches {self.matched_version})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "package": self.package,
            "version": self.version,
            "matched_version": self.matched_version,
            "section": self.section,
            "source": self.source,
            "path": list(self.path),
        }


class DependencyScanner:
    """Checks manifests and lock trees against a registry snapshot."""

    def __init__(
        self,
        sections: Sequence[str] = DEPENDENCY_SECTIONS,
        max_depth: int = DEFAULT_MAX_DEPTH,
        enable_performance_monitoring: bool = False
    ) -> None:
        """Initialize the scanner.

        Args:
            sections: Manifest sections to check, in reporting order
            max_depth: Deepest lock tree level that is still visited
            enable_performance_monitoring: Track memory as well as timing
        """
        if max_depth <= 0:
            raise ValueError("max_depth must be positive")

        self.sections = tuple(sections)
        self.max_depth = max_depth
        self.logger = get_logger("DependencyScanner")
        self.performance_monitor = PerformanceMonitor(enable_performance_monitoring)

    @classmethod
    def from_config(cls, config: ScanConfig, **kwargs: Any) -> "DependencyScanner":
        """Build a scanner from a scan configuration."""
        return cls(sections=config.sections, max_depth=config.max_depth, **kwargs)

    def match_declaration(
        self,
        specifier: str,
        compromised: Sequence[str]
    ) -> Optional[Tuple[str, bool]]:
        """Find the compromised version a declaration could resolve to.

        A literal hit wins. Otherwise versions are tried newest first, the
        way a package manager resolves a range to its highest satisfying
        release, and the first one the range accepts is returned.

        Args:
            specifier: Declared specifier or resolved version
            compromised: Known-compromised versions of the package

        Returns:
            (compromised version, exact hit) or None if nothing matches
        """
        if specifier in compromised:
            return specifier, True

        parsed = Specifier.parse(specifier)
        if parsed.kind is SpecifierKind.EXACT and not parsed.alternatives:
            return None

        for candidate in sorted(compromised, key=version_sort_key, reverse=True):
            if parsed.matches(candidate):
                return candidate, False

        return None

    def _check(
        self,
        package: str,
        declared: Any,
        registry: RegistrySnapshot,
        section: str,
        source: Optional[str],
        path: Tuple[str, ...] = ()
    ) -> Optional[Finding]:
        compromised = registry.get(package)
        if not compromised:
            return None

        if not isinstance(declared, str):
            self.logger.debug(f"Skipping {package} in {section}: version is not a string ({declared!r})")
            return None

        hit = self.match_declaration(declared, compromised)
        if hit is None:
            return None

        matched, exact = hit
        self.logger.debug(f"MATCH: {package} {declared} -> {matched} ({section})")
        return Finding(
            package=package,
            version=declared,
            section=section,
            matched_version=None if exact else matched,
            source=source,
            path=path,
        )

    @benchmark
    def scan_manifest(
        self,
        sections: Mapping[str, Any],
        registry: RegistrySnapshot,
        source: Optional[str] = None
    ) -> List[Finding]:
        """Check every declaration of a manifest.

        At most one finding is produced per (package, section).

        Args:
            sections: Section name -> (package -> specifier); a whole
                package.json object is accepted as well
            registry: Registry snapshot
            source: Label of the file the sections came from

        Returns:
            Findings in section order, then declaration order
        """
        findings: List[Finding] = []
        if not registry:
            return findings

        with self.performance_monitor.measure("scan_manifest"):
            for section in self.sections:
                declarations = sections.get(section)
                if declarations is None:
                    continue
                if not isinstance(declarations, Mapping):
                    self.logger.debug(f"Skipping section {section}: not a mapping")
                    continue

                for package, specifier in declarations.items():
                    finding = self._check(package, specifier, registry, section, source)
                    if finding:
                        findings.append(finding)

        return findings

    @benchmark
    def scan_lock_tree(
        self,
        root: Mapping[str, Any],
        registry: RegistrySnapshot,
        source: Optional[str] = None,
        section: str = LOCK_SECTION
    ) -> List[Finding]:
        """Check every resolved node of a nested lock tree.

        The tree is walked depth-first with an explicit stack, so findings
        come out in the order the nodes appear in the file. A node without
        a resolved version is not matched, but its children still are.

        Args:
            root: Object holding a ``dependencies`` mapping of name -> node,
                where each node may have ``version`` and ``dependencies``
            registry: Registry snapshot
            source: Label of the file the tree came from
            section: Label recorded on findings

        Returns:
            Findings in depth-first order
        """
        findings: List[Finding] = []
        if not registry or not isinstance(root, Mapping):
            return findings

        children = root.get("dependencies")
        if not isinstance(children, Mapping):
            return findings

        skipped = 0
        with self.performance_monitor.measure("scan_lock_tree"):
            stack = [(name, node, 1, ()) for name, node in children.items()]
            stack.reverse()

            while stack:
                name, node, depth, parents = stack.pop()

                if depth > self.max_depth:
                    skipped += 1
                    continue

                if not isinstance(node, Mapping):
                    self.logger.debug(f"Skipping malformed lock entry {name}")
                    continue

                version = node.get("version")
                if version is None:
                    self.logger.debug(f"Lock entry {name} has no version, checking its dependencies only")
                else:
                    finding = self._check(name, version, registry, section, source, parents)
                    if finding:
                        findings.append(finding)

                nested = node.get("dependencies")
                if isinstance(nested, Mapping):
                    path = parents + (name,)
                    stack.extend(
                        reversed([(child, child_node, depth + 1, path) for child, child_node in nested.items()])
                    )

        if skipped:
            self.logger.warning(f"Lock tree deeper than {self.max_depth} levels, skipped {skipped} entries")

        return findings

    def scan_resolved(
        self,
        entries: Iterable[Tuple[str, str]],
        registry: RegistrySnapshot,
        section: str,
        source: Optional[str] = None
    ) -> List[Finding]:
        """Check flat (name, resolved version) pairs.

        Args:
            entries: Resolved name/version pairs
            registry: Registry snapshot
            section: Label recorded on findings
            source: Label of the file the entries came from

        Returns:
            Findings in entry order
        """
        findings: List[Finding] = []
        if not registry:
            return findings

        with self.performance_monitor.measure("scan_resolved"):
            for name, version in entries:
                finding = self._check(name, version, registry, section, source)
                if finding:
                    findings.append(finding)

        return findings

    def scan_parsed(self, parsed: ParsedManifest, registry: RegistrySnapshot) -> List[Finding]:
        """Check whatever a parser read from one file.

        Args:
            parsed: Parsed manifest, lock file or yarn.lock
            registry: Registry snapshot

        Returns:
            Findings for that file
        """
        source = str(parsed.source_file) if parsed.source_file else None

        if parsed.kind == "manifest":
            return self.scan_manifest(parsed.sections, registry, source=source)

        findings: List[Finding] = []
        if parsed.lock_tree is not None:
            findings.extend(self.scan_lock_tree(parsed.lock_tree, registry, source=source))

        section = YARN_SECTION if parsed.parser_type == "yarn" else LOCK_SECTION
        findings.extend(self.scan_resolved(parsed.resolved, registry, section, source=source))
        return findings

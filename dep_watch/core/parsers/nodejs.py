"""Node.js manifest and lock file parsers."""

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ...config import DEPENDENCY_SECTIONS
from ...utils.logging import get_logger
from .base import BaseParser, ParsedManifest

logger = get_logger("NodeJSParsers")

# yarn v1 writes `version "1.2.3"`, yarn berry writes `version: 1.2.3`
_YARN_VERSION_LINE = re.compile(r'^version:?\s+"?([^"\s]+)"?\s*$')


def _load_json_object(file_path: Path) -> Dict[str, Any]:
    with open(file_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {file_path}")
    return data


class NodeJSPackageParser(BaseParser):
    """Parser for Node.js package.json files."""

    def __init__(self) -> None:
        """Initialize the package.json parser."""
        super().__init__()
        self.parser_type = "package"
        self.file_names = ["package.json"]

    def parse(self, file_path: Path) -> ParsedManifest:
        """Parse a package.json file.

        Args:
            file_path: Path to the package.json file

        Returns:
            Manifest with one entry per dependency section present
        """
        self.validate_file(file_path)
        data = _load_json_object(file_path)

        return ParsedManifest(
            kind="manifest",
            source_file=file_path,
            parser_type=self.parser_type,
            sections=self._extract_sections(data),
            metadata={"name": data.get("name"), "version": data.get("version")},
        )

    def _extract_sections(self, data: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
        """Extract dependency sections from package.json data.

        ``bundledDependencies`` is normally a list of names whose versions
        live in ``dependencies``; only mapping sections carry specifiers.

        Args:
            data: Parsed JSON data

        Returns:
            Mapping of section name to package -> specifier
        """
        sections = {}

        for section_name in DEPENDENCY_SECTIONS:
            section = data.get(section_name)
            if section is None:
                continue
            if isinstance(section, dict):
                sections[section_name] = dict(section)
            else:
                logger.debug(f"Skipping non-mapping section {section_name}")

        return sections


class NodeJSLockParser(BaseParser):
    """Parser for package-lock.json and npm-shrinkwrap.json files."""

    def __init__(self) -> None:
        """Initialize the lock file parser."""
        super().__init__()
        self.parser_type = "lock"
        self.file_names = ["package-lock.json", "npm-shrinkwrap.json"]

    def parse(self, file_path: Path) -> ParsedManifest:
        """Parse an npm lock file.

        Lockfile v1 and v2 carry a nested ``dependencies`` tree, which is
        preferred. Lockfile v3 only has the flat ``packages`` map keyed by
        install path, which is flattened to (name, version) pairs.

        Args:
            file_path: Path to the lock file

        Returns:
            Lock manifest
        """
        self.validate_file(file_path)
        data = _load_json_object(file_path)

        result = ParsedManifest(
            kind="lock",
            source_file=file_path,
            parser_type=self.parser_type,
            metadata={"lockfileVersion": data.get("lockfileVersion")},
        )

        if isinstance(data.get("dependencies"), dict):
            result.lock_tree = {"dependencies": data["dependencies"]}
        elif isinstance(data.get("packages"), dict):
            result.resolved = self._flatten_packages(data["packages"])

        return result

    def _flatten_packages(self, packages: Dict[str, Any]) -> List[Tuple[str, str]]:
        """Turn a lockfile ``packages`` map into (name, version) pairs.

        Args:
            packages: Mapping of install path to package metadata

        Returns:
            Resolved name/version pairs, root project excluded
        """
        resolved = []

        for install_path, meta in packages.items():
            # "" is the root project itself
            if not install_path or not isinstance(meta, dict):
                continue

            version = meta.get("version")
            if not isinstance(version, str):
                continue

            name = meta.get("name") or install_path.rsplit("node_modules/", 1)[-1]
            resolved.append((name, version))

        return resolved


class NodeJSYarnParser(BaseParser):
    """Parser for Node.js yarn.lock files."""

    def __init__(self) -> None:
        """Initialize the yarn.lock parser."""
        super().__init__()
        self.parser_type = "yarn"
        self.file_names = ["yarn.lock"]

    def parse(self, file_path: Path) -> ParsedManifest:
        """Parse a yarn.lock file.

        Args:
            file_path: Path to the yarn.lock file

        Returns:
            Manifest of resolved versions
        """
        self.validate_file(file_path)

        with open(file_path, 'r', encoding='utf-8') as f:
            content = f.read()

        return ParsedManifest(
            kind="resolved",
            source_file=file_path,
            parser_type=self.parser_type,
            resolved=self._parse_yarn_lock(content),
        )

    def _parse_yarn_lock(self, content: str) -> List[Tuple[str, str]]:
        """Parse yarn.lock content.

        Args:
            content: Yarn lock file content

        Returns:
            Unique (name, resolved version) pairs in file order
        """
        entries: Dict[Tuple[str, str], None] = {}
        current: Optional[str] = None

        for raw_line in content.splitlines():
            stripped = raw_line.strip()
            if not stripped or stripped.startswith("#"):
                continue

            # Entry headers are the only unindented lines
            if not raw_line[0].isspace():
                current = self._parse_header(stripped)
                continue

            if current is None:
                continue

            match = _YARN_VERSION_LINE.match(stripped)
            if match:
                entries[(current, match.group(1))] = None
                current = None

        return list(entries)

    def _parse_header(self, header: str) -> Optional[str]:
        """Extract the package name from an entry header.

        Headers look like ``lodash@^4.17.19:`` or
        ``"@babel/core@^7.0.0", "@babel/core@^7.1.0":``.

        Args:
            header: Unindented header line

        Returns:
            Package name or None if the line is not a package entry
        """
        selector = header.rstrip(":").split(",")[0].strip().strip('"')
        at = selector.rfind("@")
        # "@scope/name" alone has its only "@" at position 0
        if at <= 0:
            return None
        return selector[:at]

"""Local advisory files for offline scanning."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..config import AdvisorySource
from ..core.registry import AdvisoryRegistry, RegistrySnapshot
from ..utils.logging import get_logger

logger = get_logger("AdvisoryFile")


def load_advisory_file(path: Path) -> Dict[str, List[str]]:
    """Load a fragment from a local JSON file.

    Two layouts are accepted: a plain ``{"package": ["1.0.0", ...]}``
    object, or the document written by ``depwatch fetch`` where that
    object sits under a ``packages`` key.

    Args:
        path: Path to the JSON file

    Returns:
        Package name -> versions

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file has neither layout
    """
    if not path.exists():
        raise FileNotFoundError(f"Advisory file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if isinstance(data, dict) and isinstance(data.get("packages"), dict):
        data = data["packages"]

    if not isinstance(data, dict):
        raise ValueError(f"Advisory file must contain a JSON object: {path}")

    fragment: Dict[str, List[str]] = {}
    for package, versions in data.items():
        if isinstance(versions, str):
            versions = [versions]
        if not isinstance(versions, list):
            raise ValueError(f"Versions of {package} must be a list in {path}")
        fragment[package] = [version for version in versions if isinstance(version, str)]

    logger.info(f"Loaded {len(fragment)} packages from {path}")
    return fragment


def load_registry(paths: Sequence[Path], registry: Optional[AdvisoryRegistry] = None) -> AdvisoryRegistry:
    """Merge one or more advisory files into a registry.

    Args:
        paths: Advisory files
        registry: Registry to merge into, a new one if None

    Returns:
        Registry holding every file's entries
    """
    registry = registry if registry is not None else AdvisoryRegistry()
    registry.merge_all(load_advisory_file(path) for path in paths)
    return registry


def registry_document(
    snapshot: RegistrySnapshot,
    sources: Sequence[AdvisorySource] = ()
) -> Dict[str, Any]:
    """Build the JSON document ``load_advisory_file`` reads back.

    Args:
        snapshot: Registry snapshot
        sources: Sources the snapshot was built from

    Returns:
        Serializable document
    """
    return {
        "generated_at": datetime.now().isoformat(),
        "sources": [source.to_dict() for source in sources],
        "packages": {package: list(versions) for package, versions in snapshot.items()},
    }

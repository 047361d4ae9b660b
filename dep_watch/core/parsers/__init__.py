"""Manifest and lock file parsers."""

from .base import BaseParser, ParsedManifest
from .nodejs import NodeJSPackageParser, NodeJSLockParser, NodeJSYarnParser
from .registry import ParserRegistry

# Register built-in parsers
registry = ParserRegistry()

registry.register("nodejs", "package", NodeJSPackageParser())
registry.register("nodejs", "lock", NodeJSLockParser())
registry.register("nodejs", "yarn", NodeJSYarnParser())

# Convenience exports
ManifestParser = registry
__all__ = [
    "BaseParser",
    "ParsedManifest",
    "ManifestParser",
    "ParserRegistry",
    "registry",
]

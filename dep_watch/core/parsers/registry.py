"""Plugin registry system for manifest parsers."""

from typing import Dict, List, Optional
from pathlib import Path
from .base import BaseParser, ParsedManifest


class ParserRegistry:
    """Registry for manifest file parsers with plugin support."""

    def __init__(self) -> None:
        """Initialize the parser registry."""
        self._parsers: Dict[tuple[str, str], BaseParser] = {}
        self._ecosystem_parsers: Dict[str, List[BaseParser]] = {}

    def register(self, ecosystem: str, parser_type: str, parser: BaseParser) -> None:
        """Register a parser for an ecosystem and type.

        Args:
            ecosystem: Ecosystem name (e.g., 'nodejs')
            parser_type: Parser type (e.g., 'package', 'lock')
            parser: Parser instance to register
        """
        key = (ecosystem, parser_type)
        self._parsers[key] = parser

        # Update ecosystem index
        if ecosystem not in self._ecosystem_parsers:
            self._ecosystem_parsers[ecosystem] = []
        self._ecosystem_parsers[ecosystem].append(parser)

    def get_parser(self, ecosystem: str, parser_type: str) -> Optional[BaseParser]:
        """Get a parser for the specified ecosystem and type.

        Args:
            ecosystem: Ecosystem name
            parser_type: Parser type

        Returns:
            Parser instance or None if not found
        """
        return self._parsers.get((ecosystem, parser_type))

    def find_parser_for_file(self, file_path: Path) -> Optional[BaseParser]:
        """Find a parser that can handle the given file.

        Args:
            file_path: Path to the file

        Returns:
            Parser that can handle the file or None
        """
        for parser in self._parsers.values():
            if parser.can_parse(file_path):
                return parser
        return None

    def get_supported_ecosystems(self) -> List[str]:
        """Get list of supported ecosystems."""
        return list(self._ecosystem_parsers.keys())

    def get_supported_parser_types(self) -> List[str]:
        """Get list of supported parser types."""
        return sorted(set(parser_type for _, parser_type in self._parsers.keys()))

    def get_supported_file_names(self) -> List[str]:
        """Get every file name some registered parser accepts."""
        names: List[str] = []
        for parser in self._parsers.values():
            names.extend(name for name in parser.file_names if name not in names)
        return names

    def parse_file(self, file_path: Path) -> Optional[ParsedManifest]:
        """Parse a file using the appropriate parser.

        Args:
            file_path: Path to the file to parse

        Returns:
            Parsed manifest or None if no parser found
        """
        parser = self.find_parser_for_file(file_path)
        if parser:
            return parser.parse(file_path)
        return None

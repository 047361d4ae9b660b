"""Extraction of compromised package versions from advisory pages.

Each advisory publishes its package list in a different layout. Every
extractor takes the raw HTML of one page and returns a fragment mapping
package name to the set of versions that page reports.
"""

import html
import re
from typing import Callable, Dict, Iterable, Set

from ..utils.logging import get_logger

logger = get_logger("AdvisoryExtractors")

Extractor = Callable[[str], Dict[str, Set[str]]]

_TAG = re.compile(r"<[^>]+>")
_TRIPLE = re.compile(r"\d+\.\d+\.\d+")
_VERSION = re.compile(r"\d+\.\d+\.\d+(?:[-+][0-9A-Za-z.]+)?")
_PACKAGE_NAME = re.compile(r"(@?[A-Za-z0-9_.\-]+(?:/[A-Za-z0-9_.\-]+)?)")
_PACKAGE_AT_VERSION = re.compile(
    r"(@?[A-Za-z0-9_.\-]+(?:/[A-Za-z0-9_.\-]+)?)@(\d+\.\d+\.\d+(?:[-+][0-9A-Za-z.]+)?)"
)

_STEPSECURITY_ROW = re.compile(
    r'<td[^>]*class="package-name"[^>]*>(.*?)</td>\s*<td[^>]*class="versions"[^>]*>(.*?)</td>',
    re.DOTALL,
)
_OX_TABLE = re.compile(
    r'<table[^>]*class="[^"]*has-fixed-layout[^"]*"[^>]*>(.*?)</table>',
    re.IGNORECASE | re.DOTALL,
)
_TABLE_ROW = re.compile(r"<tr[^>]*>(.*?)</tr>", re.IGNORECASE | re.DOTALL)
_TABLE_CELL = re.compile(r"<t[dh][^>]*>(.*?)</t[dh]>", re.IGNORECASE | re.DOTALL)
_WIZ_ITEM = re.compile(
    r'<li>\s*<p[^>]*class="my-0"[^>]*>(.*?)</p>\s*</li>',
    re.IGNORECASE | re.DOTALL,
)


def strip_html(text: str) -> str:
    """Remove tags and decode entities.

    Args:
        text: HTML fragment

    Returns:
        Plain text
    """
    return html.unescape(_TAG.sub("", text))


def _add(packages: Dict[str, Set[str]], name: str, versions: Iterable[str]) -> None:
    versions = [version.strip() for version in versions if version.strip()]
    if name and versions:
        packages.setdefault(name, set()).update(versions)


def extract_stepsecurity(page: str) -> Dict[str, Set[str]]:
    """Read ``package-name`` / ``versions`` table cells.

    Args:
        page: Advisory HTML

    Returns:
        Package name -> versions
    """
    packages: Dict[str, Set[str]] = {}

    for name_cell, versions_cell in _STEPSECURITY_ROW.findall(page):
        name = strip_html(name_cell).strip()
        _add(packages, name, _TRIPLE.findall(strip_html(versions_cell)))

    return packages


def extract_ox(page: str) -> Dict[str, Set[str]]:
    """Read the first fixed-layout table: package in column one, versions in column two.

    Args:
        page: Advisory HTML

    Returns:
        Package name -> versions
    """
    packages: Dict[str, Set[str]] = {}

    table = _OX_TABLE.search(page)
    if not table:
        return packages

    for row in _TABLE_ROW.findall(table.group(1)):
        cells = _TABLE_CELL.findall(row)
        if len(cells) < 2:
            continue

        name = strip_html(cells[0]).strip()
        if name.lower() == "package":
            continue

        _add(packages, name, _TRIPLE.findall(strip_html(cells[1])))

    return packages


def extract_wiz(page: str) -> Dict[str, Set[str]]:
    """Read ``<li><p class="my-0">`` items such as ``pkg (1.0.1, 1.0.2)``.

    Args:
        page: Advisory HTML

    Returns:
        Package name -> versions
    """
    packages: Dict[str, Set[str]] = {}

    for item in _WIZ_ITEM.findall(page):
        text = strip_html(item).strip()
        if not text:
            continue

        name = _PACKAGE_NAME.search(text)
        if not name:
            continue

        # Versions are searched after the name so digits in it are not read
        _add(packages, name.group(1), _VERSION.findall(text, name.end()))

    return packages


def extract_generic(page: str) -> Dict[str, Set[str]]:
    """Read every ``name@X.Y.Z`` mention in the page text.

    Args:
        page: Advisory HTML or plain text

    Returns:
        Package name -> versions
    """
    packages: Dict[str, Set[str]] = {}

    for name, version in _PACKAGE_AT_VERSION.findall(page):
        _add(packages, name, [version])

    return packages


EXTRACTORS: Dict[str, Extractor] = {
    "generic": extract_generic,
    "stepsecurity": extract_stepsecurity,
    "ox": extract_ox,
    "wiz": extract_wiz,
}


def get_extractor(source_type: str) -> Extractor:
    """Get the extractor for an advisory layout.

    Args:
        source_type: Layout name of the advisory source

    Returns:
        Matching extractor, or the generic one for unknown layouts
    """
    extractor = EXTRACTORS.get(source_type.lower())
    if extractor is None:
        logger.warning(f"Unknown source type: {source_type}, trying generic parser")
        return extract_generic
    return extractor

"""Version parsing and npm-style range matching for DepWatch.

Only the subset of semantic versioning needed to decide whether a known
version *could* fall inside a declared range is implemented. Pre-release
tags and build metadata are discarded, and anything that cannot be read
reliably falls back to substring containment so that uncertain cases are
reported rather than missed.
"""

import operator
import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from ..utils.logging import get_logger

logger = get_logger("RangeMatcher")

_DIGITS = re.compile(r"[0-9]+")
_SUFFIX = re.compile(r"[-+]")
_RANGE_CHARACTERS = frozenset("^~><=*xX")
_FREE_COMPONENTS = frozenset(("x", "X", "*"))
_WILDCARD_SUFFIXES = (".x", ".X", ".*")
_SPACED_OPERATOR = re.compile(r"([<>]=?)\s+")

# Longest operators first so ">=" is not read as ">"
_COMPARATORS: Tuple[Tuple[str, Callable[[Any, Any], bool]], ...] = (
    (">=", operator.ge),
    ("<=", operator.le),
    (">", operator.gt),
    ("<", operator.lt),
)


class VersionParseError(ValueError):
    """Raised when a version string carries no usable numeric signal."""


@dataclass(frozen=True, order=True)
class Version:
    """A (major, minor, patch) triple, ordered component-wise."""

    major: int = 0
    minor: int = 0
    patch: int = 0

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.major, self.minor, self.patch)


class SpecifierKind(Enum):
    """Grammar a declared version specifier is written in."""

    EXACT = "exact"
    TILDE = "tilde"
    CARET = "caret"
    WILDCARD = "wildcard"
    HYPHEN_RANGE = "hyphen-range"
    COMPARATOR_CHAIN = "comparator-chain"
    UNRECOGNIZED = "unrecognized"


def _to_int(part: str) -> Optional[int]:
    part = part.strip()
    if _DIGITS.fullmatch(part):
        return int(part)
    return None


def _components(text: str) -> List[Optional[int]]:
    core = _SUFFIX.split(text, maxsplit=1)[0]
    return [_to_int(part) for part in core.split(".")[:3]]


def parse_version(text: str) -> Version:
    """Parse a dotted version string leniently.

    Everything from the first ``-`` or ``+`` is discarded, and missing or
    non-numeric components become 0, so ``"1.2.3-beta.1"`` gives
    ``Version(1, 2, 3)`` and ``"banana"`` gives ``Version(0, 0, 0)``.

    Args:
        text: Version string

    Returns:
        Parsed version, never raising for string input
    """
    numbers = [number if number is not None else 0 for number in _components(text)]
    numbers.extend([0] * (3 - len(numbers)))
    return Version(*numbers)


def parse_strict(text: str) -> Version:
    """Parse a version that is about to be compared against a range.

    Args:
        text: Version string

    Returns:
        Parsed version

    Raises:
        VersionParseError: If the major component is not numeric
    """
    components = _components(text)
    if components[0] is None:
        raise VersionParseError(f"No numeric version in {text!r}")
    return parse_version(text)


@lru_cache(maxsize=4096)
def classify(specifier: str) -> SpecifierKind:
    """Decide which range grammar a specifier uses.

    The checks run in a fixed order because one string can textually fit
    several grammars (``"~1.2.x"`` is a tilde range, not a wildcard).

    Args:
        specifier: Specifier string as declared in a manifest

    Returns:
        Specifier kind
    """
    text = specifier.strip()

    if " - " not in text and not any(char in _RANGE_CHARACTERS for char in text):
        return SpecifierKind.EXACT
    if text.startswith("~"):
        return SpecifierKind.TILDE
    if text.startswith("^"):
        return SpecifierKind.CARET
    if text.endswith(_WILDCARD_SUFFIXES) or text in _FREE_COMPONENTS:
        return SpecifierKind.WILDCARD
    if " - " in text:
        return SpecifierKind.HYPHEN_RANGE
    if any(op in text for op, _ in _COMPARATORS):
        return SpecifierKind.COMPARATOR_CHAIN
    return SpecifierKind.UNRECOGNIZED


def _operand(text: str) -> str:
    """Strip whitespace, a leading ``=`` and a leading ``v`` from a range operand."""
    text = text.strip().lstrip("=").strip()
    if text[:1] in ("v", "V"):
        text = text[1:]
    return text


def _contains(specifier: Any, candidate: Any) -> bool:
    if not isinstance(specifier, str) or not isinstance(candidate, str) or not candidate:
        return False
    return candidate in specifier


def _match_tilde(text: str, candidate: str) -> bool:
    base = parse_strict(_operand(text[1:]))
    version = parse_strict(candidate)
    return (
        version.major == base.major
        and version.minor == base.minor
        and version.patch >= base.patch
    )


def _match_caret(text: str, candidate: str) -> bool:
    base = parse_strict(_operand(text[1:]))
    version = parse_strict(candidate)
    if base.major == 0:
        # 0.x releases treat every minor bump as breaking
        return (
            version.major == 0
            and version.minor == base.minor
            and version.patch >= base.patch
        )
    return version.major == base.major and (version.minor, version.patch) >= (base.minor, base.patch)


def _match_wildcard(text: str, candidate: str) -> bool:
    actual = parse_strict(candidate).as_tuple()
    for index, part in enumerate(_operand(text).split(".")[:3]):
        if part.strip() in _FREE_COMPONENTS:
            return True
        number = _to_int(part)
        if number is None:
            raise VersionParseError(f"Invalid wildcard component {part!r} in {text!r}")
        if number != actual[index]:
            return False
    return True


def _match_hyphen(text: str, candidate: str) -> bool:
    lower_text, upper_text = text.split(" - ", 1)
    lower = parse_strict(_operand(lower_text))
    upper = parse_strict(_operand(upper_text))
    return lower <= parse_strict(candidate) <= upper


def _match_comparators(text: str, candidate: str) -> bool:
    version = parse_strict(candidate)
    # ">= 1.0.0" is one clause, not an operator and a stray version
    for token in _SPACED_OPERATOR.sub(r"\1", text).split():
        for prefix, compare in _COMPARATORS:
            if token.startswith(prefix):
                if not compare(version, parse_strict(_operand(token[len(prefix):]))):
                    return False
                break
    return True


_RANGE_MATCHERS: Dict[SpecifierKind, Callable[[str, str], bool]] = {
    SpecifierKind.TILDE: _match_tilde,
    SpecifierKind.CARET: _match_caret,
    SpecifierKind.WILDCARD: _match_wildcard,
    SpecifierKind.HYPHEN_RANGE: _match_hyphen,
    SpecifierKind.COMPARATOR_CHAIN: _match_comparators,
}


@dataclass(frozen=True)
class Specifier:
    """A declared specifier together with its classification.

    ``alternatives`` holds the branches of a ``||`` union; each branch is
    classified on its own and the union matches when any branch does.
    """

    raw: str
    kind: SpecifierKind
    alternatives: Tuple["Specifier", ...] = ()

    @classmethod
    def parse(cls, raw: str) -> "Specifier":
        """Classify a raw specifier string.

        Args:
            raw: Specifier as declared

        Returns:
            Classified specifier
        """
        if "||" in raw:
            branches = tuple(cls.parse(part.strip()) for part in raw.split("||") if part.strip())
            return cls(raw=raw, kind=classify(raw), alternatives=branches)
        return cls(raw=raw, kind=classify(raw))

    def matches(self, candidate: str) -> bool:
        """Check whether a concrete version satisfies this specifier.

        Args:
            candidate: Concrete version text

        Returns:
            True if the candidate could be selected by this specifier
        """
        if self.alternatives:
            return any(branch.matches(candidate) for branch in self.alternatives)

        if self.kind is SpecifierKind.EXACT:
            return self.raw == candidate

        range_matcher = _RANGE_MATCHERS.get(self.kind)
        if range_matcher is None:
            return _contains(self.raw, candidate)

        try:
            return range_matcher(self.raw.strip(), candidate)
        except (ValueError, TypeError, AttributeError, IndexError) as e:
            logger.debug(f"Falling back to substring match for {self.raw!r} against {candidate!r}: {e}")
            return _contains(self.raw, candidate)


def matches(specifier: Union[str, Specifier], candidate: str) -> bool:
    """Decide whether ``candidate`` could be selected by ``specifier``.

    This is a pure predicate and never raises: malformed input degrades
    to substring containment of the candidate inside the specifier.

    Args:
        specifier: Declared specifier, raw or already classified
        candidate: Concrete (known-compromised) version text

    Returns:
        True if the specifier could resolve to the candidate
    """
    if isinstance(specifier, Specifier):
        return specifier.matches(candidate)

    try:
        parsed = Specifier.parse(specifier)
    except (TypeError, AttributeError) as e:
        logger.debug(f"Unreadable specifier {specifier!r}: {e}")
        return _contains(specifier, candidate)
    return parsed.matches(candidate)


def version_sort_key(text: str) -> Tuple[Version, str]:
    """Sort key ordering version strings numerically, then textually."""
    return (parse_version(text), text)

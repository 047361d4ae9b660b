"""Tests for version parsing and range matching."""

import pytest

from dep_watch.core.semver import (
    Specifier,
    SpecifierKind,
    Version,
    VersionParseError,
    classify,
    matches,
    parse_strict,
    parse_version,
)


class TestParseVersion:
    """Test lenient version parsing."""

    def test_parse_full_version(self):
        """Test parsing a plain major.minor.patch version."""
        assert parse_version("4.1.1") == Version(4, 1, 1)

    def test_parse_discards_prerelease_and_build(self):
        """Test that suffixes after '-' or '+' are ignored."""
        assert parse_version("1.2.3-beta.1") == Version(1, 2, 3)
        assert parse_version("1.2.3+build.7") == Version(1, 2, 3)

    def test_parse_missing_components_default_to_zero(self):
        """Test partial versions."""
        assert parse_version("1.2") == Version(1, 2, 0)
        assert parse_version("7") == Version(7, 0, 0)

    def test_parse_truncates_extra_components(self):
        """Test that only three components are read."""
        assert parse_version("4.1.1.0") == Version(4, 1, 1)

    def test_parse_non_numeric_components(self):
        """Test that non-numeric components become zero."""
        assert parse_version("1.x.3") == Version(1, 0, 3)
        assert parse_version("banana") == Version(0, 0, 0)
        assert parse_version("") == Version(0, 0, 0)

    def test_version_ordering(self):
        """Test component-wise ordering."""
        assert Version(1, 2, 3) < Version(1, 10, 0)
        assert Version(2, 0, 0) > Version(1, 99, 99)
        assert str(Version(1, 2, 3)) == "1.2.3"

    def test_parse_strict_rejects_unreadable_versions(self):
        """Test that strict parsing refuses versions without a numeric major."""
        with pytest.raises(VersionParseError):
            parse_strict("latest")
        assert parse_strict("0.0.0") == Version(0, 0, 0)


class TestClassify:
    """Test specifier classification."""

    @pytest.mark.parametrize("specifier", ["1.2.3", "4.1.1.0", "10", "0.0.1"])
    def test_digits_and_dots_are_exact(self, specifier):
        """Test that plain versions are always exact."""
        assert classify(specifier) is SpecifierKind.EXACT

    @pytest.mark.parametrize("specifier,kind", [
        ("~1.2.3", SpecifierKind.TILDE),
        ("^1.2.3", SpecifierKind.CARET),
        ("~1.2.x", SpecifierKind.TILDE),
        ("1.2.x", SpecifierKind.WILDCARD),
        ("1.x", SpecifierKind.WILDCARD),
        ("1.2.*", SpecifierKind.WILDCARD),
        ("*", SpecifierKind.WILDCARD),
        ("1.0.0 - 2.0.0", SpecifierKind.HYPHEN_RANGE),
        (">=1.0.0 <2.0.0", SpecifierKind.COMPARATOR_CHAIN),
        ("<3", SpecifierKind.COMPARATOR_CHAIN),
        ("=1.2.3", SpecifierKind.UNRECOGNIZED),
        ("next", SpecifierKind.UNRECOGNIZED),
    ])
    def test_classification_order(self, specifier, kind):
        """Test that each grammar is detected in priority order."""
        assert classify(specifier) is kind

    def test_non_semver_identifier_is_exact(self):
        """Test that identifiers without range characters are exact."""
        assert classify("latest") is SpecifierKind.EXACT

    def test_specifier_parse_keeps_raw_text(self):
        """Test the classified value object."""
        parsed = Specifier.parse("^1.2.3")
        assert parsed.raw == "^1.2.3"
        assert parsed.kind is SpecifierKind.CARET
        assert parsed.alternatives == ()


class TestMatchesExact:
    """Test exact specifiers."""

    def test_exact_requires_identical_text(self):
        """Test literal comparison."""
        assert matches("4.1.1", "4.1.1")
        assert not matches("4.1.1", "4.1.2")
        assert not matches("4.1.1.0", "4.1.1")

    def test_exact_non_semver_identifier(self):
        """Test that non-semver identifiers pass through safely."""
        assert matches("latest", "latest")
        assert not matches("latest", "1.0.0")


class TestMatchesTilde:
    """Test tilde ranges."""

    def test_tilde_allows_patch_drift(self):
        assert matches("~1.2.3", "1.2.3")
        assert matches("~1.2.3", "1.2.9")

    def test_tilde_rejects_minor_drift(self):
        assert not matches("~1.2.3", "1.3.0")

    def test_tilde_rejects_lower_patch(self):
        assert not matches("~1.2.3", "1.2.2")


class TestMatchesCaret:
    """Test caret ranges."""

    def test_caret_allows_minor_and_patch_drift(self):
        assert matches("^1.2.3", "1.2.3")
        assert matches("^1.2.3", "1.9.9")
        assert matches("^1.2.3", "1.3.0")

    def test_caret_rejects_major_bump(self):
        assert not matches("^1.2.3", "2.0.0")

    def test_caret_rejects_lower_version(self):
        assert not matches("^1.2.3", "1.2.2")
        assert not matches("^1.2.3", "1.1.9")

    def test_caret_zero_major_behaves_like_tilde(self):
        """Test that 0.x caret ranges do not cross a minor bump."""
        assert matches("^0.2.3", "0.2.9")
        assert not matches("^0.2.3", "0.3.0")
        assert not matches("^0.2.3", "1.2.3")

    def test_caret_zero_zero_allows_patch_drift(self):
        assert matches("^0.0.3", "0.0.9")
        assert not matches("^0.0.3", "0.0.2")


class TestMatchesWildcard:
    """Test wildcard ranges."""

    def test_patch_wildcard(self):
        assert matches("1.2.x", "1.2.9")
        assert not matches("1.2.x", "1.3.0")

    def test_minor_wildcard(self):
        assert matches("1.x", "1.9.0")
        assert not matches("1.x", "2.0.0")

    def test_star_variant(self):
        assert matches("1.2.*", "1.2.0")
        assert matches("*", "4.1.1")

    def test_any_version_forms(self):
        """Test the uppercase and bare forms npm reads as any version."""
        assert classify("1.2.X") is SpecifierKind.WILDCARD
        assert matches("1.2.X", "1.2.7")
        assert not matches("1.2.X", "1.3.0")
        for free in ("*", "x", "X"):
            assert classify(free) is SpecifierKind.WILDCARD
            assert matches(free, "0.0.1")


class TestMatchesHyphenRange:
    """Test inclusive hyphen ranges."""

    @pytest.mark.parametrize("lower,middle,upper", [
        ("1.0.0", "1.5.0", "2.0.0"),
        ("1.0.0", "1.0.0", "2.0.0"),
        ("1.0.0", "2.0.0", "2.0.0"),
        ("0.9.9", "0.10.0", "1.0.0"),
    ])
    def test_inside_range(self, lower, middle, upper):
        """Test that both ends are inclusive."""
        assert matches(f"{lower} - {upper}", middle)

    def test_outside_range(self):
        assert not matches("1.0.0 - 2.0.0", "0.9.9")
        assert not matches("1.0.0 - 2.0.0", "2.0.1")

    def test_partial_upper_bound_reads_missing_parts_as_zero(self):
        assert matches("1.0.0 - 2.0", "2.0.0")
        assert not matches("1.0.0 - 2.0", "2.0.5")


class TestMatchesComparatorChain:
    """Test comparator chains."""

    def test_chain_is_conjunctive(self):
        assert matches(">=1.0.0 <2.0.0", "1.5.0")
        assert not matches(">=1.0.0 <2.0.0", "2.0.0")
        assert not matches(">=1.0.0 <2.0.0", "0.9.0")

    def test_single_comparators(self):
        assert matches(">4.1.0", "4.1.1")
        assert not matches(">4.1.1", "4.1.1")
        assert matches("<=4.1.1", "4.1.1")

    def test_operator_separated_by_space(self):
        """Test that '>= 1.0.0' is read as one clause."""
        assert matches(">= 1.0.0 < 2.0.0", "1.2.0")
        assert not matches(">= 1.0.0 < 2.0.0", "2.1.0")

    def test_unknown_tokens_are_ignored(self):
        assert matches(">=1.0.0 foo", "1.0.1")


class TestMatchesFallback:
    """Test the substring fallback."""

    def test_unrecognized_uses_containment(self):
        assert matches("=4.1.1", "4.1.1")
        assert not matches("=4.1.1", "4.1.2")

    def test_unparsable_candidate_falls_back(self):
        """Test that a non-numeric candidate never raises."""
        assert not matches("^1.2.3", "latest")
        assert matches("~v1.2.3", "1.2.4")

    def test_invalid_inputs_never_raise(self):
        assert not matches(None, "1.0.0")
        assert not matches("^1.0.0", None)
        assert not matches("^1.0.0", "")

    def test_alternatives_match_any_branch(self):
        """Test '||' unions."""
        assert matches("1.0.0 || ^2.1.0", "2.3.0")
        assert matches("1.0.0 || ^2.1.0", "1.0.0")
        assert not matches("1.0.0 || ^2.1.0", "3.0.0")

    def test_specifier_object_reuse(self):
        """Test that a classified specifier can be reused across candidates."""
        parsed = Specifier.parse("~4.1.0")
        assert [parsed.matches(v) for v in ("4.1.0", "4.1.1", "4.2.0")] == [True, True, False]

"""Tests for constraint and package name parsing."""

import pytest

from elmsolve.errors import ConstraintParseError, PackageNameError
from elmsolve.versioning import (
    PackageName,
    Range,
    parse_additional_constraints,
    parse_constraint,
    parse_version,
    tokenize_rightmost_colon,
)


class TestParseConstraint:
    """Elm constraint syntax."""

    def test_elm_range(self):
        """The usual elm.json form."""
        r = parse_constraint("1.0.0 <= v < 2.0.0")
        assert r == Range.between(parse_version("1.0.0"), parse_version("2.0.0"))

    def test_inclusive_upper_bound(self):
        """``v <= x`` includes x."""
        r = parse_constraint("1.0.0 <= v <= 1.2.0")
        assert r.allows(parse_version("1.2.0"))
        assert not r.allows(parse_version("1.2.1"))

    def test_exclusive_lower_bound(self):
        """``x < v`` excludes x."""
        r = parse_constraint("1.0.0 < v < 2.0.0")
        assert not r.allows(parse_version("1.0.0"))
        assert r.allows(parse_version("1.0.1"))

    def test_one_sided_and_exact(self):
        """Lower-only, upper-only and exact forms."""
        assert parse_constraint("1.0.0 <= v") == Range.higher_than(parse_version("1.0.0"))
        assert parse_constraint("v < 2.0.0") == Range.strictly_lower_than(parse_version("2.0.0"))
        assert parse_constraint("1.2.3") == Range.exact(parse_version("1.2.3"))

    def test_union(self):
        """Alternatives separated by ``||``."""
        r = parse_constraint("1.0.0 || 3.0.0 <= v < 4.0.0")
        assert r.allows(parse_version("1.0.0"))
        assert r.allows(parse_version("3.5.0"))
        assert not r.allows(parse_version("2.0.0"))

    def test_valid_but_empty(self):
        """Reversed bounds parse to the empty range rather than failing."""
        assert parse_constraint("2.0.0 <= v < 1.0.0").is_empty()

    @pytest.mark.parametrize("text", ["", "   ", "1.0.0 <= v <", "bogus", "1.0.0 ||", ">= 1.0.0"])
    def test_invalid(self, text):
        """Malformed text raises with the raw text attached."""
        with pytest.raises(ConstraintParseError) as excinfo:
            parse_constraint(text, package="elm/core")
        assert excinfo.value.text == text
        assert excinfo.value.package == "elm/core"
        assert "elm/core" in str(excinfo.value)

    def test_non_string(self):
        """Values from JSON that are not strings are rejected."""
        with pytest.raises(ConstraintParseError):
            parse_constraint(1)


class TestPackageName:
    """author/name identifiers."""

    def test_parse(self):
        """Valid names split into author and name."""
        pkg = PackageName.parse("elm-explorations/test")
        assert pkg.author == "elm-explorations"
        assert pkg.name == "test"
        assert str(pkg) == "elm-explorations/test"

    @pytest.mark.parametrize("text", ["elm", "elm/core/extra", "elm/Core", "-elm/core", "elm/", "/core"])
    def test_invalid(self, text):
        """Malformed names raise PackageNameError."""
        with pytest.raises(PackageNameError):
            PackageName.parse(text)

    def test_ordering(self):
        """Names sort by author then name."""
        names = [PackageName.parse(t) for t in ["elm/json", "avh4/elm-color", "elm/core"]]
        assert [str(n) for n in sorted(names)] == ["avh4/elm-color", "elm/core", "elm/json"]


class TestAdditionalConstraints:
    """Caller-supplied overrides."""

    def test_parse(self):
        """Keys become package names and values ranges."""
        parsed = parse_additional_constraints({"elm/core": "1.0.0 <= v < 2.0.0"})
        assert parsed == {PackageName("elm", "core"): parse_constraint("1.0.0 <= v < 2.0.0")}

    def test_bad_key_names_the_key(self):
        """An invalid package key is reported as a package name error."""
        with pytest.raises(PackageNameError) as excinfo:
            parse_additional_constraints({"core": "1.0.0"})
        assert "core" in str(excinfo.value)

    def test_bad_value_names_the_package(self):
        """An invalid constraint value is reported with its package."""
        with pytest.raises(ConstraintParseError) as excinfo:
            parse_additional_constraints({"elm/core": "latest"})
        assert excinfo.value.package == "elm/core"
        assert excinfo.value.text == "latest"


class TestTokenizeRightmostColon:
    """CLI PACKAGE:CONSTRAINT tokens."""

    def test_split(self):
        assert tokenize_rightmost_colon("elm/core:1.0.0 <= v < 2.0.0") == ("elm/core", "1.0.0 <= v < 2.0.0")

    def test_no_colon(self):
        assert tokenize_rightmost_colon("elm/core") == ("elm/core", None)

    def test_empty_spec(self):
        assert tokenize_rightmost_colon("elm/core:  ") == ("elm/core", None)

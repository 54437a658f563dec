"""Tests for version parsing and ordering."""

import itertools

import pytest

from versioning.version import ComparisonMisuseError, HeadVersion, Version, compare, parse


SAMPLES = [
    "1.0-dev", "1.0-alpha", "1.0-beta2", "1.0-rc1", "1.0", "1.0.1", "1.0b",
    "1.2", "1.10", "2.0.0-beta", "2.0", "v2.1", "20240101", "latest", "",
    "1.0.0-rc1", "2-beta",
]


class TestParse:
    """Tokenizing of loosely structured version strings."""

    def test_parse_never_fails(self):
        for raw in ("", "???", "--", "1..2", "release candidate"):
            v = parse(raw)
            assert str(v) == raw

    def test_to_string_is_raw_text(self):
        assert parse("v1.2.3-beta4").to_string() == "v1.2.3-beta4"

    def test_leading_v_ignored(self):
        assert parse("v1.2") == parse("1.2")

    def test_trailing_zero_components_equal(self):
        assert parse("1.0") == parse("1.0.0")
        assert hash(parse("1.0")) == hash(parse("1.0.0"))

    def test_zero_components_before_prerelease_equal(self):
        assert parse("1.0-rc") == parse("1.0.0-rc")
        assert parse("2-beta1") == parse("2.0.0-beta1")
        assert hash(parse("1.0-rc")) == hash(parse("1.0.0-rc"))
        assert parse("1.0.0-rc") < parse("1.0")
        assert parse("1.0-rc1") < parse("1.0.1-rc1")
        assert parse("0-rc1") != parse("rc1")

    def test_separators_do_not_matter(self):
        assert parse("1_2_3") == parse("1.2.3")
        assert parse("1-2-3") == parse("1.2.3")

    def test_unparseable_becomes_single_token(self):
        assert len(parse("???").tokens) == 1

    def test_blank(self):
        assert parse("  ").is_blank()
        assert not parse("1").is_blank()

    def test_version_is_immutable(self):
        v = parse("1.0")
        with pytest.raises(AttributeError):
            v._raw = "2.0"  # pylint: disable=protected-access


class TestOrdering:
    """Ordering rules between two release versions."""

    @pytest.mark.parametrize("lower,higher", [
        ("1.2", "1.10"),
        ("1.0", "1.0.1"),
        ("1.0", "1.0b"),
        ("1.0-rc1", "1.0"),
        ("1.0-alpha", "1.0-beta"),
        ("1.0-beta2", "1.0-rc1"),
        ("1.0-dev", "1.0-alpha"),
        ("1.9.0", "2.0.0-beta"),
        ("2.0.0-beta", "2.0.0"),
        ("1.1.1", "1.1.1w"),
    ])
    def test_less_than(self, lower, higher):
        assert parse(lower) < parse(higher)
        assert parse(higher) > parse(lower)
        assert compare(parse(lower), parse(higher)) == -1
        assert compare(parse(higher), parse(lower)) == 1

    def test_compare_equal(self):
        for raw in SAMPLES:
            assert compare(parse(raw), parse(raw)) == 0

    def test_antisymmetric(self):
        for a, b in itertools.product(SAMPLES, repeat=2):
            assert compare(parse(a), parse(b)) == -compare(parse(b), parse(a))

    def test_transitive(self):
        versions = [parse(raw) for raw in SAMPLES]
        for a, b, c in itertools.product(versions, repeat=3):
            if compare(a, b) <= 0 and compare(b, c) <= 0:
                assert compare(a, c) <= 0

    def test_equality_matches_compare(self):
        for a, b in itertools.product(SAMPLES, repeat=2):
            assert (parse(a) == parse(b)) == (compare(parse(a), parse(b)) == 0)

    def test_max_of_versions(self):
        versions = [parse(raw) for raw in ("1.9", "1.10", "1.2.3")]
        assert str(max(versions)) == "1.10"

    def test_compare_with_non_version_raises_type_error(self):
        with pytest.raises(TypeError):
            _ = parse("1.0") < "1.0"


class TestHeadVersion:
    """HEAD commit versions only support identity comparison."""

    def test_equal_by_commit(self):
        assert HeadVersion("abc123") == HeadVersion("abc123")
        assert HeadVersion("abc123") != HeadVersion("def456")

    def test_never_equal_to_release(self):
        assert HeadVersion("1.0") != Version("1.0")
        assert Version("1.0") != HeadVersion("1.0")

    def test_ordering_raises(self):
        with pytest.raises(ComparisonMisuseError):
            _ = HeadVersion("abc") < HeadVersion("def")
        with pytest.raises(ComparisonMisuseError):
            _ = Version("1.0") < HeadVersion("abc")
        with pytest.raises(ComparisonMisuseError):
            compare(HeadVersion("abc"), Version("1.0"))

    def test_misuse_is_a_type_error(self):
        assert issubclass(ComparisonMisuseError, TypeError)

    def test_requires_commit(self):
        with pytest.raises(ValueError):
            HeadVersion("")

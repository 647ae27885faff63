"""Tests for domain header parsing."""

import pytest

from protein_dashboard.services.domains import (
    MultiRange,
    SingleRange,
    Unparsed,
    domain_bounds,
    parse_domain_header,
)


def test_single_range() -> None:
    annotation = parse_domain_header("PF03245(27...149)")

    assert annotation == SingleRange("PF03245", 27, 149)
    assert annotation.length == 123


def test_multi_range() -> None:
    annotation = parse_domain_header("PF00704(34...320,355...427)")

    assert annotation == MultiRange("PF00704", ((34, 320), (355, 427)))
    assert (annotation.start, annotation.end) == (34, 427)


def test_dash_separator() -> None:
    assert parse_domain_header("PF00001(5-80)") == SingleRange("PF00001", 5, 80)


@pytest.mark.parametrize("header", [None, "", "N/A", "PF00001()", "PF00001(abc)"])
def test_unparseable_headers(header) -> None:
    assert parse_domain_header(header) == Unparsed(header)


def test_bounds_are_padded() -> None:
    low, high = domain_bounds(["PF03245(27...149)", "PF00704(34...320,355...427)", None])

    # span 400, padding 40
    assert (low, high) == (0, 467)


def test_bounds_use_minimum_padding_of_ten() -> None:
    assert domain_bounds(["PF03245(50...60)"]) == (40, 70)


def test_bounds_default_without_domains() -> None:
    assert domain_bounds(["garbage", None]) == (0, 200)

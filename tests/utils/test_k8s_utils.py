# tests/utils/test_k8s_utils.py

from decimal import Decimal

import pytest

from ccmon.utils.k8s_utils import (
    Requirement,
    parse_cpu_request,
    parse_label_selector,
    parse_memory_request,
    parse_quantity,
)


@pytest.mark.parametrize(
    "quantity, expected",
    [
        ("500m", Decimal("0.5")),
        ("2", Decimal(2)),
        ("1.5", Decimal("1.5")),
        ("128Mi", Decimal(128 * 1024**2)),
        ("1Gi", Decimal(1024**3)),
        ("1k", Decimal(1000)),
        ("1e3", Decimal(1000)),
        (3, Decimal(3)),
    ],
)
def test_parse_quantity(quantity, expected):
    assert parse_quantity(quantity) == expected


def test_parse_quantity_lenient_and_strict():
    assert parse_quantity("lots") == Decimal(0)
    assert parse_quantity(None) == Decimal(0)
    with pytest.raises(ValueError):
        parse_quantity("lots", strict=True)
    with pytest.raises(ValueError):
        parse_quantity("", strict=True)
    with pytest.raises(ValueError):
        parse_quantity("Mi", strict=True)


def test_parse_requests():
    assert parse_cpu_request("250m") == 250
    assert parse_cpu_request(None) == 0
    assert parse_memory_request("1Ki") == 1024


def test_parse_label_selector_all_operators():
    requirements = parse_label_selector(
        "node.kubernetes.io/instance-type in (m5.large, c5.large),pool=bench,tier==web,env!=dev,!spot,gpu,"
        "zone notin (a)"
    )

    assert requirements == [
        Requirement("node.kubernetes.io/instance-type", "in", ("m5.large", "c5.large")),
        Requirement("pool", "=", ("bench",)),
        Requirement("tier", "=", ("web",)),
        Requirement("env", "!=", ("dev",)),
        Requirement("spot", "!"),
        Requirement("gpu", "exists"),
        Requirement("zone", "notin", ("a",)),
    ]


def test_parse_label_selector_empty():
    assert parse_label_selector("") == []
    assert parse_label_selector("   ") == []


@pytest.mark.parametrize(
    "selector",
    [
        "pool in (a,",
        "pool in a",
        "pool in ()",
        "pool in (a b)",
        "=value",
        "a=b=c",
        "pool=bench,",
        "!",
        "bad key=value",
        "pool=" + "x" * 64,
        "-pool=bench",
    ],
)
def test_parse_label_selector_rejects_malformed(selector):
    with pytest.raises(ValueError):
        parse_label_selector(selector)

import re
from decimal import Decimal, InvalidOperation
from typing import Dict, List, NamedTuple, Optional, Tuple

# Longest suffixes first so "Mi" wins over "M" and "m".
_BINARY_SUFFIXES: Dict[str, int] = {
    "Ki": 1024,
    "Mi": 1024**2,
    "Gi": 1024**3,
    "Ti": 1024**4,
    "Pi": 1024**5,
    "Ei": 1024**6,
}
_DECIMAL_SUFFIXES: Dict[str, Decimal] = {
    "n": Decimal("0.000000001"),
    "u": Decimal("0.000001"),
    "m": Decimal("0.001"),
    "k": Decimal(1000),
    "M": Decimal(1000**2),
    "G": Decimal(1000**3),
    "T": Decimal(1000**4),
    "P": Decimal(1000**5),
    "E": Decimal(1000**6),
}

_QUANTITY_NUMBER = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


def parse_quantity(quantity, strict: bool = False) -> Decimal:
    """
    Parse kubernetes quantity to Decimal.
    Adapted from kubernetes-python utils.

    With ``strict=False`` unparsable input yields ``Decimal(0)``; with
    ``strict=True`` a ``ValueError`` is raised instead, which is what scenario
    validation relies on.
    """
    if quantity is None:
        if strict:
            raise ValueError("quantity is required")
        return Decimal(0)
    if isinstance(quantity, bool):
        if strict:
            raise ValueError(f"invalid quantity {quantity!r}")
        return Decimal(0)
    if isinstance(quantity, (int, float, Decimal)):
        return Decimal(str(quantity))

    text = str(quantity).strip()
    number, multiplier = text, Decimal(1)
    for suffix, factor in _BINARY_SUFFIXES.items():
        if text.endswith(suffix):
            number, multiplier = text[: -len(suffix)], Decimal(factor)
            break
    else:
        # An exponent form like "1e3" ends in a digit and never hits this branch.
        if text and text[-1] in _DECIMAL_SUFFIXES:
            number, multiplier = text[:-1], _DECIMAL_SUFFIXES[text[-1]]

    if not _QUANTITY_NUMBER.match(number):
        if strict:
            raise ValueError(f"invalid quantity {quantity!r}")
        return Decimal(0)

    try:
        return Decimal(number) * multiplier
    except InvalidOperation:
        if strict:
            raise ValueError(f"invalid quantity {quantity!r}")
        return Decimal(0)


def parse_cpu_request(cpu: Optional[str]) -> int:
    """Converts K8s CPU string to millicores (int)."""
    if not cpu:
        return 0
    return int(parse_quantity(cpu) * 1000)


def parse_memory_request(memory: Optional[str]) -> int:
    """Converts K8s memory string to bytes (int)."""
    if not memory:
        return 0
    return int(parse_quantity(memory))


class Requirement(NamedTuple):
    """A single label-selector requirement, e.g. ``tier in (web, api)``."""

    key: str
    operator: str
    values: Tuple[str, ...] = ()


# Qualified name: optional DNS-subdomain prefix plus a 63-char name.
_NAME = r"[A-Za-z0-9]([-A-Za-z0-9_.]{0,61}[A-Za-z0-9])?"
_PREFIX = r"[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*"
_KEY_RE = re.compile(rf"^({_PREFIX}/)?{_NAME}$")
_VALUE_RE = re.compile(rf"^({_NAME})?$")

_TOKEN_RE = re.compile(r"\s*(==|!=|=|!|\(|\)|,|[^\s=!(),]+)")


def _tokenize(selector: str) -> List[str]:
    tokens = []
    pos = 0
    stripped = selector.rstrip()
    while pos < len(stripped):
        match = _TOKEN_RE.match(stripped, pos)
        if not match:
            raise ValueError(f"unexpected character at position {pos}")
        tokens.append(match.group(1))
        pos = match.end()
    return tokens


def _check_key(key: str) -> str:
    if not _KEY_RE.match(key) or len(key.split("/")[-1]) > 63:
        raise ValueError(f"invalid label key {key!r}")
    return key


def _check_value(value: str) -> str:
    if len(value) > 63 or not _VALUE_RE.match(value):
        raise ValueError(f"invalid label value {value!r}")
    return value


def parse_label_selector(selector: str) -> List[Requirement]:
    """
    Parses a Kubernetes label selector expression.

    Supports ``key``, ``!key``, ``key=value``, ``key==value``, ``key!=value``,
    ``key in (a,b)`` and ``key notin (a,b)`` joined by commas. An empty
    selector matches everything and yields no requirements.

    Raises:
        ValueError: If the expression is malformed.
    """
    tokens = _tokenize(selector or "")
    requirements: List[Requirement] = []
    i = 0

    def take() -> str:
        nonlocal i
        if i >= len(tokens):
            raise ValueError("unexpected end of selector")
        token = tokens[i]
        i += 1
        return token

    while i < len(tokens):
        token = take()
        if token == "!":
            requirements.append(Requirement(_check_key(take()), "!"))
        else:
            key = _check_key(token)
            op = tokens[i] if i < len(tokens) else ","
            if op == ",":
                requirements.append(Requirement(key, "exists"))
            elif op in ("=", "==", "!="):
                i += 1
                value = tokens[i] if i < len(tokens) and tokens[i] != "," else ""
                if value:
                    i += 1
                requirements.append(Requirement(key, "!=" if op == "!=" else "=", (_check_value(value),)))
            elif op in ("in", "notin"):
                i += 1
                if take() != "(":
                    raise ValueError(f"expected '(' after {op!r}")
                values = []
                while True:
                    value = take()
                    if value == ")" and not values:
                        break
                    if value in (",", ")"):
                        values.append("")
                    else:
                        values.append(_check_value(value))
                        value = take()
                    if value == ")":
                        break
                    if value != ",":
                        raise ValueError(f"expected ',' or ')' but found {value!r}")
                if not values:
                    raise ValueError(f"{op!r} requires at least one value")
                requirements.append(Requirement(key, op, tuple(values)))
            else:
                raise ValueError(f"unexpected token {op!r} after key {key!r}")

        if i < len(tokens):
            if tokens[i] != ",":
                raise ValueError(f"expected ',' but found {tokens[i]!r}")
            i += 1
            if i >= len(tokens):
                raise ValueError("trailing ',' in selector")

    return requirements

"""
L1 Domain — Semver range expressions (pure).

Parses and evaluates range expressions such as ``>=1.0.0 <3.0.0`` or
``1.x || >=2.5.0``. No I/O.

Grammar:
    range  := group ( "||" group )*
    group  := term ( (" " | ",") term )*
    term   := [op] version        op in  >= <= > < = == != !
    version may use x / X / * wildcards in any position (``1.2.x``).

A bare version means equality. An empty expression matches everything.
"""

from __future__ import annotations

import re
from typing import Callable

import semver

from pkgdeps.core.errors import InvalidConstraintError, InvalidVersionError

_OP_RE = re.compile(r"^(>=|<=|!=|==|>|<|=|!)?\s*(\S+)$")
_LONE_OP_RE = re.compile(r"^(>=|<=|!=|==|>|<|=|!)$")
_WILDCARDS = frozenset({"x", "X", "*"})
# core / "-prerelease+build" suffix
_SUFFIX_RE = re.compile(r"^([^-+]*)(.*)$")

_COMPARATORS: dict[str, Callable[[semver.Version, semver.Version], bool]] = {
    ">=": lambda v, ref: v >= ref,
    "<=": lambda v, ref: v <= ref,
    ">": lambda v, ref: v > ref,
    "<": lambda v, ref: v < ref,
    "==": lambda v, ref: v == ref,
    "!=": lambda v, ref: v != ref,
}

# Term = (operator, reference version)
Term = tuple[str, semver.Version]


def parse_version(text: str) -> semver.Version:
    """Parse a semantic version, tolerating a leading ``v``.

    Raises:
        InvalidVersionError: If the text is not a full semver.
    """
    raw = (text or "").strip()
    if raw[:1] in ("v", "V"):
        raw = raw[1:]
    try:
        return semver.Version.parse(raw)
    except (ValueError, TypeError) as e:
        raise InvalidVersionError(f"Invalid semantic version '{text}': {e}") from e


def single_version(expression: str) -> semver.Version | None:
    """Return the version if *expression* is exactly one concrete version."""
    try:
        return parse_version(expression)
    except InvalidVersionError:
        return None


def _tokenize(group: str) -> list[str]:
    """Split a group into terms, re-joining operators split off by spaces."""
    tokens = group.replace(",", " ").split()
    merged: list[str] = []
    pending_op = ""
    for tok in tokens:
        if _LONE_OP_RE.match(tok):
            if pending_op:
                raise ValueError(f"operator '{pending_op}' has no version")
            pending_op = tok
            continue
        merged.append(pending_op + tok)
        pending_op = ""
    if pending_op:
        raise ValueError(f"operator '{pending_op}' has no version")
    return merged


def _bump(parts: list[int], index: int) -> list[int]:
    """Increment ``parts[index]`` and zero everything after it."""
    bumped = parts[: index + 1]
    bumped[index] += 1
    return bumped + [0] * (3 - len(bumped))


def _as_version(parts: list[int]) -> semver.Version:
    major, minor, patch = (parts + [0, 0, 0])[:3]
    return semver.Version(major, minor, patch)


def _expand_wildcard(op: str, text: str) -> list[Term] | None:
    """Expand ``1.x``-style versions into plain terms, or None if no wildcard.

    Only the ``major.minor.patch`` core is inspected: an ``x`` inside a
    prerelease or build identifier (``1.0.0-alpha.x``) is literal.
    """
    core, suffix = _SUFFIX_RE.match(text.lstrip("vV")).groups()
    fields = core.split(".")
    wild_at = next((i for i, f in enumerate(fields) if f in _WILDCARDS), None)
    if suffix:
        if wild_at is not None:
            raise ValueError(f"wildcard version '{text}' cannot carry a prerelease or build")
        return None
    if wild_at is None:
        if len(fields) < 3 and all(f.isdigit() for f in fields):
            # "1.2" behaves like "1.2.x"
            wild_at = len(fields)
        else:
            return None

    fixed = fields[:wild_at]
    if not all(f.isdigit() for f in fixed):
        raise ValueError(f"invalid wildcard version '{text}'")
    parts = [int(f) for f in fixed]

    if not parts:
        # "x" / "*": anything, except for the strict operators
        if op in (">", "<", "!="):
            return [("<", semver.Version(0, 0, 0))]
        return [(">=", semver.Version(0, 0, 0))]

    lower = _as_version(parts)
    upper = _as_version(_bump(parts, len(parts) - 1))

    if op in ("", "=", "=="):
        return [(">=", lower), ("<", upper)]
    if op == ">=":
        return [(">=", lower)]
    if op == ">":
        return [(">=", upper)]
    if op == "<":
        return [("<", lower)]
    if op == "<=":
        return [("<", upper)]
    raise ValueError(f"operator '{op}' cannot be used with wildcard '{text}'")


def _parse_term(token: str) -> list[Term]:
    m = _OP_RE.match(token)
    if not m:
        raise ValueError(f"cannot parse term '{token}'")
    op, text = m.group(1) or "", m.group(2)

    expanded = _expand_wildcard(op, text)
    if expanded is not None:
        return expanded

    ref = parse_version(text)
    if op in ("", "="):
        op = "=="
    elif op == "!":
        op = "!="
    return [(op, ref)]


class VersionRange:
    """A parsed range expression; call it with a version to test membership."""

    def __init__(self, expression: str):
        self.expression = expression or ""
        self._groups: list[list[Term]] = []

        if not self.expression.strip():
            return

        for group in self.expression.split("||"):
            try:
                tokens = _tokenize(group)
                if not tokens:
                    raise ValueError("empty alternative")
                terms: list[Term] = []
                for tok in tokens:
                    terms.extend(_parse_term(tok))
            except (ValueError, InvalidVersionError) as e:
                raise InvalidConstraintError(self.expression, str(e)) from e
            self._groups.append(terms)

    def __call__(self, version: semver.Version) -> bool:
        if not self._groups:
            return True
        return any(
            all(_COMPARATORS[op](version, ref) for op, ref in terms)
            for terms in self._groups
        )

    def __repr__(self) -> str:
        return f"VersionRange({self.expression!r})"

"""Version parsing, comparison and bumping utilities.

Versions are represented as semver.Version objects restricted to the shape
dep-sync understands: major.minor.patch with an optional prerelease made of
a letters-only tag and an optional numeric ordinal ("1.2.3", "1.2.3-rc",
"1.2.3-beta.2"). Range prefixes ("^", "~") and a leading "v" are ignored
when parsing so that manifest entries can be classified directly.

Nothing in this module raises on bad input: unparseable strings yield None
(or ChangeKind.UNKNOWN / 0 for the comparison helpers).
"""

from __future__ import annotations

import re
from enum import Enum

import semver

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)(?:-([a-zA-Z]+)(?:[.-](\d+))?)?$")

BUMP_TYPES = ("patch", "minor", "major", "prerelease")


class ChangeKind(str, Enum):
    """Classification of the move from one version to another."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    PRERELEASE = "prerelease"
    UNKNOWN = "unknown"


_CHANGE_LABELS = {
    ChangeKind.MAJOR: "MAJOR (breaking changes possible)",
    ChangeKind.MINOR: "minor (new features)",
    ChangeKind.PATCH: "patch (bug fixes)",
    ChangeKind.PRERELEASE: "prerelease (unstable)",
    ChangeKind.UNKNOWN: "unknown",
}


def parse_version(text: str) -> semver.Version | None:
    """Parse a version string into a semver.Version object.

    Strips a single leading "v", "^" or "~", then matches
    major.minor.patch[-tag[.n]]. The ordinal may also be separated by a
    dash ("rc-1"); it is normalized to a dot.

    Examples:
        "1.2.3" → 1.2.3
        "^18.2.0" → 18.2.0
        "v1.0.0-rc.1" → 1.0.0-rc.1
        "1.0.0-beta" → 1.0.0-beta
        ">=1.0.0" → None

    Returns:
        The parsed version, or None if the string is not a version this
        module understands.
    """
    clean = text[1:] if text[:1] in ("v", "^", "~") else text
    match = _VERSION_RE.match(clean)
    if not match:
        return None

    major, minor, patch, tag, number = match.groups()
    prerelease = None
    if tag:
        prerelease = tag if number is None else f"{tag}.{int(number)}"
    return semver.Version(int(major), int(minor), int(patch), prerelease=prerelease)


def format_version(version: semver.Version) -> str:
    """Render a parsed version back to "M.m.p[-tag[.n]]"."""
    return str(version)


def prerelease_tag(version: semver.Version) -> str | None:
    """Return the prerelease tag ("rc" for 1.0.0-rc.2), or None for releases."""
    if not version.prerelease:
        return None
    return version.prerelease.split(".")[0]


def prerelease_number(version: semver.Version) -> int | None:
    """Return the prerelease ordinal (2 for 1.0.0-rc.2), or None if absent."""
    if not version.prerelease:
        return None
    parts = version.prerelease.split(".")
    return int(parts[1]) if len(parts) > 1 else None


def compare_versions(a: str, b: str) -> int:
    """Compare two version strings.

    Order: major, minor, patch, then a release sorts above any prerelease
    of the same triple, then prerelease tags compare lexicographically and
    ordinals numerically (a missing ordinal sorts lowest).

    Returns:
        -1 if a < b, 0 if equal (or either fails to parse), 1 if a > b.
    """
    pa = parse_version(a)
    pb = parse_version(b)
    if pa is None or pb is None:
        return 0
    return pa.compare(pb)


def change_kind(old: str, new: str) -> ChangeKind:
    """Classify the change from old to new.

    Rules, first match wins:
    1. new carries a prerelease → PRERELEASE
    2. major increased → MAJOR
    3. same major, minor increased → MINOR
    4. same major/minor, patch increased → PATCH
    5. old was a prerelease and new is not → PATCH
    6. anything else (downgrades, equal versions) → UNKNOWN
    """
    po = parse_version(old)
    pn = parse_version(new)
    if po is None or pn is None:
        return ChangeKind.UNKNOWN

    if pn.prerelease:
        return ChangeKind.PRERELEASE
    if pn.major > po.major:
        return ChangeKind.MAJOR
    if pn.major == po.major and pn.minor > po.minor:
        return ChangeKind.MINOR
    if pn.major == po.major and pn.minor == po.minor and pn.patch > po.patch:
        return ChangeKind.PATCH
    # Releasing a prerelease resolves it like a patch would
    if po.prerelease and not pn.prerelease:
        return ChangeKind.PATCH
    return ChangeKind.UNKNOWN


def change_label(kind: ChangeKind) -> str:
    """Human-readable label for a change kind."""
    return _CHANGE_LABELS[kind]


def next_version(
    current: str, bump_type: str, prerelease_tag_name: str = "rc"
) -> semver.Version | None:
    """Compute the version that follows current for a bump type.

    Examples:
        next_version("1.2.3", "major") → 2.0.0
        next_version("1.2.3", "minor") → 1.3.0
        next_version("1.2.3", "patch") → 1.2.4
        next_version("1.2.3-rc.4", "patch") → 1.2.3
        next_version("1.2.3-rc.0", "prerelease", "rc") → 1.2.3-rc.1
        next_version("1.2.3", "prerelease", "rc") → 1.2.4-rc.0

    Returns:
        The next version, or None if current does not parse or bump_type is
        not one of BUMP_TYPES.
    """
    parsed = parse_version(current)
    if parsed is None:
        return None

    if bump_type == "major":
        return semver.Version(parsed.major + 1, 0, 0)
    if bump_type == "minor":
        return semver.Version(parsed.major, parsed.minor + 1, 0)
    if bump_type == "patch":
        # Promote a prerelease to its release instead of skipping past it
        if parsed.prerelease:
            return semver.Version(parsed.major, parsed.minor, parsed.patch)
        return semver.Version(parsed.major, parsed.minor, parsed.patch + 1)
    if bump_type == "prerelease":
        number = prerelease_number(parsed)
        if prerelease_tag(parsed) == prerelease_tag_name and number is not None:
            return parsed.replace(prerelease=f"{prerelease_tag_name}.{number + 1}")
        try:
            return semver.Version(
                parsed.major,
                parsed.minor,
                parsed.patch + 1,
                prerelease=f"{prerelease_tag_name}.0",
            )
        except ValueError:
            return None
    return None

"""Maven version parsing and version range selection."""

import re
from typing import Iterable, List, Optional

from packaging import version

_MAVEN_VERSION_RE = re.compile(
    r"^(?P<base>\d+(?:\.\d+)*)(?:[.-]?(?P<qual>[A-Za-z]+)[.-]?(?P<num>\d*))?$"
)

# Maven qualifiers mapped onto PEP 440 pre/post release segments.
# Milestones sort with betas.
_QUALIFIERS = {
    "": "",
    "final": "",
    "ga": "",
    "release": "",
    "alpha": "a",
    "a": "a",
    "beta": "b",
    "b": "b",
    "milestone": "b",
    "m": "b",
    "cr": "rc",
    "rc": "rc",
    "sp": ".post",
}

SNAPSHOT_SUFFIX = "-SNAPSHOT"


def parse_maven_version(text: str) -> Optional[version.Version]:
    """Map a Maven version string onto a comparable ``packaging`` Version.

    ``1.2.3.Final`` and ``1.2.3`` compare equal, ``Beta``/``CR`` qualifiers
    become pre-releases, ``SP`` a post-release and ``-SNAPSHOT`` a dev
    release. Returns None for versions that cannot be mapped.
    """
    raw = text.strip()
    snapshot = raw.upper().endswith(SNAPSHOT_SUFFIX)
    if snapshot:
        raw = raw[:-len(SNAPSHOT_SUFFIX)]
    match = _MAVEN_VERSION_RE.match(raw)
    if match is None:
        try:
            return version.Version(text)
        except version.InvalidVersion:
            return None
    qualifier = (match.group("qual") or "").lower()
    segment = _QUALIFIERS.get(qualifier)
    if segment is None:
        return None
    pep440 = match.group("base")
    if segment:
        pep440 += f"{segment}{match.group('num') or '0'}"
    if snapshot:
        pep440 += ".dev0"
    try:
        return version.Version(pep440)
    except version.InvalidVersion:
        return None


def _split_ranges(range_spec: str) -> List[str]:
    """Split a union like ``[1.0,2.0),[3.0,4.0]`` into single ranges."""
    ranges = []
    current = ""
    depth = 0
    for char in range_spec:
        if char in "[(":
            if depth == 0:
                current = ""
            depth += 1
            current += char
        elif char in "])":
            depth -= 1
            current += char
            if depth == 0:
                ranges.append(current)
                current = ""
        elif depth > 0:
            current += char
    return ranges


def _in_range(candidate: version.Version, single_range: str) -> bool:
    inner = single_range[1:-1]
    if "," not in inner:
        exact = parse_maven_version(inner)
        return exact is not None and candidate == exact
    lower_str, upper_str = (p.strip() for p in inner.split(",", 1))
    lower_inclusive = single_range.startswith("[")
    upper_inclusive = single_range.endswith("]")
    if lower_str:
        lower = parse_maven_version(lower_str)
        if lower is None:
            return False
        if candidate < lower or (not lower_inclusive and candidate == lower):
            return False
    if upper_str:
        upper = parse_maven_version(upper_str)
        if upper is None:
            return False
        if candidate > upper or (not upper_inclusive and candidate == upper):
            return False
    return True


def filter_by_range(range_spec: str, candidates: Iterable[str]) -> List[str]:
    """Return the candidates matching a Maven version range specification."""
    ranges = _split_ranges(range_spec.strip())
    matching = []
    for candidate in candidates:
        parsed = parse_maven_version(candidate)
        if parsed is None:
            continue
        if any(_in_range(parsed, r) for r in ranges):
            matching.append(candidate)
    return matching


def select_version(range_spec: str, candidates: Iterable[str]) -> Optional[str]:
    """Pick the highest candidate within ``range_spec``.

    Snapshots are only selected when no release matches.
    """
    matching = filter_by_range(range_spec, candidates)
    if not matching:
        return None
    releases = [v for v in matching if not v.upper().endswith(SNAPSHOT_SUFFIX)]
    pool = releases or matching
    return max(pool, key=parse_maven_version)

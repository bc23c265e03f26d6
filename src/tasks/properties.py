"""``${property}`` replacement for copied text files."""

import re
from pathlib import Path
from typing import Mapping

_PROPERTY_RE = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


def replace_properties(text: str, props: Mapping[str, str]) -> str:
    """Substitute ``${key}`` and ``${key:default}``.

    Unknown keys without a default are left untouched.
    """
    def _sub(match: re.Match) -> str:
        key, default = match.group(1), match.group(2)
        if key in props:
            return props[key]
        if default is not None:
            return default
        return match.group(0)

    return _PROPERTY_RE.sub(_sub, text)


def copy_with_properties(src: Path, dst: Path, props: Mapping[str, str]) -> None:
    """Copy a text file replacing properties; binary files are copied as is."""
    data = src.read_bytes()
    dst.parent.mkdir(parents=True, exist_ok=True)
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        dst.write_bytes(data)
        return
    with open(dst, "w", encoding="utf-8", newline="") as fh:
        fh.write(replace_properties(text, props))

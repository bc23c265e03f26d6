"""Version expression evaluation for module templates and tasks.

Templates reference artifacts either literally (``group:artifact:version``)
or through ``${key[?options]}`` expressions looked up in the feature-pack
version properties.
"""

from typing import Mapping, Optional, Tuple

from artifacts.coordinate import Coordinate
from common.errors import UnresolvedVersionError

JANDEX_OPTION = "jandex"


def is_expression(text: Optional[str]) -> bool:
    """Return True for ``${...}`` text."""
    return bool(text) and text.startswith("${") and text.endswith("}")


def parse_expression(text: str) -> Optional[Tuple[str, bool]]:
    """Split an expression into its lookup key and jandex flag.

    Returns None when ``text`` is not an expression.
    """
    if not is_expression(text):
        return None
    body = text[2:-1]
    key, sep, options = body.partition("?")
    jandex = bool(sep) and JANDEX_OPTION in options
    return key, jandex


def resolve_expression(text: str, props: Mapping[str, str], optional: bool = False) -> Optional[str]:
    """Evaluate ``text`` against ``props``.

    Literal text is returned unchanged. A missing key raises
    ``UnresolvedVersionError``, or returns None when ``optional``.
    """
    parsed = parse_expression(text)
    if parsed is None:
        return text
    key, _ = parsed
    value = props.get(key)
    if value is None:
        if optional:
            return None
        raise UnresolvedVersionError(key)
    return value


def to_artifact_coords(props: Mapping[str, str], coords: str, optional: bool = False) -> Optional[Coordinate]:
    """Convert a coordinate string to a Coordinate, filling a missing version.

    When ``coords`` carries no version, the version properties are consulted
    by version key (``group:artifact[::classifier]``, falling back to
    ``group:artifact``) and the property value supplies version, range,
    classifier and extension.
    """
    artifact = Coordinate.parse(coords)
    if artifact.has_version or artifact.version_range:
        return artifact
    value = props.get(artifact.version_key)
    if value is None and artifact.classifier:
        value = props.get(artifact.ga)
    if value is None:
        if optional:
            return None
        raise UnresolvedVersionError(artifact.version_key)
    resolved = Coordinate.parse(value)
    parts = coords.split(":")
    explicit_extension = len(parts) > 4 and bool(parts[4])
    return Coordinate(
        artifact.group_id,
        artifact.artifact_id,
        resolved.version,
        artifact.classifier or resolved.classifier,
        artifact.extension if explicit_extension else resolved.extension,
        resolved.version_range,
    )

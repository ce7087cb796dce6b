"""Parsing of identifiers captured from templated resource URIs."""

from fastmcp.exceptions import ResourceError


def parse_id(value: str | int, name: str) -> int:
    """
    Turn a URI path segment into a positive integer id.

    Raises:
        ResourceError: If the segment is not a positive integer
    """
    try:
        parsed = int(value)
    except (TypeError, ValueError) as e:
        raise ResourceError(f"Invalid {name}: {value!r}") from e
    if parsed < 1:
        raise ResourceError(f"Invalid {name}: {value!r}")
    return parsed

"""DefinitelyTyped checkout enumeration."""

from dtdash.definitions.parser import (
    Header,
    parse_header,
    read_definitions,
    read_variant,
    unmangle_scoped_name,
)

__all__ = [
    "Header",
    "parse_header",
    "read_definitions",
    "read_variant",
    "unmangle_scoped_name",
]

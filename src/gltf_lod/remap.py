# ABOUTME: Identifier offsetting used when appending one document's collections to another
# ABOUTME: An empty identifier means "reference not set" and is never shifted

from typing import List

from .errors import MalformedIdentifierError


def parse_index(entity_id: str) -> int:
    """
    Parse a set identifier as a positional index.

    Raises:
        MalformedIdentifierError: If the id is not a non-negative integer
    """
    # isdigit alone accepts non-ASCII digits such as '١'
    if not isinstance(entity_id, str) or not (entity_id.isascii() and entity_id.isdigit()):
        raise MalformedIdentifierError(f"Identifier is not a non-negative integer: {entity_id!r}")
    return int(entity_id)


def offset_id(entity_id: str, offset: int) -> str:
    """Shift an identifier by offset, leaving the empty sentinel untouched."""
    if entity_id == '':
        return entity_id
    return str(parse_index(entity_id) + offset)


def offset_ids(entity_ids: List[str], offset: int) -> List[str]:
    return [offset_id(entity_id, offset) for entity_id in entity_ids]

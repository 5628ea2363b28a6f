# ABOUTME: Rewrites collection indices embedded in vendor extension payloads
# ABOUTME: Driven by a declarative table of (extension, entity kind, field path, offset kind) rules

import json
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from .document import Entity, EntityKind, dump_json
from .errors import MalformedIdentifierError
from .extensions import (
    EXTENSION_KHR_SPECULAR_GLOSSINESS,
    EXTENSION_MSFT_LOD,
    EXTENSION_MSFT_PACKING_NRM,
    EXTENSION_MSFT_PACKING_ORM,
    EXTENSION_MSFT_TEXTURE_DDS,
    MSFT_LOD_IDS_KEY,
)

# Path segment addressing every element of a list
WILDCARD = '*'


@dataclass(frozen=True)
class PatchRule:
    """
    One integer reference inside an extension payload.

    Attributes:
        extension_name: Extension whose payload carries the reference
        entity_kind: Kind of entity the extension is attached to
        field_path: Keys leading to the integer field (WILDCARD for list items)
        offset_kind: Collection the field indexes into
    """
    extension_name: str
    entity_kind: EntityKind
    field_path: Tuple[str, ...]
    offset_kind: EntityKind


EXTENSION_PATCH_RULES: Tuple[PatchRule, ...] = (
    PatchRule(EXTENSION_MSFT_TEXTURE_DDS, EntityKind.TEXTURE, ('source',), EntityKind.IMAGE),

    PatchRule(EXTENSION_MSFT_PACKING_ORM, EntityKind.MATERIAL,
              ('occlusionRoughnessMetallicTexture', 'index'), EntityKind.TEXTURE),
    PatchRule(EXTENSION_MSFT_PACKING_ORM, EntityKind.MATERIAL,
              ('roughnessMetallicOcclusionTexture', 'index'), EntityKind.TEXTURE),
    PatchRule(EXTENSION_MSFT_PACKING_ORM, EntityKind.MATERIAL,
              ('normalTexture', 'index'), EntityKind.TEXTURE),

    PatchRule(EXTENSION_MSFT_PACKING_NRM, EntityKind.MATERIAL,
              ('normalRoughnessMetallicTexture', 'index'), EntityKind.TEXTURE),

    PatchRule(EXTENSION_KHR_SPECULAR_GLOSSINESS, EntityKind.MATERIAL,
              ('diffuseTexture', 'index'), EntityKind.TEXTURE),
    PatchRule(EXTENSION_KHR_SPECULAR_GLOSSINESS, EntityKind.MATERIAL,
              ('specularGlossinessTexture', 'index'), EntityKind.TEXTURE),

    # LOD chains carried by a candidate document point into its own collections
    PatchRule(EXTENSION_MSFT_LOD, EntityKind.NODE, (MSFT_LOD_IDS_KEY, WILDCARD), EntityKind.NODE),
    PatchRule(EXTENSION_MSFT_LOD, EntityKind.MATERIAL, (MSFT_LOD_IDS_KEY, WILDCARD), EntityKind.MATERIAL),
)


def rules_for(extension_name: str, kind: EntityKind,
              rules: Iterable[PatchRule] = EXTENSION_PATCH_RULES) -> List[PatchRule]:
    """Rules that apply to an extension attached to an entity of the given kind."""
    return [r for r in rules if r.extension_name == extension_name and r.entity_kind == kind]


def patch_payload(payload: str, rules: Iterable[PatchRule], offsets: Dict[EntityKind, int]) -> str:
    """
    Shift every integer field named by rules inside a JSON payload.

    Fields missing from the payload are skipped.

    Args:
        payload: Compact JSON extension payload
        rules: Rules describing the fields to shift
        offsets: Offset per target collection kind

    Returns:
        The re-serialized payload
    """
    data = json.loads(payload)
    for rule in rules:
        _shift_path(data, rule.field_path, offsets[rule.offset_kind])
    return dump_json(data)


def patch_extensions(entity: Entity, kind: EntityKind, offsets: Dict[EntityKind, int],
                     rules: Iterable[PatchRule] = EXTENSION_PATCH_RULES) -> None:
    """Patch, in place, every extension payload on entity that has applicable rules."""
    rules = tuple(rules)
    for name, payload in list(entity.extensions.items()):
        if not payload:
            continue
        applicable = rules_for(name, kind, rules)
        if applicable:
            entity.extensions[name] = patch_payload(payload, applicable, offsets)


def _shift_path(container, path: Tuple[str, ...], offset: int) -> None:
    key, rest = path[0], path[1:]
    if key == WILDCARD:
        if not isinstance(container, list):
            return
        slots = range(len(container))
    else:
        if not isinstance(container, dict) or key not in container:
            return
        slots = [key]

    for slot in slots:
        if rest:
            _shift_path(container[slot], rest, offset)
        else:
            container[slot] = _shift_index(container[slot], offset)


def _shift_index(value, offset: int) -> int:
    # bool is an int subclass; JSON true/false is never an index
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise MalformedIdentifierError(f"Extension index is not a non-negative integer: {value!r}")
    return value + offset

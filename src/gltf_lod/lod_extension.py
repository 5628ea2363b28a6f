# ABOUTME: Reads and writes the MSFT_lod extension on nodes and materials
# ABOUTME: Also builds the node LOD registry a merge starts from

import json
from typing import Dict, List

from .document import Document, Entity, EntityKind, dump_json
from .errors import UnsupportedEntityKindError
from .extensions import EXTENSION_MSFT_LOD, MSFT_LOD_IDS_KEY

# Node id -> ids of its LOD variants, highest detail first
LODRegistry = Dict[str, List[str]]

# Collections MSFT_lod ids can index into
_LOD_TARGETS = {
    EntityKind.NODE: lambda document: document.nodes,
    EntityKind.MATERIAL: lambda document: document.materials,
}


def parse_lod_extension(entity: Entity) -> List[str]:
    """
    Read the LOD ids an entity's MSFT_lod extension lists.

    Returns:
        Ids as strings, in stored order; empty if the extension is absent
    """
    payload = entity.extensions.get(EXTENSION_MSFT_LOD)
    if not payload:
        return []

    data = json.loads(payload)
    return [str(index) for index in data.get(MSFT_LOD_IDS_KEY, [])]


def serialize_lod_extension(lod_ids: List[str], document: Document,
                            kind: EntityKind = EntityKind.NODE) -> str:
    """
    Build an MSFT_lod payload for a chain of LOD ids.

    Args:
        lod_ids: Ids of the LOD variants, highest detail first
        document: Document whose collection the ids belong to
        kind: EntityKind.NODE or EntityKind.MATERIAL

    Returns:
        Compact JSON '{"ids":[...]}' of positional indices, or '' for an
        empty chain (the extension must then be omitted)

    Raises:
        UnsupportedEntityKindError: For any kind other than nodes or materials
    """
    if not lod_ids:
        return ''

    resolve = _LOD_TARGETS.get(kind)
    if resolve is None:
        raise UnsupportedEntityKindError(
            f"LODs can only be applied to materials or nodes, not {kind.value}"
        )

    collection = resolve(document)
    return dump_json({MSFT_LOD_IDS_KEY: [collection.get_index(lod_id) for lod_id in lod_ids]})


def parse_document_node_lods(document: Document) -> LODRegistry:
    """Registry with an entry (possibly empty) for every node of the document."""
    return {node.id: parse_lod_extension(node) for node in document.nodes}

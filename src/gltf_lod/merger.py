# ABOUTME: Appends one glTF document to another as the next LOD of its scene roots
# ABOUTME: Shifts every identifier and cross-reference of the appended entities

import copy
import logging
from typing import Callable, Dict, List, Tuple

from .document import Document, Entity, EntityKind
from .errors import TopologyMismatchError
from .extension_patcher import patch_extensions
from .extensions import EXTENSION_MSFT_LOD
from .lod_extension import LODRegistry
from .remap import offset_id, offset_ids

logger = logging.getLogger('gltf_lod')

Offsets = Dict[EntityKind, int]

# Collections are appended so that every referenced collection is merged first
MERGE_ORDER: Tuple[EntityKind, ...] = (
    EntityKind.BUFFER,
    EntityKind.SAMPLER,
    EntityKind.CAMERA,
    EntityKind.BUFFER_VIEW,
    EntityKind.ACCESSOR,
    EntityKind.IMAGE,
    EntityKind.TEXTURE,
    EntityKind.MATERIAL,
    EntityKind.MESH,
    EntityKind.NODE,
    EntityKind.SKIN,
    EntityKind.ANIMATION,
)

# Appended names get "<label><level>" to make LOD variants easy to spot
LABELLED_KINDS = (EntityKind.NODE, EntityKind.MATERIAL, EntityKind.MESH)


def _remap_buffer_view(view, offsets: Offsets) -> None:
    view.buffer_id = offset_id(view.buffer_id, offsets[EntityKind.BUFFER])


def _remap_accessor(accessor, offsets: Offsets) -> None:
    view_offset = offsets[EntityKind.BUFFER_VIEW]
    accessor.buffer_view_id = offset_id(accessor.buffer_view_id, view_offset)
    for section in accessor.sparse_sections():
        section['bufferView'] = offset_id(section['bufferView'], view_offset)


def _remap_image(image, offsets: Offsets) -> None:
    image.buffer_view_id = offset_id(image.buffer_view_id, offsets[EntityKind.BUFFER_VIEW])


def _remap_texture(texture, offsets: Offsets) -> None:
    texture.sampler_id = offset_id(texture.sampler_id, offsets[EntityKind.SAMPLER])
    texture.image_id = offset_id(texture.image_id, offsets[EntityKind.IMAGE])


def _remap_material(material, offsets: Offsets) -> None:
    for slot in material.texture_slots():
        slot.id = offset_id(slot.id, offsets[EntityKind.TEXTURE])


def _remap_mesh(mesh, offsets: Offsets) -> None:
    accessor_offset = offsets[EntityKind.ACCESSOR]
    for primitive in mesh.primitives:
        primitive.attributes = {
            semantic: offset_id(accessor_id, accessor_offset)
            for semantic, accessor_id in primitive.attributes.items()
        }
        primitive.targets = [
            {semantic: offset_id(accessor_id, accessor_offset) for semantic, accessor_id in target.items()}
            for target in primitive.targets
        ]
        primitive.indices_accessor_id = offset_id(primitive.indices_accessor_id, accessor_offset)
        primitive.material_id = offset_id(primitive.material_id, offsets[EntityKind.MATERIAL])


def _remap_node(node, offsets: Offsets) -> None:
    node.mesh_id = offset_id(node.mesh_id, offsets[EntityKind.MESH])
    node.camera_id = offset_id(node.camera_id, offsets[EntityKind.CAMERA])
    node.skin_id = offset_id(node.skin_id, offsets[EntityKind.SKIN])
    node.children = offset_ids(node.children, offsets[EntityKind.NODE])


def _remap_skin(skin, offsets: Offsets) -> None:
    node_offset = offsets[EntityKind.NODE]
    skin.inverse_bind_matrices_id = offset_id(skin.inverse_bind_matrices_id, offsets[EntityKind.ACCESSOR])
    skin.skeleton_id = offset_id(skin.skeleton_id, node_offset)
    skin.joints = offset_ids(skin.joints, node_offset)


def _remap_animation(animation, offsets: Offsets) -> None:
    accessor_offset = offsets[EntityKind.ACCESSOR]
    for sampler in animation.samplers:
        sampler.input_id = offset_id(sampler.input_id, accessor_offset)
        sampler.output_id = offset_id(sampler.output_id, accessor_offset)
    for channel in animation.channels:
        channel.target_node_id = offset_id(channel.target_node_id, offsets[EntityKind.NODE])


def _no_references(entity, offsets: Offsets) -> None:
    pass


# Foreign-key rewriting per entity kind
_REMAPPERS: Dict[EntityKind, Callable[[Entity, Offsets], None]] = {
    EntityKind.BUFFER: _no_references,
    EntityKind.SAMPLER: _no_references,
    EntityKind.CAMERA: _no_references,
    EntityKind.BUFFER_VIEW: _remap_buffer_view,
    EntityKind.ACCESSOR: _remap_accessor,
    EntityKind.IMAGE: _remap_image,
    EntityKind.TEXTURE: _remap_texture,
    EntityKind.MATERIAL: _remap_material,
    EntityKind.MESH: _remap_mesh,
    EntityKind.NODE: _remap_node,
    EntityKind.SKIN: _remap_skin,
    EntityKind.ANIMATION: _remap_animation,
}


def match_scene_roots(primary: Document, candidate: Document) -> List[Tuple[str, str]]:
    """
    Pair each primary scene root with the candidate root in the same position.

    Both documents need the same number of scenes and, per scene, the same
    number of roots. Scenes with several roots must also list the same root ids.

    Returns:
        (primary root id, candidate root id) pairs, scene by scene

    Raises:
        TopologyMismatchError: If the scene structures differ
    """
    primary_scenes = primary.scenes.elements()
    candidate_scenes = candidate.scenes.elements()

    if len(primary_scenes) != len(candidate_scenes):
        raise TopologyMismatchError(
            f"Primary has {len(primary_scenes)} scenes, LOD document has {len(candidate_scenes)}"
        )

    pairs = []
    for primary_scene, candidate_scene in zip(primary_scenes, candidate_scenes):
        if len(primary_scene.nodes) != len(candidate_scene.nodes):
            raise TopologyMismatchError(
                f"Scene {primary_scene.id}: primary has {len(primary_scene.nodes)} root nodes, "
                f"LOD document has {len(candidate_scene.nodes)}"
            )
        if len(candidate_scene.nodes) > 1 and primary_scene.nodes != candidate_scene.nodes:
            raise TopologyMismatchError(
                f"Scene {primary_scene.id}: root nodes {candidate_scene.nodes} "
                f"do not line up with primary roots {primary_scene.nodes}"
            )
        pairs.extend(zip(primary_scene.nodes, candidate_scene.nodes))

    return pairs


def merge_as_lod(primary: Document, registry: LODRegistry, candidate: Document,
                 lod_label: str = '_lod') -> Document:
    """
    Merge candidate into a copy of primary as one more LOD level.

    primary and candidate are left untouched. On success the offset id of each
    candidate scene root is appended to registry under the matching primary root.

    Args:
        primary: Document the LOD is added to
        registry: Node LOD chains of primary, updated in place
        candidate: Lower-detail document with the same scene topology
        lod_label: Prefix of the level suffix added to appended node, material and mesh names

    Returns:
        The merged document

    Raises:
        TopologyMismatchError: If candidate's scenes do not line up with primary's
        MalformedIdentifierError: If candidate holds a non-numeric identifier
    """
    root_pairs = match_scene_roots(primary, candidate)

    merged = primary.clone()

    level = 1 + max((len(registry.get(root_id, [])) for root_id, _ in root_pairs), default=0)
    label = f"{lod_label}{level}"

    offsets = {kind: merged.collection(kind).size() for kind in MERGE_ORDER}
    logger.debug("Merging LOD level %d with offsets %s", level,
                 {kind.value: offset for kind, offset in offsets.items()})

    for kind in MERGE_ORDER:
        target = merged.collection(kind)
        for source in candidate.collection(kind):
            entity = copy.deepcopy(source)
            entity.id = offset_id(entity.id, offsets[kind])
            _REMAPPERS[kind](entity, offsets)
            patch_extensions(entity, kind, offsets)
            if kind in LABELLED_KINDS:
                entity.name += label
            target.append(entity)

    if candidate.properties:
        logger.warning("Document-level keys of the LOD document are not merged: %s",
                       ', '.join(sorted(candidate.properties)))

    merged.extensions_used |= candidate.extensions_used
    merged.extensions_required |= candidate.extensions_required
    merged.extensions_used.add(EXTENSION_MSFT_LOD)

    # New LODs always go to the back of the chain
    node_offset = offsets[EntityKind.NODE]
    lod_roots = [(primary_root, offset_id(candidate_root, node_offset))
                 for primary_root, candidate_root in root_pairs]
    for primary_root, lod_root in lod_roots:
        registry.setdefault(primary_root, []).append(lod_root)

    return merged

"""
Tests for merging a single document as the next LOD level.
"""

import json
import logging

import pytest

from gltf_lod.document import Document, EntityKind, Node, Scene
from gltf_lod.errors import MalformedIdentifierError, TopologyMismatchError
from gltf_lod.extension_patcher import EXTENSION_PATCH_RULES, WILDCARD
from gltf_lod.merger import MERGE_ORDER, match_scene_roots, merge_as_lod

from gltf_builders import build_gltf, build_rigged_gltf


def _values_at(container, path):
    key, rest = path[0], path[1:]
    if key == WILDCARD:
        items = container if isinstance(container, list) else []
    elif isinstance(container, dict) and key in container:
        items = [container[key]]
    else:
        items = []
    for item in items:
        if rest:
            yield from _values_at(item, rest)
        else:
            yield item


def dangling_references(document):
    """(kind, id) pairs referenced somewhere in document that do not resolve."""
    refs = []
    refs += [(EntityKind.BUFFER, v.buffer_id) for v in document.buffer_views]
    for accessor in document.accessors:
        refs += [(EntityKind.BUFFER_VIEW, accessor.buffer_view_id)]
        refs += [(EntityKind.BUFFER_VIEW, s['bufferView']) for s in accessor.sparse_sections()]
    refs += [(EntityKind.BUFFER_VIEW, i.buffer_view_id) for i in document.images]
    for texture in document.textures:
        refs += [(EntityKind.SAMPLER, texture.sampler_id), (EntityKind.IMAGE, texture.image_id)]
    for material in document.materials:
        refs += [(EntityKind.TEXTURE, slot.id) for slot in material.texture_slots()]
    for mesh in document.meshes:
        for primitive in mesh.primitives:
            refs += [(EntityKind.ACCESSOR, a) for a in primitive.attributes.values()]
            refs += [(EntityKind.ACCESSOR, a) for target in primitive.targets for a in target.values()]
            refs += [(EntityKind.ACCESSOR, primitive.indices_accessor_id),
                     (EntityKind.MATERIAL, primitive.material_id)]
    for node in document.nodes:
        refs += [(EntityKind.MESH, node.mesh_id), (EntityKind.CAMERA, node.camera_id),
                 (EntityKind.SKIN, node.skin_id)]
        refs += [(EntityKind.NODE, child) for child in node.children]
    for skin in document.skins:
        refs += [(EntityKind.ACCESSOR, skin.inverse_bind_matrices_id), (EntityKind.NODE, skin.skeleton_id)]
        refs += [(EntityKind.NODE, joint) for joint in skin.joints]
    for animation in document.animations:
        for sampler in animation.samplers:
            refs += [(EntityKind.ACCESSOR, sampler.input_id), (EntityKind.ACCESSOR, sampler.output_id)]
        refs += [(EntityKind.NODE, channel.target_node_id) for channel in animation.channels]
    for scene in document.scenes:
        refs += [(EntityKind.NODE, root) for root in scene.nodes]

    for rule in EXTENSION_PATCH_RULES:
        for entity in document.collection(rule.entity_kind):
            payload = entity.extensions.get(rule.extension_name)
            if payload:
                refs += [(rule.offset_kind, str(v)) for v in _values_at(json.loads(payload), rule.field_path)]

    return [(kind, ref) for kind, ref in refs if ref and ref not in document.collection(kind)]


@pytest.fixture
def primary():
    return Document.from_dict(build_gltf('lod0'))


@pytest.fixture
def candidate():
    return Document.from_dict(build_gltf('lod1'))


@pytest.fixture
def registry():
    return {'0': [], '1': []}


class TestMergeAsLod:
    """Tests for merge_as_lod."""

    def test_collection_sizes_add_up(self, primary, candidate, registry):
        """Every merged collection holds both documents' entities."""
        merged = merge_as_lod(primary, registry, candidate)

        for kind in MERGE_ORDER:
            assert merged.collection(kind).size() == (
                primary.collection(kind).size() + candidate.collection(kind).size()
            ), kind

    def test_scenes_are_not_appended(self, primary, candidate, registry):
        """LOD roots hang off the primary roots, not off new scenes."""
        merged = merge_as_lod(primary, registry, candidate)

        assert merged.scenes.size() == 1
        assert merged.scenes.get('0').nodes == ['0']

    def test_all_references_resolve(self, primary, candidate, registry):
        """No foreign key or patched payload index dangles after a merge."""
        merged = merge_as_lod(primary, registry, candidate)

        assert dangling_references(merged) == []

    def test_inputs_are_not_modified(self, primary, candidate, registry):
        """Both inputs come out of a merge unchanged."""
        primary_before = primary.to_dict()
        candidate_before = candidate.to_dict()

        merge_as_lod(primary, registry, candidate)

        assert primary.to_dict() == primary_before
        assert candidate.to_dict() == candidate_before

    def test_foreign_keys_are_offset(self, primary, candidate, registry):
        """Candidate references are shifted by the primary collection sizes."""
        merged = merge_as_lod(primary, registry, candidate)

        lod_root = merged.nodes.get('2')
        assert lod_root.children == ['3']
        assert merged.nodes.get('3').mesh_id == '1'

        primitive = merged.meshes.get('1').primitives[0]
        assert primitive.attributes == {'POSITION': '3', 'NORMAL': '4'}
        assert primitive.indices_accessor_id == '5'
        assert primitive.material_id == '1'

        material = merged.materials.get('1')
        assert material.metallic_roughness.base_color_texture.id == '2'
        assert material.normal_texture.id == '3'
        assert material.occlusion_texture.id == ''

        assert merged.textures.get('2').sampler_id == '1'
        assert merged.textures.get('2').image_id == '2'
        assert merged.textures.get('3').sampler_id == ''
        assert merged.textures.get('3').image_id == '3'
        assert merged.images.get('3').buffer_view_id == '7'
        assert merged.accessors.get('5').buffer_view_id == '6'
        assert merged.buffer_views.get('7').buffer_id == '1'

    def test_extension_payloads_are_patched(self, primary, candidate, registry):
        """DDS and packed ORM indices follow the image and texture offsets."""
        merged = merge_as_lod(primary, registry, candidate)

        assert merged.textures.get('3').extensions['MSFT_texture_dds'] == '{"source":3}'
        orm = json.loads(merged.materials.get('1').extensions['MSFT_packing_occlusionRoughnessMetallic'])
        assert orm == {
            'occlusionRoughnessMetallicTexture': {'index': 3},
            'normalTexture': {'index': 2},
        }
        # Primary payloads keep their indices
        assert merged.textures.get('1').extensions['MSFT_texture_dds'] == '{"source":1}'

    def test_registry_gets_offset_root(self, primary, candidate, registry):
        """The offset candidate root is chained under the primary root."""
        merge_as_lod(primary, registry, candidate)

        assert registry == {'0': ['2'], '1': []}

    def test_names_get_lod_suffix(self, primary, candidate, registry):
        """Appended node, material and mesh names carry the level suffix."""
        merged = merge_as_lod(primary, registry, candidate)

        assert merged.materials.get('1').name == 'material_lod1_lod1'
        assert merged.meshes.get('1').name == 'mesh_lod1_lod1'
        assert merged.nodes.get('2').name == 'root_lod1_lod1'
        assert merged.nodes.get('0').name == 'root_lod0'
        assert merged.materials.get('0').name == 'material_lod0'

    def test_suffix_follows_longest_chain(self, primary, candidate):
        """The level is one past the longest existing chain."""
        registry = {'0': ['5', '6'], '1': []}

        merged = merge_as_lod(primary, registry, candidate, lod_label='-LOD')

        assert merged.meshes.get('1').name == 'mesh_lod1-LOD3'
        assert registry['0'] == ['5', '6', '2']

    def test_extensions_used(self, primary, candidate, registry):
        """Used and required extensions are unioned and MSFT_lod added."""
        candidate.extensions_used.add('KHR_materials_pbrSpecularGlossiness')
        candidate.extensions_required.add('MSFT_texture_dds')

        merged = merge_as_lod(primary, registry, candidate)

        assert merged.extensions_used == {
            'MSFT_texture_dds',
            'MSFT_packing_occlusionRoughnessMetallic',
            'KHR_materials_pbrSpecularGlossiness',
            'MSFT_lod',
        }
        assert merged.extensions_required == {'MSFT_texture_dds'}

    def test_candidate_lod_chains_follow_offset(self, primary, candidate, registry):
        """A candidate that already carries MSFT_lod keeps pointing at its own nodes."""
        candidate.nodes.get('0').extensions['MSFT_lod'] = '{"ids":[1]}'

        merged = merge_as_lod(primary, registry, candidate)

        assert merged.nodes.get('2').extensions['MSFT_lod'] == '{"ids":[3]}'

    def test_empty_candidate_changes_nothing(self):
        """Merging an empty document into a scene-less one keeps every count."""
        primary = Document.from_dict(build_gltf('lod0'))
        primary.scenes = Document().scenes
        registry = {'0': ['1'], '1': []}

        merged = merge_as_lod(primary, registry, Document())

        for kind in EntityKind:
            assert merged.collection(kind).size() == primary.collection(kind).size()
        assert registry == {'0': ['1'], '1': []}

    def test_malformed_identifier(self, primary, registry):
        """A non-numeric candidate id fails without touching the inputs."""
        candidate = Document()
        candidate.nodes.append(Node(id='abc'))
        candidate.scenes.append(Scene(nodes=['abc']))
        primary_before = primary.to_dict()

        with pytest.raises(MalformedIdentifierError):
            merge_as_lod(primary, registry, candidate)

        assert registry == {'0': [], '1': []}
        assert primary.to_dict() == primary_before


class TestMergeRiggedDocuments:
    """Tests for merging skinned, animated documents."""

    @pytest.fixture
    def merged(self):
        primary = Document.from_dict(build_rigged_gltf('lod0'))
        return merge_as_lod(primary, {'0': []}, Document.from_dict(build_rigged_gltf('lod1')))

    def test_all_references_resolve(self, merged):
        """Skin, camera, animation and sparse references resolve after a merge."""
        assert dangling_references(merged) == []
        assert merged.cameras.size() == 2
        assert merged.skins.size() == 2
        assert merged.animations.size() == 2

    def test_node_references_are_offset(self, merged):
        """LOD nodes point at the appended camera, skin and mesh."""
        assert merged.nodes.get('3').camera_id == '1'
        assert merged.nodes.get('3').children == ['4', '5']
        assert merged.nodes.get('4').skin_id == '1'
        assert merged.nodes.get('4').mesh_id == '1'

    def test_skin_and_animation_are_offset(self, merged):
        """Skins and animations follow the accessor and node offsets."""
        skin = merged.skins.get('1')
        assert (skin.inverse_bind_matrices_id, skin.skeleton_id, skin.joints) == ('10', '5', ['5'])

        animation = merged.animations.get('1')
        assert (animation.samplers[0].input_id, animation.samplers[0].output_id) == ('11', '12')
        assert animation.channels[0].target_node_id == '5'
        # Channel samplers index the animation's own samplers
        assert animation.channels[0].sampler == 0

    def test_sparse_accessor_and_targets_are_offset(self, merged):
        """Sparse buffer views and morph target accessors are shifted."""
        sparse = merged.accessors.get('13')
        assert [s['bufferView'] for s in sparse.sparse_sections()] == ['14', '15']
        assert merged.meshes.get('1').primitives[0].targets == [{'POSITION': '13'}]
        assert merged.to_dict()['accessors'][13]['sparse']['values'] == {'bufferView': 15}

    def test_passthrough_keys_survive(self, merged):
        """Unmodelled keys of appended entities are carried into the result."""
        out = merged.to_dict()

        assert out['extras'] == {'tag': 'lod0'}
        assert out['cameras'][1]['type'] == 'perspective'
        assert out['meshes'][1]['primitives'][0]['extras'] == {'lod': 'lod1'}
        assert out['materials'][1]['pbrMetallicRoughness']['extras'] == {'baked': True}
        assert out['animations'][1]['name'] == 'wave_lod1'

    def test_document_properties_warning(self, caplog, monkeypatch):
        """Top-level keys of the candidate are reported, not merged."""
        monkeypatch.setattr(logging.getLogger('gltf_lod'), 'propagate', True)
        primary = Document.from_dict(build_rigged_gltf('lod0'))

        with caplog.at_level(logging.WARNING, logger='gltf_lod'):
            merged = merge_as_lod(primary, {'0': []}, Document.from_dict(build_rigged_gltf('lod1')))

        assert "not merged: extensions, extras" in caplog.text
        assert merged.properties == primary.properties


class TestSceneMatching:
    """Tests for scene/root topology checks."""

    def test_scene_count_mismatch(self, primary, candidate, registry):
        """Differing scene counts fail before any mutation."""
        candidate.scenes.append(Scene(nodes=['0']))
        primary_before = primary.to_dict()

        with pytest.raises(TopologyMismatchError, match="scenes"):
            merge_as_lod(primary, registry, candidate)

        assert registry == {'0': [], '1': []}
        assert primary.to_dict() == primary_before

    def test_root_count_mismatch(self, primary, candidate, registry):
        """Differing root counts in a scene fail."""
        candidate.scenes.get('0').nodes.append('1')

        with pytest.raises(TopologyMismatchError, match="root nodes"):
            merge_as_lod(primary, registry, candidate)

    def test_multiple_roots_must_line_up(self, primary, candidate):
        """Several roots must be listed with the same ids."""
        primary.scenes.get('0').nodes = ['0', '1']
        candidate.scenes.get('0').nodes = ['1', '0']

        with pytest.raises(TopologyMismatchError, match="do not line up"):
            match_scene_roots(primary, candidate)

    def test_multiple_matching_roots(self, primary, candidate):
        """Each matched root gets its own chain entry."""
        primary.scenes.get('0').nodes = ['0', '1']
        candidate.scenes.get('0').nodes = ['0', '1']
        registry = {'0': [], '1': []}

        merge_as_lod(primary, registry, candidate)

        assert registry == {'0': ['2'], '1': ['3']}

    def test_single_root_may_differ(self, primary, candidate):
        """With one root per scene the root ids do not have to be equal."""
        candidate.scenes.get('0').nodes = ['1']

        assert match_scene_roots(primary, candidate) == [('0', '1')]

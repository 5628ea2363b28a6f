# ABOUTME: In-memory glTF document model with string identifiers per collection
# ABOUTME: Converts to and from the parsed glTF JSON manifest dictionary

import copy
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Set


class EntityKind(Enum):
    """Entity collections of a document, listed in merge dependency order."""
    BUFFER = 'buffers'
    SAMPLER = 'samplers'
    CAMERA = 'cameras'
    BUFFER_VIEW = 'bufferViews'
    ACCESSOR = 'accessors'
    IMAGE = 'images'
    TEXTURE = 'textures'
    MATERIAL = 'materials'
    MESH = 'meshes'
    NODE = 'nodes'
    SKIN = 'skins'
    ANIMATION = 'animations'
    SCENE = 'scenes'


def dump_json(value: Any) -> str:
    """Serialize to compact JSON, the form extension payloads are stored in."""
    return json.dumps(value, separators=(',', ':'))


def _id(value: Optional[int]) -> str:
    return '' if value is None else str(value)


def _load_payloads(data: dict) -> Dict[str, str]:
    return {name: dump_json(value) for name, value in data.get('extensions', {}).items()}


def _unmodelled(data: dict, known) -> Dict[str, Any]:
    """Keys of data that have no dedicated field, carried through unchanged."""
    return {key: copy.deepcopy(value) for key, value in data.items() if key not in known}


@dataclass
class Entity:
    """
    Fields shared by every glTF entity.

    Attributes:
        id: Identifier within the owning collection ('' until appended)
        name: Optional human readable name
        extensions: Extension name -> compact JSON payload
        extras: JSON encoded extras object ('' when unset)
        properties: glTF keys without a dedicated field, written back as read
    """
    id: str = ''
    name: str = ''
    extensions: Dict[str, str] = field(default_factory=dict)
    extras: str = ''
    properties: Dict[str, Any] = field(default_factory=dict)

    # glTF keys mapped onto dedicated fields by the subclass
    _KEYS = ()

    def _load_common(self, data: dict) -> None:
        self.name = data.get('name', '')
        self.extensions = _load_payloads(data)
        if 'extras' in data:
            self.extras = dump_json(data['extras'])
        self.properties = _unmodelled(data, self._KEYS + ('name', 'extensions', 'extras'))

    def _common_dict(self) -> dict:
        out = copy.deepcopy(self.properties)
        if self.name:
            out['name'] = self.name
        if self.extensions:
            out['extensions'] = {
                name: json.loads(payload) if payload else {}
                for name, payload in self.extensions.items()
            }
        if self.extras:
            out['extras'] = json.loads(self.extras)
        return out


@dataclass
class Buffer(Entity):
    uri: str = ''
    byte_length: int = 0

    _KEYS = ('uri', 'byteLength')

    @classmethod
    def from_dict(cls, data: dict) -> 'Buffer':
        buffer = cls(uri=data.get('uri', ''), byte_length=data.get('byteLength', 0))
        buffer._load_common(data)
        return buffer

    def to_dict(self, document: 'Document') -> dict:
        out = {'byteLength': self.byte_length}
        if self.uri:
            out['uri'] = self.uri
        out.update(self._common_dict())
        return out


@dataclass
class Sampler(Entity):
    mag_filter: Optional[int] = None
    min_filter: Optional[int] = None
    wrap_s: int = 10497
    wrap_t: int = 10497

    _KEYS = ('magFilter', 'minFilter', 'wrapS', 'wrapT')

    @classmethod
    def from_dict(cls, data: dict) -> 'Sampler':
        sampler = cls(
            mag_filter=data.get('magFilter'),
            min_filter=data.get('minFilter'),
            wrap_s=data.get('wrapS', 10497),
            wrap_t=data.get('wrapT', 10497),
        )
        sampler._load_common(data)
        return sampler

    def to_dict(self, document: 'Document') -> dict:
        out = {'wrapS': self.wrap_s, 'wrapT': self.wrap_t}
        if self.mag_filter is not None:
            out['magFilter'] = self.mag_filter
        if self.min_filter is not None:
            out['minFilter'] = self.min_filter
        out.update(self._common_dict())
        return out


@dataclass
class Camera(Entity):
    """Projection settings (type, perspective, orthographic) are kept in properties."""

    @classmethod
    def from_dict(cls, data: dict) -> 'Camera':
        camera = cls()
        camera._load_common(data)
        return camera

    def to_dict(self, document: 'Document') -> dict:
        return self._common_dict()


@dataclass
class BufferView(Entity):
    buffer_id: str = ''
    byte_offset: int = 0
    byte_length: int = 0
    byte_stride: Optional[int] = None
    target: Optional[int] = None

    _KEYS = ('buffer', 'byteOffset', 'byteLength', 'byteStride', 'target')

    @classmethod
    def from_dict(cls, data: dict) -> 'BufferView':
        view = cls(
            buffer_id=_id(data.get('buffer')),
            byte_offset=data.get('byteOffset', 0),
            byte_length=data.get('byteLength', 0),
            byte_stride=data.get('byteStride'),
            target=data.get('target'),
        )
        view._load_common(data)
        return view

    def to_dict(self, document: 'Document') -> dict:
        out = {
            'buffer': document.index_of(EntityKind.BUFFER, self.buffer_id),
            'byteOffset': self.byte_offset,
            'byteLength': self.byte_length,
        }
        if self.byte_stride is not None:
            out['byteStride'] = self.byte_stride
        if self.target is not None:
            out['target'] = self.target
        out.update(self._common_dict())
        return out


@dataclass
class Accessor(Entity):
    """
    A typed view into a buffer view.

    sparse holds the glTF sparse object as read, except that the bufferView
    of its indices and values sections is a string id.
    """
    buffer_view_id: str = ''
    byte_offset: int = 0
    component_type: int = 5126
    count: int = 0
    type: str = 'SCALAR'
    normalized: bool = False
    min: List[float] = field(default_factory=list)
    max: List[float] = field(default_factory=list)
    sparse: Optional[Dict[str, Any]] = None

    _KEYS = ('bufferView', 'byteOffset', 'componentType', 'count', 'type',
             'normalized', 'min', 'max', 'sparse')

    def sparse_sections(self) -> List[Dict[str, Any]]:
        """The sparse indices/values sections that reference a buffer view."""
        if not self.sparse:
            return []
        return [self.sparse[part] for part in ('indices', 'values')
                if isinstance(self.sparse.get(part), dict) and 'bufferView' in self.sparse[part]]

    @classmethod
    def from_dict(cls, data: dict) -> 'Accessor':
        accessor = cls(
            buffer_view_id=_id(data.get('bufferView')),
            byte_offset=data.get('byteOffset', 0),
            component_type=data.get('componentType', 5126),
            count=data.get('count', 0),
            type=data.get('type', 'SCALAR'),
            normalized=data.get('normalized', False),
            min=list(data.get('min', [])),
            max=list(data.get('max', [])),
            sparse=copy.deepcopy(data.get('sparse')),
        )
        for section in accessor.sparse_sections():
            section['bufferView'] = _id(section['bufferView'])
        accessor._load_common(data)
        return accessor

    def to_dict(self, document: 'Document') -> dict:
        out = {
            'componentType': self.component_type,
            'count': self.count,
            'type': self.type,
        }
        if self.buffer_view_id:
            out['bufferView'] = document.index_of(EntityKind.BUFFER_VIEW, self.buffer_view_id)
            out['byteOffset'] = self.byte_offset
        if self.normalized:
            out['normalized'] = True
        if self.min:
            out['min'] = list(self.min)
        if self.max:
            out['max'] = list(self.max)
        if self.sparse is not None:
            sparse = copy.deepcopy(self.sparse)
            for part in ('indices', 'values'):
                section = sparse.get(part)
                if isinstance(section, dict) and 'bufferView' in section:
                    section['bufferView'] = document.index_of(EntityKind.BUFFER_VIEW, section['bufferView'])
            out['sparse'] = sparse
        out.update(self._common_dict())
        return out


@dataclass
class Image(Entity):
    uri: str = ''
    mime_type: str = ''
    buffer_view_id: str = ''

    _KEYS = ('uri', 'mimeType', 'bufferView')

    @classmethod
    def from_dict(cls, data: dict) -> 'Image':
        image = cls(
            uri=data.get('uri', ''),
            mime_type=data.get('mimeType', ''),
            buffer_view_id=_id(data.get('bufferView')),
        )
        image._load_common(data)
        return image

    def to_dict(self, document: 'Document') -> dict:
        out = {}
        if self.uri:
            out['uri'] = self.uri
        if self.mime_type:
            out['mimeType'] = self.mime_type
        if self.buffer_view_id:
            out['bufferView'] = document.index_of(EntityKind.BUFFER_VIEW, self.buffer_view_id)
        out.update(self._common_dict())
        return out


@dataclass
class Texture(Entity):
    sampler_id: str = ''
    image_id: str = ''

    _KEYS = ('sampler', 'source')

    @classmethod
    def from_dict(cls, data: dict) -> 'Texture':
        texture = cls(sampler_id=_id(data.get('sampler')), image_id=_id(data.get('source')))
        texture._load_common(data)
        return texture

    def to_dict(self, document: 'Document') -> dict:
        out = {}
        if self.sampler_id:
            out['sampler'] = document.index_of(EntityKind.SAMPLER, self.sampler_id)
        if self.image_id:
            out['source'] = document.index_of(EntityKind.IMAGE, self.image_id)
        out.update(self._common_dict())
        return out


@dataclass
class TextureInfo:
    """Reference from a material slot to a texture, plus slot properties (scale, strength, ...)."""
    id: str = ''
    tex_coord: int = 0
    properties: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'TextureInfo':
        if not data:
            return cls()
        return cls(id=_id(data.get('index')), tex_coord=data.get('texCoord', 0),
                   properties=_unmodelled(data, ('index', 'texCoord')))

    def to_dict(self, document: 'Document') -> dict:
        out = {'index': document.index_of(EntityKind.TEXTURE, self.id)}
        if self.tex_coord:
            out['texCoord'] = self.tex_coord
        out.update(copy.deepcopy(self.properties))
        return out


@dataclass
class MetallicRoughness:
    base_color_factor: List[float] = field(default_factory=lambda: [1.0, 1.0, 1.0, 1.0])
    base_color_texture: TextureInfo = field(default_factory=TextureInfo)
    metallic_factor: float = 1.0
    roughness_factor: float = 1.0
    metallic_roughness_texture: TextureInfo = field(default_factory=TextureInfo)
    properties: Dict[str, Any] = field(default_factory=dict)

    _KEYS = ('baseColorFactor', 'baseColorTexture', 'metallicFactor',
             'roughnessFactor', 'metallicRoughnessTexture')


@dataclass
class Material(Entity):
    metallic_roughness: MetallicRoughness = field(default_factory=MetallicRoughness)
    normal_texture: TextureInfo = field(default_factory=TextureInfo)
    occlusion_texture: TextureInfo = field(default_factory=TextureInfo)
    emissive_texture: TextureInfo = field(default_factory=TextureInfo)
    emissive_factor: List[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    alpha_mode: str = 'OPAQUE'
    alpha_cutoff: float = 0.5
    double_sided: bool = False

    _KEYS = ('pbrMetallicRoughness', 'normalTexture', 'occlusionTexture', 'emissiveTexture',
             'emissiveFactor', 'alphaMode', 'alphaCutoff', 'doubleSided')

    def texture_slots(self) -> List[TextureInfo]:
        """All core texture references carried by this material."""
        return [
            self.normal_texture,
            self.occlusion_texture,
            self.emissive_texture,
            self.metallic_roughness.base_color_texture,
            self.metallic_roughness.metallic_roughness_texture,
        ]

    @classmethod
    def from_dict(cls, data: dict) -> 'Material':
        pbr = data.get('pbrMetallicRoughness', {})
        material = cls(
            metallic_roughness=MetallicRoughness(
                base_color_factor=list(pbr.get('baseColorFactor', [1.0, 1.0, 1.0, 1.0])),
                base_color_texture=TextureInfo.from_dict(pbr.get('baseColorTexture')),
                metallic_factor=pbr.get('metallicFactor', 1.0),
                roughness_factor=pbr.get('roughnessFactor', 1.0),
                metallic_roughness_texture=TextureInfo.from_dict(pbr.get('metallicRoughnessTexture')),
                properties=_unmodelled(pbr, MetallicRoughness._KEYS),
            ),
            normal_texture=TextureInfo.from_dict(data.get('normalTexture')),
            occlusion_texture=TextureInfo.from_dict(data.get('occlusionTexture')),
            emissive_texture=TextureInfo.from_dict(data.get('emissiveTexture')),
            emissive_factor=list(data.get('emissiveFactor', [0.0, 0.0, 0.0])),
            alpha_mode=data.get('alphaMode', 'OPAQUE'),
            alpha_cutoff=data.get('alphaCutoff', 0.5),
            double_sided=data.get('doubleSided', False),
        )
        material._load_common(data)
        return material

    def to_dict(self, document: 'Document') -> dict:
        mr = self.metallic_roughness
        pbr = copy.deepcopy(mr.properties)
        pbr.update({
            'baseColorFactor': list(mr.base_color_factor),
            'metallicFactor': mr.metallic_factor,
            'roughnessFactor': mr.roughness_factor,
        })
        if mr.base_color_texture.id:
            pbr['baseColorTexture'] = mr.base_color_texture.to_dict(document)
        if mr.metallic_roughness_texture.id:
            pbr['metallicRoughnessTexture'] = mr.metallic_roughness_texture.to_dict(document)

        out = {'pbrMetallicRoughness': pbr}
        for key, info in (('normalTexture', self.normal_texture),
                          ('occlusionTexture', self.occlusion_texture),
                          ('emissiveTexture', self.emissive_texture)):
            if info.id:
                out[key] = info.to_dict(document)
        out['emissiveFactor'] = list(self.emissive_factor)
        out['alphaMode'] = self.alpha_mode
        if self.alpha_mode == 'MASK':
            out['alphaCutoff'] = self.alpha_cutoff
        if self.double_sided:
            out['doubleSided'] = True
        out.update(self._common_dict())
        return out


@dataclass
class MeshPrimitive:
    """
    A single draw call of a mesh.

    Attributes:
        attributes: Semantic (POSITION, NORMAL, TEXCOORD_0, ...) -> accessor id
        indices_accessor_id: Index accessor id ('' for non-indexed geometry)
        material_id: Material id ('' for the default material)
        mode: Topology type (4 = triangles)
        targets: Morph targets, each a semantic -> accessor id mapping
        properties: Other primitive keys (extras, extensions), kept as read
    """
    attributes: Dict[str, str] = field(default_factory=dict)
    indices_accessor_id: str = ''
    material_id: str = ''
    mode: int = 4
    targets: List[Dict[str, str]] = field(default_factory=list)
    properties: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> 'MeshPrimitive':
        return cls(
            attributes={k: _id(v) for k, v in data.get('attributes', {}).items()},
            indices_accessor_id=_id(data.get('indices')),
            material_id=_id(data.get('material')),
            mode=data.get('mode', 4),
            targets=[{k: _id(v) for k, v in t.items()} for t in data.get('targets', [])],
            properties=_unmodelled(data, ('attributes', 'indices', 'material', 'mode', 'targets')),
        )

    def to_dict(self, document: 'Document') -> dict:
        accessor = EntityKind.ACCESSOR
        out = copy.deepcopy(self.properties)
        out['attributes'] = {k: document.index_of(accessor, v) for k, v in self.attributes.items()}
        out['mode'] = self.mode
        if self.indices_accessor_id:
            out['indices'] = document.index_of(accessor, self.indices_accessor_id)
        if self.material_id:
            out['material'] = document.index_of(EntityKind.MATERIAL, self.material_id)
        if self.targets:
            out['targets'] = [
                {k: document.index_of(accessor, v) for k, v in t.items()} for t in self.targets
            ]
        return out


@dataclass
class Mesh(Entity):
    primitives: List[MeshPrimitive] = field(default_factory=list)
    weights: List[float] = field(default_factory=list)

    _KEYS = ('primitives', 'weights')

    @classmethod
    def from_dict(cls, data: dict) -> 'Mesh':
        mesh = cls(
            primitives=[MeshPrimitive.from_dict(p) for p in data.get('primitives', [])],
            weights=list(data.get('weights', [])),
        )
        mesh._load_common(data)
        return mesh

    def to_dict(self, document: 'Document') -> dict:
        out = {'primitives': [p.to_dict(document) for p in self.primitives]}
        if self.weights:
            out['weights'] = list(self.weights)
        out.update(self._common_dict())
        return out


@dataclass
class Node(Entity):
    mesh_id: str = ''
    camera_id: str = ''
    skin_id: str = ''
    children: List[str] = field(default_factory=list)
    matrix: Optional[List[float]] = None
    translation: Optional[List[float]] = None
    rotation: Optional[List[float]] = None
    scale: Optional[List[float]] = None
    weights: Optional[List[float]] = None

    _KEYS = ('mesh', 'camera', 'skin', 'children', 'matrix', 'translation',
             'rotation', 'scale', 'weights')

    @classmethod
    def from_dict(cls, data: dict) -> 'Node':
        node = cls(
            mesh_id=_id(data.get('mesh')),
            camera_id=_id(data.get('camera')),
            skin_id=_id(data.get('skin')),
            children=[str(c) for c in data.get('children', [])],
            matrix=data.get('matrix'),
            translation=data.get('translation'),
            rotation=data.get('rotation'),
            scale=data.get('scale'),
            weights=data.get('weights'),
        )
        node._load_common(data)
        return node

    def to_dict(self, document: 'Document') -> dict:
        out = {}
        if self.mesh_id:
            out['mesh'] = document.index_of(EntityKind.MESH, self.mesh_id)
        if self.camera_id:
            out['camera'] = document.index_of(EntityKind.CAMERA, self.camera_id)
        if self.skin_id:
            out['skin'] = document.index_of(EntityKind.SKIN, self.skin_id)
        if self.children:
            out['children'] = [document.index_of(EntityKind.NODE, c) for c in self.children]
        for key in ('matrix', 'translation', 'rotation', 'scale', 'weights'):
            value = getattr(self, key)
            if value is not None:
                out[key] = list(value)
        out.update(self._common_dict())
        return out


@dataclass
class Skin(Entity):
    inverse_bind_matrices_id: str = ''
    skeleton_id: str = ''
    joints: List[str] = field(default_factory=list)

    _KEYS = ('inverseBindMatrices', 'skeleton', 'joints')

    @classmethod
    def from_dict(cls, data: dict) -> 'Skin':
        skin = cls(
            inverse_bind_matrices_id=_id(data.get('inverseBindMatrices')),
            skeleton_id=_id(data.get('skeleton')),
            joints=[str(j) for j in data.get('joints', [])],
        )
        skin._load_common(data)
        return skin

    def to_dict(self, document: 'Document') -> dict:
        out = {'joints': [document.index_of(EntityKind.NODE, j) for j in self.joints]}
        if self.inverse_bind_matrices_id:
            out['inverseBindMatrices'] = document.index_of(EntityKind.ACCESSOR, self.inverse_bind_matrices_id)
        if self.skeleton_id:
            out['skeleton'] = document.index_of(EntityKind.NODE, self.skeleton_id)
        out.update(self._common_dict())
        return out


@dataclass
class AnimationSampler:
    input_id: str = ''
    output_id: str = ''
    interpolation: str = 'LINEAR'
    properties: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> 'AnimationSampler':
        return cls(
            input_id=_id(data.get('input')),
            output_id=_id(data.get('output')),
            interpolation=data.get('interpolation', 'LINEAR'),
            properties=_unmodelled(data, ('input', 'output', 'interpolation')),
        )

    def to_dict(self, document: 'Document') -> dict:
        out = copy.deepcopy(self.properties)
        out['input'] = document.index_of(EntityKind.ACCESSOR, self.input_id)
        out['output'] = document.index_of(EntityKind.ACCESSOR, self.output_id)
        out['interpolation'] = self.interpolation
        return out


@dataclass
class AnimationChannel:
    """A channel; sampler indexes the owning animation's samplers and is never offset."""
    sampler: int = 0
    target_node_id: str = ''
    target_path: str = ''
    target_properties: Dict[str, Any] = field(default_factory=dict)
    properties: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> 'AnimationChannel':
        target = data.get('target', {})
        return cls(
            sampler=data.get('sampler', 0),
            target_node_id=_id(target.get('node')),
            target_path=target.get('path', ''),
            target_properties=_unmodelled(target, ('node', 'path')),
            properties=_unmodelled(data, ('sampler', 'target')),
        )

    def to_dict(self, document: 'Document') -> dict:
        target = copy.deepcopy(self.target_properties)
        if self.target_node_id:
            target['node'] = document.index_of(EntityKind.NODE, self.target_node_id)
        target['path'] = self.target_path
        out = copy.deepcopy(self.properties)
        out['sampler'] = self.sampler
        out['target'] = target
        return out


@dataclass
class Animation(Entity):
    channels: List[AnimationChannel] = field(default_factory=list)
    samplers: List[AnimationSampler] = field(default_factory=list)

    _KEYS = ('channels', 'samplers')

    @classmethod
    def from_dict(cls, data: dict) -> 'Animation':
        animation = cls(
            channels=[AnimationChannel.from_dict(c) for c in data.get('channels', [])],
            samplers=[AnimationSampler.from_dict(s) for s in data.get('samplers', [])],
        )
        animation._load_common(data)
        return animation

    def to_dict(self, document: 'Document') -> dict:
        out = {
            'channels': [c.to_dict(document) for c in self.channels],
            'samplers': [s.to_dict(document) for s in self.samplers],
        }
        out.update(self._common_dict())
        return out


@dataclass
class Scene(Entity):
    nodes: List[str] = field(default_factory=list)

    _KEYS = ('nodes',)

    @classmethod
    def from_dict(cls, data: dict) -> 'Scene':
        scene = cls(nodes=[str(n) for n in data.get('nodes', [])])
        scene._load_common(data)
        return scene

    def to_dict(self, document: 'Document') -> dict:
        out = {'nodes': [document.index_of(EntityKind.NODE, n) for n in self.nodes]}
        out.update(self._common_dict())
        return out


ENTITY_TYPES = {
    EntityKind.BUFFER: Buffer,
    EntityKind.SAMPLER: Sampler,
    EntityKind.CAMERA: Camera,
    EntityKind.BUFFER_VIEW: BufferView,
    EntityKind.ACCESSOR: Accessor,
    EntityKind.IMAGE: Image,
    EntityKind.TEXTURE: Texture,
    EntityKind.MATERIAL: Material,
    EntityKind.MESH: Mesh,
    EntityKind.NODE: Node,
    EntityKind.SKIN: Skin,
    EntityKind.ANIMATION: Animation,
    EntityKind.SCENE: Scene,
}


class EntityCollection:
    """Ordered, identifier-indexed collection holding a single entity kind."""

    def __init__(self, kind: EntityKind, entities=None):
        self.kind = kind
        self._entities: List[Entity] = []
        self._positions: Dict[str, int] = {}
        for entity in entities or []:
            self.append(entity)

    def append(self, entity: Entity) -> Entity:
        """
        Append an entity to the end of the collection.

        An entity with an empty id is given its positional index as id.

        Raises:
            ValueError: If the id is already present in the collection
        """
        if not entity.id:
            entity.id = str(len(self._entities))
        if entity.id in self._positions:
            raise ValueError(f"Duplicate {self.kind.value} id: {entity.id}")
        self._positions[entity.id] = len(self._entities)
        self._entities.append(entity)
        return entity

    def get(self, entity_id: str) -> Entity:
        return self._entities[self.get_index(entity_id)]

    def get_index(self, entity_id: str) -> int:
        """Positional index of the entity with the given id."""
        try:
            return self._positions[entity_id]
        except KeyError:
            raise KeyError(f"No entry in {self.kind.value} with id '{entity_id}'") from None

    def replace(self, entity: Entity) -> None:
        """Swap in an entity in place of the one sharing its id."""
        self._entities[self.get_index(entity.id)] = entity

    def elements(self) -> List[Entity]:
        return list(self._entities)

    def size(self) -> int:
        return len(self._entities)

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[Entity]:
        return iter(self._entities)

    def __contains__(self, entity_id) -> bool:
        return entity_id in self._positions


def _collection(kind: EntityKind):
    return field(default_factory=lambda: EntityCollection(kind))


_DOCUMENT_KEYS = ('asset', 'extensionsUsed', 'extensionsRequired', 'scene') + tuple(k.value for k in EntityKind)


@dataclass
class Document:
    """
    A parsed glTF manifest.

    Top-level keys outside the core collections (document extensions, extras)
    are kept in properties and written back unchanged.
    """
    buffers: EntityCollection = _collection(EntityKind.BUFFER)
    samplers: EntityCollection = _collection(EntityKind.SAMPLER)
    cameras: EntityCollection = _collection(EntityKind.CAMERA)
    buffer_views: EntityCollection = _collection(EntityKind.BUFFER_VIEW)
    accessors: EntityCollection = _collection(EntityKind.ACCESSOR)
    images: EntityCollection = _collection(EntityKind.IMAGE)
    textures: EntityCollection = _collection(EntityKind.TEXTURE)
    materials: EntityCollection = _collection(EntityKind.MATERIAL)
    meshes: EntityCollection = _collection(EntityKind.MESH)
    nodes: EntityCollection = _collection(EntityKind.NODE)
    skins: EntityCollection = _collection(EntityKind.SKIN)
    animations: EntityCollection = _collection(EntityKind.ANIMATION)
    scenes: EntityCollection = _collection(EntityKind.SCENE)
    extensions_used: Set[str] = field(default_factory=set)
    extensions_required: Set[str] = field(default_factory=set)
    asset: Dict[str, Any] = field(default_factory=lambda: {'version': '2.0'})
    default_scene_id: str = ''
    properties: Dict[str, Any] = field(default_factory=dict)

    def collection(self, kind: EntityKind) -> EntityCollection:
        return getattr(self, _ATTRIBUTES[kind])

    def index_of(self, kind: EntityKind, entity_id: str) -> Optional[int]:
        """Positional index of a referenced entity, None when the reference is unset."""
        if not entity_id:
            return None
        return self.collection(kind).get_index(entity_id)

    def clone(self) -> 'Document':
        return copy.deepcopy(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'Document':
        """Build a document from a parsed glTF JSON manifest."""
        document = cls(
            extensions_used=set(data.get('extensionsUsed', [])),
            extensions_required=set(data.get('extensionsRequired', [])),
            asset=dict(data.get('asset', {'version': '2.0'})),
            default_scene_id=_id(data.get('scene')),
            properties=_unmodelled(data, _DOCUMENT_KEYS),
        )
        for kind, entity_type in ENTITY_TYPES.items():
            collection = document.collection(kind)
            for item in data.get(kind.value, []):
                collection.append(entity_type.from_dict(item))
        return document

    def to_dict(self) -> dict:
        """Convert back to a glTF JSON manifest; empty collections are omitted."""
        out = copy.deepcopy(self.properties)
        out['asset'] = dict(self.asset)
        if self.extensions_used:
            out['extensionsUsed'] = sorted(self.extensions_used)
        if self.extensions_required:
            out['extensionsRequired'] = sorted(self.extensions_required)
        if self.default_scene_id:
            out['scene'] = self.index_of(EntityKind.SCENE, self.default_scene_id)
        for kind in EntityKind:
            collection = self.collection(kind)
            if len(collection):
                out[kind.value] = [entity.to_dict(self) for entity in collection]
        return out


_ATTRIBUTES = {
    EntityKind.BUFFER: 'buffers',
    EntityKind.SAMPLER: 'samplers',
    EntityKind.CAMERA: 'cameras',
    EntityKind.BUFFER_VIEW: 'buffer_views',
    EntityKind.ACCESSOR: 'accessors',
    EntityKind.IMAGE: 'images',
    EntityKind.TEXTURE: 'textures',
    EntityKind.MATERIAL: 'materials',
    EntityKind.MESH: 'meshes',
    EntityKind.NODE: 'nodes',
    EntityKind.SKIN: 'skins',
    EntityKind.ANIMATION: 'animations',
    EntityKind.SCENE: 'scenes',
}

# ABOUTME: Package initialization for the glTF LOD merger
# ABOUTME: Exports the merge entry points, document model and errors

from .config import MergeConfig
from .document import Document, EntityCollection, EntityKind
from .errors import (
    EmptyInputError,
    LODMergeError,
    MalformedIdentifierError,
    TopologyMismatchError,
    UnsupportedEntityKindError,
)
from .lod_extension import parse_document_node_lods, serialize_lod_extension
from .merger import merge_as_lod
from .orchestrator import LODOrchestrator, count_lod_levels, merge_documents_as_lods

__version__ = "0.1.0"

__all__ = [
    "MergeConfig",
    "Document",
    "EntityCollection",
    "EntityKind",
    "EmptyInputError",
    "LODMergeError",
    "MalformedIdentifierError",
    "TopologyMismatchError",
    "UnsupportedEntityKindError",
    "parse_document_node_lods",
    "serialize_lod_extension",
    "merge_as_lod",
    "LODOrchestrator",
    "count_lod_levels",
    "merge_documents_as_lods",
]

# ABOUTME: Shared fixtures for the LOD merge test suite
# ABOUTME: Builds documents from the synthetic manifests in gltf_builders

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gltf_lod.document import Document
from gltf_builders import build_gltf, build_minimal_gltf


@pytest.fixture
def textured_document():
    """Create a textured document for testing."""
    return Document.from_dict(build_gltf('lod0'))


@pytest.fixture
def make_textured_document():
    """Factory for textured documents with distinct names."""
    return lambda tag: Document.from_dict(build_gltf(tag))


@pytest.fixture
def make_minimal_document():
    """Factory for single-node documents."""
    return lambda tag: Document.from_dict(build_minimal_gltf(tag))

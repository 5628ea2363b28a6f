#!/usr/bin/env python3
# ABOUTME: Basic usage examples for the glTF LOD merger
# ABOUTME: Demonstrates merging parsed glTF manifests as LOD levels

import sys
import json
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from gltf_lod import Document, LODOrchestrator, MergeConfig, count_lod_levels, merge_documents_as_lods
from gltf_lod.utils import setup_logging


def make_manifest(tag):
    """A single node glTF manifest standing in for a parsed .gltf file."""
    return {
        'asset': {'version': '2.0'},
        'scenes': [{'nodes': [0]}],
        'nodes': [{'name': f'tree_{tag}', 'mesh': 0}],
        'meshes': [{'name': f'tree_{tag}', 'primitives': [{'attributes': {'POSITION': 0}, 'material': 0}]}],
        'materials': [{'name': f'bark_{tag}'}],
        'accessors': [{'bufferView': 0, 'componentType': 5126, 'count': 3, 'type': 'VEC3'}],
        'bufferViews': [{'buffer': 0, 'byteLength': 36}],
        'buffers': [{'uri': f'tree_{tag}.bin', 'byteLength': 36}],
    }


def example_basic_merge():
    """Merge two documents as LODs."""
    print("Example 1: Basic Merge")
    print("-" * 50)

    documents = [Document.from_dict(make_manifest('high')), Document.from_dict(make_manifest('low'))]
    merged = merge_documents_as_lods(documents)

    print(json.dumps(merged.to_dict()['nodes'], indent=2))
    print()


def example_screen_coverage():
    """Merge three documents and attach screen coverage hints."""
    print("Example 2: Screen Coverage")
    print("-" * 50)

    orchestrator = LODOrchestrator(MergeConfig(screen_coverage=[0.5, 0.2, 0.01]))
    documents = [Document.from_dict(make_manifest(tag)) for tag in ('high', 'medium', 'low')]
    merged = orchestrator.merge_all(documents)

    print(f"LOD levels: {count_lod_levels(merged, orchestrator.registry)}")
    print(json.dumps(merged.to_dict()['nodes'][0], indent=2))
    print()


if __name__ == '__main__':
    setup_logging(verbose=True)
    example_basic_merge()
    example_screen_coverage()

# ABOUTME: Folds a list of glTF documents into one document with MSFT_lod node chains
# ABOUTME: Finalizes by writing LOD extensions and optional screen coverage onto scene roots

import dataclasses
import json
import logging
import time
from typing import List, Optional, Sequence

from .config import MergeConfig
from .document import Document, EntityKind, dump_json
from .errors import EmptyInputError
from .extensions import EXTENSION_MSFT_LOD, MSFT_SCREEN_COVERAGE_KEY
from .lod_extension import LODRegistry, parse_document_node_lods, serialize_lod_extension
from .merger import merge_as_lod
from .utils.logging_utils import Timer, TimingStats


def count_lod_levels(document: Document, registry: LODRegistry) -> int:
    """Longest LOD chain held by any node of document."""
    return max((len(lod_ids) for node_id, lod_ids in registry.items() if node_id in document.nodes),
               default=0)


class LODOrchestrator:
    """Merges an ordered list of documents as successive LODs of the first one."""

    def __init__(self, config: Optional[MergeConfig] = None):
        """Initialize orchestrator with configuration."""
        self.config = config or MergeConfig()
        self.logger = logging.getLogger('gltf_lod')
        self.registry: LODRegistry = {}
        self.timing_stats: Optional[TimingStats] = None

    def merge_all(self, documents: Sequence[Document]) -> Document:
        """
        Merge documents[1:] into documents[0] as LOD levels 1..N-1.

        Existing MSFT_lod chains on the first document are kept and extended,
        so an already merged document can be merged again. Input documents are
        not modified.

        Args:
            documents: Highest detail document first

        Returns:
            The merged document

        Raises:
            EmptyInputError: If no documents are given
            TopologyMismatchError: If a document's scenes do not line up with the first one
        """
        if not documents:
            raise EmptyInputError("No documents supplied to merge as LODs")

        start_time = time.perf_counter()
        stats = TimingStats("LOD merge", 0.0)

        merged = documents[0].clone()
        registry = parse_document_node_lods(merged)

        self.logger.info("Merging %d documents as LODs", len(documents))

        try:
            for level, candidate in enumerate(documents[1:], start=1):
                step_name = f"LOD document {level}"
                with Timer(step_name, self.logger) as timer:
                    merged = merge_as_lod(merged, registry, candidate, self.config.lod_label)
                stats.add_substep(step_name, timer.elapsed)
        except Exception as e:
            self.logger.error("LOD MERGE FAILED: %s", e)
            raise

        written = self._write_node_lods(merged, registry)
        self.logger.info("Wrote %s to %d nodes", EXTENSION_MSFT_LOD, written)

        if self.config.has_screen_coverage:
            self._write_screen_coverage(merged, registry)

        stats.elapsed = time.perf_counter() - start_time
        self.logger.debug("Timing summary:\n%s", stats.format_tree(stats.elapsed))

        self.registry = registry
        self.timing_stats = stats
        return merged

    def _write_node_lods(self, merged: Document, registry: LODRegistry) -> int:
        """Attach MSFT_lod to every node with a non-empty chain; returns the node count."""
        written = 0
        for node_id, lod_ids in registry.items():
            payload = serialize_lod_extension(lod_ids, merged, EntityKind.NODE)
            if not payload:
                continue

            node = merged.nodes.get(node_id)
            extensions = dict(node.extensions)
            extensions[EXTENSION_MSFT_LOD] = payload
            merged.nodes.replace(dataclasses.replace(node, extensions=extensions))
            written += 1

        if written:
            merged.extensions_used.add(EXTENSION_MSFT_LOD)
        return written

    def _write_screen_coverage(self, merged: Document, registry: LODRegistry) -> None:
        """Merge the screen coverage list into the extras of every scene root node."""
        coverage: List[float] = list(self.config.screen_coverage)

        tiers = count_lod_levels(merged, registry) + 1
        if len(coverage) < tiers:
            self.logger.warning(
                "%d screen coverage values given for %d LOD tiers", len(coverage), tiers
            )

        for scene in merged.scenes:
            for root_id in scene.nodes:
                node = merged.nodes.get(root_id)
                extras = json.loads(node.extras) if node.extras else {}
                if not isinstance(extras, dict):
                    raise ValueError(f"Extras of node {root_id} is not a JSON object")

                extras[MSFT_SCREEN_COVERAGE_KEY] = list(coverage)
                merged.nodes.replace(dataclasses.replace(node, extras=dump_json(extras)))


def merge_documents_as_lods(documents: Sequence[Document],
                            screen_coverage: Optional[List[float]] = None) -> Document:
    """
    Merge documents as LODs of the first one.

    Args:
        documents: Highest detail document first
        screen_coverage: Optional per-tier screen coverage hints written to
            the extras of every scene root node

    Returns:
        The merged document
    """
    orchestrator = LODOrchestrator(MergeConfig(screen_coverage=screen_coverage))
    return orchestrator.merge_all(documents)

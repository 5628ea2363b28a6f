# ABOUTME: Exception types raised while merging glTF documents as LODs
# ABOUTME: Every failure is fatal and reported synchronously to the caller


class LODMergeError(Exception):
    """Base class for all LOD merge failures."""


class EmptyInputError(LODMergeError, ValueError):
    """No documents were supplied to merge."""


class TopologyMismatchError(LODMergeError):
    """Scene or root-node structure differs between primary and candidate."""


class UnsupportedEntityKindError(LODMergeError, TypeError):
    """MSFT_lod was requested for a collection other than nodes or materials."""


class MalformedIdentifierError(LODMergeError, ValueError):
    """An identifier is set but is not a non-negative integer."""

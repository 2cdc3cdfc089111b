# Data models for showroom
from .artifact import ArtifactKind, PipelineArtifact
from .media import AssemblyResult, ClipPayload, to_data_uri
from .product import ProductRecord

__all__ = [
    "ArtifactKind",
    "PipelineArtifact",
    "AssemblyResult",
    "ClipPayload",
    "to_data_uri",
    "ProductRecord",
]

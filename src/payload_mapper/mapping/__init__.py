"""Field mapping and structural normalization for payload-mapper."""

from payload_mapper.mapping.engine import MappingEngine, NormalizationConfig, normalize_document
from payload_mapper.mapping.repository import load_rules
from payload_mapper.mapping.types import NormalizationResult

__all__ = [
    "MappingEngine",
    "NormalizationConfig",
    "NormalizationResult",
    "load_rules",
    "normalize_document",
]

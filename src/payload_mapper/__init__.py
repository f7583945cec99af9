"""payload-mapper: Normalize AI-extracted documents into strictly typed payloads."""

from payload_mapper.core import normalize, normalize_extraction
from payload_mapper.mapping import MappingEngine, NormalizationConfig, NormalizationResult, load_rules
from payload_mapper.mapping.engine import normalize_document
from payload_mapper.schema import ArrayEntryConfig, ArraySplitConfig, FieldMapping, MappingFunction, MappingRules

__version__ = "0.1.0"

__all__ = [
    "normalize",
    "normalize_document",
    "normalize_extraction",
    "load_rules",
    "ArrayEntryConfig",
    "ArraySplitConfig",
    "FieldMapping",
    "MappingEngine",
    "MappingFunction",
    "MappingRules",
    "NormalizationConfig",
    "NormalizationResult",
    "__version__",
]

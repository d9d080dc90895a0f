"""记录抽取"""

from .extractor import (
    DEFAULT_SCHEMAS,
    QNA_SCHEMA,
    REVIEW_SCHEMA,
    ExtractionSchema,
    Extractor,
    FieldSelector,
    SelectorExtractor,
)
from .loop import ExtractionLoop

__all__ = [
    "Extractor",
    "SelectorExtractor",
    "ExtractionSchema",
    "FieldSelector",
    "REVIEW_SCHEMA",
    "QNA_SCHEMA",
    "DEFAULT_SCHEMAS",
    "ExtractionLoop",
]

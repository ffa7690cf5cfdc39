"""
Clinical NLP Normalizer

Normalizes clinical entity detections from external NLP services into one
canonical model of typed entities, coded terms and relations.
"""

__version__ = "1.0.0"

from .models import (
    Category,
    ContextSubject,
    CodedTerm,
    Entity,
    Relation,
    Extraction,
)
from .mappers.extraction import ComprehendMedicalNormalizer, HealthcareNlpNormalizer
from .providers import get_provider, ExtractionError, UpstreamError

__all__ = [
    "Category",
    "ContextSubject",
    "CodedTerm",
    "Entity",
    "Relation",
    "Extraction",
    "ComprehendMedicalNormalizer",
    "HealthcareNlpNormalizer",
    "get_provider",
    "ExtractionError",
    "UpstreamError",
]

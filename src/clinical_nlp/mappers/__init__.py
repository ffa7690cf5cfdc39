"""Classification, coded-term resolution and relation construction"""

from .taxonomy import classify, classify_phi, classify_mention, context_subject, Classification
from .span_overlap import Span, spans_overlap
from .coded_terms import terms_from_links, terms_from_overlaps
from .relations import build_attribute_relations, build_graph_relations, build_phi_relations
from .extraction import aggregate, ComprehendMedicalNormalizer, HealthcareNlpNormalizer

__all__ = [
    "classify",
    "classify_phi",
    "classify_mention",
    "context_subject",
    "Classification",
    "Span",
    "spans_overlap",
    "terms_from_links",
    "terms_from_overlaps",
    "build_attribute_relations",
    "build_graph_relations",
    "build_phi_relations",
    "aggregate",
    "ComprehendMedicalNormalizer",
    "HealthcareNlpNormalizer",
]

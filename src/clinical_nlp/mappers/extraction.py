"""
Extraction aggregation and per-provider normalizers

A normalizer turns one document plus its raw provider payload into an
Extraction. It is pure: all working state is local to the call.
"""

import logging
from typing import List

from ..models import Extraction, Relation
from ..payloads import ComprehendPayload, HealthcareNlpPayload
from .relations import (
    build_attribute_relations,
    build_graph_relations,
    build_phi_relations,
    CONFIDENCE_THRESHOLD,
)
from .span_overlap import DEFAULT_TOLERANCE

logger = logging.getLogger(__name__)


def aggregate(clinical_relations: List[Relation],
              phi_relations: List[Relation] = None) -> Extraction:
    """Clinical relations first, then PHI relations, each in source order"""
    relations = list(clinical_relations)
    relations.extend(phi_relations or [])
    return Extraction(relations=relations)


class ComprehendMedicalNormalizer:
    """Attribute-based normalization of Comprehend Medical detections"""

    def __init__(self, tolerance: float = DEFAULT_TOLERANCE):
        self.tolerance = tolerance

    def normalize(self, document: str, payload: ComprehendPayload) -> Extraction:
        clinical = build_attribute_relations(
            document, payload.detections, payload.vocabularies, self.tolerance
        )
        phi = build_phi_relations(document, payload.phi)
        logger.info(
            f"Built {len(clinical)} clinical and {len(phi)} PHI relations "
            f"from {len(payload.detections)} detections"
        )
        return aggregate(clinical, phi)


class HealthcareNlpNormalizer:
    """Graph-clustering normalization of Healthcare Natural Language analyses"""

    def __init__(self, threshold: float = CONFIDENCE_THRESHOLD):
        self.threshold = threshold

    def normalize(self, document: str, payload: HealthcareNlpPayload) -> Extraction:
        clinical = build_graph_relations(
            document,
            payload.mentions,
            payload.vocabulary,
            payload.relationships,
            self.threshold,
        )
        logger.info(
            f"Built {len(clinical)} relations from {len(payload.mentions)} mentions "
            f"and {len(payload.relationships)} relationships"
        )
        return aggregate(clinical)

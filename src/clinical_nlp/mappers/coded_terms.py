"""
Coded-term assembly for canonical entities

Terms either come from explicit links to a vocabulary table, or from
overlapping entries of separately returned coded-entity lists.
"""

import logging
from typing import List, Iterable, Mapping

from ..models import CodedTerm
from ..payloads import CodedEntity, VocabularyEntry
from ..utils.input_validator import InputValidator
from .span_overlap import Span, spans_overlap, DEFAULT_TOLERANCE

logger = logging.getLogger(__name__)


def terms_from_links(linked_entity_ids: Iterable[str],
                     vocabulary: Mapping[str, VocabularyEntry]) -> List[CodedTerm]:
    """One coded term per linked entity present in the vocabulary table"""
    terms = []
    for entity_id in linked_entity_ids:
        entry = vocabulary.get(entity_id)
        if entry is None:
            logger.debug(f"Linked entity {entity_id} missing from vocabulary table")
            continue
        terms.append(CodedTerm(
            norm_codes=list(entry.vocabulary_codes),
            term=entry.preferred_term,
            nlp_system_entity_code=entry.entity_id,
        ))
    return terms


def terms_from_overlaps(span: Span,
                        vocabularies: Mapping[str, List[CodedEntity]],
                        tolerance: float = DEFAULT_TOLERANCE) -> List[CodedTerm]:
    """
    Collect coded terms from every vocabulary entry overlapping ``span``

    Args:
        span: Text and offsets of the target entity
        vocabularies: Vocabulary name -> coded entities, scanned in mapping order
        tolerance: Relative edit distance allowed by the text match

    Returns:
        One CodedTerm per concept of each overlapping coded entity, in order.
        Repeated concepts are kept.
    """
    terms = []
    for name, coded_entities in vocabularies.items():
        for coded in coded_entities:
            candidate = Span(coded.text, coded.begin_offset, coded.end_offset)
            if not spans_overlap(span, candidate, tolerance):
                continue
            for concept in coded.concepts:
                if not concept.code or (
                        concept.score is not None
                        and InputValidator.validate_confidence(concept.score) is None):
                    logger.debug(f"Skipping malformed {name} concept for entity at {coded.begin_offset}")
                    continue
                terms.append(CodedTerm(
                    norm_codes=[concept.code],
                    term=concept.description,
                    confidence=concept.score,
                    vocabulary=name,
                ))
    return terms

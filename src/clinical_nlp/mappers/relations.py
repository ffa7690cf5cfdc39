"""
Relation construction from classified entities

Two assembly strategies, depending on how the provider reports relationships:

- Attribute-based: a primary detection plus the attribute detections nested under it
- Graph-clustering: mentions joined by an explicit, confidence-scored edge list

PHI detections always become singleton relations.
"""

import logging
from typing import List, Dict, Mapping, Optional, Tuple

from ..models import Entity, Relation
from ..payloads import (
    RawDetection,
    CodedEntity,
    Mention,
    RelationshipEdge,
    VocabularyEntry,
)
from .taxonomy import classify, classify_phi, classify_mention, context_subject
from .coded_terms import terms_from_links, terms_from_overlaps
from .span_overlap import Span, DEFAULT_TOLERANCE

logger = logging.getLogger(__name__)

CONFIDENCE_THRESHOLD = 0.9


def _finish(relation: Relation, document: str) -> Relation:
    relation.construct_statement()
    relation.extract_original_statement(document)
    return relation


# ---------------------------------------------------------------------------
# Attribute-based
# ---------------------------------------------------------------------------

def _detection_entity(document: str, detection: RawDetection, is_relation_object: bool,
                      vocabularies: Mapping[str, List[CodedEntity]],
                      tolerance: float) -> Entity:
    classification = classify(detection.category, detection.type, detection.traits)
    coded_terms = []
    if vocabularies:
        span = Span(detection.text, detection.begin_offset, detection.end_offset)
        coded_terms = terms_from_overlaps(span, vocabularies, tolerance)

    entity = Entity(
        extraction_id=detection.id,
        text=detection.text,
        begin_offset=detection.begin_offset,
        end_offset=detection.end_offset,
        category=classification.category,
        type=classification.type,
        is_negated=classification.is_negated,
        is_relation_object=is_relation_object,
        coded_terms=coded_terms,
    )
    entity.check_offsets(document)
    return entity


def build_attribute_relations(document: str, detections: List[RawDetection],
                              vocabularies: Optional[Mapping[str, List[CodedEntity]]] = None,
                              tolerance: float = DEFAULT_TOLERANCE) -> List[Relation]:
    """
    One relation per primary detection that carries attributes.

    Detections without attributes are not reportable and are dropped. Attributes
    are only cross-referenced to vocabularies when they are themselves primary
    detections.
    """
    vocabularies = vocabularies or {}
    primary_ids = {detection.id for detection in detections}
    relations = []

    for detection in detections:
        if not detection.attributes:
            continue
        try:
            subject = _detection_entity(document, detection, False, vocabularies, tolerance)
            objects = [
                _detection_entity(
                    document, attribute, True,
                    vocabularies if attribute.id in primary_ids else {},
                    tolerance,
                )
                for attribute in detection.attributes
            ]
            relation = Relation(
                entities=[subject] + objects,
                category=subject.category,
                type=subject.type,
            )
            relations.append(_finish(relation, document))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Skipping relation for detection {detection.id}: {e}")

    return relations


# ---------------------------------------------------------------------------
# Graph-clustering
# ---------------------------------------------------------------------------

def _mention_entity(document: str, mention: Mention, vocabulary: Mapping[str, VocabularyEntry],
                    is_relation_object: bool) -> Entity:
    classification = classify_mention(mention.type)
    entity = Entity(
        extraction_id=mention.mention_id,
        text=mention.text,
        begin_offset=mention.begin_offset,
        end_offset=mention.end_offset,
        category=classification.category,
        type=classification.type,
        context_subject=context_subject(mention.subject_context),
        is_relation_object=is_relation_object,
        coded_terms=terms_from_links(mention.linked_entity_ids, vocabulary),
    )
    entity.check_offsets(document)
    return entity


def connection_cluster(mention: Mention, edges: List[RelationshipEdge],
                       mentions_by_id: Dict[str, Mention]) -> List[Tuple[Mention, bool]]:
    """
    The mention and its direct neighbours, each paired with its relation-object role.

    Only one hop is followed. A neighbour reached by several edges keeps the role
    of the first one. The starting mention is a relation object only when it is
    never the subject of an edge.
    """
    start_id = mention.mention_id
    seen = {start_id}
    neighbours = []
    is_subject = False
    is_object = False

    for edge in edges:
        if edge.subject_id == start_id:
            other_id, other_is_object = edge.object_id, True
        elif edge.object_id == start_id:
            other_id, other_is_object = edge.subject_id, False
        else:
            continue

        other = mentions_by_id.get(other_id)
        if other is None:
            logger.debug(f"Edge {edge.subject_id}->{edge.object_id} points at an unknown mention")
            continue

        if other_is_object:
            is_subject = True
        else:
            is_object = True

        if other_id not in seen:
            seen.add(other_id)
            neighbours.append((other, other_is_object))

    return [(mention, is_object and not is_subject)] + neighbours


def build_graph_relations(document: str, mentions: List[Mention],
                          vocabulary: Mapping[str, VocabularyEntry],
                          edges: List[RelationshipEdge],
                          threshold: float = CONFIDENCE_THRESHOLD) -> List[Relation]:
    """
    Cluster mentions along confident relationship edges, one relation per cluster.

    Mentions are visited in document order; a mention already placed in a cluster
    does not start one of its own. Mentions without surviving edges become
    singleton relations.
    """
    surviving = [edge for edge in edges if edge.confidence >= threshold]
    if len(surviving) < len(edges):
        logger.debug(f"Discarded {len(edges) - len(surviving)} edges below confidence {threshold}")

    mentions_by_id = {mention.mention_id: mention for mention in mentions}
    consumed = set()
    relations = []

    for mention in mentions:
        if mention.mention_id in consumed:
            continue
        members = connection_cluster(mention, surviving, mentions_by_id)
        consumed.update(member.mention_id for member, _ in members)

        try:
            cluster = [
                _mention_entity(document, member, vocabulary, is_relation_object)
                for member, is_relation_object in members
            ]
            # subjects first, stable otherwise
            cluster.sort(key=lambda entity: entity.is_relation_object)
            head = cluster[0]
            relation = Relation(
                entities=cluster,
                category=head.category,
                type=head.type,
                keywords=[],
                context_subject=head.context_subject,
            )
            relations.append(_finish(relation, document))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Skipping cluster for mention {mention.mention_id}: {e}")

    return relations


# ---------------------------------------------------------------------------
# Protected health information
# ---------------------------------------------------------------------------

def build_phi_relations(document: str, detections: List[RawDetection]) -> List[Relation]:
    """One singleton relation per PHI detection"""
    relations = []
    for detection in detections:
        classification = classify_phi(detection.category, detection.type)
        entity = Entity(
            extraction_id=detection.id,
            text=detection.text,
            begin_offset=detection.begin_offset,
            end_offset=detection.end_offset,
            category=classification.category,
            type=classification.type,
        )
        try:
            entity.check_offsets(document)
            relation = Relation(
                entities=[entity],
                category=classification.category,
                type=classification.type,
            )
            relations.append(_finish(relation, document))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Skipping PHI detection {detection.id}: {e}")
    return relations

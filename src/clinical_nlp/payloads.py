"""
Raw detection payloads returned by the clinical NLP providers

Each record keeps the provider's own category/type codes; classification into the
canonical taxonomy happens later in the mappers.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any

from .utils.input_validator import InputValidator

logger = logging.getLogger(__name__)

# Comprehend Medical response key holding the concepts of each vocabulary system
VOCABULARY_CONCEPT_KEYS = {
    'ICD10CM': 'ICD10CMConcepts',
    'RXNORM': 'RxNormConcepts',
    'SNOMEDCT': 'SNOMEDCTConcepts',
}


@dataclass
class RawDetection:
    """Provider-native entity detection with optional nested attributes"""
    id: str
    text: str
    begin_offset: int
    end_offset: int
    category: Optional[str] = None
    type: Optional[str] = None
    traits: List[str] = field(default_factory=list)
    attributes: List['RawDetection'] = field(default_factory=list)
    score: Optional[float] = None

    @classmethod
    def from_response(cls, record: Dict[str, Any],
                      parent_category: Optional[str] = None) -> 'RawDetection':
        """Build from a Comprehend Medical ``Entities`` / ``Attributes`` record"""
        category = record.get('Category') or parent_category
        traits = [
            trait.get('Name') for trait in record.get('Traits') or []
            if isinstance(trait, dict) and trait.get('Name')
        ]
        attributes = [
            cls.from_response(attribute, parent_category=category)
            for attribute in record.get('Attributes') or []
        ]
        return cls(
            id=str(record.get('Id')),
            text=record.get('Text') or '',
            begin_offset=int(record.get('BeginOffset', 0)),
            end_offset=int(record.get('EndOffset', 0)),
            category=category,
            type=record.get('Type'),
            traits=traits,
            attributes=attributes,
            score=record.get('Score'),
        )


@dataclass
class Concept:
    code: Optional[str]
    description: Optional[str]
    score: Optional[float]


@dataclass
class CodedEntity:
    """Entity from a vocabulary inference call, with its candidate concepts"""
    text: str
    begin_offset: int
    end_offset: int
    concepts: List[Concept] = field(default_factory=list)

    @classmethod
    def from_response(cls, record: Dict[str, Any], concept_key: str) -> 'CodedEntity':
        concepts = []
        for concept in record.get(concept_key) or []:
            try:
                concepts.append(Concept(
                    code=concept.get('Code'),
                    description=concept.get('Description'),
                    score=concept.get('Score'),
                ))
            except AttributeError:
                logger.debug(f"Skipping malformed {concept_key} item")
        return cls(
            text=record.get('Text') or '',
            begin_offset=int(record.get('BeginOffset', 0)),
            end_offset=int(record.get('EndOffset', 0)),
            concepts=concepts,
        )


def _parse_detections(records: List[Any]) -> List[RawDetection]:
    """Parse detection records, skipping the ones that are malformed"""
    detections = []
    for record in records:
        try:
            detections.append(RawDetection.from_response(record))
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Skipping malformed detection: {e}")
    return detections


@dataclass
class ComprehendPayload:
    """
    Everything the attribute-based pipeline needs for one document.

    Attributes:
        detections: Primary entity detections (DetectEntitiesV2)
        vocabularies: Vocabulary name -> coded entities (InferICD10CM, InferRxNorm, ...)
        phi: Protected health information detections (DetectPHI)
    """
    detections: List[RawDetection] = field(default_factory=list)
    vocabularies: Dict[str, List[CodedEntity]] = field(default_factory=dict)
    phi: List[RawDetection] = field(default_factory=list)

    @classmethod
    def from_responses(cls, entities_response: Optional[Dict[str, Any]],
                       vocabulary_responses: Optional[Dict[str, Dict[str, Any]]] = None,
                       phi_response: Optional[Dict[str, Any]] = None) -> 'ComprehendPayload':
        """
        Parse raw Comprehend Medical responses

        Raises:
            ValueError: if the primary entity response carries no result
        """
        if not entities_response or entities_response.get('Entities') is None:
            raise ValueError("Entity detection returned no result")

        detections = _parse_detections(entities_response['Entities'])

        vocabularies = {}
        for name, response in (vocabulary_responses or {}).items():
            concept_key = VOCABULARY_CONCEPT_KEYS.get(name)
            if concept_key is None:
                logger.warning(f"Ignoring unknown vocabulary: {name}")
                continue
            coded_entities = []
            for record in (response or {}).get('Entities') or []:
                try:
                    coded_entities.append(CodedEntity.from_response(record, concept_key))
                except (TypeError, ValueError, AttributeError) as e:
                    logger.debug(f"Skipping malformed {name} entity: {e}")
            vocabularies[name] = coded_entities

        phi = _parse_detections((phi_response or {}).get('Entities') or [])
        return cls(detections=detections, vocabularies=vocabularies, phi=phi)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ComprehendPayload':
        """Parse a saved bundle ``{"entities": ..., "vocabularies": {...}, "phi": ...}``"""
        return cls.from_responses(
            data.get('entities'),
            data.get('vocabularies'),
            data.get('phi'),
        )


@dataclass
class Mention:
    """Entity mention from a relationship-graph provider"""
    mention_id: str
    type: Optional[str]
    text: str
    begin_offset: int
    subject_context: Optional[str] = None
    linked_entity_ids: List[str] = field(default_factory=list)

    @property
    def end_offset(self) -> int:
        return self.begin_offset + len(self.text)

    @classmethod
    def from_response(cls, record: Dict[str, Any]) -> 'Mention':
        text = record.get('text') or {}
        subject = record.get('subject') or {}
        return cls(
            mention_id=str(record.get('mentionId')),
            type=record.get('type'),
            text=text.get('content') or '',
            # zero offsets are omitted from the JSON
            begin_offset=int(text.get('beginOffset') or 0),
            subject_context=subject.get('value'),
            linked_entity_ids=[
                str(linked['entityId'])
                for linked in record.get('linkedEntities') or []
                if linked.get('entityId') is not None
            ],
        )


@dataclass
class RelationshipEdge:
    subject_id: str
    object_id: str
    confidence: float

    @classmethod
    def from_response(cls, record: Dict[str, Any]) -> 'RelationshipEdge':
        return cls(
            subject_id=str(record.get('subjectId')),
            object_id=str(record.get('objectId')),
            # unscored or malformed edges fall below any threshold
            confidence=InputValidator.validate_confidence(record.get('confidence')) or 0.0,
        )


@dataclass
class VocabularyEntry:
    entity_id: str
    preferred_term: Optional[str]
    vocabulary_codes: List[str] = field(default_factory=list)

    @classmethod
    def from_response(cls, record: Dict[str, Any]) -> 'VocabularyEntry':
        return cls(
            entity_id=str(record.get('entityId')),
            preferred_term=record.get('preferredTerm'),
            vocabulary_codes=list(record.get('vocabularyCodes') or []),
        )


@dataclass
class HealthcareNlpPayload:
    """Mentions, vocabulary table and relationship edges of one analyzeEntities call"""
    mentions: List[Mention] = field(default_factory=list)
    vocabulary: Dict[str, VocabularyEntry] = field(default_factory=dict)
    relationships: List[RelationshipEdge] = field(default_factory=list)

    @classmethod
    def from_response(cls, response: Optional[Dict[str, Any]]) -> 'HealthcareNlpPayload':
        """
        Parse an ``nlp:analyzeEntities`` response body

        Raises:
            ValueError: if the response is empty
        """
        if not response:
            raise ValueError("Entity analysis returned no result")

        mentions = []
        for record in response.get('entityMentions') or []:
            try:
                mentions.append(Mention.from_response(record))
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Skipping malformed mention: {e}")
        vocabulary = {}
        for record in response.get('entities') or []:
            entry = VocabularyEntry.from_response(record)
            vocabulary[entry.entity_id] = entry
        relationships = [
            RelationshipEdge.from_response(r) for r in response.get('relationships') or []
        ]
        return cls(mentions=mentions, vocabulary=vocabulary, relationships=relationships)

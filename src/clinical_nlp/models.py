"""
Canonical clinical data model
Provider-independent entities, coded terms, relations and extractions
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Optional, Any


class Category(str, Enum):
    """Canonical entity categories"""
    MEDICATION = "Medication"
    MEDICAL_CONDITION = "MedicalCondition"
    PROCEDURE = "Procedure"
    TREATMENT = "Treatment"
    ANATOMY = "Anatomy"
    CLINICAL_TEST = "ClinicalTest"
    BIOMETRICS = "Biometrics"
    MEDICAL_DEVICE = "MedicalDevice"
    ADDICTION = "Addiction"
    BODY_FUNCTION = "BodyFunction"
    FAMILY_HISTORY = "FamilyHistory"
    PROTECTED_HEALTH_INFORMATION = "ProtectedHealthInformation"
    UNIDENTIFIED = "Unidentified"


class ContextSubject(str, Enum):
    """Whom a finding applies to"""
    PATIENT = "Patient"
    FAMILY = "Family"
    OTHER = "Other"
    DEFAULT = "Default"


UNIDENTIFIED = "Unidentified"


class MedicationAttributes:
    BRAND_NAME = "BrandName"
    GENERIC_NAME = "GenericName"
    DOSAGE = "Dosage"
    DOSAGE_UNIT = "DosageUnit"
    FREQUENCY = "Frequency"
    DURATION = "Duration"
    ROUTE = "Route"
    STRENGTH = "Strength"
    RATE = "Rate"
    STATUS = "Status"
    TOTAL_DOSAGE = "TotalDosage"


class ClinicalTestAttributes:
    TEST_NAME = "TestName"
    TEST_VALUE = "TestValue"
    TEST_UNIT = "TestUnit"
    TEST_RESULT = "TestResult"


class BiometricsAttributes:
    BIOMETRICS_NAME = "BiometricsName"
    BIOMETRICS_RESULT = "BiometricsResult"
    BIOMETRICS_VALUE = "BiometricsValue"
    BIOMETRICS_UNIT = "BiometricsUnit"


class ProtectedHealthInformationAttributes:
    NAME = "Name"
    AGE = "Age"
    DATE = "Date"
    PHONE = "Phone"
    EMAIL = "Email"
    ID = "Id"
    URL = "Url"
    ADDRESS = "Address"
    PROFESSION = "Profession"
    UNIDENTIFIED = UNIDENTIFIED


@dataclass
class CodedTerm:
    """A link from a detected concept to a standard vocabulary code"""
    norm_codes: List[str] = field(default_factory=list)
    term: Optional[str] = None
    confidence: Optional[float] = None
    nlp_system_entity_code: Optional[str] = None
    vocabulary: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'norm_codes': list(self.norm_codes),
            'term': self.term,
            'confidence': self.confidence,
            'nlp_system_entity_code': self.nlp_system_entity_code,
            'vocabulary': self.vocabulary,
        }


@dataclass
class Entity:
    """A canonical entity traceable to one provider detection"""
    extraction_id: str
    text: str
    begin_offset: int
    end_offset: int
    category: Category = Category.UNIDENTIFIED
    type: str = UNIDENTIFIED
    is_negated: bool = False
    context_subject: ContextSubject = ContextSubject.DEFAULT
    is_relation_object: bool = False
    coded_terms: List[CodedTerm] = field(default_factory=list)

    def check_offsets(self, document: str):
        """Raise ValueError unless the offsets are a valid range of the document"""
        if not (0 <= self.begin_offset <= self.end_offset <= len(document)):
            raise ValueError(
                f"Entity {self.extraction_id} offsets {self.begin_offset}-{self.end_offset} "
                f"outside document of length {len(document)}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'extraction_id': self.extraction_id,
            'text': self.text,
            'begin_offset': self.begin_offset,
            'end_offset': self.end_offset,
            'category': self.category.value,
            'type': self.type,
            'is_negated': self.is_negated,
            'context_subject': self.context_subject.value,
            'is_relation_object': self.is_relation_object,
            'coded_terms': [term.to_dict() for term in self.coded_terms],
        }


@dataclass
class Relation:
    """
    One reportable finding: a subject entity with its associated object entities.

    The first entity is the subject unless the relation was resorted.
    """
    entities: List[Entity]
    category: Category = Category.UNIDENTIFIED
    type: str = UNIDENTIFIED
    statement: str = ""
    original_statement: str = ""
    keywords: List[str] = field(default_factory=list)
    context_subject: Optional[ContextSubject] = None

    def __post_init__(self):
        if not self.entities:
            raise ValueError("A relation needs at least one entity")

    def construct_statement(self) -> str:
        """Rebuild a readable statement from the participating entities"""
        parts = []
        for entity in self.entities:
            text = ' '.join((entity.text or '').split())
            parts.append(f"no {text}" if entity.is_negated else text)
        self.statement = ' '.join(part for part in parts if part)
        return self.statement

    def extract_original_statement(self, document: str) -> str:
        """Copy the document text spanning all participating entities"""
        begin = min(entity.begin_offset for entity in self.entities)
        end = max(entity.end_offset for entity in self.entities)
        self.original_statement = document[begin:end]
        return self.original_statement

    def to_dict(self) -> Dict[str, Any]:
        return {
            'category': self.category.value,
            'type': self.type,
            'statement': self.statement,
            'original_statement': self.original_statement,
            'keywords': list(self.keywords),
            'context_subject': self.context_subject.value if self.context_subject else None,
            'entities': [entity.to_dict() for entity in self.entities],
        }


@dataclass
class Extraction:
    """Full result of one document analysis"""
    relations: List[Relation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'relation_count': len(self.relations),
            'relations': [relation.to_dict() for relation in self.relations],
        }

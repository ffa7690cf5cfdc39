"""
Taxonomy mapping from provider entity codes to the canonical categories/types

Reference: https://docs.aws.amazon.com/comprehend-medical/latest/dev/comprehendmedical-entitiesv2.html
Reference: https://cloud.google.com/healthcare-api/docs/how-tos/nlp
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from ..models import (
    Category,
    ContextSubject,
    UNIDENTIFIED,
    MedicationAttributes as Med,
    ClinicalTestAttributes as Test,
    BiometricsAttributes as Bio,
    ProtectedHealthInformationAttributes as PHI,
)

NEGATION_TRAIT = 'NEGATION'
PHI_CATEGORY = 'PROTECTED_HEALTH_INFORMATION'


@dataclass(frozen=True)
class Classification:
    category: Category = Category.UNIDENTIFIED
    type: str = UNIDENTIFIED
    is_negated: bool = False


# Comprehend Medical (category, type) -> canonical (category, type)
COMPREHEND_ENTITY_TYPES = {
    ('MEDICATION', 'BRAND_NAME'): (Category.MEDICATION, Med.BRAND_NAME),
    ('MEDICATION', 'GENERIC_NAME'): (Category.MEDICATION, Med.GENERIC_NAME),
    ('MEDICATION', 'DOSAGE'): (Category.MEDICATION, Med.DOSAGE),
    ('MEDICATION', 'FORM'): (Category.MEDICATION, Med.DOSAGE_UNIT),
    ('MEDICATION', 'FREQUENCY'): (Category.MEDICATION, Med.FREQUENCY),
    ('MEDICATION', 'DURATION'): (Category.MEDICATION, Med.DURATION),
    ('MEDICATION', 'ROUTE_OR_MODE'): (Category.MEDICATION, Med.ROUTE),
    ('MEDICATION', 'STRENGTH'): (Category.MEDICATION, Med.STRENGTH),
    ('MEDICATION', 'RATE'): (Category.MEDICATION, Med.RATE),

    ('MEDICAL_CONDITION', 'DX_NAME'): (Category.MEDICAL_CONDITION, UNIDENTIFIED),
    ('MEDICAL_CONDITION', 'ACUITY'): (Category.MEDICAL_CONDITION, 'Acuity'),

    ('ANATOMY', 'SYSTEM_ORGAN_SITE'): (Category.ANATOMY, 'Organ'),
    ('ANATOMY', 'DIRECTION'): (Category.ANATOMY, 'Direction'),

    ('TEST_TREATMENT_PROCEDURE', 'TEST_NAME'): (Category.CLINICAL_TEST, Test.TEST_NAME),
    ('TEST_TREATMENT_PROCEDURE', 'TEST_VALUE'): (Category.CLINICAL_TEST, Test.TEST_VALUE),
    ('TEST_TREATMENT_PROCEDURE', 'TEST_UNIT'): (Category.CLINICAL_TEST, Test.TEST_UNIT),
    ('TEST_TREATMENT_PROCEDURE', 'PROCEDURE_NAME'): (Category.PROCEDURE, 'Procedure'),
    ('TEST_TREATMENT_PROCEDURE', 'TREATMENT_NAME'): (Category.TREATMENT, 'Treatment'),
}

# Traits that narrow the canonical type; later entries win when several traits are present
COMPREHEND_TRAIT_REFINEMENTS = {
    ('MEDICAL_CONDITION', 'DX_NAME'): [
        ('SYMPTOM', 'Symptom'),
        ('DIAGNOSIS', 'Diagnosis'),
    ],
}

COMPREHEND_PHI_TYPES = {
    'NAME': PHI.NAME,
    'AGE': PHI.AGE,
    'DATE': PHI.DATE,
    'PHONE_OR_FAX': PHI.PHONE,
    'EMAIL': PHI.EMAIL,
    'ID': PHI.ID,
    'URL': PHI.URL,
    'ADDRESS': PHI.ADDRESS,
    'PROFESSION': PHI.PROFESSION,
}

# Healthcare Natural Language mention type -> canonical (category, type)
HEALTHCARE_NLP_MENTION_TYPES = {
    'ANATOMICAL_STRUCTURE': (Category.ANATOMY, 'Organ'),
    'PROBLEM': (Category.MEDICAL_CONDITION, UNIDENTIFIED),
    'SEVERITY': (Category.MEDICAL_CONDITION, 'Severity'),
    'PROCEDURE': (Category.PROCEDURE, 'Procedure'),
    'PROC_METHOD': (Category.PROCEDURE, 'ProcedureMethod'),
    'PROCEDURE_RESULT': (Category.PROCEDURE, 'ProcedureResult'),
    'MEDICINE': (Category.MEDICATION, Med.GENERIC_NAME),
    'MED_DOSE': (Category.MEDICATION, Med.DOSAGE),
    'MED_DURATION': (Category.MEDICATION, Med.DURATION),
    'MED_FORM': (Category.MEDICATION, Med.DOSAGE_UNIT),
    'MED_FREQUENCY': (Category.MEDICATION, Med.FREQUENCY),
    'MED_ROUTE': (Category.MEDICATION, Med.ROUTE),
    'MED_STATUS': (Category.MEDICATION, Med.STATUS),
    'MED_STRENGTH': (Category.MEDICATION, Med.STRENGTH),
    'MED_TOTALDOSE': (Category.MEDICATION, Med.TOTAL_DOSAGE),
    'MED_UNIT': (Category.MEDICATION, Med.DOSAGE_UNIT),
    'LABORATORY_DATA': (Category.CLINICAL_TEST, Test.TEST_RESULT),
    'LAB_RESULT': (Category.CLINICAL_TEST, Test.TEST_RESULT),
    'LAB_VALUE': (Category.CLINICAL_TEST, Test.TEST_VALUE),
    'LAB_UNIT': (Category.CLINICAL_TEST, Test.TEST_UNIT),
    'BODY_MEASUREMENT': (Category.BIOMETRICS, Bio.BIOMETRICS_NAME),
    'BM_RESULT': (Category.BIOMETRICS, Bio.BIOMETRICS_RESULT),
    'BM_VALUE': (Category.BIOMETRICS, Bio.BIOMETRICS_VALUE),
    'BM_UNIT': (Category.BIOMETRICS, Bio.BIOMETRICS_UNIT),
    'MEDICAL_DEVICE': (Category.MEDICAL_DEVICE, 'MedicalDevice'),
    'SUBSTANCE_ABUSE': (Category.ADDICTION, 'SubstanceAbuse'),
    'BODY_FUNCTION': (Category.BODY_FUNCTION, 'BodyFunction'),
    'BF_RESULT': (Category.BODY_FUNCTION, 'BodyFunctionResult'),
    'FAMILY': (Category.FAMILY_HISTORY, 'FamilyHistory'),
}

CONTEXT_SUBJECTS = {
    'PATIENT': ContextSubject.PATIENT,
    'FAMILY_MEMBER': ContextSubject.FAMILY,
    'OTHER': ContextSubject.OTHER,
}


def _trait_names(traits: Optional[Iterable]) -> list:
    if not traits or isinstance(traits, (str, bytes)):
        return []
    return [t for t in traits if isinstance(t, str)]


def classify(category: Optional[str], entity_type: Optional[str],
             traits: Optional[Iterable[str]] = None) -> Classification:
    """
    Classify a Comprehend Medical detection.

    Unknown (category, type) pairs degrade to Unidentified; this never raises.
    """
    trait_names = _trait_names(traits)
    is_negated = NEGATION_TRAIT in trait_names

    key = (category, entity_type)
    mapped = COMPREHEND_ENTITY_TYPES.get(key) if _hashable(key) else None
    if mapped is None:
        return Classification(is_negated=is_negated)

    canonical_category, canonical_type = mapped
    for trait, refined_type in COMPREHEND_TRAIT_REFINEMENTS.get(key, []):
        if trait in trait_names:
            canonical_type = refined_type

    return Classification(canonical_category, canonical_type, is_negated)


def classify_phi(category: Optional[str], entity_type: Optional[str]) -> Classification:
    """Classify a Comprehend Medical PHI detection; negation never applies"""
    if category != PHI_CATEGORY:
        return Classification()
    phi_type = PHI.UNIDENTIFIED
    if _hashable(entity_type):
        phi_type = COMPREHEND_PHI_TYPES.get(entity_type, PHI.UNIDENTIFIED)
    return Classification(Category.PROTECTED_HEALTH_INFORMATION, phi_type)


def classify_mention(mention_type: Optional[str]) -> Classification:
    """Classify a Healthcare Natural Language entity mention"""
    mapped = HEALTHCARE_NLP_MENTION_TYPES.get(mention_type) if _hashable(mention_type) else None
    if mapped is None:
        return Classification()
    return Classification(*mapped)


def context_subject(value: Optional[str]) -> ContextSubject:
    if not _hashable(value):
        return ContextSubject.DEFAULT
    return CONTEXT_SUBJECTS.get(value, ContextSubject.DEFAULT)


def _hashable(value) -> bool:
    try:
        hash(value)
    except TypeError:
        return False
    return True

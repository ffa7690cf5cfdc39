"""Upstream clinical NLP providers"""

from .base import ClinicalNLPProvider, ExtractionError, InvalidDocumentError, UpstreamError
from .comprehend_medical import ComprehendMedicalProvider
from .healthcare_nlp import HealthcareNlpProvider

PROVIDERS = {
    'aws': ComprehendMedicalProvider,
    'gcp': HealthcareNlpProvider,
}


def get_provider(name: str, **kwargs) -> ClinicalNLPProvider:
    """Instantiate a provider by name ('aws' or 'gcp')"""
    try:
        provider_class = PROVIDERS[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown provider: {name}") from None
    return provider_class(**kwargs)


__all__ = [
    "ClinicalNLPProvider",
    "ComprehendMedicalProvider",
    "HealthcareNlpProvider",
    "ExtractionError",
    "InvalidDocumentError",
    "UpstreamError",
    "get_provider",
]

"""
Base class for clinical NLP providers

A provider fetches the raw detections for one document from its upstream
service and hands them to its normalizer. Every call is independent.
"""

import time
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from ..models import Category, Extraction
from ..utils.audit_logger import AuditLogger, get_audit_logger
from ..utils.input_validator import get_input_validator

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """An extraction could not produce a result"""


class InvalidDocumentError(ExtractionError):
    """The document was rejected before any upstream request"""


class UpstreamError(ExtractionError):
    """A required upstream request failed or returned no result"""


class ClinicalNLPProvider(ABC):
    """Fetch-then-normalize template shared by all providers"""

    name = "base"

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        self.validator = get_input_validator()
        self.audit = audit_logger or get_audit_logger()

    @abstractmethod
    def fetch(self, document: str) -> Any:
        """
        Retrieve the raw payload for a document

        Raises:
            UpstreamError: if any required request fails
        """

    @abstractmethod
    def normalize(self, document: str, payload: Any) -> Extraction:
        """Turn a raw payload into an Extraction"""

    def extract(self, text: str) -> Extraction:
        """
        Run a full extraction for one document

        Raises:
            InvalidDocumentError: if the document fails validation
            UpstreamError: if the provider could not deliver detections
        """
        document = self.validator.validate_document(text)
        if document is None:
            raise InvalidDocumentError("Document rejected by input validation")

        start_time = time.time()
        try:
            payload = self.fetch(document)
        except UpstreamError as e:
            logger.error(f"{self.name} extraction failed: {e}")
            self.audit.log_error(type(e).__name__, str(e), {"provider": self.name})
            raise

        extraction = self.normalize(document, payload)
        latency_ms = (time.time() - start_time) * 1000

        phi_count = sum(
            1 for relation in extraction.relations
            if relation.category == Category.PROTECTED_HEALTH_INFORMATION
        )
        self.audit.log_extraction(
            provider=self.name,
            relation_count=len(extraction.relations),
            phi_count=phi_count,
            latency_ms=latency_ms,
            document_length=len(document),
        )
        return extraction

"""
Input validation for clinical documents and provider values

Documents are validated but never rewritten: every entity offset indexes into
the exact text that was sent to the provider.
"""

import math
import logging
from typing import Optional, Any

logger = logging.getLogger(__name__)


class InputValidator:
    """
    Validation of inputs entering the extraction pipeline

    Features:
    - Document type and size limits
    - Null byte rejection
    - Confidence score range checks
    """

    # Comprehend Medical accepts at most 20,000 characters per request
    MAX_DOCUMENT_LENGTH = 20000

    @staticmethod
    def validate_document(text: Any) -> Optional[str]:
        """
        Validate a clinical document

        Args:
            text: Raw document text

        Returns:
            The unchanged text, or None if invalid
        """
        if not isinstance(text, str):
            logger.warning(f"Document is not text: {type(text).__name__}")
            return None

        if not text.strip():
            logger.warning("Document is empty")
            return None

        if len(text) > InputValidator.MAX_DOCUMENT_LENGTH:
            logger.warning(f"Document too long: {len(text)} characters")
            return None

        if '\0' in text:
            logger.warning("Document contains null bytes")
            return None

        return text

    @staticmethod
    def validate_confidence(value: Any) -> Optional[float]:
        """
        Validate a confidence score

        Returns:
            The score as a float in [0, 1], or None if invalid
        """
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        value = float(value)
        if math.isnan(value) or value < 0.0 or value > 1.0:
            return None
        return value


def get_input_validator() -> InputValidator:
    """Get input validator instance"""
    return InputValidator()

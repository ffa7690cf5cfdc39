"""
Amazon Comprehend Medical provider

Entity detection, each vocabulary inference and PHI detection are independent
requests for the same text, so they run concurrently; normalization starts once
all of them have returned.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Dict, Optional, Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..models import Extraction
from ..payloads import ComprehendPayload
from ..mappers.extraction import ComprehendMedicalNormalizer
from ..utils.audit_logger import AuditLogger
from ..utils.config import Config
from .base import ClinicalNLPProvider, UpstreamError

logger = logging.getLogger(__name__)

ENTITIES_OPERATION = 'detect_entities_v2'
PHI_OPERATION = 'detect_phi'
VOCABULARY_OPERATIONS = {
    'ICD10CM': 'infer_icd10_cm',
    'RXNORM': 'infer_rx_norm',
    'SNOMEDCT': 'infer_snomedct',
}


class ComprehendMedicalProvider(ClinicalNLPProvider):
    """Attribute-based provider backed by a boto3 ``comprehendmedical`` client"""

    name = "aws"

    def __init__(self, client=None, region: Optional[str] = None,
                 vocabularies: Optional[List[str]] = None,
                 detect_phi: bool = True,
                 max_workers: Optional[int] = None,
                 tolerance: Optional[float] = None,
                 audit_logger: Optional[AuditLogger] = None):
        super().__init__(audit_logger)
        self.client = client or boto3.client(
            'comprehendmedical', region_name=region or Config.get_aws_region()
        )
        if vocabularies is None:
            vocabularies = Config.get_vocabularies()
        unknown = [name for name in vocabularies if name not in VOCABULARY_OPERATIONS]
        if unknown:
            raise ValueError(f"Unsupported vocabularies: {', '.join(unknown)}")
        self.vocabularies = list(vocabularies)
        self.detect_phi = detect_phi
        self.max_workers = max_workers or Config.get_max_workers()
        self.normalizer = ComprehendMedicalNormalizer(
            tolerance if tolerance is not None else Config.get_overlap_tolerance()
        )

    def _call(self, operation: str, document: str) -> Dict[str, Any]:
        try:
            return getattr(self.client, operation)(Text=document)
        except (BotoCoreError, ClientError) as e:
            raise UpstreamError(f"{operation} failed: {e}") from e

    def fetch(self, document: str) -> ComprehendPayload:
        calls = {'entities': ENTITIES_OPERATION}
        for name in self.vocabularies:
            calls[name] = VOCABULARY_OPERATIONS[name]
        if self.detect_phi:
            calls['phi'] = PHI_OPERATION

        results = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(self._call, operation, document): key
                for key, operation in calls.items()
            }
            try:
                for future in as_completed(futures):
                    results[futures[future]] = future.result()
            except UpstreamError:
                for future in futures:
                    future.cancel()
                raise

        logger.debug(f"Received {len(results)} Comprehend Medical responses")
        try:
            return ComprehendPayload.from_responses(
                results['entities'],
                {name: results[name] for name in self.vocabularies},
                results.get('phi'),
            )
        except (ValueError, TypeError, AttributeError) as e:
            raise UpstreamError(f"Malformed Comprehend Medical response: {e}") from e

    def normalize(self, document: str, payload: ComprehendPayload) -> Extraction:
        return self.normalizer.normalize(document, payload)

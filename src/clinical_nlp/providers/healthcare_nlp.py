"""
Google Cloud Healthcare Natural Language provider

One ``nlp:analyzeEntities`` request returns mentions, linked vocabulary
entities and relationship edges; relations are built by graph clustering.
"""

import logging
import subprocess
from typing import Optional, Dict

import requests

from ..models import Extraction
from ..payloads import HealthcareNlpPayload
from ..mappers.extraction import HealthcareNlpNormalizer
from ..utils.audit_logger import AuditLogger
from ..utils.config import Config
from .base import ClinicalNLPProvider, UpstreamError

logger = logging.getLogger(__name__)

TOKEN_COMMAND = ['gcloud', 'auth', 'application-default', 'print-access-token']


class HealthcareNlpProvider(ClinicalNLPProvider):
    """Graph-clustering provider backed by the Cloud Healthcare API"""

    name = "gcp"

    def __init__(self, project_id: Optional[str] = None, region: Optional[str] = None,
                 access_token: Optional[str] = None, endpoint: Optional[str] = None,
                 timeout: Optional[float] = None, threshold: Optional[float] = None,
                 audit_logger: Optional[AuditLogger] = None):
        super().__init__(audit_logger)
        settings = Config.get_gcp_settings()
        self.project_id = project_id or settings["project_id"]
        self.region = region or settings["region"]
        if not self.project_id or not self.region:
            raise ValueError("GCP_PROJECT_ID and GCP_NLP_CLOUD_REGION must be configured")
        self.access_token = access_token or settings["access_token"]
        self.endpoint = (endpoint or settings["endpoint"]).rstrip('/')
        self.timeout = timeout or Config.get_request_timeout()
        self.normalizer = HealthcareNlpNormalizer(
            threshold if threshold is not None else Config.get_confidence_threshold()
        )

    @property
    def nlp_service(self) -> str:
        return f"projects/{self.project_id}/locations/{self.region}/services/nlp"

    def get_access_token(self) -> str:
        """Configured token, or application-default credentials from gcloud"""
        if self.access_token:
            return self.access_token.strip()
        try:
            result = subprocess.run(
                TOKEN_COMMAND, check=True, capture_output=True, text=True, timeout=self.timeout
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise UpstreamError(f"Unable to obtain access token: {e}") from e
        token = result.stdout.strip()
        if not token:
            raise UpstreamError("gcloud returned an empty access token")
        return token

    def _headers(self) -> Dict[str, str]:
        return {
            'Authorization': f"Bearer {self.get_access_token()}",
            'Content-Type': 'application/json; charset=utf-8',
        }

    def fetch(self, document: str) -> HealthcareNlpPayload:
        url = f"{self.endpoint}/{self.nlp_service}:analyzeEntities"
        body = {
            'nlpService': self.nlp_service,
            'documentContent': document,
        }

        try:
            response = requests.post(url, json=body, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamError(f"analyzeEntities request failed: {e}") from e

        if response.status_code != 200:
            raise UpstreamError(f"analyzeEntities returned status {response.status_code}")

        try:
            return HealthcareNlpPayload.from_response(response.json())
        except (ValueError, TypeError, AttributeError) as e:
            raise UpstreamError(f"Malformed analyzeEntities response: {e}") from e

    def normalize(self, document: str, payload: HealthcareNlpPayload) -> Extraction:
        return self.normalizer.normalize(document, payload)

"""
Configuration utilities for the Clinical NLP Normalizer
"""

import os
import logging
from pathlib import Path
from typing import Dict, List, Optional, Any

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()


class Config:
    """Configuration management for the application"""

    # Providers
    DEFAULT_PROVIDER = "aws"
    PROVIDERS = ("aws", "gcp")

    # AWS Comprehend Medical
    DEFAULT_AWS_REGION = "us-west-2"
    DEFAULT_VOCABULARIES = ("ICD10CM", "RXNORM")
    SUPPORTED_VOCABULARIES = ("ICD10CM", "RXNORM", "SNOMEDCT")

    # Google Cloud Healthcare Natural Language
    DEFAULT_GCP_ENDPOINT = "https://healthcare.googleapis.com/v1"

    # Pipeline tuning
    DEFAULT_CONFIDENCE_THRESHOLD = 0.9
    DEFAULT_OVERLAP_TOLERANCE = 0.2
    DEFAULT_REQUEST_TIMEOUT = 30.0
    DEFAULT_MAX_WORKERS = 4

    @classmethod
    def get_env_var(cls, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get environment variable with optional default"""
        return os.environ.get(key, default)

    @classmethod
    def _get_float(cls, key: str, default: float, low: float = None, high: float = None) -> float:
        raw = cls.get_env_var(key)
        if raw is None or raw == "":
            return default
        try:
            value = float(raw)
        except ValueError:
            logger.warning(f"Invalid {key}={raw!r}, using {default}")
            return default
        if value != value or (low is not None and value < low) or (high is not None and value > high):
            logger.warning(f"{key}={value} out of range, using {default}")
            return default
        return value

    @classmethod
    def get_provider(cls) -> str:
        provider = (cls.get_env_var("CLINICAL_NLP_PROVIDER") or cls.DEFAULT_PROVIDER).lower()
        if provider not in cls.PROVIDERS:
            logger.warning(f"Unknown provider {provider!r}, using {cls.DEFAULT_PROVIDER}")
            return cls.DEFAULT_PROVIDER
        return provider

    @classmethod
    def get_aws_region(cls) -> str:
        return cls.get_env_var("AWS_REGION") or cls.DEFAULT_AWS_REGION

    @classmethod
    def get_vocabularies(cls) -> List[str]:
        """Vocabulary systems queried alongside entity detection, in resolution order"""
        raw = cls.get_env_var("COMPREHEND_VOCABULARIES")
        if not raw:
            return list(cls.DEFAULT_VOCABULARIES)

        vocabularies = []
        for name in raw.split(","):
            name = name.strip().upper()
            if not name:
                continue
            if name not in cls.SUPPORTED_VOCABULARIES:
                logger.warning(f"Ignoring unsupported vocabulary: {name}")
                continue
            if name not in vocabularies:
                vocabularies.append(name)
        return vocabularies

    @classmethod
    def get_gcp_settings(cls) -> Dict[str, Optional[str]]:
        return {
            "project_id": cls.get_env_var("GCP_PROJECT_ID"),
            "region": cls.get_env_var("GCP_NLP_CLOUD_REGION"),
            "access_token": cls.get_env_var("GCP_ACCESS_TOKEN"),
            "endpoint": cls.get_env_var("GCP_NLP_ENDPOINT") or cls.DEFAULT_GCP_ENDPOINT,
        }

    @classmethod
    def get_confidence_threshold(cls) -> float:
        return cls._get_float(
            "RELATIONSHIP_CONFIDENCE_THRESHOLD", cls.DEFAULT_CONFIDENCE_THRESHOLD, 0.0, 1.0
        )

    @classmethod
    def get_overlap_tolerance(cls) -> float:
        return cls._get_float("SPAN_OVERLAP_TOLERANCE", cls.DEFAULT_OVERLAP_TOLERANCE, 0.0, 1.0)

    @classmethod
    def get_request_timeout(cls) -> float:
        return cls._get_float("REQUEST_TIMEOUT", cls.DEFAULT_REQUEST_TIMEOUT, low=0.1)

    @classmethod
    def get_max_workers(cls) -> int:
        return int(cls._get_float("MAX_UPSTREAM_WORKERS", cls.DEFAULT_MAX_WORKERS, low=1))

    @classmethod
    def get_audit_log_dir(cls) -> Optional[Path]:
        log_dir = cls.get_env_var("AUDIT_LOG_DIR")
        return Path(log_dir) if log_dir else None

    @classmethod
    def get_log_level(cls) -> str:
        return (cls.get_env_var("LOG_LEVEL") or "INFO").upper()

    @classmethod
    def summary(cls) -> Dict[str, Any]:
        """Current configuration without secrets"""
        gcp = cls.get_gcp_settings()
        return {
            "provider": cls.get_provider(),
            "aws_region": cls.get_aws_region(),
            "vocabularies": cls.get_vocabularies(),
            "gcp_project_id": gcp["project_id"],
            "gcp_region": gcp["region"],
            "gcp_token_configured": bool(gcp["access_token"]),
            "confidence_threshold": cls.get_confidence_threshold(),
            "overlap_tolerance": cls.get_overlap_tolerance(),
            "request_timeout": cls.get_request_timeout(),
            "max_workers": cls.get_max_workers(),
        }

"""
Audit Logging for Clinical Extractions
======================================

Structured audit trail of extraction activity. Documents routinely contain
Protected Health Information (PHI), so entries carry counts, identifiers and
latencies only; any free text passes through ``_sanitize_text`` first.

Log Categories:
    1. EXTRACTION: One completed document extraction
    2. ERROR: Failed extractions and upstream errors
    3. SYSTEM: Lifecycle and configuration events

Entries are JSON lines on the ``audit`` logger. They go to a daily
``audit_YYYYMMDD.jsonl`` file when ``AUDIT_LOG_DIR`` is configured; warnings
and errors are always echoed to the console.

Usage:
    from clinical_nlp.utils.audit_logger import get_audit_logger

    audit = get_audit_logger()
    audit.log_extraction(
        provider="aws",
        relation_count=12,
        phi_count=3,
        latency_ms=842.5,
        document_length=1830
    )
"""

import re
import json
import logging
import hashlib
import os
import socket
import time
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, Optional
from collections import deque

from .config import Config

# SSN, long identifiers, dates, emails, phone numbers
PHI_PATTERNS = [
    (re.compile(r'\b\d{3}-\d{2}-\d{4}\b'), '[SSN_REMOVED]'),
    (re.compile(r'\b\d{6,}\b'), '[ID_REMOVED]'),
    (re.compile(r'\b\d{1,2}[/-]\d{1,2}[/-]\d{2,4}\b'), '[DATE_REMOVED]'),
    (re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b'), '[EMAIL_REMOVED]'),
    (re.compile(r'(?:\+?1[-.]?)?\(?\b[0-9]{3}\)?[-.\s]?[0-9]{3}[-.][0-9]{4}\b'), '[PHONE_REMOVED]'),
]


class AuditLogger:
    """
    Audit logger for extraction activity

    Thread Safety:
        The metrics buffer is guarded by a lock; the logger can be shared across
        threads and documents.
    """

    def __init__(self, log_dir: Optional[Path] = None):
        """
        Args:
            log_dir: Directory for JSON-lines audit files. None logs to the
                     console only.
        """
        self.log_dir = Path(log_dir) if log_dir else None
        self.session_id = self._generate_session_id()
        self.hostname = socket.gethostname()

        self.metrics_buffer = deque(maxlen=1000)
        self.metrics_lock = threading.Lock()

        self._setup_logger()

    def _setup_logger(self):
        """Setup the audit logger with proper handlers"""
        self.logger = logging.getLogger('audit')
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False
        self.logger.handlers = []

        formatter = logging.Formatter('%(message)s')

        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            log_file = self.log_dir / f"audit_{datetime.now().strftime('%Y%m%d')}.jsonl"
            file_handler = logging.FileHandler(log_file, mode='a')
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(formatter)
        self.logger.addHandler(console_handler)

    def _generate_session_id(self) -> str:
        """Generate unique session ID"""
        timestamp = str(time.time())
        random_data = os.urandom(16).hex()
        return hashlib.sha256(f"{timestamp}{random_data}".encode()).hexdigest()[:16]

    def _create_audit_entry(self, event_type: str, details: Dict[str, Any]) -> Dict[str, Any]:
        """Create standardized audit entry"""
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "session_id": self.session_id,
            "hostname": self.hostname,
            "event_type": event_type,
            "details": details
        }

    def log_extraction(self, provider: str, relation_count: int, phi_count: int,
                       latency_ms: float, document_length: int):
        """
        Log a completed extraction

        Args:
            provider: Provider name (aws, gcp, offline)
            relation_count: Relations in the extraction, PHI included
            phi_count: PHI relations among them
            latency_ms: End-to-end time in milliseconds
            document_length: Characters in the document
        """
        entry = self._create_audit_entry("EXTRACTION", {
            "provider": provider,
            "relation_count": relation_count,
            "phi_count": phi_count,
            "document_length": document_length,
            "latency_ms": round(latency_ms, 2)
        })
        self.logger.info(json.dumps(entry))
        self._track_performance(provider, latency_ms)

    def log_error(self, error_type: str, error_message: str,
                  context: Dict[str, Any] = None):
        """
        Log a failed extraction

        Args:
            error_type: Exception class or error category
            error_message: Error message, sanitized before writing
            context: Additional non-PHI context
        """
        entry = self._create_audit_entry("ERROR", {
            "error_type": error_type,
            "error_message": self._sanitize_text(error_message),
            "context": context or {}
        })
        self.logger.error(json.dumps(entry))

    def log_system_event(self, event: str, details: Dict[str, Any] = None):
        """Log system-level events (STARTUP, SHUTDOWN, CONFIG, ...)"""
        entry = self._create_audit_entry("SYSTEM", {
            "system_event": event,
            "details": details or {}
        })
        self.logger.info(json.dumps(entry))

    def _sanitize_text(self, text: str) -> str:
        """
        Replace PHI-like patterns with placeholders

        Names and addresses are not detected; callers must not pass document
        text here.
        """
        sanitized = text or ""
        for pattern, placeholder in PHI_PATTERNS:
            sanitized = pattern.sub(placeholder, sanitized)
        return sanitized

    def _track_performance(self, provider: str, latency_ms: float):
        with self.metrics_lock:
            self.metrics_buffer.append({
                "timestamp": time.time(),
                "provider": provider,
                "latency_ms": latency_ms
            })

    def get_performance_summary(self) -> Dict[str, Any]:
        """Get performance summary for monitoring"""
        with self.metrics_lock:
            if not self.metrics_buffer:
                return {}
            latencies = sorted(m["latency_ms"] for m in self.metrics_buffer)

        return {
            "total_extractions": len(latencies),
            "avg_latency_ms": sum(latencies) / len(latencies),
            "min_latency_ms": latencies[0],
            "max_latency_ms": latencies[-1],
            "p50_latency_ms": latencies[len(latencies) // 2],
            "p95_latency_ms": latencies[int(len(latencies) * 0.95)]
        }

    def shutdown(self):
        """Clean shutdown of audit logger"""
        self.log_system_event("SHUTDOWN", {
            "session_id": self.session_id,
            "performance_summary": self.get_performance_summary()
        })
        for handler in self.logger.handlers:
            handler.close()


# Global audit logger instance
_audit_logger = None
_audit_lock = threading.Lock()


def get_audit_logger() -> AuditLogger:
    """Get or create global audit logger instance"""
    global _audit_logger
    with _audit_lock:
        if _audit_logger is None:
            _audit_logger = AuditLogger(Config.get_audit_log_dir())
    return _audit_logger

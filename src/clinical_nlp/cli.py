#!/usr/bin/env python3
"""
Command-line interface for the Clinical NLP Normalizer
"""

import sys
import json
import time
import logging
import argparse

from .models import Category
from .mappers.extraction import ComprehendMedicalNormalizer, HealthcareNlpNormalizer
from .payloads import ComprehendPayload, HealthcareNlpPayload
from .providers import get_provider, ExtractionError
from .utils.audit_logger import get_audit_logger
from .utils.config import Config

logger = logging.getLogger(__name__)


def normalize_payload(provider: str, text: str, payload_file: str):
    """Normalize a saved raw provider response without calling the provider"""
    with open(payload_file, 'r') as f:
        data = json.load(f)

    if provider == 'gcp':
        payload = HealthcareNlpPayload.from_response(data)
        return HealthcareNlpNormalizer(Config.get_confidence_threshold()).normalize(text, payload)

    payload = ComprehendPayload.from_dict(data)
    return ComprehendMedicalNormalizer(Config.get_overlap_tolerance()).normalize(text, payload)


def print_human(extraction):
    if not extraction.relations:
        print("No relations found")
        return

    for i, relation in enumerate(extraction.relations, 1):
        print(f"\n{i}. {relation.statement}")
        print(f"   Category: {relation.category.value} / {relation.type}")
        print(f"   Original: '{relation.original_statement}'")
        if relation.context_subject:
            print(f"   Subject: {relation.context_subject.value}")

        for entity in relation.entities:
            role = "object" if entity.is_relation_object else "subject"
            negated = " (negated)" if entity.is_negated else ""
            print(f"     - [{role}] {entity.text}: {entity.category.value}/{entity.type}{negated}")
            for term in entity.coded_terms:
                codes = ', '.join(term.norm_codes)
                system = f"{term.vocabulary}: " if term.vocabulary else ""
                print(f"         {system}{codes} - {term.term}")


def extract(args, audit):
    """Extract relations from text or file"""
    if args.file:
        with open(args.file, 'r') as f:
            text = f.read()
    else:
        text = args.text

    provider = args.provider or Config.get_provider()

    if args.payload:
        start_time = time.time()
        extraction = normalize_payload(provider, text, args.payload)
        audit.log_extraction(
            provider="offline",
            relation_count=len(extraction.relations),
            phi_count=sum(
                1 for relation in extraction.relations
                if relation.category == Category.PROTECTED_HEALTH_INFORMATION
            ),
            latency_ms=(time.time() - start_time) * 1000,
            document_length=len(text),
        )
    else:
        extraction = get_provider(provider).extract(text)

    if args.format == 'json':
        print(json.dumps(extraction.to_dict(), indent=2))
    else:
        print_human(extraction)


def main(argv=None):
    """Main CLI function"""
    parser = argparse.ArgumentParser(
        description="Clinical NLP Normalizer - Normalize clinical entity detections into relations"
    )

    # Input options
    input_group = parser.add_mutually_exclusive_group(required=True)
    input_group.add_argument("-t", "--text", help="Text to process")
    input_group.add_argument("-f", "--file", help="File to process")

    parser.add_argument(
        "-p", "--provider",
        choices=list(Config.PROVIDERS),
        help="Upstream NLP provider (default: CLINICAL_NLP_PROVIDER or aws)"
    )
    parser.add_argument(
        "--payload",
        help="Saved raw provider response (JSON) to normalize instead of calling the provider"
    )

    # Output options
    parser.add_argument(
        "-o", "--format",
        choices=["json", "human"],
        default="human",
        help="Output format (default: human)"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=Config.get_log_level(),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    audit = get_audit_logger()
    audit.log_system_event("CONFIG", Config.summary())

    try:
        extract(args, audit)
    except ExtractionError as e:
        print(f"Extraction failed: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 2
    finally:
        audit.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())

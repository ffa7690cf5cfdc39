#!/usr/bin/env python3
"""
Quick start example for the Clinical NLP Normalizer

Normalizes a canned Comprehend Medical response, so no AWS credentials are needed.
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from clinical_nlp import ComprehendMedicalNormalizer
from clinical_nlp.payloads import ComprehendPayload

TEXT = "Type 2 diabetes mellitus. Started lisinopril 10mg daily."

ENTITIES = {
    'Entities': [
        {
            'Id': 0, 'Text': 'lisinopril', 'BeginOffset': 34, 'EndOffset': 44,
            'Category': 'MEDICATION', 'Type': 'GENERIC_NAME', 'Traits': [],
            'Attributes': [
                {'Id': 1, 'Text': '10mg', 'BeginOffset': 45, 'EndOffset': 49, 'Type': 'DOSAGE'},
                {'Id': 2, 'Text': 'daily', 'BeginOffset': 50, 'EndOffset': 55, 'Type': 'FREQUENCY'},
            ],
        },
    ],
}

RXNORM = {
    'Entities': [
        {
            'Text': 'lisinopril', 'BeginOffset': 34, 'EndOffset': 44,
            'RxNormConcepts': [{'Code': '29046', 'Description': 'lisinopril', 'Score': 0.93}],
        },
    ],
}


def main():
    """Run example"""
    print("🏥 Clinical NLP Normalizer - Quick Start Example")
    print("=" * 50)

    payload = ComprehendPayload.from_responses(ENTITIES, {'RXNORM': RXNORM})
    extraction = ComprehendMedicalNormalizer().normalize(TEXT, payload)

    for relation in extraction.relations:
        print(f"\n📍 {relation.statement}")
        print(f"   Original: '{relation.original_statement}'")
        print(f"   Category: {relation.category.value} / {relation.type}")
        for entity in relation.entities:
            print(f"   - {entity.text}: {entity.type}")
            for term in entity.coded_terms:
                print(f"     {term.vocabulary}: {', '.join(term.norm_codes)} ({term.term})")

    print("\n" + "=" * 50)
    print("✅ Example completed!")
    print("\nTo call the live services instead:")
    print("  clinical-nlp -p aws -t \"...\"")


if __name__ == "__main__":
    main()

"""
Unit tests for coded-term assembly
"""

import unittest
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../../src'))

from clinical_nlp.payloads import CodedEntity, Concept, VocabularyEntry
from clinical_nlp.mappers.span_overlap import Span
from clinical_nlp.mappers.coded_terms import terms_from_links, terms_from_overlaps


class TestTermsFromOverlaps(unittest.TestCase):
    """Test coded terms resolved through span overlap"""

    def setUp(self):
        self.span = Span("metformin", 14, 23)
        self.vocabularies = {
            'ICD10CM': [
                CodedEntity("diabetes", 46, 54, [Concept("E11.9", "Type 2 diabetes mellitus", 0.71)]),
            ],
            'RXNORM': [
                CodedEntity("Metformin", 14, 23, [
                    Concept("6809", "metformin", 0.95),
                    Concept("861007", "metformin 500 MG Oral Tablet", 0.62),
                ]),
            ],
        }

    def test_one_term_per_concept(self):
        terms = terms_from_overlaps(self.span, self.vocabularies)

        self.assertEqual(len(terms), 2)
        self.assertEqual(terms[0].norm_codes, ["6809"])
        self.assertEqual(terms[0].term, "metformin")
        self.assertEqual(terms[0].confidence, 0.95)
        self.assertEqual(terms[0].vocabulary, "RXNORM")
        self.assertEqual(terms[1].norm_codes, ["861007"])
        self.assertEqual(terms[1].confidence, 0.62)

    def test_every_vocabulary_contributes(self):
        vocabularies = {
            'RXNORM': [CodedEntity("metformin", 14, 23, [Concept("6809", "metformin", 0.95)])],
            'SNOMEDCT': [CodedEntity("metformin", 14, 23, [Concept("109081006", "Metformin", 0.8)])],
        }
        terms = terms_from_overlaps(self.span, vocabularies)

        self.assertEqual([t.vocabulary for t in terms], ["RXNORM", "SNOMEDCT"])
        self.assertEqual([t.norm_codes for t in terms], [["6809"], ["109081006"]])
        self.assertEqual([t.confidence for t in terms], [0.95, 0.8])

    def test_no_overlap(self):
        terms = terms_from_overlaps(Span("aspirin", 100, 107), self.vocabularies)
        self.assertEqual(terms, [])

    def test_empty_vocabularies(self):
        self.assertEqual(terms_from_overlaps(self.span, {}), [])

    def test_repeated_concepts_are_kept(self):
        vocabularies = {
            'RXNORM': [
                CodedEntity("metformin", 14, 23, [Concept("6809", "metformin", 0.95)]),
                CodedEntity("metformin", 14, 23, [Concept("6809", "metformin", 0.95)]),
            ],
        }
        self.assertEqual(len(terms_from_overlaps(self.span, vocabularies)), 2)

    def test_malformed_concepts_skipped(self):
        vocabularies = {
            'RXNORM': [
                CodedEntity("metformin", 14, 23, [
                    Concept(None, "no code", 0.9),
                    Concept("6809", "bad score", 1.7),
                    Concept("6809", "metformin", None),
                ]),
            ],
        }
        terms = terms_from_overlaps(self.span, vocabularies)

        self.assertEqual(len(terms), 1)
        self.assertEqual(terms[0].term, "metformin")
        self.assertIsNone(terms[0].confidence)


class TestTermsFromLinks(unittest.TestCase):
    """Test coded terms resolved through explicit vocabulary links"""

    def setUp(self):
        self.vocabulary = {
            'UMLS/C0006142': VocabularyEntry(
                'UMLS/C0006142', 'Malignant neoplasm of breast',
                ['ICD10CM/C50.919', 'SNOMEDCT_US/254837009'],
            ),
        }

    def test_linked_entity(self):
        terms = terms_from_links(['UMLS/C0006142'], self.vocabulary)

        self.assertEqual(len(terms), 1)
        self.assertEqual(terms[0].norm_codes, ['ICD10CM/C50.919', 'SNOMEDCT_US/254837009'])
        self.assertEqual(terms[0].term, 'Malignant neoplasm of breast')
        self.assertEqual(terms[0].nlp_system_entity_code, 'UMLS/C0006142')
        self.assertIsNone(terms[0].confidence)

    def test_missing_link_skipped(self):
        self.assertEqual(terms_from_links(['UMLS/C9999999'], self.vocabulary), [])

    def test_codes_are_copied(self):
        terms = terms_from_links(['UMLS/C0006142'], self.vocabulary)
        terms[0].norm_codes.append('extra')
        self.assertEqual(len(self.vocabulary['UMLS/C0006142'].vocabulary_codes), 2)


if __name__ == '__main__':
    unittest.main()

"""
Unit tests for relation construction
Tests attribute-based grouping, graph clustering and PHI relations
"""

import unittest
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../../src'))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../fixtures'))

from clinical_nlp.models import Category, ContextSubject
from clinical_nlp.payloads import (
    RawDetection,
    CodedEntity,
    Concept,
    Mention,
    RelationshipEdge,
    HealthcareNlpPayload,
)
from clinical_nlp.mappers.relations import (
    build_attribute_relations,
    build_graph_relations,
    build_phi_relations,
    connection_cluster,
)
from test_data import CLINICAL_TEXTS, FAMILY_ANALYZE_RESPONSE


def _mention(mention_id, text, begin, mention_type='PROBLEM', subject=None, links=None):
    return Mention(mention_id, mention_type, text, begin, subject, links or [])


class TestAttributeRelations(unittest.TestCase):
    """Test attribute-based relation construction"""

    def setUp(self):
        self.document = CLINICAL_TEXTS['metformin']
        self.metformin = RawDetection(
            id='0', text='metformin', begin_offset=14, end_offset=23,
            category='MEDICATION', type='GENERIC_NAME',
            attributes=[
                RawDetection(id='1', text='500mg', begin_offset=24, end_offset=29,
                             category='MEDICATION', type='DOSAGE'),
                RawDetection(id='2', text='twice daily', begin_offset=30, end_offset=41,
                             category='MEDICATION', type='FREQUENCY'),
            ],
        )
        self.diabetes = RawDetection(
            id='3', text='diabetes', begin_offset=46, end_offset=54,
            category='MEDICAL_CONDITION', type='DX_NAME', traits=['DIAGNOSIS'],
        )

    def test_detection_without_attributes_dropped(self):
        self.assertEqual(build_attribute_relations(self.document, [self.diabetes]), [])

    def test_subject_followed_by_attributes(self):
        relations = build_attribute_relations(self.document, [self.metformin, self.diabetes])

        self.assertEqual(len(relations), 1)
        relation = relations[0]
        self.assertEqual(len(relation.entities), 3)
        self.assertEqual([e.text for e in relation.entities], ['metformin', '500mg', 'twice daily'])
        self.assertEqual([e.type for e in relation.entities], ['GenericName', 'Dosage', 'Frequency'])
        self.assertEqual([e.is_relation_object for e in relation.entities], [False, True, True])
        self.assertEqual(relation.category, Category.MEDICATION)
        self.assertEqual(relation.type, 'GenericName')
        self.assertEqual(relation.statement, 'metformin 500mg twice daily')
        self.assertEqual(relation.original_statement, 'metformin 500mg twice daily')
        self.assertIsNone(relation.context_subject)

    def test_attribute_inherits_parent_category(self):
        detection = RawDetection.from_response({
            'Id': 0, 'Text': 'metformin', 'BeginOffset': 14, 'EndOffset': 23,
            'Category': 'MEDICATION', 'Type': 'GENERIC_NAME',
            'Attributes': [{'Id': 1, 'Text': '500mg', 'BeginOffset': 24, 'EndOffset': 29, 'Type': 'DOSAGE'}],
        })
        relation = build_attribute_relations(self.document, [detection])[0]
        self.assertEqual(relation.entities[1].category, Category.MEDICATION)
        self.assertEqual(relation.entities[1].type, 'Dosage')

    def test_negated_subject_statement(self):
        pain = RawDetection(
            id='0', text='chest pain', begin_offset=41, end_offset=51,
            category='MEDICAL_CONDITION', type='DX_NAME', traits=['SYMPTOM', 'NEGATION'],
            attributes=[
                RawDetection(id='1', text='chest', begin_offset=41, end_offset=46,
                             category='ANATOMY', type='SYSTEM_ORGAN_SITE'),
            ],
        )
        relation = build_attribute_relations(CLINICAL_TEXTS['family'], [pain])[0]

        self.assertTrue(relation.entities[0].is_negated)
        self.assertEqual(relation.type, 'Symptom')
        self.assertEqual(relation.statement, 'no chest pain chest')
        self.assertEqual(relation.original_statement, 'chest pain')

    def test_coded_terms_from_vocabularies(self):
        vocabularies = {
            'RXNORM': [CodedEntity('metformin', 14, 23, [Concept('6809', 'metformin', 0.95)])],
            'ICD10CM': [CodedEntity('diabetes', 46, 54, [Concept('E11.9', 'Type 2 diabetes', 0.71)])],
        }
        relation = build_attribute_relations(self.document, [self.metformin], vocabularies)[0]

        subject = relation.entities[0]
        self.assertEqual(len(subject.coded_terms), 1)
        self.assertEqual(subject.coded_terms[0].norm_codes, ['6809'])
        self.assertEqual(subject.coded_terms[0].confidence, 0.95)
        self.assertEqual(subject.coded_terms[0].vocabulary, 'RXNORM')
        self.assertEqual(relation.entities[1].coded_terms, [])

    def test_out_of_range_offsets_skip_relation(self):
        broken = RawDetection(
            id='9', text='insulin', begin_offset=50, end_offset=120,
            category='MEDICATION', type='GENERIC_NAME',
            attributes=[RawDetection(id='10', text='10 units', begin_offset=40, end_offset=48,
                                     category='MEDICATION', type='DOSAGE')],
        )
        with self.assertLogs('clinical_nlp.mappers.relations', level='WARNING'):
            relations = build_attribute_relations(self.document, [broken, self.metformin])

        self.assertEqual(len(relations), 1)
        self.assertEqual(relations[0].entities[0].text, 'metformin')

    def test_unknown_codes_degrade(self):
        odd = RawDetection(
            id='0', text='metformin', begin_offset=14, end_offset=23,
            category='MEDICATION', type='BRAND_NEW_TYPE',
            attributes=[RawDetection(id='1', text='500mg', begin_offset=24, end_offset=29,
                                     category='MEDICATION', type='DOSAGE')],
        )
        relation = build_attribute_relations(self.document, [odd])[0]
        self.assertEqual(relation.category, Category.UNIDENTIFIED)
        self.assertEqual(relation.type, 'Unidentified')


class TestConnectionCluster(unittest.TestCase):
    """Test one-hop neighbour collection"""

    def setUp(self):
        self.a = _mention('a', 'A', 0)
        self.b = _mention('b', 'B', 2)
        self.c = _mention('c', 'C', 4)
        self.by_id = {m.mention_id: m for m in (self.a, self.b, self.c)}

    def test_roles(self):
        members = connection_cluster(self.a, [RelationshipEdge('a', 'b', 1.0)], self.by_id)
        self.assertEqual([(m.mention_id, obj) for m, obj in members], [('a', False), ('b', True)])

        members = connection_cluster(self.b, [RelationshipEdge('a', 'b', 1.0)], self.by_id)
        self.assertEqual([(m.mention_id, obj) for m, obj in members], [('b', True), ('a', False)])

    def test_one_hop_only(self):
        edges = [RelationshipEdge('a', 'b', 1.0), RelationshipEdge('b', 'c', 1.0)]
        members = connection_cluster(self.a, edges, self.by_id)
        self.assertEqual([m.mention_id for m, _ in members], ['a', 'b'])

    def test_bidirectional_edges_listed_once(self):
        edges = [RelationshipEdge('a', 'b', 1.0), RelationshipEdge('b', 'a', 1.0)]
        members = connection_cluster(self.a, edges, self.by_id)

        self.assertEqual([(m.mention_id, obj) for m, obj in members], [('a', False), ('b', True)])

    def test_unknown_neighbour_ignored(self):
        members = connection_cluster(self.a, [RelationshipEdge('a', 'zzz', 1.0)], self.by_id)
        self.assertEqual([(m.mention_id, obj) for m, obj in members], [('a', False)])


class TestGraphRelations(unittest.TestCase):
    """Test graph-clustering relation construction"""

    def setUp(self):
        self.document = "A B C D"
        self.a = _mention('a', 'A', 0, 'MEDICINE')
        self.b = _mention('b', 'B', 2, 'MED_DOSE')
        self.c = _mention('c', 'C', 4, 'PROBLEM')
        self.d = _mention('d', 'D', 6, 'PROBLEM')

    def _ids(self, relations):
        return [[e.extraction_id for e in r.entities] for r in relations]

    def test_two_clusters(self):
        relations = build_graph_relations(
            self.document, [self.a, self.b, self.c], {}, [RelationshipEdge('a', 'b', 0.95)]
        )
        self.assertEqual(self._ids(relations), [['a', 'b'], ['c']])
        self.assertEqual(relations[0].category, Category.MEDICATION)
        self.assertEqual(relations[0].type, 'GenericName')
        self.assertEqual(relations[1].category, Category.MEDICAL_CONDITION)
        self.assertEqual(relations[1].entities[0].is_relation_object, False)

    def test_threshold_boundary(self):
        kept = build_graph_relations(
            self.document, [self.a, self.b], {}, [RelationshipEdge('a', 'b', 0.9)]
        )
        self.assertEqual(self._ids(kept), [['a', 'b']])

        dropped = build_graph_relations(
            self.document, [self.a, self.b], {}, [RelationshipEdge('a', 'b', 0.89)]
        )
        self.assertEqual(self._ids(dropped), [['a'], ['b']])

    def test_custom_threshold(self):
        relations = build_graph_relations(
            self.document, [self.a, self.b], {}, [RelationshipEdge('a', 'b', 0.5)], threshold=0.5
        )
        self.assertEqual(self._ids(relations), [['a', 'b']])

    def test_chain_is_not_transitive(self):
        edges = [RelationshipEdge('a', 'b', 0.95), RelationshipEdge('b', 'c', 0.95)]
        relations = build_graph_relations(self.document, [self.a, self.b, self.c], {}, edges)

        # c was not reached from a, so it starts its own cluster and pulls b in again
        self.assertEqual(self._ids(relations), [['a', 'b'], ['b', 'c']])
        self.assertEqual([e.is_relation_object for e in relations[1].entities], [False, True])

    def test_subjects_sorted_first(self):
        edges = [RelationshipEdge('c', 'a', 0.95), RelationshipEdge('d', 'a', 0.95)]
        relations = build_graph_relations(self.document, [self.a, self.c, self.d], {}, edges)

        self.assertEqual(len(relations), 1)
        self.assertEqual(self._ids(relations), [['c', 'd', 'a']])
        self.assertEqual([e.is_relation_object for e in relations[0].entities], [False, False, True])
        self.assertEqual(relations[0].category, Category.MEDICAL_CONDITION)

    def test_no_mentions(self):
        self.assertEqual(build_graph_relations(self.document, [], {}, []), [])

    def test_out_of_range_mention_skipped(self):
        far = _mention('z', 'far away', 100)
        with self.assertLogs('clinical_nlp.mappers.relations', level='WARNING'):
            relations = build_graph_relations(self.document, [far, self.a], {}, [])
        self.assertEqual(self._ids(relations), [['a']])

    def test_family_history_document(self):
        document = CLINICAL_TEXTS['family']
        payload = HealthcareNlpPayload.from_response(FAMILY_ANALYZE_RESPONSE)
        relations = build_graph_relations(
            document, payload.mentions, payload.vocabulary, payload.relationships
        )

        self.assertEqual(self._ids(relations), [['2', '1'], ['3'], ['4', '5', '6']])

        family = relations[0]
        self.assertEqual(family.category, Category.MEDICAL_CONDITION)
        self.assertEqual(family.context_subject, ContextSubject.FAMILY)
        self.assertEqual(family.original_statement, 'Mother has breast cancer')
        self.assertEqual(family.statement, 'breast cancer Mother')
        self.assertEqual(family.keywords, [])
        self.assertEqual(family.entities[0].coded_terms[0].norm_codes,
                         ['ICD10CM/C50.919', 'SNOMEDCT_US/254837009'])

        pain = relations[1]
        self.assertEqual(pain.context_subject, ContextSubject.PATIENT)
        self.assertEqual(pain.original_statement, 'chest pain')

        medication = relations[2]
        self.assertEqual(medication.type, 'GenericName')
        self.assertEqual([e.type for e in medication.entities], ['GenericName', 'Dosage', 'Frequency'])
        self.assertEqual(medication.original_statement, 'lisinopril 10 mg daily')
        self.assertEqual(medication.entities[1].context_subject, ContextSubject.DEFAULT)
        self.assertEqual(medication.entities[0].coded_terms[0].nlp_system_entity_code, 'UMLS/C0065374')


class TestPHIRelations(unittest.TestCase):
    """Test protected health information relations"""

    def test_singleton_relations(self):
        document = CLINICAL_TEXTS['with_phi']
        detections = [
            RawDetection(id='0', text='John Smith', begin_offset=0, end_offset=10,
                         category='PROTECTED_HEALTH_INFORMATION', type='NAME'),
            RawDetection(id='1', text='62', begin_offset=16, end_offset=18,
                         category='PROTECTED_HEALTH_INFORMATION', type='AGE'),
        ]
        relations = build_phi_relations(document, detections)

        self.assertEqual(len(relations), 2)
        for relation in relations:
            self.assertEqual(len(relation.entities), 1)
            self.assertEqual(relation.category, Category.PROTECTED_HEALTH_INFORMATION)
        self.assertEqual([r.type for r in relations], ['Name', 'Age'])
        self.assertEqual(relations[0].statement, 'John Smith')
        self.assertEqual(relations[1].original_statement, '62')

    def test_out_of_range_phi_skipped(self):
        detections = [
            RawDetection(id='0', text='John Smith', begin_offset=-1, end_offset=10,
                         category='PROTECTED_HEALTH_INFORMATION', type='NAME'),
        ]
        with self.assertLogs('clinical_nlp.mappers.relations', level='WARNING'):
            self.assertEqual(build_phi_relations(CLINICAL_TEXTS['with_phi'], detections), [])


if __name__ == '__main__':
    unittest.main()

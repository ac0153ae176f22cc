#!/usr/bin/env python3

"""
Unit tests for the GeneModel container and record linking.
"""

import gc
import os
import sys
import unittest

# Add the parent directory to the path to import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from transcript_selector.core.data_structures import FeatureType
from transcript_selector.core.exceptions import DuplicateIdError, OrphanRecordError, ValidationError
from transcript_selector.core.gene_model import GeneModel
from transcript_selector.tests.builders import make_gene, make_transcript, record


def flat_records():
    """File-ordered records for two genes, one with two transcripts."""
    return [
        record(FeatureType.GENE, "g1", 100, 900),
        record(FeatureType.MRNA, "t1", 100, 500, parent_id="g1"),
        record(FeatureType.EXON, "t1.exon1", 100, 500, parent_id="t1"),
        record(FeatureType.CDS, "cds.t1", 150, 450, parent_id="t1"),
        record(FeatureType.MRNA, "t2", 600, 900, parent_id="g1"),
        record(FeatureType.EXON, "t2.exon1", 600, 900, parent_id="t2"),
        record(FeatureType.GENE, "g2", 2000, 2500),
        record(FeatureType.MRNA, "t3", 2000, 2500, parent_id="g2"),
        record(FeatureType.EXON, "t3.exon1", 2000, 2500, parent_id="t3"),
    ]


def build_model():
    return GeneModel.from_records(flat_records())


class TestGeneModel(unittest.TestCase):
    """Test GeneModel operations."""

    def test_add_gene_registers_transcripts(self):
        t1 = make_transcript("t1", "g1", [(100, 200)], [(120, 180)])
        model = GeneModel([make_gene("g1", [t1])])

        self.assertTrue(model.contains_gene("g1"))
        self.assertTrue(model.contains_transcript("t1"))
        self.assertIs(model.get_transcript("t1"), t1)
        self.assertEqual(model.gene_count, 1)
        self.assertEqual(model.transcript_count, 1)

    def test_add_non_gene_rejected(self):
        model = GeneModel()
        with self.assertRaises(ValidationError):
            model.add_gene(record(FeatureType.MRNA, "t1", 1, 10))

    def test_duplicate_gene_rejected(self):
        model = GeneModel([record(FeatureType.GENE, "g1", 1, 10)])
        with self.assertRaises(DuplicateIdError):
            model.add_gene(record(FeatureType.GENE, "g1", 20, 30))

    def test_duplicate_transcript_across_genes_rejected(self):
        model = GeneModel([make_gene("g1", [make_transcript("t1", "g1", [(1, 10)], [(1, 9)])])])
        with self.assertRaises(DuplicateIdError):
            model.add_gene(make_gene("g2", [make_transcript("t1", "g2", [(20, 30)], [(21, 29)])]))

    def test_rejected_gene_leaves_index_untouched(self):
        model = GeneModel([make_gene("g1", [make_transcript("t1", "g1", [(1, 10)], [(1, 9)])])])
        new_transcript = make_transcript("t2", "g2", [(20, 30)], [(21, 29)])
        duplicate = make_transcript("t1", "g2", [(40, 50)], [(41, 49)])

        with self.assertRaises(DuplicateIdError):
            model.add_gene(make_gene("g2", [new_transcript, duplicate]))

        self.assertFalse(model.contains_gene("g2"))
        self.assertFalse(model.contains_transcript("t2"))
        self.assertIsNot(model.get_transcript("t1"), duplicate)
        model.check_integrity()

    def test_duplicate_transcript_within_gene_rejected(self):
        gene = make_gene("g1", [make_transcript("t1", "", [(1, 10)], [(1, 9)]),
                                make_transcript("t1", "", [(20, 30)], [(21, 29)])])
        model = GeneModel()
        with self.assertRaises(DuplicateIdError):
            model.add_gene(gene)
        self.assertEqual(len(model.transcript_by_id), 0)

    def test_add_transcript_to_missing_gene(self):
        with self.assertRaises(OrphanRecordError):
            GeneModel().add_transcript("nope", record(FeatureType.MRNA, "t1", 1, 10))

    def test_full_list_and_all_of_type(self):
        model = build_model()
        full = model.full_list()
        self.assertEqual(len(full), 9)
        self.assertIs(full[0], model.genes[0])
        self.assertEqual([r.id for r in model.all_of_type(FeatureType.MRNA)], ["t1", "t2", "t3"])

    def test_empty_model(self):
        model = GeneModel()
        self.assertEqual(model.gene_count, 0)
        self.assertEqual(model.transcript_count, 0)
        self.assertEqual(list(model.transcripts()), [])
        model.check_integrity()

    def test_index_matches_tree(self):
        model = build_model()
        tree_ids = sorted(t.id for gene in model.genes for t in gene.transcripts())
        self.assertEqual(sorted(model.transcript_by_id.keys()), tree_ids)
        self.assertEqual(len(tree_ids), len(set(tree_ids)))
        model.check_integrity()

    def test_indices_do_not_own_records(self):
        model = build_model()
        self.assertEqual(len(model.gene_by_id), 2)

        model.genes.clear()
        gc.collect()

        self.assertEqual(len(model.gene_by_id), 0)
        self.assertEqual(len(model.transcript_by_id), 0)


class TestFromRecords(unittest.TestCase):
    """Test linking flat records into gene trees."""

    def test_links_hierarchy(self):
        model = build_model()

        self.assertEqual(model.gene_count, 2)
        self.assertEqual(model.transcript_count, 3)
        t1 = model.get_transcript("t1")
        self.assertEqual([c.id for c in t1.children], ["t1.exon1", "cds.t1"])
        self.assertEqual([t.id for t in model.get_gene("g1").transcripts()], ["t1", "t2"])

    def test_protein_records_dropped(self):
        records = flat_records()
        records.insert(2, record(FeatureType.PROTEIN, "p1", 150, 450, parent_id="t1"))
        model = GeneModel.from_records(records)
        self.assertEqual(model.all_of_type(FeatureType.PROTEIN), [])

    def test_protein_parents_filtered(self):
        records = flat_records()
        records.insert(2, record(FeatureType.EXON, "shared", 100, 200, parent_id="t1,t1-Protein"))
        model = GeneModel.from_records(records)

        shared = [c for c in model.get_transcript("t1").children if c.id == "shared"]
        self.assertEqual(len(shared), 1)
        self.assertEqual(shared[0].parent_id, "t1")

    def test_multi_parent_records_dropped(self):
        records = flat_records()
        records.insert(5, record(FeatureType.EXON, "shared", 100, 200, parent_id="t1,t2"))
        model = GeneModel.from_records(records)

        ids = [r.id for r in model.full_list()]
        self.assertNotIn("shared", ids)

    def test_orphan_transcript(self):
        records = [record(FeatureType.MRNA, "t1", 1, 10, parent_id="missing")]
        with self.assertRaises(OrphanRecordError):
            GeneModel.from_records(records)

    def test_orphan_feature(self):
        records = flat_records()
        records.append(record(FeatureType.EXON, "x", 1, 10, parent_id="missing"))
        with self.assertRaises(OrphanRecordError):
            GeneModel.from_records(records)

    def test_feature_without_parent(self):
        records = flat_records()
        records.append(record(FeatureType.EXON, "x", 1, 10))
        with self.assertRaises(OrphanRecordError):
            GeneModel.from_records(records)

    def test_duplicate_transcript(self):
        records = flat_records()
        records.append(record(FeatureType.MRNA, "t1", 100, 500, parent_id="g2"))
        with self.assertRaises(DuplicateIdError):
            GeneModel.from_records(records)

    def test_duplicate_gene(self):
        records = flat_records()
        records.append(record(FeatureType.GENE, "g1", 100, 500))
        with self.assertRaises(DuplicateIdError):
            GeneModel.from_records(records)


if __name__ == '__main__':
    unittest.main()

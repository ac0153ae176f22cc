#!/usr/bin/env python3

"""
Unit tests for the shared lookup tables.
"""

import os
import sys
import unittest

# Add the parent directory to the path to import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from transcript_selector.core.data_structures import FlnStatus
from transcript_selector.core.gene_model import GeneModel
from transcript_selector.core.tables import (
    CrossReferenceTables, build_cross_reference_tables, index_gtf_transcripts
)
from transcript_selector.tests.builders import fln, gtf_transcript, simple_gene


class TestCrossReferenceTables(unittest.TestCase):

    def test_empty_tables(self):
        tables = CrossReferenceTables()
        self.assertEqual(set(tables.summary().values()), {0})
        self.assertIsNone(tables.confident_fln_by_id.get("comp1_c0_seq1"))

    def test_empty_tables_do_not_share_state(self):
        self.assertIsNot(CrossReferenceTables().genomic_by_id, CrossReferenceTables().genomic_by_id)

    def test_full_lengther_precedence(self):
        model = GeneModel([simple_gene(1, 1000)])
        complete = fln("comp1_c0_seq1", 201, 500)
        partial = fln("comp2_c0_seq1", 201, 500, status=FlnStatus.N_TERMINUS)
        coding = fln("comp2_c0_seq1", 210, 500, status=FlnStatus.CODING)

        tables = build_cross_reference_tables(model, dbannot=[complete, partial], new_coding=[coding])

        self.assertEqual(list(tables.confident_fln_by_id), ["comp1_c0_seq1"])
        self.assertIs(tables.putative_fln_by_id["comp2_c0_seq1"], coding)
        self.assertIs(tables.all_fln_by_id["comp2_c0_seq1"], coding)
        self.assertIn("cds.comp1_c0_seq1|m.1", tables.genomic_by_id)
        self.assertEqual(len(tables.aligned_cds_by_id), 0)

    def test_tables_are_read_only(self):
        tables = build_cross_reference_tables(GeneModel(), dbannot=[fln("comp1_c0_seq1", 201, 500)])
        with self.assertRaises(TypeError):
            tables.confident_fln_by_id["comp2_c0_seq1"] = fln("comp2_c0_seq1", 1, 300)

    def test_gtf_index_first_wins(self):
        first = gtf_transcript("comp1_c0_seq1", "G1")
        index = index_gtf_transcripts([first, gtf_transcript("comp1_c0_seq1", "G9"),
                                       gtf_transcript("a|b|c", "G3")])
        self.assertEqual(list(index), ["comp1_c0_seq1"])
        self.assertIs(index["comp1_c0_seq1"], first)


if __name__ == '__main__':
    unittest.main()

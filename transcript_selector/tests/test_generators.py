#!/usr/bin/env python3

"""
Unit tests for GFF3 and GTF output generation.
"""

import io
import os
import sys
import shutil
import tempfile
import unittest
from unittest import mock

# Add the parent directory to the path to import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from transcript_selector.core.data_structures import FeatureType
from transcript_selector.core.gene_model import GeneModel
from transcript_selector.core.generators import (
    GFF3Writer, GTFWriter, OutputGenerator, format_gff3_line, format_gtf_line, record_sort_key
)
from transcript_selector.core.partition import partition_gene_models
from transcript_selector.tests.builders import make_gene, make_transcript, record


class TestFormatting(unittest.TestCase):

    def test_unset_score_and_phase(self):
        exon = record(FeatureType.EXON, "e1", 100, 200, parent_id="t1")
        self.assertEqual(format_gff3_line(exon),
                         "chr1\ttest\texon\t100\t200\t.\t+\t.\tID=e1;Parent=t1")

    def test_attribute_order_and_source_override(self):
        transcript = record(FeatureType.MRNA, "t1", 100, 200, parent_id="g1", score=0.5,
                            name="t1", note="g1", alias="comp1")
        transcript.attributes["Target"] = "comp1 1 101"
        line = format_gff3_line(transcript, source="gts")
        self.assertEqual(line.split('\t')[1], "gts")
        self.assertEqual(line.split('\t')[5], "0.5")
        self.assertEqual(line.split('\t')[8], "ID=t1;Parent=g1;Name=t1;Note=g1;Alias=comp1;Target=comp1 1 101")

    def test_type_labels(self):
        utr = record(FeatureType.UTR5, "u1", 1, 10, type_label="five_prime_utr")
        other = record(FeatureType.OTHER, "o1", 1, 10, type_label="start_codon")
        self.assertEqual(format_gff3_line(utr).split('\t')[2], "five_prime_UTR")
        self.assertEqual(format_gff3_line(other).split('\t')[2], "start_codon")

    def test_sort_key(self):
        gene = record(FeatureType.GENE, "g", 100, 500)
        mrna = record(FeatureType.MRNA, "t", 100, 500)
        exon = record(FeatureType.EXON, "e", 100, 300)
        cds = record(FeatureType.CDS, "c", 150, 300)
        other_seq = record(FeatureType.GENE, "g0", 1, 10, seq_id="chr0")
        ordered = sorted([cds, exon, mrna, gene, other_seq], key=record_sort_key)
        self.assertEqual([r.id for r in ordered], ["g0", "g", "t", "e", "c"])

    def test_gtf_line(self):
        exon = record(FeatureType.EXON, "", 100, 900, score=1000.0, type_label="exon",
                      gene_id="G1", transcript_id="asmbl_1", coverage=12.0,
                      attributes={"exon_number": "1"})
        self.assertEqual(
            format_gtf_line(exon, source="Cufflinks"),
            'chr1\tCufflinks\texon\t100\t900\t1000\t+\t.\t'
            'gene_id "G1"; transcript_id "asmbl_1"; cov "12"; exon_number "1";'
        )

    def test_gtf_writer_keeps_order(self):
        first = record(FeatureType.TRANSCRIPT, "t2", 500, 900, gene_id="G2", transcript_id="t2")
        second = record(FeatureType.TRANSCRIPT, "t1", 100, 400, gene_id="G1", transcript_id="t1")
        handle = io.StringIO()
        self.assertEqual(GTFWriter().write_records(handle, [first, second]), 2)
        lines = handle.getvalue().splitlines()
        self.assertEqual([line.split('\t')[3] for line in lines], ["500", "100"])


class TestGFF3Writer(unittest.TestCase):

    def test_write_genes(self):
        g2 = make_gene("g2", [make_transcript("t2", "", [(5000, 5100)], [(5010, 5090)], utr5=False, utr3=False)])
        g1 = make_gene("g1", [make_transcript("t1", "", [(300, 400), (100, 200)], [(150, 200)],
                                              utr5=False, utr3=False)])
        handle = io.StringIO()

        count = GFF3Writer(source="gts").write(handle, [g2, g1])

        self.assertEqual(count, 2)
        lines = handle.getvalue().split('\n')
        self.assertEqual(lines[0], "##gff-version 3")
        ids = [line.split('\t')[8].split(';')[0] if line else "" for line in lines[1:]]
        self.assertEqual(ids, [
            "ID=g1", "ID=t1", "ID=t1.exon2", "ID=cds.t1", "ID=t1.exon1", "",
            "ID=g2", "ID=t2", "ID=t2.exon1", "ID=cds.t2", "", "",
        ])

    def test_write_does_not_reorder_children(self):
        transcript = make_transcript("t1", "", [(300, 400), (100, 200)], [(150, 200)])
        gene = make_gene("g1", [transcript])
        before = [c.id for c in transcript.children]
        GFF3Writer().write(io.StringIO(), [gene])
        self.assertEqual([c.id for c in transcript.children], before)


class TestOutputGenerator(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.tmpdir)
        self.prefix = os.path.join(self.tmpdir, "run")
        self.original = GeneModel([
            make_gene("g1", [make_transcript("t1", "", [(100, 500)], [(150, 450)])]),
            make_gene("g2", [make_transcript("t2", "", [(2000, 2500)], [(2100, 2400)])]),
        ])
        filtered = GeneModel([self.original.get_gene("g1").copy_tree()])
        self.result = partition_gene_models(self.original, filtered)

    def test_paths(self):
        generator = OutputGenerator(self.prefix)
        self.assertEqual(generator.pass_path, self.prefix + ".pass.gff3")
        self.assertEqual(generator.fail_path, self.prefix + ".fail.gff3")
        self.assertEqual(generator.stage_path(3), self.prefix + ".stage.3.gff3")

    def test_write_partition(self):
        generator = OutputGenerator(self.prefix, source="gts")
        written = generator.write_partition(self.result)

        self.assertEqual(written, [generator.pass_path, generator.fail_path])
        with open(generator.pass_path) as f:
            passed = f.read()
        with open(generator.fail_path) as f:
            failed = f.read()
        self.assertIn("ID=g1", passed)
        self.assertNotIn("ID=g2", passed)
        self.assertIn("ID=g2", failed)
        self.assertIn("\tgts\t", failed)
        self.assertEqual(sorted(os.listdir(self.tmpdir)), ["run.fail.gff3", "run.pass.gff3"])

    def test_failed_write_leaves_no_outputs(self):
        generator = OutputGenerator(self.prefix)
        calls = []

        def failing_write(handle, genes):
            calls.append(1)
            if len(calls) == 2:
                raise OSError("disk full")
            return 0

        with mock.patch.object(generator.writer, 'write', side_effect=failing_write):
            with self.assertRaises(OSError):
                generator.write_partition(self.result)

        self.assertEqual(os.listdir(self.tmpdir), [])

    def test_write_stage(self):
        generator = OutputGenerator(self.prefix)
        path = generator.write_stage(2, self.original.genes)
        self.assertEqual(path, self.prefix + ".stage.2.gff3")
        with open(path) as f:
            self.assertTrue(f.read().startswith("##gff-version 3\n"))


if __name__ == '__main__':
    unittest.main()

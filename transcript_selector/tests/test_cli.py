#!/usr/bin/env python3

"""
Unit tests for command-line argument handling.
"""

import os
import shutil
import sys
import tempfile
import unittest

# Add the parent directory to the path to import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from pipeline_cli import apply_overrides, create_argument_parser, validate_input_files
from transcript_selector.core.config import PipelineConfig

REQUIRED = ['--genomic-gff', 'g.gff3', '--gtf', 't.gtf', '--fln-dir', 'fln', '--output-prefix', 'out/run']


class TestArgumentHandling(unittest.TestCase):

    def test_defaults_leave_config_untouched(self):
        args = create_argument_parser().parse_args(REQUIRED)
        config = PipelineConfig()
        apply_overrides(config, args)
        self.assertEqual(config.to_dict(), PipelineConfig().to_dict())

    def test_overrides(self):
        args = create_argument_parser().parse_args(REQUIRED + [
            '--include-putative', '--window-size', '500', '--cds-ratio', '0.3',
            '--cdna-ratio', '0.6', '--stop-codon-adjustment', '3', '--all-stages',
            '--memory-limit', '2048', '--cds-cdna-ratio', '0.35',
        ])
        config = PipelineConfig()
        apply_overrides(config, args)

        self.assertTrue(config.include_putative)
        self.assertEqual(config.window_size, 500)
        self.assertEqual(config.cds_len_ratio, 0.3)
        self.assertEqual(config.cdna_len_ratio, 0.6)
        self.assertEqual(config.stop_codon_adjustment, 3)
        self.assertTrue(config.output_all_stages)
        self.assertEqual(config.memory_limit_mb, 2048)
        self.assertTrue(config.enable_cds_cdna_filter)
        self.assertEqual(config.min_cds_cdna_ratio, 0.35)

    def test_missing_fln_files_are_reported(self):
        tmpdir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, tmpdir)
        for name in ('g.gff3', 't.gtf', 'dbannotated.txt'):
            open(os.path.join(tmpdir, name), 'w').close()

        args = create_argument_parser().parse_args([
            '--genomic-gff', os.path.join(tmpdir, 'g.gff3'), '--gtf', os.path.join(tmpdir, 't.gtf'),
            '--fln-dir', tmpdir, '--output-prefix', os.path.join(tmpdir, 'run'),
        ])
        with self.assertRaises(FileNotFoundError) as ctx:
            validate_input_files(args)
        self.assertIn('new_coding.txt', str(ctx.exception))

        open(os.path.join(tmpdir, 'new_coding.txt'), 'w').close()
        validate_input_files(args)

    def test_required_arguments(self):
        with self.assertRaises(SystemExit):
            create_argument_parser().parse_args(['--gtf', 't.gtf'])


if __name__ == '__main__':
    unittest.main()

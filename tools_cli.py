#!/usr/bin/env python3

"""
Companion command-line tools for preparing and post-processing GTS files.

  gts-gff-ids    export mRNA ids with their gene ids as TSV
  gts-gff-filter drop listed transcripts (and their genes and children) from a GFF3
  gts-fix-gtf    strip the PASA align_id from GTF transcript ids
"""

import argparse
import sys
import logging

from pipeline_cli import setup_logging
from transcript_selector.core.annotation_tools import (
    filter_listed_records, load_entry_list, strip_align_ids, transcript_gene_pairs
)
from transcript_selector.core.exceptions import PipelineError
from transcript_selector.core.generators import GFF3Writer, GTFWriter
from transcript_selector.core.parsers import AnnotationParser


def _base_parser(description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument('-i', '--input', required=True, help='Input annotation file')
    parser.add_argument('-o', '--output', required=True, help='Output file')
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='INFO',
        help='Logging level (default: INFO)'
    )
    return parser


def _run(action, args) -> int:
    setup_logging(args.log_level)
    try:
        action(args)
    except PipelineError as e:
        logging.error(f"Pipeline error: {e}")
        return 1
    except OSError as e:
        logging.error(f"File error: {e}")
        return 1
    logging.info("Completed")
    return 0


def export_ids(args) -> None:
    records = AnnotationParser(args.input, "GFF3").parse()
    pairs = transcript_gene_pairs(records)
    with open(args.output, 'w') as f:
        for gene_id, transcript_id in pairs:
            f.write(f"{gene_id}\t{transcript_id}\n")
    logging.info(f"Wrote {len(pairs)} mRNA ids to {args.output}")


def filter_gff(args) -> None:
    records = AnnotationParser(args.input, "GFF3").parse()
    listed = load_entry_list(args.list)
    kept = filter_listed_records(records, listed)
    GFF3Writer().save_records(args.output, kept)
    logging.info(f"Wrote filtered GFF3 to {args.output}")


def fix_gtf(args) -> None:
    records = AnnotationParser(args.input, "GTF").parse()
    changed = strip_align_ids(records)
    count = GTFWriter().save(args.output, records)
    logging.info(f"Fixed {changed} of {count} GTF records, wrote {args.output}")


def gff_ids_main(argv=None) -> int:
    parser = _base_parser("Extract mRNA ids and their parent gene ids from a GFF3 file as TSV")
    return _run(export_ids, parser.parse_args(argv))


def gff_filter_main(argv=None) -> int:
    parser = _base_parser("Remove listed transcripts, their children and their genes from a GFF3 file")
    parser.add_argument('-l', '--list', required=True, help='File with one transcript id per line')
    return _run(filter_gff, parser.parse_args(argv))


def fix_gtf_main(argv=None) -> int:
    parser = _base_parser("Remove the align_id part of PASA GTF transcript ids")
    return _run(fix_gtf, parser.parse_args(argv))


if __name__ == "__main__":
    tools = {'gff-ids': gff_ids_main, 'gff-filter': gff_filter_main, 'fix-gtf': fix_gtf_main}
    if len(sys.argv) < 2 or sys.argv[1] not in tools:
        print(f"Usage: {sys.argv[0]} {{{','.join(tools)}}} [options]")
        sys.exit(1)
    sys.exit(tools[sys.argv[1]](sys.argv[2:]))

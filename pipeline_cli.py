#!/usr/bin/env python3

"""
Command-line interface for the Good Transcript Selector.

Selects well-supported transcripts from ORF predictions on assembled
transcripts and writes them, with the rejected ones, as GFF3.
"""

import argparse
import sys
import os
import logging

from transcript_selector.core.config import load_config
from transcript_selector.core.exceptions import PipelineError
from transcript_selector.core.parsers import DBANNOT_FILE_NAME, NEW_CODING_FILE_NAME

def setup_logging(log_level: str = "INFO") -> None:
    """Set up logging configuration."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

def create_argument_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""
    parser = argparse.ArgumentParser(
        description="Good Transcript Selector: keep full-length, single-ORF, non-overlapping transcripts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Basic usage
  gts --genomic-gff transdecoder.genome.gff3 --gtf transcripts.gtf --fln-dir fln_results --output-prefix results/gts

  # With the transcript-coordinate predictions and new coding hits
  gts --genomic-gff transdecoder.genome.gff3 --transcript-gff transdecoder.gff3 --gtf transcripts.gtf --fln-dir fln_results --output-prefix results/gts --include-putative --all-stages
        """
    )

    # Required arguments
    parser.add_argument(
        '--genomic-gff',
        required=True,
        help='ORF predictions in genome coordinates (GFF3)'
    )
    parser.add_argument(
        '--gtf',
        required=True,
        help='Assembler GTF (Cufflinks/StringTie) with gene and transcript ids'
    )
    parser.add_argument(
        '--fln-dir',
        required=True,
        help=f'Full-Lengther output directory holding {DBANNOT_FILE_NAME} and {NEW_CODING_FILE_NAME}'
    )
    parser.add_argument(
        '--output-prefix',
        required=True,
        help='Prefix for the .pass.gff3, .fail.gff3, .report.txt and .log outputs'
    )

    # Optional inputs
    parser.add_argument(
        '--transcript-gff',
        help='The same ORF predictions in transcript coordinates (GFF3)'
    )

    # Filter parameters
    parser.add_argument(
        '--include-putative',
        action='store_true',
        default=None,
        help='Also accept transcripts supported by Full-Lengther new coding hits'
    )
    parser.add_argument(
        '--window-size',
        type=int,
        help='Minimum distance between neighbouring genes (default: 1000)'
    )
    parser.add_argument(
        '--cds-ratio',
        type=float,
        help='Min CDS / transcript length for complete Full-Lengther hits (default: 0.4)'
    )
    parser.add_argument(
        '--cdna-ratio',
        type=float,
        help='Min CDS / transcript length for new coding hits (default: 0.5)'
    )
    parser.add_argument(
        '--cds-cdna-ratio',
        type=float,
        help='Enable the CDS to cDNA ratio filter with this minimum ratio'
    )
    parser.add_argument(
        '--stop-codon-adjustment',
        type=int,
        help='Offset added to the CDS end before comparing with Full-Lengther (default: 0)'
    )

    # Output and runtime options
    parser.add_argument(
        '--all-stages',
        action='store_true',
        default=None,
        help='Also write the gene model after every filter stage'
    )
    parser.add_argument(
        '--config',
        help='Configuration file (JSON or YAML)'
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='INFO',
        help='Logging level (default: INFO)'
    )
    parser.add_argument(
        '--memory-limit',
        type=int,
        help='Memory limit in MB (default: 4096)'
    )

    return parser

def validate_input_files(args) -> None:
    """Validate that input files exist."""
    input_files = {
        'genomic-gff': args.genomic_gff,
        'gtf': args.gtf,
        'fln-dir dbannotated': os.path.join(args.fln_dir, DBANNOT_FILE_NAME),
        'fln-dir new coding': os.path.join(args.fln_dir, NEW_CODING_FILE_NAME),
    }
    if args.transcript_gff:
        input_files['transcript-gff'] = args.transcript_gff

    for file_type, file_path in input_files.items():
        if not os.path.exists(file_path):
            raise FileNotFoundError(f"{file_type} file not found: {file_path}")

def apply_overrides(config, args) -> None:
    """Override config values with the command line arguments that were given."""
    overrides = {
        'include_putative': args.include_putative,
        'window_size': args.window_size,
        'cds_len_ratio': args.cds_ratio,
        'cdna_len_ratio': args.cdna_ratio,
        'stop_codon_adjustment': args.stop_codon_adjustment,
        'output_all_stages': args.all_stages,
        'memory_limit_mb': args.memory_limit,
    }
    for key, value in overrides.items():
        if value is not None:
            setattr(config, key, value)

    if args.cds_cdna_ratio is not None:
        config.enable_cds_cdna_filter = True
        config.min_cds_cdna_ratio = args.cds_cdna_ratio

def main():
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args()

    # Set up logging
    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    try:
        # Validate input files
        validate_input_files(args)

        # Load configuration
        config = load_config(config_path=args.config, use_env=True)
        apply_overrides(config, args)

        # Re-validate after CLI overrides.
        config.validate()

        logger.info("Starting Good Transcript Selector...")
        logger.info(f"Genomic GFF3: {args.genomic_gff}")
        logger.info(f"Transcript GFF3: {args.transcript_gff}")
        logger.info(f"GTF: {args.gtf}")
        logger.info(f"Full-Lengther directory: {args.fln_dir}")
        logger.info(f"Output prefix: {args.output_prefix}")

        from transcript_selector import TranscriptSelectionPipeline

        pipeline = TranscriptSelectionPipeline(config)
        success = pipeline.run(
            genomic_gff=args.genomic_gff,
            gtf_file=args.gtf,
            fln_dir=args.fln_dir,
            output_prefix=args.output_prefix,
            transcript_gff=args.transcript_gff
        )

        if success:
            logger.info("Pipeline completed successfully!")
            return 0
        else:
            logger.error("Pipeline failed!")
            return 1

    except FileNotFoundError as e:
        logger.error(f"File error: {e}")
        return 1
    except PipelineError as e:
        logger.error(f"Pipeline error: {e}")
        return 1
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        logger.debug("Full traceback:", exc_info=True)
        return 1

if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3

"""
Main pipeline class for transcript selection.

Loads the inputs, resolves gene models against the assembler GTF, runs
the filter stages and writes the pass/fail partition.
"""

import logging
from pathlib import Path
from typing import List, Optional

from .config import PipelineConfig
from .data_structures import AnnotationRecord, ExternalAnnotation
from .exceptions import PipelineError
from .filters import FilterPipeline, StageResult
from .gene_model import GeneModel
from .generators import OutputGenerator
from .parsers import load_fln_directory, load_gene_model, load_gtf_transcripts
from .partition import PartitionResult, partition_gene_models
from .resolver import GeneModelResolver
from .tables import CrossReferenceTables, build_cross_reference_tables, index_gtf_transcripts
from ..utils.performance_monitor import PerformanceMonitor


class TranscriptSelectionPipeline:
    """Main pipeline class that coordinates all processing phases."""

    def __init__(self, config: PipelineConfig):
        self.config = config
        self.monitor = PerformanceMonitor(memory_limit_mb=config.memory_limit_mb)

        self.genomic_model: Optional[GeneModel] = None
        self.aligned_model: Optional[GeneModel] = None
        self.gtf_transcripts: List[AnnotationRecord] = []
        self.dbannot: List[ExternalAnnotation] = []
        self.new_coding: List[ExternalAnnotation] = []

        self.resolved_model: Optional[GeneModel] = None
        self.resolved_aligned_model: Optional[GeneModel] = None
        self.tables: Optional[CrossReferenceTables] = None
        self.stages: List[StageResult] = []
        self.partition: Optional[PartitionResult] = None

    def run(self, genomic_gff: str, gtf_file: str, fln_dir: str, output_prefix: str,
            transcript_gff: Optional[str] = None) -> bool:
        """
        Run the pipeline, logging instead of raising on failure.

        Returns:
            True if the pipeline completed and wrote its outputs
        """
        generator = OutputGenerator(output_prefix, self.config.output_source)
        Path(generator.log_path).parent.mkdir(parents=True, exist_ok=True)
        file_handler = self._setup_pipeline_logging(generator.log_path)

        try:
            self.execute(genomic_gff, gtf_file, fln_dir, output_prefix, transcript_gff)
            self.monitor.log_performance_report()
            return True

        except Exception as e:
            logging.error(f"Pipeline failed: {e}")
            logging.debug("Full traceback:", exc_info=True)
            return False

        finally:
            logging.getLogger().removeHandler(file_handler)
            file_handler.close()

    def execute(self, genomic_gff: str, gtf_file: str, fln_dir: str, output_prefix: str,
                transcript_gff: Optional[str] = None) -> PartitionResult:
        """
        Run every phase, raising on the first structural or configuration error.

        Args:
            genomic_gff: genome-coordinate GFF3 of the ORF predictions
            gtf_file: assembler GTF with transcript/gene groupings
            fln_dir: Full-Lengther output directory
            output_prefix: prefix for all output files
            transcript_gff: transcript-coordinate GFF3 of the same predictions

        Returns:
            PartitionResult of the run
        """
        generator = OutputGenerator(output_prefix, self.config.output_source)
        Path(generator.pass_path).parent.mkdir(parents=True, exist_ok=True)

        logging.info("Starting Good Transcript Selector pipeline")
        logging.info(f"Configuration: {self.config}")
        logging.info(f"Input files: genomic GFF3={genomic_gff}, transcript GFF3={transcript_gff}, "
                     f"GTF={gtf_file}, Full-Lengther={fln_dir}")
        logging.info(f"Output prefix: {output_prefix}")

        self._load_inputs(genomic_gff, gtf_file, fln_dir, transcript_gff)
        self._resolve_gene_models()
        self._build_tables()
        self._run_filters()
        self._generate_outputs(generator)
        self._generate_final_report(generator)

        logging.info("Pipeline completed successfully")
        return self.partition

    def _setup_pipeline_logging(self, log_file: str) -> logging.Handler:
        """Set up pipeline-specific logging."""
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s'
        ))

        root_logger = logging.getLogger()
        root_logger.addHandler(file_handler)

        if self.config.debug_mode:
            root_logger.setLevel(logging.DEBUG)

        return file_handler

    def _check_memory(self) -> None:
        if self.config.enable_memory_monitoring:
            self.monitor.check_memory_limit()

    def _load_inputs(self, genomic_gff: str, gtf_file: str, fln_dir: str,
                     transcript_gff: Optional[str]) -> None:
        """Parse all input files."""
        with self.monitor.phase_context("loading") as metrics:
            logging.info("Loading genomic gene model...")
            self.genomic_model = load_gene_model(genomic_gff)

            if transcript_gff:
                logging.info("Loading transcript-coordinate gene model...")
                self.aligned_model = load_gene_model(transcript_gff)

            logging.info("Loading assembler GTF...")
            self.gtf_transcripts = load_gtf_transcripts(gtf_file)

            logging.info("Loading Full-Lengther annotations...")
            self.dbannot, self.new_coding = load_fln_directory(fln_dir)

            metrics.operations_count = (len(self.genomic_model.full_list()) + len(self.gtf_transcripts)
                                        + len(self.dbannot) + len(self.new_coding))
            logging.info(f"Loaded {self.genomic_model.gene_count} genes with "
                         f"{self.genomic_model.transcript_count} transcripts")
        self._check_memory()

    def _resolve_gene_models(self) -> None:
        """Regroup predicted transcripts under the assembler's gene ids."""
        with self.monitor.phase_context("resolution") as metrics:
            resolver = GeneModelResolver(index_gtf_transcripts(self.gtf_transcripts))
            self.resolved_model = resolver.resolve(self.genomic_model, genomic_coords=True)
            self.resolved_model.check_integrity()

            if self.aligned_model is not None:
                self.resolved_aligned_model = resolver.resolve(self.aligned_model, genomic_coords=False)

            metrics.operations_count = self.resolved_model.transcript_count

    def _build_tables(self) -> None:
        with self.monitor.phase_context("indexing"):
            self.tables = build_cross_reference_tables(
                self.resolved_model,
                self.resolved_aligned_model,
                self.gtf_transcripts,
                self.dbannot,
                self.new_coding,
            )
        self._check_memory()

    def _run_filters(self) -> None:
        """Run the filter stages over the resolved model."""
        with self.monitor.phase_context("filtering") as metrics:
            filter_pipeline = FilterPipeline.from_config(self.config, self.resolved_model)
            self.stages = filter_pipeline.run(self.resolved_model, self.tables)
            metrics.operations_count = len(self.stages)

            final_model = self.stages[-1].model if self.stages else self.resolved_model
            self.partition = partition_gene_models(self.resolved_model, final_model)

            logging.info(f"Pass: {self.partition.passed_gene_count} genes, "
                         f"{self.partition.passed_transcript_count} transcripts")
            logging.info(f"Fail: {self.partition.failed_gene_count} genes, "
                         f"{self.partition.failed_transcript_count} transcripts")
        self._check_memory()

    def _generate_outputs(self, generator: OutputGenerator) -> None:
        """Write stage files (if requested) and the pass/fail partition."""
        with self.monitor.phase_context("output") as metrics:
            written = []
            if self.config.output_all_stages:
                written.append(generator.write_stage(0, self.resolved_model.genes))
                for stage in self.stages:
                    written.append(generator.write_stage(stage.index, stage.model.genes))

            written.extend(generator.write_partition(self.partition))
            metrics.operations_count = len(written)

            for file_path in written:
                logging.info(f"Created: {file_path}")

    def _generate_final_report(self, generator: OutputGenerator) -> None:
        """Write the processing report next to the outputs."""
        if self.partition is None:
            raise PipelineError("No partition available for the report")

        performance = self.monitor.get_performance_summary()
        original = self.genomic_model
        resolved = self.resolved_model

        with open(generator.report_path, 'w') as f:
            f.write("Good Transcript Selector - Processing Report\n")
            f.write("=" * 50 + "\n\n")

            f.write("INPUT STATISTICS\n")
            f.write("-" * 20 + "\n")
            f.write(f"Predicted genes: {original.gene_count:,}\n")
            f.write(f"Predicted transcripts: {original.transcript_count:,}\n")
            f.write(f"GTF transcripts: {len(self.gtf_transcripts):,}\n")
            f.write(f"Full-Lengther dbannotated entries: {len(self.dbannot):,}\n")
            f.write(f"Full-Lengther new coding entries: {len(self.new_coding):,}\n")
            f.write(f"Resolved genes: {resolved.gene_count:,}\n\n")

            f.write("FILTER STAGES\n")
            f.write("-" * 20 + "\n")
            previous = resolved
            for stage in self.stages:
                f.write(f"Stage {stage.index}: {stage.name} ({stage.elapsed:.3f}s)\n")
                f.write(stage.report)
                f.write(f" Filtered out {previous.gene_count - stage.model.gene_count} genes and "
                        f"{previous.transcript_count - stage.model.transcript_count} transcripts\n\n")
                previous = stage.model

            f.write("RESULTS\n")
            f.write("-" * 20 + "\n")
            f.write(f"Pass: {self.partition.passed_gene_count:,} genes, "
                    f"{self.partition.passed_transcript_count:,} transcripts -> {generator.pass_path}\n")
            f.write(f"Fail: {self.partition.failed_gene_count:,} genes, "
                    f"{self.partition.failed_transcript_count:,} transcripts -> {generator.fail_path}\n\n")

            f.write("PERFORMANCE METRICS\n")
            f.write("-" * 20 + "\n")
            f.write(f"Total processing time: {performance['total_elapsed_time']:.2f} seconds\n")
            f.write(f"Peak memory usage: {performance['peak_memory_mb']:.1f} MB\n")
            for phase_name, phase_data in performance['phases'].items():
                f.write(f"{phase_name}: {phase_data['elapsed_time']:.2f}s "
                        f"({phase_data['operations_count']} operations)\n")

            f.write("\nConfiguration used:\n")
            for key, value in self.config.to_dict().items():
                f.write(f"  {key}: {value}\n")

        logging.info(f"Generated processing report: {generator.report_path}")

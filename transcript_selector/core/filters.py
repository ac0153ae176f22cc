#!/usr/bin/env python3

"""
Transcript filters and the filter pipeline.

Every filter takes a GeneModel and the shared lookup tables and returns a
new, smaller GeneModel plus a short text report. Input models are never
modified: surviving genes are shallow copies whose child lists hold the
same transcript objects as the input.
"""

import time
import logging
from abc import ABC, abstractmethod
from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from intervaltree import IntervalTree

from .config import PipelineConfig
from .coordinates import cds_transcript_span
from .data_structures import AnnotationRecord, ExternalAnnotation, FeatureType
from .exceptions import IncompatibleSourcesError, MissingFeatureError
from .gene_model import GeneModel
from .tables import CrossReferenceTables


def _require_cds(transcript: AnnotationRecord) -> List[AnnotationRecord]:
    cds_records = transcript.children_of_type(FeatureType.CDS)
    if not cds_records:
        raise MissingFeatureError("No CDS found", transcript_id=transcript.id)
    return cds_records


class TranscriptFilter(ABC):
    """Base class for all filters."""

    name = "Transcript Filter"
    description = ""

    def __init__(self):
        self.last_elapsed = 0.0

    def apply(self, model: GeneModel, tables: CrossReferenceTables) -> Tuple[GeneModel, str]:
        """Run the filter, timing it; returns the filtered model and a report."""
        start = time.perf_counter()
        output, lines = self._filter(model, tables)
        self.last_elapsed = time.perf_counter() - start

        lines.extend([
            f" - # Genes: {output.gene_count} / {model.gene_count}",
            f" - # Transcripts (mRNA): {output.transcript_count} / {model.transcript_count}",
        ])
        logging.info(f"{self.name} completed in {self.last_elapsed:.3f}s: "
                     f"kept {output.gene_count}/{model.gene_count} genes")
        return output, "\n".join(lines) + "\n"

    @abstractmethod
    def _filter(self, model: GeneModel, tables: CrossReferenceTables) -> Tuple[GeneModel, List[str]]:
        """Return the filtered model and the filter-specific report lines."""

    @staticmethod
    def _add_surviving_gene(output: GeneModel, gene: AnnotationRecord,
                            transcripts: Sequence[AnnotationRecord]) -> None:
        """Add a shallow copy of ``gene`` holding ``transcripts``, if any survived."""
        if not transcripts:
            return
        new_gene = gene.copy_without_children()
        for transcript in transcripts:
            new_gene.add_child(transcript)
        output.add_gene(new_gene)

    def _filter_transcripts(self, model: GeneModel,
                            keep: Callable[[AnnotationRecord, AnnotationRecord], bool]) -> GeneModel:
        output = GeneModel()
        for gene in model.genes:
            kept = [t for t in gene.transcripts() if keep(gene, t)]
            self._add_surviving_gene(output, gene, kept)
        return output


class SingleOrfFilter(TranscriptFilter):
    """Keep transcripts that are the only ORF on their assembled transcript and have both UTRs."""

    name = "Multiple ORF Filter"
    description = "Filters out transcripts with multiple ORFs and no 5' and 3' UTRs"

    def _filter(self, model, tables):
        orfs_per_root = Counter(t.root_id for t in model.transcripts())
        stats = Counter()

        def keep(gene, transcript):
            _require_cds(transcript)
            if orfs_per_root[transcript.root_id] != 1:
                stats['multiple_orf'] += 1
                return False
            stats['single_orf'] += 1
            if not (transcript.children_of_type(FeatureType.UTR5)
                    and transcript.children_of_type(FeatureType.UTR3)):
                stats['missing_utr'] += 1
                return False
            return True

        output = self._filter_transcripts(model, keep)
        lines = [
            f" - # ORFs: {sum(orfs_per_root.values())}",
            f" - # assembled transcripts: {len(orfs_per_root)}",
            f" - # transcripts with only one ORF: {stats['single_orf']}",
            f" - # transcripts with only one ORF and at least one 5' and 3' UTR: {output.transcript_count}",
        ]
        return output, lines


class CoordinateConsistencyFilter(TranscriptFilter):
    """
    Keep transcripts whose CDS agrees with the Full-Lengther ORF.

    The CDS is translated into transcript coordinates and compared with
    the ORF of the matching Full-Lengther entry. Complete (confident)
    entries allow ``position_tolerance`` at the start and
    ``confident_end_tolerance`` at the end. New-coding (putative) entries
    are only used with ``include_putative``, allow ``position_tolerance``
    at both ends and need a CDS of at least ``min_putative_cds_length``.
    The CDS must also cover a minimum fraction of the assembled
    transcript length.
    """

    name = "Inconsistent Coordinates Filter"
    description = "Filters out transcripts whose CDS is inconsistent with Full-Lengther coordinates"

    def __init__(self, include_putative: bool, position_tolerance: int,
                 confident_end_tolerance: int, min_putative_cds_length: int,
                 cds_len_ratio: float, cdna_len_ratio: float,
                 stop_codon_adjustment: int = 0):
        super().__init__()
        self.include_putative = include_putative
        self.position_tolerance = position_tolerance
        self.confident_end_tolerance = confident_end_tolerance
        self.min_putative_cds_length = min_putative_cds_length
        self.cds_len_ratio = cds_len_ratio
        self.cdna_len_ratio = cdna_len_ratio
        self.stop_codon_adjustment = stop_codon_adjustment

    def _filter(self, model, tables):
        stats = Counter()

        def keep(gene, transcript):
            cds_records = _require_cds(transcript)
            start, end = cds_transcript_span(transcript, self.stop_codon_adjustment)
            cds_length = self._cds_length(transcript, cds_records, tables, stats)
            root = transcript.root_id

            confident = tables.confident_fln_by_id.get(root)
            putative = tables.putative_fln_by_id.get(root)

            if confident is not None:
                stats['confident_match'] += 1
                if not self._positions_match(start, end, confident, self.confident_end_tolerance):
                    return False
                stats['confident_consistent'] += 1
                if not self._long_enough(cds_length, confident, self.cds_len_ratio):
                    return False
                stats['confident_kept'] += 1
                return True

            if self.include_putative and putative is not None:
                stats['putative_match'] += 1
                if not (self._positions_match(start, end, putative, self.position_tolerance)
                        and cds_length >= self.min_putative_cds_length):
                    return False
                stats['putative_consistent'] += 1
                if not self._long_enough(cds_length, putative, self.cdna_len_ratio):
                    return False
                stats['putative_kept'] += 1
                return True

            stats['unmatched'] += 1
            return False

        output = self._filter_transcripts(model, keep)
        lines = [
            f" - Including consistent Full-Lengther new coding hits: {self.include_putative}",
            f" - Min CDS / transcript length ratio (complete, new coding): "
            f"{self.cds_len_ratio}, {self.cdna_len_ratio}",
            f" - # Genomic CDSs also found in the aligned model: "
            f"{stats['aligned_cds']} / {stats['genomic_cds']}",
            f" - # Transcripts matching a complete Full-Lengther entry: {stats['confident_match']}",
            f"   - # with consistent coordinates: {stats['confident_consistent']}",
            f"   - # consistent and long enough: {stats['confident_kept']}",
            f" - # Transcripts matching a new coding entry: {stats['putative_match']}",
            f"   - # with consistent coordinates: {stats['putative_consistent']}",
            f"   - # consistent and long enough: {stats['putative_kept']}",
            f" - # Transcripts without a usable Full-Lengther entry: {stats['unmatched']}",
        ]
        return output, lines

    def _cds_length(self, transcript: AnnotationRecord, cds_records: List[AnnotationRecord],
                    tables: CrossReferenceTables, stats: Counter) -> int:
        """Aligned CDS length when the aligned model has these CDSs, else the genomic one."""
        aligned_length = 0
        for cds in cds_records:
            stats['genomic_cds'] += 1
            aligned = tables.aligned_cds_by_id.get(cds.id)
            if aligned is None:
                continue
            if aligned.parent_id != transcript.id:
                raise IncompatibleSourcesError(
                    f"Aligned CDS {cds.id} belongs to {aligned.parent_id}",
                    transcript_id=transcript.id)
            stats['aligned_cds'] += 1
            aligned_length += aligned.length
        return aligned_length or sum(cds.length for cds in cds_records)

    def _positions_match(self, start: int, end: int, fln: ExternalAnnotation, end_tolerance: int) -> bool:
        if not fln.has_orf:
            return False
        return (abs(start - fln.orf_start) <= self.position_tolerance
                and abs(end - fln.orf_end) <= end_tolerance)

    @staticmethod
    def _long_enough(cds_length: int, fln: ExternalAnnotation, ratio: float) -> bool:
        if fln.fasta_length <= 0:
            return False
        return cds_length / fln.fasta_length >= ratio


class CdsToCdnaRatioFilter(TranscriptFilter):
    """Keep transcripts whose CDS makes up at least ``min_ratio`` of the spliced exon length."""

    name = "CDS to cDNA Ratio Filter"
    description = "Filters out transcripts whose CDS is short relative to the transcript"

    def __init__(self, min_ratio: float):
        super().__init__()
        self.min_ratio = min_ratio

    def _filter(self, model, tables):
        def keep(gene, transcript):
            cdna_length = transcript.length_of_type(FeatureType.EXON)
            if cdna_length == 0:
                raise MissingFeatureError("No exons found", transcript_id=transcript.id)
            cds_length = sum(cds.length for cds in _require_cds(transcript))
            return cds_length / cdna_length >= self.min_ratio

        output = self._filter_transcripts(model, keep)
        return output, [f" - Min CDS / cDNA length ratio: {self.min_ratio}"]


class StrandFilter(TranscriptFilter):
    """Keep transcripts whose strand agrees with their gene and the assembler GTF."""

    name = "Strand Filter"
    description = "Filters out transcripts with inconsistent or unknown strand"

    def _filter(self, model, tables):
        stats = Counter()
        output = GeneModel()

        for gene in model.genes:
            if gene.strand == '.':
                stats['unknown_strand_genes'] += 1
                continue

            kept = []
            for transcript in gene.transcripts():
                gtf = tables.gtf_by_root_id.get(transcript.root_id)
                if gtf is None:
                    stats['no_gtf'] += 1
                elif transcript.strand != gene.strand:
                    stats['gene_mismatch'] += 1
                elif gtf.strand not in (gene.strand, '.'):
                    stats['gtf_mismatch'] += 1
                else:
                    kept.append(transcript)
            self._add_surviving_gene(output, gene, kept)

        lines = [
            f" - # Genes with unknown strand: {stats['unknown_strand_genes']}",
            f" - # Transcripts without a GTF record: {stats['no_gtf']}",
            f" - # Transcripts on a different strand from their gene: {stats['gene_mismatch']}",
            f" - # Transcripts on a different strand from the GTF: {stats['gtf_mismatch']}",
        ]
        return output, lines


class OverlapFilter(TranscriptFilter):
    """
    Drop genes that overlap, or lie within ``window_size`` of, another gene.

    Neighbours are looked up in ``full_model`` (normally the model the
    pipeline started with), so a gene can be excluded by a neighbour that
    an earlier filter already removed.
    """

    name = "Overlap Filter"
    description = "Filters out genes that overlap or are close to another gene"

    def __init__(self, window_size: int, full_model: GeneModel):
        super().__init__()
        self.window_size = window_size
        self.trees: Dict[str, IntervalTree] = defaultdict(IntervalTree)
        for gene in full_model.genes:
            self.trees[gene.seq_id].addi(gene.start, gene.end + 1, gene.id)

    def neighbours(self, gene: AnnotationRecord) -> List[str]:
        """Ids of other genes within the window of ``gene`` on its sequence."""
        tree = self.trees.get(gene.seq_id)
        if tree is None:
            return []
        hits = tree.overlap(gene.start - self.window_size, gene.end + self.window_size + 1)
        return sorted(interval.data for interval in hits if interval.data != gene.id)

    def _filter(self, model, tables):
        output = GeneModel()
        excluded = 0

        for gene in model.genes:
            close = self.neighbours(gene)
            if close:
                logging.debug(f"Gene {gene.id} is within {self.window_size}bp of {', '.join(close)}")
                excluded += 1
                continue
            self._add_surviving_gene(output, gene, gene.transcripts())

        return output, [
            f" - Window size: {self.window_size}",
            f" - # Genes overlapping or near another gene: {excluded}",
        ]


class LongestTranscriptFilter(TranscriptFilter):
    """Keep the transcript with the longest total CDS in each gene (first wins on ties)."""

    name = "Longest Transcript Filter"
    description = "Keeps only the transcript with the longest CDS per gene"

    def _filter(self, model, tables):
        output = GeneModel()
        multi_transcript_genes = 0

        for gene in model.genes:
            transcripts = gene.transcripts()
            if not transcripts:
                raise MissingFeatureError("Gene has no transcripts", gene_id=gene.id)
            if len(transcripts) > 1:
                multi_transcript_genes += 1

            best: Optional[AnnotationRecord] = None
            best_length = 0
            for transcript in transcripts:
                length = sum(cds.length for cds in _require_cds(transcript))
                if length > best_length:
                    best, best_length = transcript, length

            self._add_surviving_gene(output, gene, [best])

        return output, [f" - # Genes with more than one transcript: {multi_transcript_genes}"]


@dataclass
class StageResult:
    """Output of one filter stage."""
    index: int
    name: str
    description: str
    model: GeneModel
    report: str
    elapsed: float


class FilterPipeline:
    """Run filters in order, feeding each the previous stage's output."""

    def __init__(self, filters: Sequence[TranscriptFilter]):
        self.filters = list(filters)

    @classmethod
    def from_config(cls, config: PipelineConfig, full_model: GeneModel) -> 'FilterPipeline':
        """Standard filter order for a run."""
        filters: List[TranscriptFilter] = [
            SingleOrfFilter(),
            CoordinateConsistencyFilter(
                include_putative=config.include_putative,
                position_tolerance=config.position_tolerance,
                confident_end_tolerance=config.confident_end_tolerance,
                min_putative_cds_length=config.min_putative_cds_length,
                cds_len_ratio=config.cds_len_ratio,
                cdna_len_ratio=config.cdna_len_ratio,
                stop_codon_adjustment=config.stop_codon_adjustment,
            ),
        ]
        if config.enable_cds_cdna_filter:
            filters.append(CdsToCdnaRatioFilter(config.min_cds_cdna_ratio))
        filters.extend([
            StrandFilter(),
            OverlapFilter(config.window_size, full_model),
            LongestTranscriptFilter(),
        ])
        return cls(filters)

    def run(self, model: GeneModel, tables: CrossReferenceTables,
            on_stage: Optional[Callable[[StageResult], None]] = None) -> List[StageResult]:
        """
        Apply every filter in turn.

        Args:
            model: starting model (left untouched)
            tables: shared lookup tables
            on_stage: called with each StageResult as soon as it is ready

        Returns:
            One StageResult per filter; the last one holds the final model
        """
        results = []
        current = model
        for index, transcript_filter in enumerate(self.filters, 1):
            logging.info(f"Stage {index}: {transcript_filter.name} - {transcript_filter.description}")
            current, report = transcript_filter.apply(current, tables)
            for line in report.splitlines():
                logging.info(line)

            result = StageResult(index, transcript_filter.name, transcript_filter.description,
                                 current, report, transcript_filter.last_elapsed)
            results.append(result)
            if on_stage is not None:
                on_stage(result)
        return results

#!/usr/bin/env python3

"""
GFF3 and GTF output generation.

Writes gene trees in a stable order and produces the pass/fail (and
optional per-stage) files of a run. Pass and fail files are written to
temporary files first and only moved into place once both are complete.
"""

import os
import logging
import tempfile
from typing import IO, Iterable, List, Optional

from .data_structures import AnnotationRecord, FeatureType
from .partition import PartitionResult

GFF3_HEADER = "##gff-version 3\n"

# Field-backed attributes, in output order
_FIELD_ATTRIBUTES = (
    ('ID', 'id'),
    ('Parent', 'parent_id'),
    ('Name', 'name'),
    ('Note', 'note'),
    ('Alias', 'alias'),
)


def record_sort_key(record: AnnotationRecord):
    """Sequence id, start ascending, end descending, then feature type rank."""
    return (record.seq_id, record.start, -record.end, record.feature_type.rank)


def _format_score(score: Optional[float]) -> str:
    if score is None:
        return '.'
    return f"{score:g}"


def format_gff3_attributes(record: AnnotationRecord) -> str:
    elems = []
    for key, field_name in _FIELD_ATTRIBUTES:
        value = getattr(record, field_name)
        if value:
            elems.append(f"{key}={value}")
    for key, value in record.attributes.items():
        elems.append(f"{key}={value}" if value else key)
    return ';'.join(elems)


def format_gff3_line(record: AnnotationRecord, source: Optional[str] = None) -> str:
    """Render one record as a GFF3 line (no trailing newline)."""
    if record.feature_type is FeatureType.OTHER:
        type_label = record.type_label
    else:
        type_label = record.feature_type.value

    return '\t'.join([
        record.seq_id,
        source or record.source,
        type_label,
        str(record.start),
        str(record.end),
        _format_score(record.score),
        record.strand,
        '.' if record.phase is None else str(record.phase),
        format_gff3_attributes(record),
    ])


def format_gtf_attributes(record: AnnotationRecord) -> str:
    elems = [f'gene_id "{record.gene_id}"', f'transcript_id "{record.transcript_id}"']
    if record.fpkm is not None:
        elems.append(f'FPKM "{record.fpkm:g}"')
    if record.coverage is not None:
        elems.append(f'cov "{record.coverage:g}"')
    for key, value in record.attributes.items():
        elems.append(f'{key} "{value}"')
    return '; '.join(elems) + ';'


def format_gtf_line(record: AnnotationRecord, source: Optional[str] = None) -> str:
    """Render one record as a GTF line (no trailing newline)."""
    return '\t'.join([
        record.seq_id,
        source or record.source,
        record.type_label,
        str(record.start),
        str(record.end),
        _format_score(record.score),
        record.strand,
        '.' if record.phase is None else str(record.phase),
        format_gtf_attributes(record),
    ])


class GTFWriter:
    """Serialize flat GTF records in the order given."""

    def __init__(self, source: Optional[str] = None):
        self.source = source

    def write_records(self, handle: IO[str], records: Iterable[AnnotationRecord]) -> int:
        count = 0
        for record in records:
            handle.write(format_gtf_line(record, self.source) + '\n')
            count += 1
        return count

    def save(self, path: str, records: Iterable[AnnotationRecord]) -> int:
        with open(path, 'w') as f:
            return self.write_records(f, records)


class GFF3Writer:
    """Serialize gene trees as GFF3."""

    def __init__(self, source: Optional[str] = None, sort_genes: bool = True):
        self.source = source
        self.sort_genes = sort_genes

    def write_record(self, handle: IO[str], record: AnnotationRecord) -> None:
        """Write a record followed by its sorted subtree."""
        handle.write(format_gff3_line(record, self.source) + '\n')
        for child in sorted(record.children, key=record_sort_key):
            self.write_record(handle, child)

    def write(self, handle: IO[str], genes: Iterable[AnnotationRecord]) -> int:
        """Write genes separated by blank lines; returns the number written."""
        genes = list(genes)
        if self.sort_genes:
            genes = sorted(genes, key=record_sort_key)

        handle.write(GFF3_HEADER)
        for gene in genes:
            self.write_record(handle, gene)
            handle.write('\n')
        return len(genes)

    def save(self, path: str, genes: Iterable[AnnotationRecord]) -> int:
        with open(path, 'w') as f:
            return self.write(f, genes)

    def write_records(self, handle: IO[str], records: Iterable[AnnotationRecord]) -> int:
        """Write flat records in the order given, without subtrees or separators."""
        handle.write(GFF3_HEADER)
        count = 0
        for record in records:
            handle.write(format_gff3_line(record, self.source) + '\n')
            count += 1
        return count

    def save_records(self, path: str, records: Iterable[AnnotationRecord]) -> int:
        with open(path, 'w') as f:
            return self.write_records(f, records)


class OutputGenerator:
    """Names and writes the output files of a run."""

    def __init__(self, output_prefix: str, source: str = "gts"):
        self.output_prefix = output_prefix
        self.writer = GFF3Writer(source=source)

    @property
    def pass_path(self) -> str:
        return f"{self.output_prefix}.pass.gff3"

    @property
    def fail_path(self) -> str:
        return f"{self.output_prefix}.fail.gff3"

    @property
    def report_path(self) -> str:
        return f"{self.output_prefix}.report.txt"

    @property
    def log_path(self) -> str:
        return f"{self.output_prefix}.log"

    def stage_path(self, index: int) -> str:
        return f"{self.output_prefix}.stage.{index}.gff3"

    def write_stage(self, index: int, genes: Iterable[AnnotationRecord]) -> str:
        path = self.stage_path(index)
        count = self.writer.save(path, genes)
        logging.info(f"Wrote {count} genes to {path}")
        return path

    def write_partition(self, result: PartitionResult) -> List[str]:
        """Write pass and fail files; neither appears unless both were written."""
        targets = [
            (self.pass_path, result.passed.genes),
            (self.fail_path, result.failed_records()),
        ]
        directory = os.path.dirname(os.path.abspath(self.output_prefix))
        temp_paths = []

        try:
            for path, genes in targets:
                fd, temp_path = tempfile.mkstemp(dir=directory, prefix='.gts-', suffix='.gff3.tmp')
                temp_paths.append(temp_path)
                with os.fdopen(fd, 'w') as f:
                    count = self.writer.write(f, genes)
                logging.info(f"Prepared {count} genes for {path}")

            for (path, _), temp_path in zip(targets, temp_paths):
                os.replace(temp_path, path)
        except BaseException:
            for temp_path in temp_paths:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
            raise

        return [path for path, _ in targets]

#!/usr/bin/env python3

"""
File parsers for gene annotations and Full-Lengther tables.

Handles GFF3/GTF parsing into AnnotationRecords and the tab-separated
Full-Lengther ``dbannotated.txt`` / ``new_coding.txt`` files.
"""

import os
import logging
from collections import OrderedDict
from typing import Dict, List, Optional, Tuple

from .data_structures import AnnotationRecord, ExternalAnnotation, FeatureType, FlnStatus
from .exceptions import ParseError
from .gene_model import GeneModel

DBANNOT_FILE_NAME = "dbannotated.txt"
NEW_CODING_FILE_NAME = "new_coding.txt"

# GFF3 attributes that map onto record fields
GFF3_FIELD_ATTRIBUTES = {
    'ID': 'id',
    'Parent': 'parent_id',
    'Name': 'name',
    'Alias': 'alias',
    'Note': 'note',
}

# GTF attributes that map onto record fields
GTF_FIELD_ATTRIBUTES = {
    'gene_id': 'gene_id',
    'transcript_id': 'transcript_id',
}
GTF_FLOAT_ATTRIBUTES = {
    'FPKM': 'fpkm',
    'cov': 'coverage',
    'coverage': 'coverage',
}


def detect_format(file_path: str) -> str:
    """Guess the annotation format from the file extension."""
    return "GTF" if file_path.lower().endswith(('.gtf', '.gtf2')) else "GFF3"


class AnnotationParser:
    """Parse GFF3/GTF files into a flat, file-ordered list of records."""

    def __init__(self, file_path: str, file_format: Optional[str] = None):
        self.file_path = file_path
        self.file_format = (file_format or detect_format(file_path)).upper()
        if self.file_format not in ("GFF3", "GTF"):
            raise ParseError(f"Unsupported annotation format: {self.file_format}", file_path)

    def parse(self) -> List[AnnotationRecord]:
        """Parse the whole file."""
        logging.info(f"Parsing {self.file_format} file: {self.file_path}")
        records = []

        try:
            with open(self.file_path, 'r') as f:
                for line_num, line in enumerate(f, 1):
                    line = line.rstrip('\r\n')
                    if line.startswith('##FASTA'):
                        break
                    if not line.strip() or line.startswith('#'):
                        continue
                    records.append(self._parse_line(line, line_num))
        except FileNotFoundError:
            raise ParseError(f"Annotation file not found: {self.file_path}")
        except UnicodeDecodeError as e:
            raise ParseError(f"Failed to decode {self.file_format} file: {e}", self.file_path)

        logging.info(f"Parsed {len(records)} records from {self.file_path}")
        return records

    def _parse_line(self, line: str, line_num: int) -> AnnotationRecord:
        parts = line.split('\t')
        if len(parts) != 9:
            raise ParseError(f"Expected 9 tab-separated columns, found {len(parts)}",
                             self.file_path, line_num)

        seq_id, source, type_label, start, end, score, strand, phase, attributes = parts

        try:
            start, end = int(start), int(end)
            score = None if score == '.' else float(score)
            phase = None if phase == '.' else int(phase)
        except ValueError as e:
            raise ParseError(f"Invalid numeric column: {e}", self.file_path, line_num)

        if self.file_format == "GTF":
            fields = self._parse_gtf_attributes(attributes)
            if type_label.lower() == 'transcript':
                fields.setdefault('id', fields.get('transcript_id', ''))
                fields.setdefault('parent_id', fields.get('gene_id', ''))
            else:
                fields.setdefault('parent_id', fields.get('transcript_id', ''))
        else:
            fields = self._parse_gff3_attributes(attributes)

        try:
            return AnnotationRecord(
                seq_id=seq_id,
                source=source,
                feature_type=FeatureType.from_string(type_label),
                start=start,
                end=end,
                strand=strand,
                score=score,
                phase=phase,
                type_label=type_label,
                file_format=self.file_format,
                **fields
            )
        except ValueError as e:
            raise ParseError(str(e), self.file_path, line_num)

    def _parse_gff3_attributes(self, attr_string: str) -> Dict:
        """Parse GFF3 ``key=value;`` attributes into record fields."""
        fields = {}
        extra = OrderedDict()
        for attr in attr_string.split(';'):
            attr = attr.strip()
            if not attr:
                continue
            key, _, value = attr.partition('=')
            if key in GFF3_FIELD_ATTRIBUTES:
                fields[GFF3_FIELD_ATTRIBUTES[key]] = value
            else:
                extra[key] = value
        fields['attributes'] = dict(extra)
        return fields

    def _parse_gtf_attributes(self, attr_string: str) -> Dict:
        """Parse GTF ``key "value";`` attributes into record fields."""
        fields = {}
        extra = OrderedDict()
        for attr in attr_string.split(';'):
            attr = attr.strip()
            if not attr:
                continue
            key, _, value = attr.partition(' ')
            value = value.strip().strip('"')
            if key in GTF_FIELD_ATTRIBUTES:
                fields[GTF_FIELD_ATTRIBUTES[key]] = value
            elif key in GTF_FLOAT_ATTRIBUTES:
                try:
                    fields[GTF_FLOAT_ATTRIBUTES[key]] = float(value)
                except ValueError:
                    extra[key] = value
            else:
                extra[key] = value
        fields['attributes'] = dict(extra)
        return fields


def load_gene_model(file_path: str) -> GeneModel:
    """Parse a GFF3 file and link it into a GeneModel."""
    records = AnnotationParser(file_path, "GFF3").parse()
    return GeneModel.from_records(records)


def load_gtf_transcripts(file_path: str) -> List[AnnotationRecord]:
    """
    Load the transcript-level records of an assembler GTF.

    Cufflinks and StringTie write one ``transcript`` line per transcript.
    Files that only carry exon lines get one synthetic transcript per
    transcript_id spanning its exons.
    """
    records = AnnotationParser(file_path, "GTF").parse()
    transcripts = [r for r in records if r.feature_type is FeatureType.TRANSCRIPT]
    if transcripts:
        return transcripts

    spans: 'OrderedDict[str, AnnotationRecord]' = OrderedDict()
    for record in records:
        if record.feature_type is not FeatureType.EXON or not record.transcript_id:
            continue
        span = spans.get(record.transcript_id)
        if span is None:
            span = record.copy_without_children()
            span.feature_type = FeatureType.TRANSCRIPT
            span.type_label = FeatureType.TRANSCRIPT.value
            span.id = record.transcript_id
            span.parent_id = record.gene_id
            span.attributes = {}
            spans[record.transcript_id] = span
        else:
            span.start = min(span.start, record.start)
            span.end = max(span.end, record.end)

    logging.info(f"No transcript lines in {file_path}, built {len(spans)} transcripts from exons")
    return list(spans.values())


class ExternalAnnotationParser:
    """Parse a Full-Lengther annotation table (dbannotated / new_coding)."""

    MIN_COLUMNS = 8
    MAX_COLUMNS = 18

    def __init__(self, file_path: str):
        self.file_path = file_path

    def load(self) -> List[ExternalAnnotation]:
        """Parse every data line; the first line is a header."""
        logging.info(f"Loading Full-Lengther annotations from {self.file_path}")
        annotations = []

        try:
            with open(self.file_path, 'r') as f:
                next(f, None)
                for line_num, line in enumerate(f, 2):
                    line = line.rstrip('\r\n')
                    if not line.strip():
                        continue
                    annotations.append(self._parse_line(line, line_num))
        except FileNotFoundError:
            raise ParseError(f"Full-Lengther file not found: {self.file_path}")

        logging.info(f"Loaded {len(annotations)} annotations from {self.file_path}")
        return annotations

    def _parse_line(self, line: str, line_num: int) -> ExternalAnnotation:
        cols = line.split('\t')
        if not self.MIN_COLUMNS <= len(cols) <= self.MAX_COLUMNS:
            raise ParseError(f"Expected {self.MIN_COLUMNS}-{self.MAX_COLUMNS} columns, found {len(cols)}",
                             self.file_path, line_num)

        try:
            annotation = ExternalAnnotation(
                id=cols[0].strip(),
                fasta_length=int(cols[1]),
                status=FlnStatus.from_string(cols[4]),
            )

            if annotation.status is not FlnStatus.MISASSEMBLED and len(cols) >= 14:
                annotation.orf_start = _optional_int(cols[12])
                annotation.orf_end = _optional_int(cols[13])

            if len(cols) >= 16:
                s_start, s_end = _optional_int(cols[14]), _optional_int(cols[15])
                if s_start >= 0 and s_end >= 0:
                    annotation.subject_start = min(s_start, s_end)
                    annotation.subject_end = max(s_start, s_end)
        except ValueError as e:
            raise ParseError(f"Invalid numeric column: {e}", self.file_path, line_num)

        return annotation


def _optional_int(text: str) -> int:
    text = text.strip()
    return int(text) if text else -1


def load_fln_directory(fln_dir: str) -> Tuple[List[ExternalAnnotation], List[ExternalAnnotation]]:
    """Load ``dbannotated.txt`` and ``new_coding.txt`` from a Full-Lengther output directory."""
    dbannot = ExternalAnnotationParser(os.path.join(fln_dir, DBANNOT_FILE_NAME)).load()
    new_coding = ExternalAnnotationParser(os.path.join(fln_dir, NEW_CODING_FILE_NAME)).load()
    return dbannot, new_coding

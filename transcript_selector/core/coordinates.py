#!/usr/bin/env python3

"""
Genome to transcript coordinate translation for CDS features.
"""

from typing import Tuple

from .data_structures import AnnotationRecord, FeatureType
from .exceptions import MissingFeatureError, ValidationError


def cds_start_offset(transcript: AnnotationRecord) -> int:
    """
    1-based position of the CDS 5' end within the spliced transcript.

    Exons are walked 5' to 3' in transcript orientation (descending
    coordinates on the minus strand). The lengths of exons lying wholly
    upstream of the CDS start are summed, then the distance from the
    containing exon's 5' end is added.

    Raises:
        MissingFeatureError: the transcript has no CDS or no exon
        ValidationError: the CDS start does not fall inside any exon
    """
    cds_records = transcript.children_of_type(FeatureType.CDS)
    if not cds_records:
        raise MissingFeatureError("No CDS found", transcript_id=transcript.id)

    exons = transcript.children_of_type(FeatureType.EXON)
    if not exons:
        raise MissingFeatureError("No exons found", transcript_id=transcript.id)

    reverse = transcript.strand == '-'
    if reverse:
        cds_5p = max(cds.end for cds in cds_records)
        ordered = sorted(exons, key=lambda e: e.end, reverse=True)
    else:
        cds_5p = min(cds.start for cds in cds_records)
        ordered = sorted(exons, key=lambda e: e.start)

    offset = 0
    for exon in ordered:
        if exon.start <= cds_5p <= exon.end:
            offset += (exon.end - cds_5p) if reverse else (cds_5p - exon.start)
            return offset + 1
        upstream = exon.start > cds_5p if reverse else exon.end < cds_5p
        if not upstream:
            break
        offset += exon.length

    raise ValidationError(f"CDS start {cds_5p} is not inside any exon", transcript_id=transcript.id)


def cds_transcript_span(transcript: AnnotationRecord, stop_codon_adjustment: int = 0) -> Tuple[int, int]:
    """Start and end of the CDS in transcript coordinates."""
    start = cds_start_offset(transcript)
    cds_length = transcript.length_of_type(FeatureType.CDS)
    return start, start + cds_length - 1 + stop_codon_adjustment

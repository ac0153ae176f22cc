#!/usr/bin/env python3

"""
Record builders shared by the test modules.
"""

import os
import sys
from typing import List, Sequence, Tuple

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from transcript_selector.core.data_structures import AnnotationRecord, ExternalAnnotation, FeatureType, FlnStatus


def record(feature_type: FeatureType, record_id: str, start: int, end: int,
           strand: str = '+', parent_id: str = '', seq_id: str = 'chr1', **kwargs) -> AnnotationRecord:
    return AnnotationRecord(seq_id=seq_id, source='test', feature_type=feature_type,
                            start=start, end=end, strand=strand, id=record_id,
                            parent_id=parent_id, **kwargs)


def make_transcript(transcript_id: str, gene_id: str, exons: Sequence[Tuple[int, int]],
                    cds: Sequence[Tuple[int, int]], strand: str = '+', seq_id: str = 'chr1',
                    utr5: bool = True, utr3: bool = True) -> AnnotationRecord:
    """mRNA with exon, CDS and (optionally) UTR children."""
    start = min(s for s, _ in exons)
    end = max(e for _, e in exons)
    transcript = record(FeatureType.MRNA, transcript_id, start, end, strand, gene_id, seq_id)

    for n, (s, e) in enumerate(exons, 1):
        transcript.add_child(record(FeatureType.EXON, f"{transcript_id}.exon{n}", s, e,
                                    strand, transcript_id, seq_id))
    for s, e in cds:
        transcript.add_child(record(FeatureType.CDS, f"cds.{transcript_id}", s, e,
                                    strand, transcript_id, seq_id, phase=0))
    if utr5:
        transcript.add_child(record(FeatureType.UTR5, f"{transcript_id}.utr5p1", start, start,
                                    strand, transcript_id, seq_id))
    if utr3:
        transcript.add_child(record(FeatureType.UTR3, f"{transcript_id}.utr3p1", end, end,
                                    strand, transcript_id, seq_id))
    return transcript


def make_gene(gene_id: str, transcripts: List[AnnotationRecord], strand: str = '+',
              seq_id: str = 'chr1', start: int = 0, end: int = 0) -> AnnotationRecord:
    """Gene spanning its transcripts (or the given span) and owning them."""
    if transcripts and not start:
        start = min(t.start for t in transcripts)
        end = max(t.end for t in transcripts)
    gene = record(FeatureType.GENE, gene_id, start, end, strand, '', seq_id)
    for transcript in transcripts:
        transcript.parent_id = gene_id
        gene.add_child(transcript)
    return gene


def simple_gene(n: int, start: int, strand: str = '+', seq_id: str = 'chr1',
                utr3: bool = True, cds_length: int = 300) -> AnnotationRecord:
    """
    TransDecoder-style single-transcript gene on ``comp<n>_c0_seq1``.

    Exons cover start..start+199 and start+200..start+599; the CDS starts
    at start+200, so its transcript coordinates are 201..200+cds_length
    on the plus strand.
    """
    transcript = make_transcript(
        f"comp{n}_c0_seq1|m.{n}", f"comp{n}_c0_seq1|g.{n}",
        exons=[(start, start + 199), (start + 200, start + 599)],
        cds=[(start + 200, start + 199 + cds_length)],
        strand=strand, seq_id=seq_id, utr3=utr3)
    return make_gene(f"comp{n}_c0_seq1|g.{n}", [transcript], strand, seq_id)


def gtf_transcript(transcript_id: str, gene_id: str, start: int = 1, end: int = 100,
                   strand: str = '+', seq_id: str = 'chr1') -> AnnotationRecord:
    return AnnotationRecord(seq_id=seq_id, source='Cufflinks', feature_type=FeatureType.TRANSCRIPT,
                            start=start, end=end, strand=strand, id=transcript_id,
                            parent_id=gene_id, gene_id=gene_id, transcript_id=transcript_id,
                            file_format='GTF')


def fln(annotation_id: str, orf_start: int, orf_end: int, fasta_length: int = 600,
        status: FlnStatus = FlnStatus.COMPLETE) -> ExternalAnnotation:
    return ExternalAnnotation(id=annotation_id, fasta_length=fasta_length, status=status,
                              orf_start=orf_start, orf_end=orf_end)

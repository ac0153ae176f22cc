#!/usr/bin/env python3

"""
Read-only lookup tables shared by the filters.

The tables are built once, after loading and gene-model resolution, and
exposed through ``MappingProxyType`` so no filter can change them.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional

from .data_structures import AnnotationRecord, ExternalAnnotation, FeatureType, FlnStatus
from .gene_model import GeneModel


def _empty_mapping() -> Mapping:
    return MappingProxyType({})


@dataclass(frozen=True)
class CrossReferenceTables:
    """Lookups from the various input sources, keyed by record id."""
    genomic_by_id: Mapping[str, AnnotationRecord] = field(default_factory=_empty_mapping)
    aligned_cds_by_id: Mapping[str, AnnotationRecord] = field(default_factory=_empty_mapping)
    aligned_exon_by_id: Mapping[str, AnnotationRecord] = field(default_factory=_empty_mapping)
    gtf_by_root_id: Mapping[str, AnnotationRecord] = field(default_factory=_empty_mapping)
    confident_fln_by_id: Mapping[str, ExternalAnnotation] = field(default_factory=_empty_mapping)
    putative_fln_by_id: Mapping[str, ExternalAnnotation] = field(default_factory=_empty_mapping)
    all_fln_by_id: Mapping[str, ExternalAnnotation] = field(default_factory=_empty_mapping)

    def summary(self) -> Dict[str, int]:
        return {
            "genomic_records": len(self.genomic_by_id),
            "aligned_cds": len(self.aligned_cds_by_id),
            "aligned_exons": len(self.aligned_exon_by_id),
            "gtf_transcripts": len(self.gtf_by_root_id),
            "confident_orfs": len(self.confident_fln_by_id),
            "putative_orfs": len(self.putative_fln_by_id),
            "all_orfs": len(self.all_fln_by_id),
        }


def index_gtf_transcripts(records: Iterable[AnnotationRecord]) -> Dict[str, AnnotationRecord]:
    """Index GTF transcript records by their root transcript id (first wins)."""
    index: Dict[str, AnnotationRecord] = {}
    for record in records:
        if record.feature_type is not FeatureType.TRANSCRIPT:
            continue
        root = record.root_transcript_id
        if not root:
            logging.warning(f"Cannot derive a root id from GTF transcript_id {record.transcript_id}")
            continue
        if root in index:
            logging.debug(f"Duplicate GTF transcript {root}, keeping the first")
            continue
        index[root] = record
    return index


def _index_by_id(records: Iterable[AnnotationRecord]) -> Dict[str, AnnotationRecord]:
    index: Dict[str, AnnotationRecord] = {}
    for record in records:
        if record.id:
            index.setdefault(record.id, record)
    return index


def build_cross_reference_tables(genomic_model: GeneModel,
                                 aligned_model: Optional[GeneModel] = None,
                                 gtf_transcripts: Iterable[AnnotationRecord] = (),
                                 dbannot: Iterable[ExternalAnnotation] = (),
                                 new_coding: Iterable[ExternalAnnotation] = ()) -> CrossReferenceTables:
    """
    Build all lookup tables.

    Args:
        genomic_model: resolved genome-coordinate model
        aligned_model: resolved transcript-coordinate model, if available
        gtf_transcripts: assembler GTF transcript records
        dbannot: Full-Lengther ``dbannotated.txt`` entries
        new_coding: Full-Lengther ``new_coding.txt`` entries

    Returns:
        CrossReferenceTables with read-only maps
    """
    genomic_by_id = _index_by_id(genomic_model.full_list())

    aligned_cds: Dict[str, AnnotationRecord] = {}
    aligned_exons: Dict[str, AnnotationRecord] = {}
    if aligned_model is not None:
        aligned_cds = _index_by_id(aligned_model.all_of_type(FeatureType.CDS))
        aligned_exons = _index_by_id(aligned_model.all_of_type(FeatureType.EXON))

    confident: Dict[str, ExternalAnnotation] = {}
    all_fln: Dict[str, ExternalAnnotation] = {}
    for annotation in dbannot:
        all_fln[annotation.id] = annotation
        if annotation.status is FlnStatus.COMPLETE:
            confident[annotation.id] = annotation

    putative: Dict[str, ExternalAnnotation] = {}
    for annotation in new_coding:
        putative[annotation.id] = annotation
        all_fln[annotation.id] = annotation

    tables = CrossReferenceTables(
        genomic_by_id=MappingProxyType(genomic_by_id),
        aligned_cds_by_id=MappingProxyType(aligned_cds),
        aligned_exon_by_id=MappingProxyType(aligned_exons),
        gtf_by_root_id=MappingProxyType(index_gtf_transcripts(gtf_transcripts)),
        confident_fln_by_id=MappingProxyType(confident),
        putative_fln_by_id=MappingProxyType(putative),
        all_fln_by_id=MappingProxyType(all_fln),
    )

    for name, size in tables.summary().items():
        logging.info(f"Table {name}: {size:,} entries")

    return tables

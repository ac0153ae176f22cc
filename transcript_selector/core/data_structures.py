#!/usr/bin/env python3

"""
Core data structures for the transcript selection pipeline.

Defines the annotation record shared by GFF3 and GTF inputs, the feature
type vocabulary, and the external (Full-Lengther) ORF annotation.
"""

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional


class FeatureType(Enum):
    """Feature types recognised in column 3, in sort-rank order."""
    GENE = "gene"
    MRNA = "mRNA"
    MIRNA = "miRNA"
    PROTEIN = "protein"
    UTR5 = "five_prime_UTR"
    UTR3 = "three_prime_UTR"
    CDS = "CDS"
    TRANSCRIPT = "transcript"
    EXON = "exon"
    TSS = "TSS"
    TTS = "TTS"
    OTHER = "other"

    @classmethod
    def from_string(cls, text: str) -> 'FeatureType':
        """Map a column-3 type name to a FeatureType (case-insensitive)."""
        return _FEATURE_TYPE_LOOKUP.get(text.strip().lower(), cls.OTHER)

    @property
    def rank(self) -> int:
        """Position used when sorting records of the same span."""
        return _FEATURE_TYPE_RANK[self]

    @property
    def is_transcript(self) -> bool:
        return self in (FeatureType.MRNA, FeatureType.MIRNA)


_FEATURE_TYPE_RANK = {ftype: index for index, ftype in enumerate(FeatureType)}
_FEATURE_TYPE_LOOKUP = {ftype.value.lower(): ftype for ftype in FeatureType
                        if ftype is not FeatureType.OTHER}
_FEATURE_TYPE_LOOKUP.update({
    "5'utr": FeatureType.UTR5,
    "3'utr": FeatureType.UTR3,
    "utr5": FeatureType.UTR5,
    "utr3": FeatureType.UTR3,
})


class FlnStatus(Enum):
    """Completeness status reported by Full-Lengther for an ORF."""
    INTERNAL = "Internal"
    COMPLETE = "Complete"
    PUTATIVE_COMPLETE = "Putative Complete"
    C_TERMINUS = "C-terminus"
    N_TERMINUS = "N-terminus"
    PUTATIVE_C_TERMINUS = "Putative C-terminus"
    PUTATIVE_N_TERMINUS = "Putative N-terminus"
    MISASSEMBLED = "Misassembled"
    CODING = "coding"
    PUTATIVE_CODING = "putative_coding"
    UNKNOWN = "unknown"
    OTHER = "Other"

    @classmethod
    def from_string(cls, text: str) -> 'FlnStatus':
        """Map a status column value to a FlnStatus (case-insensitive)."""
        return _FLN_STATUS_LOOKUP.get(text.strip().lower(), cls.OTHER)


_FLN_STATUS_LOOKUP = {status.value.lower(): status for status in FlnStatus}


@dataclass(eq=False)
class AnnotationRecord:
    """
    One line of a GFF3 or GTF file plus the records it owns.

    Coordinates are 1-based and inclusive. A record owns its ``children``;
    the link back to the parent is only the ``parent_id`` string, so a
    tree of records holds no reference cycles. Records compare by
    identity.
    """
    seq_id: str
    source: str
    feature_type: FeatureType
    start: int
    end: int
    strand: str = "."
    score: Optional[float] = None
    phase: Optional[int] = None
    id: str = ""
    parent_id: str = ""
    name: str = ""
    alias: str = ""
    note: str = ""
    # GTF attributes
    gene_id: str = ""
    transcript_id: str = ""
    fpkm: Optional[float] = None
    coverage: Optional[float] = None
    # Remaining attributes in file order (Target, Gap, exon_number, ...)
    attributes: Dict[str, str] = field(default_factory=dict)
    type_label: str = ""
    file_format: str = "GFF3"
    children: List['AnnotationRecord'] = field(default_factory=list)

    def __post_init__(self):
        """Validate record data after initialization."""
        if self.start > self.end:
            raise ValueError(f"Invalid coordinates: {self.start}-{self.end}")
        if self.strand == "?":
            self.strand = "."
        if self.strand not in ('+', '-', '.'):
            raise ValueError(f"Invalid strand: {self.strand}")
        if self.phase is not None and self.phase not in (0, 1, 2):
            raise ValueError(f"Invalid phase: {self.phase}")
        if not self.type_label:
            self.type_label = self.feature_type.value

    @property
    def length(self) -> int:
        return abs(self.end - self.start) + 1

    @property
    def root_id(self) -> str:
        """
        Id of the assembled transcript this prediction was made on.

        TransDecoder ids look like ``comp1_c0_seq1|m.5`` for mRNAs and
        ``cds.comp1_c0_seq1|m.5`` for CDS records; both map to
        ``comp1_c0_seq1``.
        """
        head = self.id.split('|')[0]
        pos = head.find('cds.')
        if pos >= 0:
            head = head[pos + 4:]
        return head

    @property
    def root_transcript_id(self) -> str:
        """Assembled transcript id carried by a GTF ``transcript_id``."""
        parts = self.transcript_id.split('|')
        if len(parts) == 1:
            return parts[0]
        if len(parts) == 2:
            return parts[1]
        return ""

    @property
    def is_gene(self) -> bool:
        return self.feature_type is FeatureType.GENE

    @property
    def is_transcript(self) -> bool:
        return self.feature_type.is_transcript

    def add_child(self, child: 'AnnotationRecord') -> None:
        self.children.append(child)

    def iter_descendants(self) -> Iterator['AnnotationRecord']:
        """Yield every record below this one, depth first."""
        for child in self.children:
            yield child
            yield from child.iter_descendants()

    def children_of_type(self, feature_type: FeatureType) -> List['AnnotationRecord']:
        """All descendants of the given type, in file order."""
        return [record for record in self.iter_descendants()
                if record.feature_type is feature_type]

    def length_of_type(self, feature_type: FeatureType) -> int:
        """Summed length of all descendants of the given type."""
        return sum(record.length for record in self.children_of_type(feature_type))

    def transcripts(self) -> List['AnnotationRecord']:
        """Direct transcript children of a gene."""
        return [child for child in self.children if child.is_transcript]

    def copy_without_children(self) -> 'AnnotationRecord':
        """Copy of this record's own fields with an empty child list."""
        return dataclasses.replace(self, attributes=dict(self.attributes), children=[])

    def copy_tree(self) -> 'AnnotationRecord':
        """Deep copy of this record and everything it owns."""
        copy = self.copy_without_children()
        copy.children = [child.copy_tree() for child in self.children]
        return copy

    def __repr__(self):
        return (f"AnnotationRecord({self.feature_type.value} {self.id or self.transcript_id} "
                f"{self.seq_id}:{self.start}-{self.end}{self.strand})")


@dataclass
class ExternalAnnotation:
    """
    Full-Lengther ORF annotation for one assembled transcript.

    ORF and subject coordinates are in transcript space; -1 marks a value
    the source did not provide.
    """
    id: str
    fasta_length: int
    status: FlnStatus
    orf_start: int = -1
    orf_end: int = -1
    subject_start: int = -1
    subject_end: int = -1

    @property
    def has_orf(self) -> bool:
        return self.orf_start >= 0 and self.orf_end >= 0

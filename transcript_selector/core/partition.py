#!/usr/bin/env python3

"""
Pass/fail partitioning of the original gene set.
"""

from dataclasses import dataclass, field
from typing import List

from .data_structures import AnnotationRecord
from .gene_model import GeneModel


@dataclass
class FailedGene:
    """A gene routed to the fail output with the transcripts that failed."""
    gene: AnnotationRecord
    transcripts: List[AnnotationRecord]
    whole_gene: bool

    def to_record(self) -> AnnotationRecord:
        """Gene header owning only the failed transcripts."""
        if self.whole_gene:
            return self.gene
        header = self.gene.copy_without_children()
        for transcript in self.transcripts:
            header.add_child(transcript)
        return header


@dataclass
class PartitionResult:
    passed: GeneModel
    failed: List[FailedGene] = field(default_factory=list)

    @property
    def passed_gene_count(self) -> int:
        return self.passed.gene_count

    @property
    def passed_transcript_count(self) -> int:
        return self.passed.transcript_count

    @property
    def failed_gene_count(self) -> int:
        return len(self.failed)

    @property
    def failed_transcript_count(self) -> int:
        return sum(len(entry.transcripts) for entry in self.failed)

    def failed_records(self) -> List[AnnotationRecord]:
        return [entry.to_record() for entry in self.failed]


def partition_gene_models(original: GeneModel, filtered: GeneModel) -> PartitionResult:
    """
    Split ``original`` into the filtered (pass) model and everything else.

    A gene missing from ``filtered`` fails with all its transcripts. A gene
    present in ``filtered`` contributes only the transcripts missing from
    ``filtered``'s transcript index, if any.
    """
    result = PartitionResult(passed=filtered)

    for gene in original.genes:
        transcripts = gene.transcripts()
        if not filtered.contains_gene(gene.id):
            result.failed.append(FailedGene(gene, transcripts, whole_gene=True))
            continue

        failed = [t for t in transcripts if not filtered.contains_transcript(t.id)]
        if failed:
            result.failed.append(FailedGene(gene, failed, whole_gene=False))

    return result

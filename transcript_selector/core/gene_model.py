#!/usr/bin/env python3

"""
Gene model container.

A GeneModel owns an ordered list of gene trees and keeps two non-owning
indices (gene id and transcript id) on top of them. The indices are weak
so that dropping a model never leaves records alive through a lookup
table.
"""

import logging
import weakref
from typing import Iterable, Iterator, List, Optional

from .data_structures import AnnotationRecord, FeatureType
from .exceptions import DuplicateIdError, OrphanRecordError, ValidationError


class GeneModel:
    """Ordered collection of genes with id lookups."""

    def __init__(self, genes: Optional[Iterable[AnnotationRecord]] = None):
        self.genes: List[AnnotationRecord] = []
        self.gene_by_id: 'weakref.WeakValueDictionary[str, AnnotationRecord]' = weakref.WeakValueDictionary()
        self.transcript_by_id: 'weakref.WeakValueDictionary[str, AnnotationRecord]' = weakref.WeakValueDictionary()

        for gene in genes or ():
            self.add_gene(gene)

    def add_gene(self, gene: AnnotationRecord) -> None:
        """Add a gene and register the transcripts it already owns."""
        if not gene.is_gene:
            raise ValidationError(f"Record of type {gene.type_label} does not represent a gene",
                                  gene_id=gene.id)
        if gene.id in self.gene_by_id:
            raise DuplicateIdError("Already loaded gene with this id", gene_id=gene.id)

        transcripts = gene.transcripts()
        seen = set()
        for transcript in transcripts:
            if transcript.id in self.transcript_by_id or transcript.id in seen:
                raise DuplicateIdError("Already loaded transcript with this id",
                                       transcript_id=transcript.id)
            seen.add(transcript.id)

        for transcript in transcripts:
            self.transcript_by_id[transcript.id] = transcript
        self.genes.append(gene)
        self.gene_by_id[gene.id] = gene

    def add_transcript(self, gene_id: str, transcript: AnnotationRecord) -> None:
        """Attach a transcript to a gene already in the model."""
        gene = self.gene_by_id.get(gene_id)
        if gene is None:
            raise OrphanRecordError(f"Parent gene {gene_id} not loaded",
                                    transcript_id=transcript.id)
        self._register_transcript(transcript)
        gene.add_child(transcript)

    def _register_transcript(self, transcript: AnnotationRecord) -> None:
        if transcript.id in self.transcript_by_id:
            raise DuplicateIdError("Already loaded transcript with this id",
                                   transcript_id=transcript.id)
        self.transcript_by_id[transcript.id] = transcript

    def contains_gene(self, gene_id: str) -> bool:
        return gene_id in self.gene_by_id

    def contains_transcript(self, transcript_id: str) -> bool:
        return transcript_id in self.transcript_by_id

    def get_gene(self, gene_id: str) -> Optional[AnnotationRecord]:
        return self.gene_by_id.get(gene_id)

    def get_transcript(self, transcript_id: str) -> Optional[AnnotationRecord]:
        return self.transcript_by_id.get(transcript_id)

    @property
    def gene_count(self) -> int:
        return len(self.genes)

    @property
    def transcript_count(self) -> int:
        return sum(len(gene.transcripts()) for gene in self.genes)

    def transcripts(self) -> Iterator[AnnotationRecord]:
        """Iterate over every transcript in gene order."""
        for gene in self.genes:
            yield from gene.transcripts()

    def full_list(self) -> List[AnnotationRecord]:
        """Every record in the model, each gene followed by its subtree."""
        records = []
        for gene in self.genes:
            records.append(gene)
            records.extend(gene.iter_descendants())
        return records

    def all_of_type(self, feature_type: FeatureType) -> List[AnnotationRecord]:
        return [record for record in self.full_list() if record.feature_type is feature_type]

    def check_integrity(self) -> None:
        """Raise if a transcript is not tied to the gene that owns it."""
        for gene in self.genes:
            for transcript in gene.transcripts():
                if transcript.parent_id != gene.id:
                    raise ValidationError(
                        f"Parent {transcript.parent_id} does not match owning gene {gene.id}",
                        transcript_id=transcript.id)
                if self.transcript_by_id.get(transcript.id) is not transcript:
                    raise ValidationError("Transcript missing from index",
                                          transcript_id=transcript.id)

    def __len__(self):
        return len(self.genes)

    def __iter__(self):
        return iter(self.genes)

    def __repr__(self):
        return f"GeneModel({self.gene_count} genes, {self.transcript_count} transcripts)"

    @classmethod
    def from_records(cls, records: Iterable[AnnotationRecord]) -> 'GeneModel':
        """
        Link a flat, file-ordered list of records into gene trees.

        Genes start new trees and mRNA/miRNA records attach to their gene.
        Protein records are dropped. Any other record attaches to the
        transcript named in its Parent attribute, ignoring parents that
        refer to a protein; a record left with several parents is dropped.

        Raises:
            DuplicateIdError: a gene or transcript id is repeated
            OrphanRecordError: a record's parent has not been loaded
        """
        model = cls()
        dropped_protein = 0
        dropped_multi_parent = 0

        for record in records:
            ftype = record.feature_type

            if ftype is FeatureType.GENE:
                model.add_gene(record)

            elif ftype.is_transcript:
                if not model.contains_gene(record.parent_id):
                    raise OrphanRecordError(f"Gene {record.parent_id} not loaded",
                                            transcript_id=record.id)
                model.add_transcript(record.parent_id, record)

            elif ftype is FeatureType.PROTEIN:
                logging.debug(f"Ignoring protein record {record.id}")
                dropped_protein += 1

            else:
                parents = [p for p in record.parent_id.split(',')
                           if p and '-Protein' not in p]
                if len(parents) > 1:
                    logging.warning(f"Ignoring {record.type_label} {record.id}: "
                                    f"more than one parent ({record.parent_id})")
                    dropped_multi_parent += 1
                    continue
                if not parents:
                    raise OrphanRecordError(
                        f"{record.type_label} {record.id} at {record.seq_id}:{record.start} has no parent")

                transcript = model.get_transcript(parents[0])
                if transcript is None:
                    raise OrphanRecordError(f"Transcript {parents[0]} not loaded",
                                            transcript_id=parents[0])
                record.parent_id = parents[0]
                transcript.add_child(record)

        if dropped_protein:
            logging.warning(f"Ignored {dropped_protein} protein records")
        if dropped_multi_parent:
            logging.warning(f"Ignored {dropped_multi_parent} records with multiple parents")

        logging.info(f"Linked {model.gene_count} genes and {model.transcript_count} transcripts")
        return model

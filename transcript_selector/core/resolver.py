#!/usr/bin/env python3

"""
Gene-model resolution.

TransDecoder emits one gene per predicted ORF, so in a fresh prediction
every gene has exactly one transcript. The assembler GTF knows which
assembled transcripts belong to the same locus; resolution regroups the
predicted transcripts under the assembler's gene ids.
"""

import logging
from collections import OrderedDict
from typing import List, Mapping

from .data_structures import AnnotationRecord, FeatureType
from .exceptions import GeneModelError
from .gene_model import GeneModel


def fix_cds_ids(transcript: AnnotationRecord) -> None:
    """Rename ``cds.X`` CDS ids to ``X.cds1``, ``X.cds2``, ... in order."""
    counter = 0
    for cds in transcript.children_of_type(FeatureType.CDS):
        if cds.id.startswith('cds.'):
            counter += 1
            cds.id = f"{cds.id[4:]}.cds{counter}"


class GeneModelResolver:
    """Regroup transcripts into genes using an assembler GTF index."""

    def __init__(self, gtf_by_root_id: Mapping[str, AnnotationRecord]):
        self.gtf_by_root_id = gtf_by_root_id

    def resolve(self, model: GeneModel, genomic_coords: bool = True) -> GeneModel:
        """
        Return a resolved copy of ``model``; the input is left untouched.

        Args:
            model: linked gene model
            genomic_coords: whether the model is in genome coordinates
                (merged genes must then share a sequence id)

        Raises:
            GeneModelError: more genes than transcripts, a transcript with
                no GTF entry, a gene without transcripts, or a merge across
                sequences
        """
        n_genes = model.gene_count
        n_transcripts = model.transcript_count

        if n_genes > n_transcripts:
            raise GeneModelError(f"Gene model has more genes ({n_genes}) than transcripts ({n_transcripts})")

        if n_genes < n_transcripts:
            logging.info("Gene model already groups transcripts, keeping it as loaded")
            genes = [gene.copy_tree() for gene in model.genes]
        else:
            genes = self._merge_by_gtf_gene(model, genomic_coords)

        for gene in genes:
            gene.name = gene.id
            for transcript in gene.transcripts():
                transcript.name = transcript.id
                transcript.parent_id = gene.id
                transcript.note = gene.id

        resolved = GeneModel(genes)
        logging.info(f"Resolved {n_genes} genes into {resolved.gene_count} genes "
                     f"with {resolved.transcript_count} transcripts")
        return resolved

    def _merge_by_gtf_gene(self, model: GeneModel, genomic_coords: bool) -> List[AnnotationRecord]:
        merged: 'OrderedDict[str, AnnotationRecord]' = OrderedDict()

        for gene in model.genes:
            transcripts = gene.transcripts()
            if not transcripts:
                raise GeneModelError("Gene has no transcripts", gene_id=gene.id)

            for original in transcripts:
                gtf = self.gtf_by_root_id.get(original.root_id)
                if gtf is None:
                    raise GeneModelError(f"No GTF transcript for {original.root_id}", gene_id=gene.id)

                transcript = original.copy_tree()
                transcript.parent_id = gtf.gene_id
                transcript.alias = gtf.transcript_id
                fix_cds_ids(transcript)

                target = merged.get(gtf.gene_id)
                if target is None:
                    target = gene.copy_without_children()
                    target.id = gtf.gene_id
                    merged[gtf.gene_id] = target
                else:
                    if genomic_coords and target.seq_id != gene.seq_id:
                        raise GeneModelError(
                            f"Cannot merge {gene.id} on {gene.seq_id} into gene on {target.seq_id}",
                            gene_id=gtf.gene_id)
                    target.start = min(target.start, transcript.start)
                    target.end = max(target.end, transcript.end)

                target.add_child(transcript)

        return list(merged.values())

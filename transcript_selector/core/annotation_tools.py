#!/usr/bin/env python3

"""
Record-level helpers behind the companion command-line tools.

These work on the flat, file-ordered record lists produced by
AnnotationParser rather than on linked gene models, so they also accept
files that would not link cleanly.
"""

import logging
from typing import Iterable, List, Set, Tuple

from .data_structures import AnnotationRecord, FeatureType
from .exceptions import ParseError, ValidationError


def transcript_gene_pairs(records: Iterable[AnnotationRecord]) -> List[Tuple[str, str]]:
    """
    (gene id, mRNA id) for every mRNA record, in file order.

    Raises:
        ValidationError: an mRNA has no ID or no Parent
    """
    pairs = []
    for record in records:
        if record.feature_type is not FeatureType.MRNA:
            continue
        if not record.id:
            raise ValidationError(f"mRNA at {record.seq_id}:{record.start} does not contain an ID entry")
        if not record.parent_id:
            raise ValidationError("mRNA does not contain a Parent entry", transcript_id=record.id)
        pairs.append((record.parent_id, record.id))
    return pairs


def load_entry_list(file_path: str) -> Set[str]:
    """Read one id per line, ignoring surrounding whitespace and blank lines."""
    try:
        with open(file_path, 'r') as f:
            entries = {line.strip() for line in f if line.strip()}
    except FileNotFoundError:
        raise ParseError(f"Id list not found: {file_path}")

    logging.info(f"Loaded {len(entries)} entries from {file_path}")
    return entries


def filter_listed_records(records: List[AnnotationRecord],
                          listed_ids: Set[str]) -> List[AnnotationRecord]:
    """
    Drop listed transcripts together with their children and parent genes.

    A record is dropped when its own id is listed, when its Parent is a
    listed id, or when it is the gene of a listed mRNA.
    """
    genes_to_drop = {r.parent_id for r in records
                     if r.feature_type is FeatureType.MRNA and r.id in listed_ids}
    genes_to_drop.discard("")
    logging.info(f"Found {len(genes_to_drop)} genes to exclude")

    kept = [r for r in records
            if not (r.id in listed_ids
                    or r.parent_id in listed_ids
                    or r.id in genes_to_drop)]

    for label, ftype in (("genes", FeatureType.GENE), ("transcripts", FeatureType.MRNA)):
        total = sum(1 for r in records if r.feature_type is ftype)
        remaining = sum(1 for r in kept if r.feature_type is ftype)
        logging.info(f"Keeping {remaining} out of {total} {label}")
    logging.info(f"Keeping {len(kept)} out of {len(records)} records")
    return kept


def strip_align_ids(records: Iterable[AnnotationRecord]) -> int:
    """
    Replace PASA ``align_id:N|asmbl_M`` transcript ids by the assembly id.

    Records whose transcript id has no usable root (more than one ``|``)
    are left as they are. Returns the number of records changed.
    """
    changed = 0
    for record in records:
        if not record.transcript_id:
            continue
        root = record.root_transcript_id
        if not root:
            logging.warning(f"Cannot derive a root id from transcript_id {record.transcript_id}")
            continue
        if root != record.transcript_id:
            record.transcript_id = root
            changed += 1
    return changed

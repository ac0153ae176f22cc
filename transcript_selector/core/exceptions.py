#!/usr/bin/env python3

"""
Custom exceptions for the transcript selection pipeline.

Structural problems with the inputs (duplicate ids, orphan records, missing
features, mismatched sources) are raised as exceptions and abort a run.
Transcripts that merely fail a consistency heuristic are never reported
through exceptions; they only end up in the fail output.
"""


class PipelineError(Exception):
    """Base exception for all pipeline-related errors."""
    pass


class ParseError(PipelineError):
    """Error occurred during file parsing."""

    def __init__(self, message: str, filename: str = "", line_number: int = 0):
        super().__init__(message)
        self.filename = filename
        self.line_number = line_number

    def __str__(self):
        if self.filename and self.line_number:
            return f"Parse error in {self.filename} at line {self.line_number}: {super().__str__()}"
        elif self.filename:
            return f"Parse error in {self.filename}: {super().__str__()}"
        return super().__str__()


class ValidationError(PipelineError):
    """Error occurred while validating an annotation record."""

    def __init__(self, message: str, transcript_id: str = "", gene_id: str = ""):
        super().__init__(message)
        self.transcript_id = transcript_id
        self.gene_id = gene_id

    def __str__(self):
        if self.transcript_id:
            return f"Validation error for transcript {self.transcript_id}: {super().__str__()}"
        elif self.gene_id:
            return f"Validation error for gene {self.gene_id}: {super().__str__()}"
        return super().__str__()


class DuplicateIdError(ValidationError):
    """A gene or transcript id was registered twice in the same model."""
    pass


class OrphanRecordError(ValidationError):
    """A record names a parent that is not present in the model."""
    pass


class MissingFeatureError(ValidationError):
    """A transcript lacks a feature (exon, CDS) that an operation requires."""
    pass


class IncompatibleSourcesError(ValidationError):
    """Two input sources disagree about the same record."""
    pass


class GeneModelError(PipelineError):
    """The gene/transcript grouping cannot be resolved."""

    def __init__(self, message: str, gene_id: str = ""):
        super().__init__(message)
        self.gene_id = gene_id

    def __str__(self):
        if self.gene_id:
            return f"Gene model error at gene {self.gene_id}: {super().__str__()}"
        return super().__str__()


class ConfigurationError(PipelineError):
    """Error in pipeline configuration."""
    pass


class MemoryError(PipelineError):
    """Memory usage exceeded limits."""

    def __init__(self, message: str, current_usage: float, limit: float):
        super().__init__(message)
        self.current_usage = current_usage
        self.limit = limit

    def __str__(self):
        return f"Memory error: {super().__str__()} (current: {self.current_usage:.1f}MB, limit: {self.limit:.1f}MB)"

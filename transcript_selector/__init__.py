#!/usr/bin/env python3

"""
Good Transcript Selector

Selects a high-confidence subset of ORF-prediction gene models by
cross-referencing them with an assembler GTF and Full-Lengther ORF
annotations, and partitions the input genes into pass and fail GFF3 files.

Modules:
- core: data structures, gene model, parsers, filters and the pipeline
- utils: performance monitoring
- tests: unit and integration tests
"""

__version__ = "1.0.0"

from .core.data_structures import AnnotationRecord, ExternalAnnotation, FeatureType, FlnStatus
from .core.gene_model import GeneModel
from .core.exceptions import (
    PipelineError, ParseError, ValidationError, DuplicateIdError, OrphanRecordError,
    MissingFeatureError, IncompatibleSourcesError, GeneModelError,
    ConfigurationError, MemoryError
)
from .core.config import PipelineConfig, load_config
from .core.pipeline import TranscriptSelectionPipeline

__all__ = [
    # Main pipeline
    'TranscriptSelectionPipeline',
    # Data structures
    'AnnotationRecord', 'ExternalAnnotation', 'FeatureType', 'FlnStatus', 'GeneModel',
    # Exceptions
    'PipelineError', 'ParseError', 'ValidationError', 'DuplicateIdError', 'OrphanRecordError',
    'MissingFeatureError', 'IncompatibleSourcesError', 'GeneModelError',
    'ConfigurationError', 'MemoryError',
    # Configuration
    'PipelineConfig', 'load_config'
]

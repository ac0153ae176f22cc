#!/usr/bin/env python3

"""
Core module for the transcript selection pipeline.

Contains the annotation data structures, the gene model container,
exception types and configuration management.
"""

from .data_structures import AnnotationRecord, ExternalAnnotation, FeatureType, FlnStatus
from .gene_model import GeneModel
from .exceptions import (
    PipelineError, ParseError, ValidationError, DuplicateIdError, OrphanRecordError,
    MissingFeatureError, IncompatibleSourcesError, GeneModelError,
    ConfigurationError, MemoryError
)
from .config import PipelineConfig, load_config

__all__ = [
    'AnnotationRecord', 'ExternalAnnotation', 'FeatureType', 'FlnStatus', 'GeneModel',
    'PipelineError', 'ParseError', 'ValidationError', 'DuplicateIdError', 'OrphanRecordError',
    'MissingFeatureError', 'IncompatibleSourcesError', 'GeneModelError',
    'ConfigurationError', 'MemoryError',
    'PipelineConfig', 'load_config'
]

#!/usr/bin/env python3

"""
Test suite for the transcript selection pipeline.

Unit tests covering:
- Annotation records, the gene model and its linking rules
- Configuration management and validation
- Parsers, gene-model resolution and coordinate translation
- Each filter, pass/fail partitioning and the end-to-end pipeline
"""

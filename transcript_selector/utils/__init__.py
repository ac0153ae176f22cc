#!/usr/bin/env python3

"""
Utilities for the transcript selection pipeline.
"""

from .performance_monitor import PerformanceMonitor, PerformanceMetrics

__all__ = ['PerformanceMonitor', 'PerformanceMetrics']

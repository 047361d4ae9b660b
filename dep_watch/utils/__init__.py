"""Utility functions and helpers for DepWatch."""

from .logging import setup_logging, get_logger
from .performance import PerformanceMonitor, benchmark
from .path_utils import find_dependency_files, DependencyFile

__all__ = [
    "setup_logging",
    "get_logger",
    "PerformanceMonitor",
    "benchmark",
    "find_dependency_files",
    "DependencyFile",
]

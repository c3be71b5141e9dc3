#!/usr/bin/env python3

"""
Core module for the transcript unification pipeline.

Contains data structures, exception types, configuration, parsing,
transcript assembly, the unified ID registry and output generation.
"""

from .data_structures import Record, Transcript, CanonicalKey, FileSummary
from .exceptions import (
    PipelineError, ParseError, UnsupportedVersionError, MissingAttributeError,
    FileAccessError, OutputExistsError, ProgramInvariantViolation,
    ConfigurationError, ManifestError, MemoryLimitError
)
from .config import UnificationConfig, load_config

__all__ = [
    'Record', 'Transcript', 'CanonicalKey', 'FileSummary',
    'PipelineError', 'ParseError', 'UnsupportedVersionError', 'MissingAttributeError',
    'FileAccessError', 'OutputExistsError', 'ProgramInvariantViolation',
    'ConfigurationError', 'ManifestError', 'MemoryLimitError',
    'UnificationConfig', 'load_config'
]

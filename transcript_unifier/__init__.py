#!/usr/bin/env python3

"""
Transcript Unification Pipeline

Assigns a stable identifier to each transcript structure so that
transcripts called independently in different samples, under arbitrary
sample-local names, can be recognised as the same transcript.

Input is an ordered list of GTF/GFF2 files; output is a copy of each file
with a `tuni_id "tuni_<n>";` attribute on every transcript line, identical
across files wherever the exon structure (chromosome, strand and exon
coordinates) is identical.

Modules:
- core: Data structures, parsing, assembly, registry, rewriting and the
  two-phase pipeline
- utils: Filesystem helpers and performance monitoring
- tests: Unit and end-to-end tests
"""

__version__ = "1.0.0"

from .core.data_structures import Record, Transcript, CanonicalKey, FileSummary
from .core.exceptions import (
    PipelineError, ParseError, UnsupportedVersionError, MissingAttributeError,
    FileAccessError, OutputExistsError, ProgramInvariantViolation,
    ConfigurationError, ManifestError, MemoryLimitError
)
from .core.config import UnificationConfig, load_config
from .core.registry import UnifiedIdRegistry
from .core.pipeline import TranscriptUnificationPipeline, PipelineState

__all__ = [
    # Main pipeline
    'TranscriptUnificationPipeline', 'PipelineState', 'UnifiedIdRegistry',
    # Data structures
    'Record', 'Transcript', 'CanonicalKey', 'FileSummary',
    # Exceptions
    'PipelineError', 'ParseError', 'UnsupportedVersionError', 'MissingAttributeError',
    'FileAccessError', 'OutputExistsError', 'ProgramInvariantViolation',
    'ConfigurationError', 'ManifestError', 'MemoryLimitError',
    # Configuration
    'UnificationConfig', 'load_config'
]

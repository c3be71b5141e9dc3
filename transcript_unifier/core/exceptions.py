#!/usr/bin/env python3

"""
Custom exceptions for the transcript unification pipeline.

Every error aborts the run; none of them is recovered per line or per file.
"""

class PipelineError(Exception):
    """Base exception for all pipeline-related errors."""
    pass


class ParseError(PipelineError):
    """Malformed column structure in an annotation line."""

    label = "Parse error"

    def __init__(self, message: str, filename: str = "", line_number: int = 0):
        super().__init__(message)
        self.filename = filename
        self.line_number = line_number

    def __str__(self):
        if self.filename and self.line_number:
            return f"{self.label} in {self.filename} at line {self.line_number}: {super().__str__()}"
        elif self.filename:
            return f"{self.label} in {self.filename}: {super().__str__()}"
        return super().__str__()


class UnsupportedVersionError(ParseError):
    """Attribute column uses GFF3 `key=value` syntax instead of GTF/GFF2."""

    label = "Unsupported annotation version"


class MissingAttributeError(ParseError):
    """Feature line that is not top-level lacks a transcript_id attribute."""

    label = "Missing attribute"

    def __init__(self, message: str, filename: str = "", line_number: int = 0,
                 attribute: str = "transcript_id"):
        super().__init__(message, filename, line_number)
        self.attribute = attribute


class FileAccessError(PipelineError):
    """Filesystem read or write failure."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path

    def __str__(self):
        if self.path:
            return f"File error for {self.path}: {super().__str__()}"
        return super().__str__()


class OutputExistsError(FileAccessError):
    """Output file already exists and overwriting is disabled."""
    pass


class ProgramInvariantViolation(PipelineError):
    """Internal inconsistency between pipeline phases. Indicates a bug."""

    def __str__(self):
        return f"Program invariant violated: {super().__str__()}"


class ConfigurationError(PipelineError):
    """Error in pipeline configuration."""
    pass


class ManifestError(PipelineError):
    """Input manifest is empty or lists unusable annotation files."""

    def __init__(self, message: str, manifest_path: str = ""):
        super().__init__(message)
        self.manifest_path = manifest_path

    def __str__(self):
        if self.manifest_path:
            return f"Manifest error in {self.manifest_path}: {super().__str__()}"
        return super().__str__()


class MemoryLimitError(PipelineError):
    """Memory usage exceeded limits."""

    def __init__(self, message: str, current_usage: float, limit: float):
        super().__init__(message)
        self.current_usage = current_usage
        self.limit = limit

    def __str__(self):
        return f"Memory error: {super().__str__()} (current: {self.current_usage:.1f}MB, limit: {self.limit:.1f}MB)"

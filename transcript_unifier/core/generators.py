#!/usr/bin/env python3

"""
Output generation: re-emits annotation files with the unified identifier
attribute appended to every transcript line.
"""

import logging
import os
import re
from pathlib import Path
from typing import Union

from .data_structures import FileSummary
from .exceptions import OutputExistsError, ProgramInvariantViolation
from .parsers import AnnotationParser, open_annotation, split_line_ending
from .registry import UnifiedIdRegistry

DEFAULT_ATTRIBUTE_NAME = "tuni_id"


def _attribute_pattern(attribute_name: str) -> 're.Pattern':
    return re.compile(
        r'\s*(?<![^\s;])' + re.escape(attribute_name) + r'\s+(?:"[^"]*"|[^\s";]+)\s*;?'
    )


def append_attribute(line: str, attribute_name: str, value: str) -> str:
    """
    Append `name "value";` to the attribute column of a raw GTF line.

    An existing attribute of the same name is removed first. The line
    terminator is kept as it was.
    """
    text, ending = split_line_ending(line)
    columns = text.split('\t')
    attributes = _attribute_pattern(attribute_name).sub('', columns[-1]).rstrip()

    if attributes in ('', '.'):
        attributes = f'{attribute_name} "{value}";'
    else:
        if not attributes.endswith(';'):
            attributes += ';'
        attributes = f'{attributes} {attribute_name} "{value}";'

    columns[-1] = attributes
    return '\t'.join(columns) + ending


class UnifiedAnnotationWriter:
    """Rewrite one input file against a frozen registry."""

    def __init__(self, registry: UnifiedIdRegistry,
                 attribute_name: str = DEFAULT_ATTRIBUTE_NAME,
                 overwrite: bool = True):
        self.registry = registry
        self.attribute_name = attribute_name
        self.overwrite = overwrite

    def write(self, summary: FileSummary, output_path: Union[str, Path]) -> int:
        """
        Write the unified copy of summary.path to output_path.

        The file is re-read rather than kept from key discovery. Output goes
        to a temporary sibling first and is renamed into place on success.

        Returns:
            Number of lines written
        """
        if not self.registry.frozen:
            raise ProgramInvariantViolation("rewriting started before the registry was frozen")

        output_path = Path(output_path)
        if output_path.exists() and not self.overwrite:
            raise OutputExistsError("output file already exists and overwriting is disabled",
                                    str(output_path))

        logging.info(f"Writing {output_path}")
        temp_path = output_path.with_name(f".{output_path.name}.partial")
        try:
            line_count = self._write_lines(summary, temp_path)
            if line_count != summary.line_count:
                raise ProgramInvariantViolation(
                    f"{summary.path} had {summary.line_count} lines during key discovery "
                    f"but {line_count} during rewriting"
                )
            os.replace(temp_path, output_path)
        finally:
            if temp_path.exists():
                temp_path.unlink()

        return line_count

    def _write_lines(self, summary: FileSummary, temp_path: Path) -> int:
        parser = AnnotationParser(str(summary.path))
        labels = {}
        line_count = 0

        with open_annotation(temp_path, 'w') as out:
            for line_index, line, record in parser.iter_records(summary.path):
                line_count += 1
                transcript_id = record.transcript_id if record is not None else None
                if transcript_id is None:
                    out.write(line)
                    continue

                label = labels.get(transcript_id)
                if label is None:
                    key = summary.key_for(transcript_id)
                    if key is None:
                        raise ProgramInvariantViolation(
                            f"{summary.path}:{line_index + 1}: transcript_id {transcript_id!r} "
                            f"was not seen during key discovery"
                        )
                    label = self.registry.format_id(self.registry.lookup(key))
                    labels[transcript_id] = label

                out.write(append_attribute(line, self.attribute_name, label))

        return line_count

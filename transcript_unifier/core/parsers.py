#!/usr/bin/env python3

"""
GTF/GFF2 annotation parsing.

Turns raw lines into Records and rejects GFF3-style `key=value`
attribute columns.
"""

import logging
import re
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple, Union

from .data_structures import Record
from .exceptions import ParseError, UnsupportedVersionError

GTF_COLUMN_COUNT = 9

# Encoding used for every annotation read/write; round-trips arbitrary bytes.
ANNOTATION_ENCODING = 'utf-8'
ANNOTATION_ERRORS = 'surrogateescape'

_GTF_ATTRIBUTE = re.compile(
    r'\s*(?P<key>[^\s";=]+)\s+(?:"(?P<quoted>[^"]*)"|(?P<bare>[^\s";]+))\s*(?:;|$)'
)
_GFF3_ATTRIBUTE = re.compile(r'\s*[^\s";=]+\s*=')
_EMPTY_FIELD = re.compile(r'\s*;')


def split_line_ending(line: str) -> Tuple[str, str]:
    """Split a line into its text and its original terminator."""
    if line.endswith('\r\n'):
        return line[:-2], '\r\n'
    if line.endswith('\n') or line.endswith('\r'):
        return line[:-1], line[-1]
    return line, ''


def is_skippable(text: str) -> bool:
    """Blank and comment lines carry no record."""
    return not text.strip() or text.startswith('#')


def open_annotation(path: Union[str, Path], mode: str = 'r'):
    """Open an annotation file preserving line terminators verbatim."""
    return open(path, mode, encoding=ANNOTATION_ENCODING,
                errors=ANNOTATION_ERRORS, newline='')


def parse_attributes(attr_string: str, filename: str = "",
                     line_number: int = 0) -> Dict[str, str]:
    """
    Parse a GTF/GFF2 attribute column into an ordered dictionary.

    The first value of a repeated key is kept; the raw column is what gets
    re-emitted, so repeats are never lost from output.
    """
    attributes: Dict[str, str] = {}
    text = attr_string.strip()
    if text in ('', '.'):
        return attributes

    pos = 0
    length = len(text)
    while pos < length:
        empty = _EMPTY_FIELD.match(text, pos)
        if empty:
            pos = empty.end()
            continue

        match = _GTF_ATTRIBUTE.match(text, pos)
        if not match:
            if _GFF3_ATTRIBUTE.match(text, pos):
                raise UnsupportedVersionError(
                    f"GFF3 'key=value' attributes are not supported, expected 'key \"value\";' "
                    f"(found {text[pos:pos + 40].strip()!r})",
                    filename, line_number
                )
            raise ParseError(
                f"Malformed attribute column near {text[pos:pos + 40].strip()!r}",
                filename, line_number
            )

        value = match.group('quoted')
        if value is None:
            value = match.group('bare')
        attributes.setdefault(match.group('key'), value)
        pos = match.end()

    return attributes


class AnnotationParser:
    """Parse GTF/GFF2 lines into Records."""

    def __init__(self, filename: str = ""):
        self.filename = filename
        self.record_count = 0
        self.skipped_count = 0

    def parse_line(self, line: str, line_number: int = 0) -> Optional[Record]:
        """
        Parse one raw line.

        Args:
            line: Line text, with or without its terminator
            line_number: 1-based line number used in error messages

        Returns:
            The Record, or None for blank and comment lines
        """
        text, _ = split_line_ending(line)
        if is_skippable(text):
            self.skipped_count += 1
            return None

        parts = text.split('\t')
        if len(parts) != GTF_COLUMN_COUNT:
            raise ParseError(
                f"Expected {GTF_COLUMN_COUNT} tab-separated columns, found {len(parts)}",
                self.filename, line_number
            )

        seqname, source, feature, start, end, score, strand, frame, attributes = parts

        try:
            start, end = int(start), int(end)
        except ValueError:
            raise ParseError(f"Non-integer coordinates: {start!r}-{end!r}",
                             self.filename, line_number)

        if start < 1 or end < start:
            raise ParseError(f"Invalid coordinates: {start}-{end}",
                             self.filename, line_number)

        record = Record(
            seqname=seqname,
            source=source,
            feature=feature,
            start=start,
            end=end,
            score=score,
            strand=strand,
            frame=frame,
            attributes=parse_attributes(attributes, self.filename, line_number),
            raw=text,
        )
        self.record_count += 1
        return record

    def iter_records(self, file_path: Union[str, Path]) -> Iterator[Tuple[int, str, Optional[Record]]]:
        """
        Stream a file as (line_index, raw_line, record) triples.

        raw_line keeps its terminator. record is None for skipped lines.
        Nothing beyond the current line is held in memory.
        """
        logging.debug(f"Reading annotation file: {file_path}")
        with open_annotation(file_path) as handle:
            for line_index, line in enumerate(handle):
                yield line_index, line, self.parse_line(line, line_index + 1)

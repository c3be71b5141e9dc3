#!/usr/bin/env python3

"""
Core data structures for the transcript unification pipeline.

Defines the parsed annotation record, the per-file transcript aggregate,
the structural key that identifies a transcript across samples, and the
per-file summary carried from key discovery into rewriting.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

Interval = Tuple[int, int]


@dataclass(frozen=True, eq=False)
class Record:
    """One parsed GTF/GFF2 line. Compared and hashed by identity."""
    seqname: str
    source: str
    feature: str
    start: int
    end: int
    score: str
    strand: str
    frame: str
    attributes: Dict[str, str]
    raw: str = ""

    @property
    def transcript_id(self) -> Optional[str]:
        """Sample-local transcript identifier, if the line has one."""
        return self.attributes.get('transcript_id')

    @property
    def is_exon(self) -> bool:
        return self.feature == 'exon'

    @property
    def is_cds(self) -> bool:
        return self.feature == 'CDS'

    @property
    def interval(self) -> Interval:
        return (self.start, self.end)


@dataclass
class Transcript:
    """All records of one file sharing a transcript_id."""
    transcript_id: str
    seqname: str
    strand: str
    exons: List[Interval] = field(default_factory=list)
    cds: List[Interval] = field(default_factory=list)
    line_indices: List[int] = field(default_factory=list)

    def __post_init__(self):
        """Validate transcript data after initialization."""
        if not self.transcript_id:
            raise ValueError("Transcript ID cannot be empty")

    @property
    def exon_count(self) -> int:
        """Get number of exons."""
        return len(self.exons)

    @property
    def line_count(self) -> int:
        """Get number of lines belonging to this transcript."""
        return len(self.line_indices)

    def add_record(self, record: Record, line_index: int) -> None:
        """Attach a record's line and, for exon/CDS lines, its coordinates."""
        self.line_indices.append(line_index)
        if record.is_exon:
            self.exons.append(record.interval)
        elif record.is_cds:
            self.cds.append(record.interval)


@dataclass(frozen=True)
class CanonicalKey:
    """
    Structural identity of a transcript.

    Two transcripts are the same transcript if and only if their keys are
    equal. Interval tuples are sorted by (start, end) and keep duplicates.
    """
    seqname: str
    strand: str
    exons: Tuple[Interval, ...] = ()
    cds: Tuple[Interval, ...] = ()

    @property
    def is_bare(self) -> bool:
        """True for transcripts called without any exon lines."""
        return not self.exons

    def exon_chain(self) -> str:
        """Render exons as `start-end,start-end` for reports."""
        return ",".join(f"{start}-{end}" for start, end in self.exons)


@dataclass
class FileSummary:
    """Per-file result of key discovery, retained until the file is rewritten."""
    path: Path
    line_count: int = 0
    transcript_lines: int = 0
    transcript_keys: Dict[str, CanonicalKey] = field(default_factory=dict)

    @property
    def transcript_count(self) -> int:
        return len(self.transcript_keys)

    def ordered_keys(self) -> List[CanonicalKey]:
        """Keys in first-appearance order of their transcripts."""
        return list(self.transcript_keys.values())

    def key_for(self, transcript_id: str) -> Optional[CanonicalKey]:
        return self.transcript_keys.get(transcript_id)

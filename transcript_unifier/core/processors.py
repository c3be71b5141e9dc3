#!/usr/bin/env python3

"""
Processing classes for transcript assembly and structural key construction.
"""

import logging
from typing import Dict, Iterable, Iterator, Optional

from .config import DEFAULT_TOP_LEVEL_FEATURES
from .data_structures import CanonicalKey, Interval, Record, Transcript
from .exceptions import MissingAttributeError


class TranscriptAssembler:
    """Group one file's records by sample-local transcript_id."""

    def __init__(self, filename: str = "",
                 top_level_features: Optional[Iterable[str]] = None):
        self.filename = filename
        if top_level_features is None:
            top_level_features = DEFAULT_TOP_LEVEL_FEATURES
        self.top_level_features = frozenset(top_level_features)
        # dicts keep insertion order, which is first appearance in the file
        self._transcripts: Dict[str, Transcript] = {}
        self.ungrouped_count = 0

    def add(self, record: Record, line_index: int) -> Optional[Transcript]:
        """
        Attach a record to its transcript.

        Returns the transcript the record joined, or None for top-level
        features without a transcript_id.
        """
        transcript_id = record.transcript_id
        if transcript_id is None:
            if record.feature in self.top_level_features:
                self.ungrouped_count += 1
                return None
            raise MissingAttributeError(
                f"'{record.feature}' feature has no transcript_id attribute",
                self.filename, line_index + 1
            )

        transcript = self._transcripts.get(transcript_id)
        if transcript is None:
            transcript = Transcript(
                transcript_id=transcript_id,
                seqname=record.seqname,
                strand=record.strand,
            )
            self._transcripts[transcript_id] = transcript
        elif record.seqname != transcript.seqname or record.strand != transcript.strand:
            logging.warning(
                f"{self.filename}:{line_index + 1}: transcript {transcript_id} located on "
                f"{transcript.seqname}({transcript.strand}) but line is on "
                f"{record.seqname}({record.strand}); keeping first location"
            )

        transcript.add_record(record, line_index)
        return transcript

    def transcripts(self) -> Iterator[Transcript]:
        """Yield transcripts in first-appearance order."""
        return iter(self._transcripts.values())

    def __len__(self) -> int:
        return len(self._transcripts)


def _sorted_intervals(intervals: Iterable[Interval]) -> tuple:
    return tuple(sorted(intervals))


def build_canonical_key(transcript: Transcript, include_cds: bool = False) -> CanonicalKey:
    """
    Derive the structural fingerprint of a transcript.

    Exons are sorted by start, then end, so the key does not depend on the
    order lines appeared in. CDS intervals only contribute when include_cds
    is set.
    """
    return CanonicalKey(
        seqname=transcript.seqname,
        strand=transcript.strand,
        exons=_sorted_intervals(transcript.exons),
        cds=_sorted_intervals(transcript.cds) if include_cds else (),
    )


def build_canonical_keys(transcripts: Iterable[Transcript],
                         include_cds: bool = False) -> Dict[str, CanonicalKey]:
    """Map transcript_id to key, preserving the order of the input."""
    return {
        transcript.transcript_id: build_canonical_key(transcript, include_cds)
        for transcript in transcripts
    }


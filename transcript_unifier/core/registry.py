#!/usr/bin/env python3

"""
Unified identifier registry.

Maps each distinct CanonicalKey to a zero-based integer in first-seen
order. Mutable while keys are being discovered, read-only once frozen.
"""

import logging
import threading
from typing import Dict, Iterable, Iterator, List, Tuple

from .data_structures import CanonicalKey, FileSummary
from .exceptions import ProgramInvariantViolation

DEFAULT_ID_PREFIX = "tuni_"


class UnifiedIdRegistry:
    """Process-wide CanonicalKey -> unified identifier mapping for one run."""

    def __init__(self, id_prefix: str = DEFAULT_ID_PREFIX):
        self.id_prefix = id_prefix
        self._ids: Dict[CanonicalKey, int] = {}
        self._occurrences: List[int] = []
        self._frozen = False
        self._lock = threading.Lock()

    @property
    def frozen(self) -> bool:
        return self._frozen

    def resolve(self, key: CanonicalKey) -> int:
        """
        Return the identifier for a key, assigning the next one on first sight.

        Once frozen, unseen keys raise ProgramInvariantViolation: they mean
        the rewriting phase saw a transcript that key discovery did not.
        """
        if self._frozen:
            return self.lookup(key)

        with self._lock:
            unified_id = self._ids.get(key)
            if unified_id is None:
                unified_id = len(self._ids)
                self._ids[key] = unified_id
                self._occurrences.append(0)
            self._occurrences[unified_id] += 1
            return unified_id

    def lookup(self, key: CanonicalKey) -> int:
        """Read-only resolution."""
        try:
            return self._ids[key]
        except KeyError:
            raise ProgramInvariantViolation(
                f"transcript structure {key.seqname}({key.strand}) "
                f"[{key.exon_chain()}] was not registered during key discovery"
            )

    def register_file(self, summary: FileSummary) -> List[int]:
        """Resolve every key of one file in its transcripts' appearance order."""
        return [self.resolve(key) for key in summary.ordered_keys()]

    def register_files(self, summaries: Iterable[FileSummary]) -> None:
        """Fold per-file results in the given (manifest) order."""
        for summary in summaries:
            before = len(self)
            self.register_file(summary)
            logging.info(f"{summary.path}: {summary.transcript_count} transcripts, "
                         f"{len(self) - before} new unified IDs")

    def freeze(self) -> None:
        """Forbid further assignments."""
        self._frozen = True
        logging.info(f"Registry frozen with {len(self)} unified IDs")

    def format_id(self, unified_id: int) -> str:
        return f"{self.id_prefix}{unified_id}"

    def occurrences(self, unified_id: int) -> int:
        """Number of transcripts, across all files, that resolved to an ID."""
        return self._occurrences[unified_id]

    def items(self) -> Iterator[Tuple[CanonicalKey, int]]:
        """(key, id) pairs in assignment order."""
        return iter(self._ids.items())

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, key: CanonicalKey) -> bool:
        return key in self._ids

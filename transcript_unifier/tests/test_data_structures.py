#!/usr/bin/env python3

"""
Unit tests for core data structures.

Tests the fundamental data classes and their methods for correctness
and error handling.
"""

import unittest
import sys
import os
from pathlib import Path

# Add the parent directory to the path to import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from transcript_unifier.core.data_structures import CanonicalKey, FileSummary, Record, Transcript


def make_record(feature, start, end, attributes=None):
    return Record(seqname="chr1", source="test", feature=feature, start=start, end=end,
                  score=".", strand="+", frame=".", attributes=attributes or {})


class TestRecord(unittest.TestCase):
    """Test the Record data structure."""

    def test_properties(self):
        record = make_record("exon", 10, 20, {"transcript_id": "A"})
        self.assertEqual(record.transcript_id, "A")
        self.assertTrue(record.is_exon)
        self.assertFalse(record.is_cds)
        self.assertEqual(record.interval, (10, 20))

    def test_no_transcript_id(self):
        record = make_record("gene", 1, 100, {"gene_id": "g1"})
        self.assertIsNone(record.transcript_id)

    def test_hashable(self):
        """Test records can be used in sets despite holding an attribute dict."""
        first = make_record("exon", 1, 40, {"transcript_id": "A"})
        second = make_record("exon", 1, 40, {"transcript_id": "A"})

        self.assertIsInstance(hash(first), int)
        self.assertEqual(len({first, second, first}), 2)

    def test_cds_feature(self):
        self.assertTrue(make_record("CDS", 1, 3).is_cds)
        # Feature names are case-sensitive
        self.assertFalse(make_record("cds", 1, 3).is_cds)
        self.assertFalse(make_record("Exon", 1, 3).is_exon)


class TestTranscript(unittest.TestCase):
    """Test the Transcript data structure."""

    def test_empty_id_rejected(self):
        """Test that an empty transcript_id raises ValueError."""
        with self.assertRaises(ValueError):
            Transcript(transcript_id="", seqname="chr1", strand="+")

    def test_add_record(self):
        """Test only exon and CDS coordinates are collected."""
        transcript = Transcript(transcript_id="A", seqname="chr1", strand="+")
        transcript.add_record(make_record("transcript", 1, 100), 0)
        transcript.add_record(make_record("exon", 1, 40), 1)
        transcript.add_record(make_record("CDS", 10, 40), 2)
        transcript.add_record(make_record("start_codon", 10, 12), 3)
        transcript.add_record(make_record("exon", 50, 100), 4)

        self.assertEqual(transcript.exons, [(1, 40), (50, 100)])
        self.assertEqual(transcript.cds, [(10, 40)])
        self.assertEqual(transcript.exon_count, 2)
        self.assertEqual(transcript.line_count, 5)
        self.assertEqual(transcript.line_indices, [0, 1, 2, 3, 4])


class TestCanonicalKey(unittest.TestCase):
    """Test the CanonicalKey data structure."""

    def test_value_equality(self):
        """Test keys compare and hash by value."""
        first = CanonicalKey("chr1", "+", ((1, 40), (50, 100)))
        second = CanonicalKey("chr1", "+", ((1, 40), (50, 100)))

        self.assertEqual(first, second)
        self.assertEqual(len({first, second}), 1)

    def test_cds_part_of_identity(self):
        self.assertNotEqual(CanonicalKey("chr1", "+", ((1, 40),), ((5, 30),)),
                            CanonicalKey("chr1", "+", ((1, 40),)))

    def test_immutable(self):
        key = CanonicalKey("chr1", "+")
        with self.assertRaises(AttributeError):
            key.strand = "-"

    def test_exon_chain(self):
        self.assertEqual(CanonicalKey("chr1", "+", ((1, 40), (50, 100))).exon_chain(), "1-40,50-100")
        self.assertEqual(CanonicalKey("chr1", "+").exon_chain(), "")
        self.assertTrue(CanonicalKey("chr1", "+").is_bare)


class TestFileSummary(unittest.TestCase):
    """Test the FileSummary data structure."""

    def test_accessors(self):
        key_a = CanonicalKey("chr1", "+", ((1, 40),))
        key_b = CanonicalKey("chr1", "-", ((1, 40),))
        summary = FileSummary(Path("s.gtf"), line_count=10, transcript_lines=6,
                              transcript_keys={"B": key_b, "A": key_a})

        self.assertEqual(summary.transcript_count, 2)
        self.assertEqual(summary.ordered_keys(), [key_b, key_a])
        self.assertEqual(summary.key_for("A"), key_a)
        self.assertIsNone(summary.key_for("missing"))


if __name__ == '__main__':
    unittest.main()

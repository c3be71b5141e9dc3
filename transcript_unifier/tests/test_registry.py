#!/usr/bin/env python3

"""
Unit tests for the unified ID registry.
"""

import unittest
import os
import sys
from pathlib import Path

# Add the parent directory to the path to import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from transcript_unifier.core.data_structures import CanonicalKey, FileSummary
from transcript_unifier.core.exceptions import ProgramInvariantViolation
from transcript_unifier.core.registry import UnifiedIdRegistry


KEY_A = CanonicalKey("chr1", "+", ((1, 40), (50, 100)))
KEY_B = CanonicalKey("chr1", "+", ((1, 40), (60, 100)))
KEY_C = CanonicalKey("chr2", "-", ((5, 10),))


class TestUnifiedIdRegistry(unittest.TestCase):
    """Test identifier assignment and freezing."""

    def test_sequential_from_zero(self):
        """Test IDs are consecutive integers in first-seen order."""
        registry = UnifiedIdRegistry()
        self.assertEqual(registry.resolve(KEY_B), 0)
        self.assertEqual(registry.resolve(KEY_A), 1)
        self.assertEqual(registry.resolve(KEY_C), 2)
        self.assertEqual(len(registry), 3)

    def test_equal_keys_share_id(self):
        """Test value-equal keys built separately resolve to the same ID."""
        registry = UnifiedIdRegistry()
        first = registry.resolve(KEY_A)
        registry.resolve(KEY_B)
        again = registry.resolve(CanonicalKey("chr1", "+", ((1, 40), (50, 100))))

        self.assertEqual(first, again)
        self.assertEqual(len(registry), 2)
        self.assertEqual(registry.occurrences(first), 2)

    def test_format_id(self):
        self.assertEqual(UnifiedIdRegistry().format_id(0), "tuni_0")
        self.assertEqual(UnifiedIdRegistry(id_prefix="TU").format_id(12), "TU12")

    def test_frozen_registry_is_read_only(self):
        """Test known keys still resolve after freezing and nothing new is assigned."""
        registry = UnifiedIdRegistry()
        registry.resolve(KEY_A)
        registry.freeze()

        self.assertTrue(registry.frozen)
        self.assertEqual(registry.resolve(KEY_A), 0)
        self.assertEqual(registry.occurrences(0), 1)

        with self.assertRaises(ProgramInvariantViolation):
            registry.resolve(KEY_B)
        self.assertEqual(len(registry), 1)
        self.assertNotIn(KEY_B, registry)

    def test_lookup_unseen_key(self):
        """Test read-only lookup fails fast on unseen keys."""
        registry = UnifiedIdRegistry()
        with self.assertRaises(ProgramInvariantViolation) as ctx:
            registry.lookup(KEY_C)
        self.assertIn("chr2(-)", str(ctx.exception))

    def test_register_files_in_order(self):
        """Test folding file summaries follows file order, then in-file order."""
        first = FileSummary(Path("s1.gtf"), transcript_keys={"t1": KEY_B, "t2": KEY_A})
        second = FileSummary(Path("s2.gtf"), transcript_keys={"x": KEY_A, "y": KEY_C})

        registry = UnifiedIdRegistry()
        registry.register_files([first, second])

        self.assertEqual(list(registry.items()), [(KEY_B, 0), (KEY_A, 1), (KEY_C, 2)])

    def test_determinism(self):
        """Test identical input order gives identical assignments."""
        summaries = [
            FileSummary(Path("s1.gtf"), transcript_keys={"t1": KEY_C, "t2": KEY_A}),
            FileSummary(Path("s2.gtf"), transcript_keys={"t1": KEY_B, "t2": KEY_C}),
        ]

        runs = []
        for _ in range(3):
            registry = UnifiedIdRegistry()
            registry.register_files(summaries)
            runs.append(list(registry.items()))

        self.assertEqual(runs[0], runs[1])
        self.assertEqual(runs[1], runs[2])

    def test_register_file_returns_ids(self):
        summary = FileSummary(Path("s1.gtf"), transcript_keys={"a": KEY_A, "b": KEY_A, "c": KEY_C})
        self.assertEqual(UnifiedIdRegistry().register_file(summary), [0, 0, 1])


if __name__ == '__main__':
    unittest.main()

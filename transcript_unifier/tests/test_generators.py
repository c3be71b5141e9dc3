#!/usr/bin/env python3

"""
Unit tests for rewriting annotation files with unified IDs.
"""

import unittest
import tempfile
import os
import sys
from pathlib import Path

# Add the parent directory to the path to import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from transcript_unifier.core.data_structures import CanonicalKey, FileSummary
from transcript_unifier.core.exceptions import OutputExistsError, ProgramInvariantViolation
from transcript_unifier.core.generators import UnifiedAnnotationWriter, append_attribute
from transcript_unifier.core.registry import UnifiedIdRegistry


SAMPLE = (
    "#!genome-build test\n"
    'chr1\ttest\tgene\t1\t100\t.\t+\t.\tgene_id "g1";\n'
    'chr1\ttest\ttranscript\t1\t100\t.\t+\t.\tgene_id "g1"; transcript_id "A";\n'
    'chr1\ttest\texon\t1\t40\t.\t+\t.\tgene_id "g1"; transcript_id "A"; exon_number "1";\n'
    'chr1\ttest\texon\t50\t100\t.\t+\t.\tgene_id "g1"; transcript_id "A"; exon_number "2";\n'
)
KEY_A = CanonicalKey("chr1", "+", ((1, 40), (50, 100)))


class TestAppendAttribute(unittest.TestCase):
    """Test the single-line attribute rewrite."""

    def test_appends_after_attributes(self):
        line = 'chr1\tt\texon\t1\t2\t.\t+\t.\ttranscript_id "A";\n'
        self.assertEqual(
            append_attribute(line, "tuni_id", "tuni_0"),
            'chr1\tt\texon\t1\t2\t.\t+\t.\ttranscript_id "A"; tuni_id "tuni_0";\n'
        )

    def test_adds_missing_semicolon(self):
        line = 'chr1\tt\texon\t1\t2\t.\t+\t.\ttranscript_id "A"'
        self.assertEqual(
            append_attribute(line, "tuni_id", "tuni_3"),
            'chr1\tt\texon\t1\t2\t.\t+\t.\ttranscript_id "A"; tuni_id "tuni_3";'
        )

    def test_keeps_crlf(self):
        line = 'chr1\tt\texon\t1\t2\t.\t+\t.\ttranscript_id "A";\r\n'
        self.assertTrue(append_attribute(line, "tuni_id", "tuni_0").endswith('"tuni_0";\r\n'))

    def test_replaces_existing_attribute(self):
        """Test rewriting an already unified line does not stack attributes."""
        line = 'chr1\tt\texon\t1\t2\t.\t+\t.\ttranscript_id "A"; tuni_id "tuni_9";\n'
        self.assertEqual(
            append_attribute(line, "tuni_id", "tuni_0"),
            'chr1\tt\texon\t1\t2\t.\t+\t.\ttranscript_id "A"; tuni_id "tuni_0";\n'
        )

    def test_similar_attribute_names_untouched(self):
        line = 'chr1\tt\texon\t1\t2\t.\t+\t.\told_tuni_id "x"; transcript_id "A";\n'
        self.assertIn('old_tuni_id "x";', append_attribute(line, "tuni_id", "tuni_0"))


class TestUnifiedAnnotationWriter(unittest.TestCase):
    """Test whole-file rewriting."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.tmp_path = Path(self.tmp.name)
        self.input_path = self.tmp_path / "sample_1.gtf"
        self.input_path.write_text(SAMPLE)
        self.output_path = self.tmp_path / "sample_1.tuni.gtf"

        self.summary = FileSummary(self.input_path, line_count=5, transcript_lines=3,
                                   transcript_keys={"A": KEY_A})
        self.registry = UnifiedIdRegistry()
        self.registry.resolve(KEY_A)
        self.registry.freeze()

    def tearDown(self):
        self.tmp.cleanup()

    def test_write(self):
        """Test only transcript lines gain the attribute and order is kept."""
        writer = UnifiedAnnotationWriter(self.registry)
        count = writer.write(self.summary, self.output_path)

        self.assertEqual(count, 5)
        input_lines = SAMPLE.splitlines()
        output_lines = self.output_path.read_text().splitlines()
        self.assertEqual(len(output_lines), len(input_lines))

        # Comment and gene lines are byte-identical
        self.assertEqual(output_lines[0], input_lines[0])
        self.assertEqual(output_lines[1], input_lines[1])

        for original, rewritten in zip(input_lines[2:], output_lines[2:]):
            self.assertEqual(rewritten, original + ' tuni_id "tuni_0";')

        # No temporary file left behind
        self.assertEqual(sorted(p.name for p in self.tmp_path.iterdir()),
                         ["sample_1.gtf", "sample_1.tuni.gtf"])

    def test_requires_frozen_registry(self):
        registry = UnifiedIdRegistry()
        registry.resolve(KEY_A)
        with self.assertRaises(ProgramInvariantViolation):
            UnifiedAnnotationWriter(registry).write(self.summary, self.output_path)
        self.assertFalse(self.output_path.exists())

    def test_unknown_transcript_is_fatal(self):
        """Test a transcript missing from the summary signals desync."""
        summary = FileSummary(self.input_path, line_count=5, transcript_keys={"B": KEY_A})
        with self.assertRaises(ProgramInvariantViolation):
            UnifiedAnnotationWriter(self.registry).write(summary, self.output_path)
        self.assertFalse(self.output_path.exists())
        self.assertEqual([p.name for p in self.tmp_path.iterdir()], ["sample_1.gtf"])

    def test_changed_line_count_is_fatal(self):
        summary = FileSummary(self.input_path, line_count=4, transcript_keys={"A": KEY_A})
        with self.assertRaises(ProgramInvariantViolation):
            UnifiedAnnotationWriter(self.registry).write(summary, self.output_path)
        self.assertFalse(self.output_path.exists())

    def test_refuse_overwrite(self):
        """Test existing outputs are kept when overwriting is disabled."""
        self.output_path.write_text("keep me\n")
        writer = UnifiedAnnotationWriter(self.registry, overwrite=False)

        with self.assertRaises(OutputExistsError):
            writer.write(self.summary, self.output_path)
        self.assertEqual(self.output_path.read_text(), "keep me\n")

    def test_overwrite_allowed_by_default(self):
        self.output_path.write_text("old\n")
        UnifiedAnnotationWriter(self.registry).write(self.summary, self.output_path)
        self.assertIn('tuni_id "tuni_0";', self.output_path.read_text())

    def test_custom_attribute_name(self):
        UnifiedAnnotationWriter(self.registry, attribute_name="unified_id").write(
            self.summary, self.output_path)
        self.assertIn('unified_id "tuni_0";', self.output_path.read_text())


if __name__ == '__main__':
    unittest.main()

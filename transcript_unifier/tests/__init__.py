#!/usr/bin/env python3

"""
Test suite for the transcript unification pipeline.

Unit tests covering:
- Record parsing and GFF3 rejection
- Transcript assembly and canonical keys
- Unified ID registry determinism and freezing
- Output rewriting and idempotence
- Configuration and manifest handling
- End-to-end runs over multiple sample files
"""

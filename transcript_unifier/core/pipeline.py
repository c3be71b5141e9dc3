#!/usr/bin/env python3

"""
Main pipeline class for transcript unification.

Runs in two phases across all input files:

1. Key discovery: every file is parsed, its transcripts assembled and
   their structural keys computed. Keys are folded into the registry in
   manifest order, then the registry is frozen.
2. Rewriting: every file is re-read and written out with the unified
   identifier appended to each transcript line.

No output file is written until every input has been read, since a
structure first seen in a later file must still get the same identifier
as in every earlier file.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, TypeVar, Union

from .config import UnificationConfig
from .data_structures import FileSummary
from .exceptions import OutputExistsError, ProgramInvariantViolation
from .generators import UnifiedAnnotationWriter
from .parsers import AnnotationParser
from .processors import TranscriptAssembler, build_canonical_keys
from .registry import UnifiedIdRegistry
from ..utils.file_io import (
    check_output_collisions, output_path_for, read_manifest, with_io_retries
)
from ..utils.performance_monitor import PerformanceMonitor

T = TypeVar('T')
R = TypeVar('R')

PathLike = Union[str, Path]


class PipelineState(Enum):
    INITIALIZED = "initialized"
    DISCOVERING_KEYS = "discovering_keys"
    REGISTRY_FROZEN = "registry_frozen"
    REWRITING = "rewriting"
    DONE = "done"
    FAILED = "failed"


_ALLOWED_TRANSITIONS = {
    PipelineState.INITIALIZED: {PipelineState.DISCOVERING_KEYS},
    PipelineState.DISCOVERING_KEYS: {PipelineState.REGISTRY_FROZEN},
    PipelineState.REGISTRY_FROZEN: {PipelineState.REWRITING},
    PipelineState.REWRITING: {PipelineState.DONE},
    PipelineState.DONE: set(),
    PipelineState.FAILED: set(),
}


class TranscriptUnificationPipeline:
    """Main pipeline class that coordinates both phases."""

    def __init__(self, config: Optional[UnificationConfig] = None):
        self.config = config or UnificationConfig()
        self.monitor = PerformanceMonitor(
            memory_limit_mb=self.config.memory_limit_mb,
            enabled=self.config.enable_memory_monitoring,
        )
        self.registry = UnifiedIdRegistry(id_prefix=self.config.id_prefix)
        self.state = PipelineState.INITIALIZED
        self.summaries: List[FileSummary] = []
        self.output_paths: List[Path] = []
        self.mapping_path: Optional[Path] = None

    def run(self, input_paths: Iterable[PathLike], output_dir: PathLike) -> List[Path]:
        """
        Run the complete unification pipeline.

        Args:
            input_paths: Annotation files in manifest order
            output_dir: Directory receiving `<stem>.tuni.<ext>` files

        Returns:
            Output file paths, in input order
        """
        if self.state is not PipelineState.INITIALIZED:
            raise ProgramInvariantViolation(
                f"pipeline can only be run once (current state: {self.state.value})"
            )

        input_paths = [Path(p) for p in input_paths]
        output_dir = Path(output_dir)
        log_handler = self._setup_pipeline_logging()

        try:
            logging.info("Starting transcript unification pipeline")
            logging.info(f"Configuration: {self.config}")
            logging.info(f"Input files: {len(input_paths)}")
            logging.info(f"Output directory: {output_dir}")

            check_output_collisions(input_paths, output_dir, self.config.output_tag)

            # Phase 1: discover structural keys, no output written
            self._transition(PipelineState.DISCOVERING_KEYS)
            self._discover_keys(input_paths)

            self._transition(PipelineState.REGISTRY_FROZEN)
            self.registry.freeze()

            # Phase 2: rewrite against the frozen registry
            self._check_existing_outputs(output_dir)
            self._transition(PipelineState.REWRITING)
            self._rewrite_files(output_dir)

            if self.config.write_mapping:
                self.mapping_path = self.write_mapping_table(
                    output_dir / f"{self.config.output_tag}_mapping.tsv"
                )

            self._transition(PipelineState.DONE)
            self._log_statistics()
            self.monitor.log_performance_report()
            logging.info("Pipeline completed successfully")

            return list(self.output_paths)

        except Exception as e:
            failed_in = self.state
            self.state = PipelineState.FAILED
            logging.error(f"Pipeline failed during {failed_in.value}: {e}")
            logging.debug("Full traceback:", exc_info=True)
            raise

        finally:
            if log_handler is not None:
                logging.getLogger().removeHandler(log_handler)
                log_handler.close()

    def run_manifest(self, manifest_path: PathLike, output_dir: PathLike) -> List[Path]:
        """Read the manifest and run on the files it lists."""
        _, input_paths = read_manifest(manifest_path)
        return self.run(input_paths, output_dir)

    def _transition(self, new_state: PipelineState) -> None:
        if new_state not in _ALLOWED_TRANSITIONS[self.state]:
            raise ProgramInvariantViolation(
                f"illegal pipeline transition {self.state.value} -> {new_state.value}"
            )
        logging.debug(f"Pipeline state: {self.state.value} -> {new_state.value}")
        self.state = new_state

    def _setup_pipeline_logging(self) -> Optional[logging.Handler]:
        """Attach a file handler to the root logger if a log file is configured."""
        root_logger = logging.getLogger()
        if self.config.debug_mode:
            root_logger.setLevel(logging.DEBUG)

        if not self.config.log_file:
            return None

        file_handler = logging.FileHandler(self.config.log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s'
        ))
        root_logger.addHandler(file_handler)
        return file_handler

    def _map(self, func: Callable[[T], R], items: Sequence[T]) -> List[R]:
        """Apply func to every item, on a thread pool if configured. Keeps order."""
        workers = min(self.config.parallel_workers, len(items))
        if workers <= 1:
            return [func(item) for item in items]

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(func, item) for item in items]
            try:
                return [future.result() for future in futures]
            except Exception:
                for future in futures:
                    future.cancel()
                raise

    def discover_file(self, file_path: PathLike) -> FileSummary:
        """
        Parse and assemble one file and compute its transcripts' keys.

        Touches no shared state, so files can be discovered concurrently.
        """
        file_path = Path(file_path)
        parser = AnnotationParser(str(file_path))
        assembler = TranscriptAssembler(str(file_path), self.config.top_level_features)
        batch_size = self.config.batch_size

        line_count = 0
        for line_index, _, record in parser.iter_records(file_path):
            line_count += 1
            if record is not None:
                assembler.add(record, line_index)
            if line_count % batch_size == 0:
                self.monitor.check_memory_limit()

        transcripts = list(assembler.transcripts())
        summary = FileSummary(
            path=file_path,
            line_count=line_count,
            transcript_lines=sum(t.line_count for t in transcripts),
            transcript_keys=build_canonical_keys(transcripts, self.config.include_cds_in_key),
        )
        logging.info(f"Parsed {file_path}: {line_count} lines, "
                     f"{summary.transcript_count} transcripts, "
                     f"{assembler.ungrouped_count} top-level features")
        return summary

    def _discover_with_retries(self, file_path: Path) -> FileSummary:
        return with_io_retries(lambda: self.discover_file(file_path), file_path,
                               self.config.io_retries, self.config.io_retry_delay)

    def _discover_keys(self, input_paths: List[Path]) -> None:
        """Phase 1: discover keys and fold them into the registry in manifest order."""
        with self.monitor.phase_context("key_discovery"):
            self.summaries = self._map(self._discover_with_retries, input_paths)
            # Registration is serial regardless of how discovery was scheduled
            self.registry.register_files(self.summaries)
            self.monitor.record_operations(sum(s.line_count for s in self.summaries))

    def _check_existing_outputs(self, output_dir: Path) -> None:
        """Refuse the whole run up front if any output exists and overwriting is off."""
        if self.config.overwrite:
            return

        for summary in self.summaries:
            output_path = output_path_for(summary.path, output_dir, self.config.output_tag)
            if output_path.exists():
                raise OutputExistsError("output file already exists and overwriting is disabled",
                                        str(output_path))

    def _rewrite_files(self, output_dir: Path) -> None:
        """Phase 2: write every file's unified copy."""
        writer = UnifiedAnnotationWriter(
            self.registry,
            attribute_name=self.config.attribute_name,
            overwrite=self.config.overwrite,
        )
        output_dir.mkdir(parents=True, exist_ok=True)

        def rewrite(summary: FileSummary) -> Path:
            output_path = output_path_for(summary.path, output_dir, self.config.output_tag)
            with_io_retries(lambda: writer.write(summary, output_path), output_path,
                            self.config.io_retries, self.config.io_retry_delay)
            return output_path

        with self.monitor.phase_context("rewriting"):
            self.output_paths = self._map(rewrite, self.summaries)
            self.monitor.record_operations(sum(s.line_count for s in self.summaries))

        for output_path in self.output_paths:
            logging.info(f"Created: {output_path}")

    def write_mapping_table(self, mapping_path: PathLike) -> Path:
        """
        Write a TSV describing every unified ID: location, exon chain and the
        sample-local transcripts that resolved to it.
        """
        if not self.registry.frozen:
            raise ProgramInvariantViolation("mapping table requested before the registry was frozen")

        mapping_path = Path(mapping_path)
        members: Dict[int, List[str]] = {}
        for summary in self.summaries:
            for transcript_id, key in summary.transcript_keys.items():
                members.setdefault(self.registry.lookup(key), []).append(
                    f"{summary.path.name}:{transcript_id}"
                )

        def write() -> None:
            with open(mapping_path, 'w') as f:
                f.write("tuni_id\tseqname\tstrand\texons\ttranscript_count\ttranscripts\n")
                for key, unified_id in self.registry.items():
                    f.write(
                        f"{self.registry.format_id(unified_id)}\t{key.seqname}\t{key.strand}\t"
                        f"{key.exon_chain() or '.'}\t{self.registry.occurrences(unified_id)}\t"
                        f"{','.join(members.get(unified_id, []))}\n"
                    )

        with_io_retries(write, mapping_path, self.config.io_retries, self.config.io_retry_delay)
        logging.info(f"Created: {mapping_path}")
        return mapping_path

    def statistics(self) -> Dict[str, int]:
        """Run counts for reporting."""
        transcripts = sum(s.transcript_count for s in self.summaries)
        return {
            "files": len(self.summaries),
            "lines": sum(s.line_count for s in self.summaries),
            "transcript_lines": sum(s.transcript_lines for s in self.summaries),
            "transcripts": transcripts,
            "unified_ids": len(self.registry),
        }

    def _log_statistics(self) -> None:
        stats = self.statistics()
        logging.info(f"Unified {stats['transcripts']:,} transcripts from {stats['files']} files "
                     f"into {stats['unified_ids']:,} unified IDs "
                     f"({stats['transcript_lines']:,}/{stats['lines']:,} lines annotated)")

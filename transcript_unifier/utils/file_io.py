#!/usr/bin/env python3

"""
Filesystem helpers: manifest reading, output naming and bounded retries
for transient I/O failures.
"""

import errno
import logging
import os
from pathlib import Path
from typing import Callable, List, Tuple, TypeVar, Union

from tenacity import RetryCallState, Retrying, retry_if_exception, stop_after_attempt, wait_fixed

from ..core.exceptions import FileAccessError, ManifestError

SUPPORTED_EXTENSIONS = ('gtf', 'gff')

T = TypeVar('T')

# OSErrors that retrying will not fix
_PERMANENT_OS_ERRORS = (
    FileNotFoundError, PermissionError, IsADirectoryError,
    NotADirectoryError, FileExistsError,
)


def read_manifest(manifest_path: Union[str, Path]) -> Tuple[str, List[Path]]:
    """
    Read the list of annotation files, one path per line.

    Blank lines and lines starting with '#' are ignored. Every listed file
    must exist, be readable and share one extension, either '.gtf' or '.gff'.

    Returns:
        (extension, paths) in manifest order
    """
    manifest_path = Path(manifest_path)
    try:
        with open(manifest_path, 'r') as f:
            lines = f.read().splitlines()
    except OSError as e:
        raise ManifestError(f"Unable to read file: {e}", str(manifest_path))

    paths = [Path(line.strip()) for line in lines
             if line.strip() and not line.strip().startswith('#')]
    if not paths:
        raise ManifestError("Provided file is empty", str(manifest_path))

    extension = paths[0].suffix.lstrip('.')
    if extension not in SUPPORTED_EXTENSIONS:
        raise ManifestError(
            f"GTF/GFFs must have a '.gtf' or '.gff' extension, found {paths[0]}",
            str(manifest_path)
        )

    for path in paths:
        if path.suffix.lstrip('.') != extension:
            raise ManifestError(
                f"GTF/GFFs must all have the same extension ('.{extension}'), found {path}",
                str(manifest_path)
            )
        if not path.is_file():
            raise ManifestError(f"GTF/GFF is not a readable file: {path}", str(manifest_path))
        if not os.access(path, os.R_OK):
            raise ManifestError(f"GTF/GFF is not readable: {path}", str(manifest_path))

    return extension, paths


def output_path_for(input_path: Union[str, Path], output_dir: Union[str, Path],
                    output_tag: str = "tuni") -> Path:
    """'/in/sample_1.gtf' -> '<output_dir>/sample_1.tuni.gtf'"""
    input_path = Path(input_path)
    return Path(output_dir) / f"{input_path.stem}.{output_tag}{input_path.suffix}"


def check_output_collisions(input_paths: List[Path], output_dir: Union[str, Path],
                            output_tag: str = "tuni") -> None:
    """
    Refuse inputs that would be written to the same output file, or whose
    output would replace another input before it is re-read for rewriting.
    """
    inputs = {Path(path).resolve(): Path(path) for path in input_paths}
    seen = {}
    for path in input_paths:
        target = output_path_for(path, output_dir, output_tag)
        resolved = target.resolve()
        if resolved in seen:
            raise ManifestError(
                f"{seen[resolved]} and {path} would both be written to {target}"
            )
        if resolved in inputs:
            raise ManifestError(
                f"output of {path} would overwrite input file {inputs[resolved]}"
            )
        seen[resolved] = path


def is_transient(error: OSError) -> bool:
    """True for I/O errors that may succeed on a later attempt."""
    if isinstance(error, _PERMANENT_OS_ERRORS):
        return False
    return error.errno not in (errno.ENOSPC, errno.EROFS, errno.ENAMETOOLONG)


def _is_transient_os_error(error: BaseException) -> bool:
    return isinstance(error, OSError) and is_transient(error)


def _log_retry(path: Union[str, Path], retries: int) -> Callable[[RetryCallState], None]:
    def log(retry_state: RetryCallState) -> None:
        logging.warning(f"Transient I/O error on {path} ({retry_state.outcome.exception()}); "
                        f"retry {retry_state.attempt_number}/{retries} "
                        f"in {retry_state.next_action.sleep:.1f}s")
    return log


def with_io_retries(operation: Callable[[], T], path: Union[str, Path],
                    retries: int = 2, delay: float = 0.5) -> T:
    """
    Run a whole-file operation, retrying transient OSErrors.

    Permanent errors, and transient ones still failing after `retries`
    further attempts, are raised as FileAccessError. Non-OSError exceptions
    propagate untouched.
    """
    retrying = Retrying(
        stop=stop_after_attempt(retries + 1),
        wait=wait_fixed(delay),
        retry=retry_if_exception(_is_transient_os_error),
        before_sleep=_log_retry(path, retries),
        reraise=True,
    )
    try:
        return retrying(operation)
    except OSError as e:
        raise FileAccessError(str(e.strerror or e), str(path)) from e

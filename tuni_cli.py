#!/usr/bin/env python3

"""
Command-line interface for the transcript unification pipeline.

Reads a manifest of GTF/GFF paths and writes one `<stem>.tuni.<ext>` file
per input into an existing output directory.
"""

import argparse
import sys
import logging
from pathlib import Path
from typing import List, Optional

from transcript_unifier import __version__
from transcript_unifier.core.config import load_config
from transcript_unifier.core.exceptions import PipelineError


def setup_logging(log_level: str = "WARNING") -> None:
    """Set up logging configuration."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def existing_directory(value: str) -> Path:
    """argparse type: path must point to an existing directory."""
    path = Path(value)
    if not path.is_dir():
        raise argparse.ArgumentTypeError(f"output_dir must be an existing directory: {value}")
    return path


def create_argument_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""
    parser = argparse.ArgumentParser(
        prog='tuni',
        description="tuni: Unify transcripts across different samples",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Basic usage
  tuni --gtf-gff-path gtf_paths.txt --output-dir results/

  # Four worker threads, with a TSV describing every unified ID
  tuni -g gtf_paths.txt -o results/ --threads 4 --mapping-table --verbose
        """
    )

    # Required arguments
    parser.add_argument(
        '-g', '--gtf-gff-path',
        required=True,
        metavar='*.txt',
        help='A text file containing GTF/GFF paths, one per line'
    )
    parser.add_argument(
        '-o', '--output-dir',
        required=True,
        type=existing_directory,
        metavar='/output/dir/',
        help='Directory where outputted GTF/GFFs will be stored'
    )

    # Optional parameters
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Print log messages'
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: WARNING, or INFO with --verbose)'
    )
    parser.add_argument(
        '--log-file',
        help='Also write log messages to this file'
    )
    parser.add_argument(
        '-c', '--config',
        help='Configuration file (JSON or YAML)'
    )
    parser.add_argument(
        '-t', '--threads',
        type=int,
        help='Worker threads used to read and write files (default: 1)'
    )
    parser.add_argument(
        '--no-overwrite',
        action='store_true',
        help='Fail instead of replacing existing output files'
    )
    parser.add_argument(
        '--include-cds',
        action='store_true',
        help='Also distinguish transcripts by their CDS coordinates'
    )
    parser.add_argument(
        '--mapping-table',
        action='store_true',
        help='Write <output_dir>/tuni_mapping.tsv describing every unified ID'
    )
    parser.add_argument(
        '--save-config',
        metavar='config.yaml',
        help='Write the effective configuration to this file (JSON or YAML)'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    log_level = args.log_level or ('INFO' if args.verbose else 'WARNING')
    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    try:
        # Load configuration
        config = load_config(config_path=args.config, use_env=True)

        # Override config with command line arguments
        if args.threads is not None:
            config.parallel_workers = args.threads
        if args.no_overwrite:
            config.overwrite = False
        if args.include_cds:
            config.include_cds_in_key = True
        if args.mapping_table:
            config.write_mapping = True
        if args.log_file:
            config.log_file = args.log_file

        # Re-validate after CLI overrides.
        config.validate()

        if args.save_config:
            config.save_to_file(args.save_config)
            logger.info(f"Configuration saved to {args.save_config}")

        logger.info(f"Manifest: {args.gtf_gff_path}")
        logger.info(f"Output directory: {args.output_dir}")

        from transcript_unifier import TranscriptUnificationPipeline

        pipeline = TranscriptUnificationPipeline(config)
        output_paths = pipeline.run_manifest(args.gtf_gff_path, args.output_dir)

        logger.info(f"Wrote {len(output_paths)} unified files")
        return 0

    except PipelineError as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        logger.debug("Full traceback:", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())

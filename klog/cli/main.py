#!/usr/bin/env python3
"""
Command-line entry point for klog.

Usage:
    # Dump every record of one segment
    klog log -f /tmp/kafka-logs-0/topic1-0/00000000000000000000.log

    # Dump every segment of a topic under a broker data root
    klog log -t topic1 -r /tmp/kafka-logs-0

    # Dump only the records around offset 1500, using the sparse indexes
    klog log -t topic1 -o 1500
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from klog.core.errors import KlogError, LogFileNotFoundError
from klog.core.log.naming import SEGMENT_FILE_SUFFIX, INDEX_FILE_SUFFIX, index_path_for
from klog.core.lookup import SEARCH_STRATEGIES, LookupConfig, lookup_windows
from klog.discovery import find_files, find_partition_dirs
from klog.dump import SegmentDumper
from klog.utils.config import Config
from klog.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="klog",
        description="klog - inspect Kafka-style log segments",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    log_parser = subparsers.add_parser(
        "log",
        help="Open log segment files and dump their records",
        description=(
            "Dump the records of a segment file, or of every segment of a topic "
            "found under a broker data root. With --offset, only the window of "
            "each segment that holds the offset is dumped. Give either --file "
            "or --topic, not both."
        ),
    )

    source = log_parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "-f", "--file",
        type=str,
        help="Segment (.log) or index (.index) file",
    )
    source.add_argument(
        "-t", "--topic",
        type=str,
        help="Topic name; every partition under --root is read",
    )

    log_parser.add_argument(
        "-r", "--root",
        type=str,
        default=None,
        help="Root folder of the broker logs (default: from config, /tmp/kafka-logs-0)",
    )
    log_parser.add_argument(
        "-o", "--offset",
        type=int,
        default=-1,
        help="Offset of the message to retrieve; negative dumps whole files (default: -1)",
    )
    log_parser.add_argument(
        "--search",
        type=str,
        default=None,
        choices=list(SEARCH_STRATEGIES),
        help="Index search strategy (default: from config, linear)",
    )
    log_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Segments looked up in parallel (default: from config, 1)",
    )
    log_parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML configuration file",
    )
    log_parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: from config, WARNING)",
    )
    log_parser.add_argument(
        "--log-format",
        type=str,
        default=None,
        choices=["console", "json"],
        help="Logging format (default: from config, console)",
    )

    return parser


def load_config(args: argparse.Namespace) -> Config:
    """Build configuration from the config file, environment and flags."""
    config = Config(args.config)

    if args.root is not None:
        config.set("log.root", args.root)
    if args.search is not None:
        config.set("lookup.search", args.search)
    if args.workers is not None:
        config.set("lookup.workers", args.workers)
    if args.log_level is not None:
        config.set("logging.level", args.log_level)
    if args.log_format is not None:
        config.set("logging.format", args.log_format)

    return config


def collect_files(args: argparse.Namespace, config: Config) -> List[Path]:
    """
    Resolve the files to read from --file or --topic.

    With an offset, index files are returned; otherwise segment files.

    Raises:
        LogFileNotFoundError: If the root or the --file path is missing
    """
    suffix = INDEX_FILE_SUFFIX if args.offset >= 0 else SEGMENT_FILE_SUFFIX

    if args.topic:
        partitions = find_partition_dirs(args.topic, config.get("log.root"))
        return find_files(partitions, suffix)

    path = Path(args.file)
    if args.offset >= 0 and path.suffix == SEGMENT_FILE_SUFFIX:
        path = index_path_for(path)
    if not path.is_file():
        kind = "Index" if args.offset >= 0 else "Log"
        raise LogFileNotFoundError(f"{kind} file not found: {path}")
    return [path]


def run_log(
    args: argparse.Namespace,
    config: Config,
    lookup_config: LookupConfig,
    workers: int,
    dumper: SegmentDumper,
) -> int:
    """
    Run the log command.

    Returns:
        Process exit status
    """
    logger.info(
        "log called",
        topic=args.topic,
        root=config.get("log.root"),
        filename=args.file,
        offset=args.offset,
    )

    try:
        files = collect_files(args, config)
    except KlogError as e:
        print(f"klog: {e}", file=sys.stderr)
        return 1

    if not files:
        logger.info("No files to read", topic=args.topic, root=config.get("log.root"))
        return 0

    if args.offset < 0:
        for path in files:
            try:
                lines = dumper.dump_file(path)
            except KlogError as e:
                print(f"klog: {e}", file=sys.stderr)
                return 1
            for line in lines:
                print(line)
        return 0

    results = lookup_windows(
        files,
        args.offset,
        config=lookup_config,
        workers=workers,
    )

    failed = 0
    for result in results:
        if not result.ok:
            failed += 1
            print(f"klog: {result.index_path}: {result.error}", file=sys.stderr)
            continue
        try:
            lines = dumper.dump_window(result.window)
        except KlogError as e:
            failed += 1
            logger.warning(
                "Decoding window failed",
                segment=str(result.window.segment_path),
                error=str(e),
            )
            print(f"klog: {result.window.segment_path}: {e}", file=sys.stderr)
            continue
        for line in lines:
            print(line)

    logger.info("Lookup finished", segments=len(results), failed=failed)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args)
        configure_logging(
            log_level=config.get("logging.level", "WARNING"),
            log_format=config.get("logging.format", "console"),
        )
        lookup_config = config.lookup_config()
        workers = config.lookup_workers()
        dumper = config.dumper()
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"klog: invalid configuration: {e}", file=sys.stderr)
        return 1

    logger.debug("Loaded configuration", lookup=lookup_config, workers=workers)

    if args.command == "log":
        return run_log(args, config, lookup_config, workers, dumper)

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())

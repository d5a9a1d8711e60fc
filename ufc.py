"""UF Device Analyzer CLI.

This module implements the command-line interface for the UF device
analyzer. It loads the design parameters, reads the declaration events of a
device description (as emitted by the UF parse-tree traversal, serialized to
JSON) and builds the validated device model.

Example:
    $ python ufc.py chip.events.json -p chip.params --verbose

Exit codes:
    0  the device model is valid
    1  semantic errors were found
    2  the input could not be read, or the run was aborted on malformed input
"""

from __future__ import annotations

import argparse
import json
import logging
import os
from typing import List, Optional

from uf_analyzer import (
    AnalysisResult,
    ErrorSeverity,
    EventStreamError,
    ParameterError,
    SemanticAnalyzer,
    __version__,
    load_event_file,
    load_parameters,
)

VERSION = __version__

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_FATAL = 2


def _configure_logging(verbose: bool) -> None:
    """Configure root logger.

    Args:
        verbose: Whether to enable verbose (DEBUG) logging.
    """

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        argparse.Namespace: Parsed arguments.
    """

    parser = argparse.ArgumentParser(
        prog="ufc",
        description="Build and validate the device model of a UF microfluidic design",
    )
    parser.add_argument(
        "events_path",
        help="Path to the declaration event stream (.json)",
    )
    parser.add_argument(
        "-p",
        "--params",
        dest="params_path",
        help="Path to a design parameter file (key = value lines)",
    )
    parser.add_argument(
        "-o",
        "--output",
        dest="output_path",
        help="Write the device model as JSON to this path",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"ufc {VERSION}",
        help="Show version and exit",
    )

    policy_group = parser.add_argument_group("Validation policy options")
    policy_group.add_argument(
        "--drop-invalid-edges",
        action="store_true",
        help="Do not add a channel edge when one of its endpoints is invalid",
    )
    policy_group.add_argument(
        "--strict-duplicates",
        action="store_true",
        help="Do not register graph vertices for a duplicated identifier",
    )

    return parser.parse_args(argv)


def write_model(result: AnalysisResult, output_path: str) -> None:
    """Serialize the analysis result to ``output_path`` as JSON."""
    directory = os.path.dirname(os.path.abspath(output_path))
    os.makedirs(directory, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(result.to_dict(), f, indent=2)
    logging.info("Device model written to %s", output_path)


def report_result(result: AnalysisResult) -> int:
    """Log the diagnostics and verdict of a run and return the exit code."""
    for error in result.errors.errors:
        if error.severity in (ErrorSeverity.ERROR, ErrorSeverity.FATAL):
            logging.error("%s", error)
        else:
            logging.warning("%s", error)

    if result.aborted:
        logging.error("Analysis of %s aborted on malformed input", result.filename)
        return EXIT_FATAL

    if not result.valid:
        logging.error(
            "Device '%s' is invalid: %d error(s)",
            result.device_name,
            len(result.errors.get_errors_by_severity(ErrorSeverity.ERROR)),
        )
        return EXIT_INVALID

    logging.info(
        "Device '%s' is valid: %d component(s), %d vertices, %d channel edge(s)",
        result.device_name,
        len(result.symbol_table),
        result.device_graph.vertex_count,
        result.device_graph.edge_count,
    )
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI."""
    try:
        args = parse_arguments(argv)
    except SystemExit as e:
        # Argparse uses SystemExit for --help/--version and parse errors.
        return int(e.code) if e.code is not None else 0

    _configure_logging(args.verbose)

    try:
        parameters = load_parameters(args.params_path)
        stream = load_event_file(args.events_path)
    except (ParameterError, EventStreamError) as exc:
        logging.error("Failed to load input: %s", exc)
        return EXIT_FATAL

    logging.info(
        "Analyzing %s (%d declaration events)", stream.filename, len(stream)
    )
    analyzer = SemanticAnalyzer(
        filename=stream.filename,
        parameters=parameters,
        drop_invalid_edges=args.drop_invalid_edges,
        register_duplicate_vertices=not args.strict_duplicates,
    )
    result = analyzer.analyze(stream)
    logging.debug("Summary: %s", json.dumps(analyzer.get_analysis_summary()))

    if args.output_path and not result.aborted:
        try:
            write_model(result, args.output_path)
        except OSError as exc:
            logging.error("Failed to write device model: %s", exc)
            return EXIT_FATAL

    return report_result(result)


if __name__ == "__main__":  # pragma: no cover - exercised via tests calling main
    raise SystemExit(main())

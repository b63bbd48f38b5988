#!/usr/bin/env python3
"""Command line entry point: transform an OWL file into a FHIR Bundle of CodeSystems.

    owlfhir -i hp.owl -o hp-bundle.json
    owlfhir -i onto.ttl -o out.json --iri-mappings iri_mappings.txt \\
        --publisher-prop http://purl.org/dc/terms/publisher
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from owlfhir.config import load_transform_config
from owlfhir.diagnostics import DiagnosticsCollector
from owlfhir.errors import OwlFhirError
from owlfhir.logging import set_log_level
from owlfhir.transform import transform


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="owlfhir",
        description="Transform an OWL ontology and its imports into a FHIR Bundle of CodeSystems.",
    )
    parser.add_argument("-i", "--input", type=Path, required=True, help="The input OWL file")
    parser.add_argument("-o", "--output", type=Path, required=True, help="The output FHIR JSON file")
    parser.add_argument(
        "--publisher-prop",
        action="append",
        default=None,
        metavar="IRI",
        help="Annotation property holding the code system publisher (repeatable, first match wins)",
    )
    parser.add_argument(
        "--description-prop",
        action="append",
        default=None,
        metavar="IRI",
        help="Annotation property holding the code system description (repeatable, first match wins)",
    )
    parser.add_argument(
        "--iri-mappings",
        type=Path,
        default=None,
        help="File of '<ontology IRI>,<local file>' lines used instead of downloading imports",
    )
    parser.add_argument("--config", type=Path, default=None, help="owlfhir.toml configuration file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    set_log_level(logging.DEBUG if args.verbose else logging.INFO)

    input_path = args.input.resolve()
    if not input_path.is_file():
        print(f"Error: input is not a file: {input_path}", file=sys.stderr)
        return 1
    if args.config is not None and not args.config.is_file():
        print(f"Error: config file not found: {args.config}", file=sys.stderr)
        return 1

    diagnostics = DiagnosticsCollector()
    config = load_transform_config(
        args.config,
        iri_mappings_path=args.iri_mappings,
        publisher_properties=tuple(args.publisher_prop) if args.publisher_prop else None,
        description_properties=tuple(args.description_prop) if args.description_prop else None,
        diagnostics=diagnostics,
    )

    try:
        result = transform(input_path, args.output, config=config, diagnostics=diagnostics)
    except OwlFhirError as e:
        print(f"Error: There was a problem transforming the OWL file into FHIR: {e}", file=sys.stderr)
        return 1

    print(
        f"Wrote {result.code_system_count} code systems ({result.concept_count} concepts) "
        f"from {result.ontology_count} ontologies to {result.output_path}",
        file=sys.stderr,
    )
    if result.diagnostics:
        print(f"{len(result.diagnostics)} diagnostics recorded; see the log for details", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())

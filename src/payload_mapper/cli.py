"""Command-line interface for payload-mapper."""

import argparse
import dataclasses
import json
import logging
import os
import sys
from pathlib import Path

from payload_mapper import __version__
from payload_mapper.core import normalize, normalize_extraction
from payload_mapper.csv_output import to_csv
from payload_mapper.exceptions import PayloadMapperError
from payload_mapper.mapping.engine import NormalizationConfig
from payload_mapper.mapping.repository import load_rules


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="payload-mapper",
        description="Normalize an extracted document against field mapping rules",
    )
    parser.add_argument("document", help="Path to the extracted JSON document ('-' for stdin)")
    parser.add_argument("--rules", required=True, help="Path to the mapping rules JSON file")
    parser.add_argument("--workflow-data", help="Path to a JSON file with workflow-only values")
    parser.add_argument(
        "--response",
        action="store_true",
        help="Treat DOCUMENT as a raw extractor response (code fences, templateData wrapper)",
    )
    parser.add_argument("--csv", action="store_true", help="Output one delimited row per order")
    parser.add_argument("--delimiter", default=",", help="CSV delimiter (default: ,)")
    parser.add_argument("--no-headers", action="store_true", help="Omit the CSV header row")
    parser.add_argument(
        "--enforce-splits",
        action="store_true",
        help="Re-split arrays locally when the extractor ignored the split rules",
    )
    parser.add_argument(
        "--with-metadata",
        action="store_true",
        help="Wrap JSON output with workflowOnly data and warnings",
    )
    parser.add_argument(
        "--api-key",
        help="Gemini API key for address lookups (default: GEMINI_API_KEY env var)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--version",
        action="version",
        version=f"payload-mapper {__version__}",
    )

    args = parser.parse_args(argv)
    level = "DEBUG" if args.verbose else os.getenv("PAYLOAD_MAPPER_LOG_LEVEL", "WARNING").strip().upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    config = NormalizationConfig.from_env()
    if args.enforce_splits:
        config = dataclasses.replace(config, enforce_array_splits=True)

    try:
        rules = load_rules(Path(args.rules))
        text = _read_text(args.document)
        if args.response:
            result = normalize_extraction(text, rules, config=config, api_key=args.api_key)
        else:
            workflow = json.loads(_read_text(args.workflow_data)) if args.workflow_data else None
            result = normalize(
                json.loads(text),
                rules,
                workflow_only_data=workflow,
                config=config,
                api_key=args.api_key,
            )
    except (OSError, json.JSONDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except PayloadMapperError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)

    if args.csv:
        output = to_csv(
            result.orders(config.root_key),
            rules.field_mappings,
            delimiter=args.delimiter,
            include_headers=not args.no_headers,
        )
        sys.stdout.write(output)
    elif args.with_metadata:
        payload = {
            "document": result.document,
            "workflowOnly": result.workflow_only,
            "warnings": result.warnings,
        }
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(result.document, indent=2, ensure_ascii=False))

    return 0


if __name__ == "__main__":
    sys.exit(main())

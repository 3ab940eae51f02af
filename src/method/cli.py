"""Command line entry point: run a document and print its results as JSON."""

import argparse
import json
import logging
import sys

import yaml

from .config import ConfigError, load_datasets, load_input, load_item, parse_patch
from .interpreter import Caller, run
from .values import as_data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="method", description="Evaluate a line-oriented, unit-aware calculation"
    )
    parser.add_argument("item", help="Document: YAML item file or plain text")
    parser.add_argument("--input", help="YAML file of input values and conversion constants")
    parser.add_argument("--datasets", help="YAML file of datasets keyed by caption")
    parser.add_argument(
        "--patch",
        nargs="+",
        default=[],
        metavar="LINE=VALUE",
        help="Override literal lines before running",
    )
    parser.add_argument(
        "--trace", action="store_true", help="Print the whole run (trace, stack, show list)"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log each line")
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        item = load_item(args.item)
        input_values = load_input(args.input) if args.input else {}
        resolver = load_datasets(args.datasets) if args.datasets else None
        patch = parse_patch(args.patch)
    except (ConfigError, OSError, ValueError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    caller = Caller()
    state = run(item, input_values, patch=patch, caller=caller, resolver=resolver)

    if args.trace:
        print(json.dumps(state.to_data(), indent=2, ensure_ascii=False))
    else:
        output = {label: as_data(value) for label, value in state.output.items()}
        print(json.dumps(output, indent=2, ensure_ascii=False))

    for error in caller.errors:
        print(error["message"], file=sys.stderr)
    return 1 if caller.errors else 0


if __name__ == "__main__":
    sys.exit(main())

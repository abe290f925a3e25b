#!/usr/bin/env python3
"""Script segmentation and HTML wrapping from the command line.

Usage:
    mlwrap segment [OPTIONS] TEXT...
    mlwrap wrap [OPTIONS] INPUT

Examples:
    mlwrap segment "Hello 안녕하세요 world"
    mlwrap wrap index.html -o index.wrapped.html
    mlwrap wrap -s "#content" --config local/mlwrap.json index.html
    cat page.html | mlwrap wrap - > page.wrapped.html
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import ValidationError
from soupsieve import SelectorSyntaxError

DEFAULT_CONFIG_PATH = Path("local/mlwrap.json")


def _add_config_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to JSON config (default: {DEFAULT_CONFIG_PATH}, skipped if missing)",
    )
    parser.add_argument(
        "--min-segment-length",
        type=int,
        help="Minimum trimmed segment length (default: from config)",
    )
    parser.add_argument(
        "--no-preserve-whitespace",
        action="store_true",
        help="Classify whitespace and punctuation instead of folding them into segments",
    )
    parser.add_argument(
        "--no-merge-filtered",
        action="store_true",
        help="Drop segments below the minimum length instead of merging them",
    )
    parser.add_argument(
        "--wrapper-class",
        help="Extra CSS class for every span",
    )
    parser.add_argument(
        "--long-names",
        action="store_true",
        help="Use korean-script style class names instead of ml-ko",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Verbose diagnostic logging",
    )


def _build_config(args: argparse.Namespace):
    from .config import load_config

    config = load_config(args.config)

    options = {}
    if args.min_segment_length is not None:
        options["min_segment_length"] = args.min_segment_length
    if args.no_preserve_whitespace:
        options["preserve_whitespace"] = False
    if args.no_merge_filtered:
        options["merge_filtered_segments"] = False
    if args.debug:
        options["debug"] = True

    css = {}
    if args.wrapper_class is not None:
        css["wrapper"] = args.wrapper_class
    if args.long_names:
        css["use_short_names"] = False
    if css:
        options["css_classes"] = css

    return config.with_options(**options) if options else config


def _segment(args: argparse.Namespace, config) -> int:
    from .script_segmenter import ScriptSegmenter

    text = " ".join(args.text)
    result = ScriptSegmenter(config).segment(text)

    print(f"Input: {text}\n")
    print("Segments:")
    for seg in result.segments:
        print(f"  [{seg.start}:{seg.end}] ({seg.script}/{seg.lang}): {seg.text!r}")
    if result.dropped:
        print("Dropped:")
        for seg in result.dropped:
            print(f"  [{seg.start}:{seg.end}] ({seg.script}/{seg.lang}): {seg.text!r}")
    return 0


def _wrap(args: argparse.Namespace, config) -> int:
    from bs4 import BeautifulSoup

    from .document import DocumentWrapper, auto_wrap

    if args.input == "-":
        markup = sys.stdin.read()
    else:
        input_path = Path(args.input)
        if not input_path.exists():
            print(f"Error: Input not found: {input_path}", file=sys.stderr)
            return 1
        markup = input_path.read_text(encoding="utf-8")

    soup = BeautifulSoup(markup, "html.parser")

    try:
        if args.selector is None and config.auto_wrap:
            count = asyncio.run(auto_wrap(soup, config))
        else:
            selector = args.selector or config.auto_wrap_selector
            count = DocumentWrapper(config).wrap_target(soup, selector)
    except SelectorSyntaxError as e:
        print(f"Error: Invalid selector: {e}", file=sys.stderr)
        return 1

    if args.output is None:
        sys.stdout.write(str(soup))
    else:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(str(soup), encoding="utf-8")
        print(f"Wrapped {count} elements. Output: {args.output}", file=sys.stderr)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Script segmentation and HTML wrapping",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    segment_parser = subparsers.add_parser("segment", help="Print the script segments of some text")
    segment_parser.add_argument("text", nargs="+", help="Text to segment")
    _add_config_arguments(segment_parser)

    wrap_parser = subparsers.add_parser("wrap", help="Wrap the text of an HTML file in script spans")
    wrap_parser.add_argument("input", help="HTML file, or - for stdin")
    wrap_parser.add_argument(
        "-o", "--output",
        type=Path,
        help="Output HTML path (default: stdout)",
    )
    wrap_parser.add_argument(
        "-s", "--selector",
        help="CSS selector of the elements to wrap (default: autoWrapSelector from config)",
    )
    _add_config_arguments(wrap_parser)

    args = parser.parse_args(argv)

    level = logging.DEBUG if args.debug else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(name)s: %(message)s")

    try:
        config = _build_config(args)
    except (ValidationError, ValueError) as e:
        print(f"Error: Invalid configuration: {e}", file=sys.stderr)
        return 1

    if args.command == "segment":
        return _segment(args, config)
    return _wrap(args, config)


if __name__ == "__main__":
    sys.exit(main())

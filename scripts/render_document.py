#!/usr/bin/env python3
"""Render a clause document with a set of option choices.

Reads a raw document JSON (a root node, or a bare list of top-level nodes),
applies option states, and prints either a numbered text view or the full
rendered tree as JSON.

Usage:
    # Numbered text view with every option at its default
    python3 scripts/render_document.py --doc agreement.json

    # Apply choices, focus one option, emit JSON
    python3 scripts/render_document.py --doc agreement.json \
      --states states.json --focus opt-7 --format json

    # Final-document preview for schedule 2
    python3 scripts/render_document.py --doc agreement.json \
      --states states.json --preview --schedule 2

``states.json`` maps option id -> state ("default", "hidden", or the id of
the chosen alternative).
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from clause_render.config import RenderConfig
from clause_render.doc_decoder import decode_document
from clause_render.io_utils import dumps_json, load_json
from clause_render.option_state import OptionStateStore
from clause_render.render_types import RenderOptions
from clause_render.session import RenderSession
from clause_render.text_output import document_to_dict, render_plain_text

log = logging.getLogger("render_document")


def dump_json(obj: object) -> None:
    sys.stdout.buffer.write(dumps_json(obj, pretty=True))
    sys.stdout.buffer.write(b"\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Render a clause document with optional-clause choices applied."
    )
    parser.add_argument(
        "--doc", required=True, type=Path, help="Path to the raw document JSON"
    )
    parser.add_argument(
        "--states",
        type=Path,
        default=None,
        help="JSON object mapping option id -> state.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to render_config.json (defaults apply when omitted).",
    )
    parser.add_argument(
        "--focus", default=None, help="Option id to render as focused."
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Final-document preview: no markers, brackets or default text.",
    )
    parser.add_argument(
        "--schedule",
        type=int,
        default=None,
        help="Schedule number forwarded to every rendered leaf.",
    )
    parser.add_argument(
        "--format",
        choices=("text", "json"),
        default="text",
        help="Output format (default: text).",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging."
    )
    return parser


def load_states(path: Path | None) -> dict[str, str]:
    if path is None:
        return {}
    raw: Any = load_json(path)
    if not isinstance(raw, dict):
        raise ValueError(f"States file must be a JSON object: {path}")
    states: dict[str, str] = {}
    for option_id, state in raw.items():
        if not isinstance(state, str) or not state:
            log.warning("Skipping option %r: state must be a non-empty string", option_id)
            continue
        states[str(option_id)] = state
    return states


def run(args: argparse.Namespace) -> int:
    if not args.doc.exists():
        print(f"Error: document not found: {args.doc}", file=sys.stderr)
        return 1

    config = RenderConfig.from_json(args.config) if args.config else RenderConfig()
    root = decode_document(load_json(args.doc))
    store = OptionStateStore(load_states(args.states))
    if args.focus:
        store.focus(args.focus)
    options = RenderOptions(preview_only=args.preview, schedule_num=args.schedule)

    with RenderSession(root, store=store, config=config, options=options) as session:
        document = session.render()
        count = sum(1 for _ in document.iter_paragraphs())
        log.info(
            "Rendered %d paragraph(s) from %s (%d option state(s), preview=%s)",
            count, args.doc, len(store), args.preview,
        )
        if args.format == "json":
            dump_json(document_to_dict(document))
        else:
            sys.stdout.write(render_plain_text(document))
    return 0


def main() -> None:
    args = build_parser().parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    sys.exit(run(args))


if __name__ == "__main__":
    main()

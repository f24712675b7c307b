"""Example script showing how to code a text file from the command line."""
from __future__ import annotations

from pathlib import Path

from core.CodingContext import CodingContext
from core.document import CodingDocument
from utils.formatting import to_markdown


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Toggle codes on ranges of a text file")
    parser.add_argument("path", type=Path, help="Path to a UTF-8 text file")
    parser.add_argument(
        "--toggle",
        nargs=3,
        action="append",
        default=[],
        metavar=("CODE", "START", "END"),
        help="Toggle CODE on [START, END); may be repeated",
    )
    parser.add_argument("--export", type=Path, help="Write resulting segments as JSON lines")
    args = parser.parse_args()

    context = CodingContext(args.path.stem)
    document = context.add_document(
        CodingDocument(doc_id=args.path.name, content=args.path.read_text(encoding="utf-8"))
    )
    for code_id, start, end in args.toggle:
        if code_id not in context.codes:
            context.add_code(code_id, code_id)
        result = context.apply_code(document.doc_id, int(start), int(end), code_id)
        if result.skipped_tiny:
            print(f"Skipped {code_id} on [{start}, {end}): selection too short")

    print(to_markdown(document, context.segments, context.codes))
    if args.export:
        context.export_jsonl(args.export)

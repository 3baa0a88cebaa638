"""
Aadhaar Form Assistant - Command Line Entry Point
Reads an identity card photo and pre-fills government forms
"""
import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from formfill.config import settings
from formfill.form_templates import FORM_TEMPLATES, get_template
from formfill.services.extraction_service import ExtractionError
from formfill.services.form_service import FormFillerService, render_text
from formfill.services.matcher_service import FieldMatcher
from formfill.services.ocr_service import OCRService


def configure_logging() -> None:
    """Configure logging; stdout is kept for command output"""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level="DEBUG" if settings.DEBUG else "INFO"
    )
    if settings.LOG_TO_FILE:
        logger.add(
            str(Path(settings.LOG_DIR) / "app_{time:YYYY-MM-DD}.log"),
            rotation="1 day",
            retention="30 days",
            compression="gz",
            level="INFO"
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="formfill",
        description="Extract identity details from an Aadhaar card photo and pre-fill government forms.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {settings.APP_VERSION}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract = subparsers.add_parser("extract", help="Print the identity record read from a card photo as JSON.")
    extract.add_argument("image", help="Path to the card photo.")

    fill = subparsers.add_parser("fill", help="Pre-fill a form from a card photo and print the preview.")
    fill.add_argument("image", help="Path to the card photo.")
    fill.add_argument(
        "--template", required=True, choices=[template.id for template in FORM_TEMPLATES],
        help="Form template to fill.",
    )
    fill.add_argument("--json", action="store_true", help="Print the preview as JSON.")

    match = subparsers.add_parser("match", help="Map form labels to identity attributes.")
    match.add_argument("labels", nargs="+", help="Form field labels.")

    subparsers.add_parser("templates", help="List the built-in form templates.")
    return parser


async def _extract(image: str):
    return await OCRService().process_identity_card(image)


def cmd_extract(args: argparse.Namespace) -> None:
    record = asyncio.run(_extract(args.image))
    print(record.model_dump_json(indent=2))


def cmd_fill(args: argparse.Namespace) -> None:
    record = asyncio.run(_extract(args.image))
    service = FormFillerService()
    form = service.prefill(get_template(args.template), record)
    preview = service.build_preview(form)

    if args.json:
        print(preview.model_dump_json(indent=2))
    else:
        print(render_text(preview))

    missing = service.missing_required(form)
    if missing:
        print(f"Still required: {', '.join(field.label for field in missing)}", file=sys.stderr)


def cmd_match(args: argparse.Namespace) -> None:
    matcher = FieldMatcher()
    for label in args.labels:
        best = matcher.match_field(label)
        if best.is_match:
            print(f"{label}: {best.canonical_field.value} ({best.confidence:.2f})")
        else:
            print(f"{label}: no match")
        for candidate in matcher.get_all_matches(label):
            print(f"    {candidate.canonical_field.value:<12} {candidate.confidence:.2f}  via '{candidate.matched_alias}'")


def cmd_templates(args: argparse.Namespace) -> None:
    for template in FORM_TEMPLATES:
        print(f"{template.id:<10} {template.name} ({len(template.fields)} fields)")


COMMANDS = {
    "extract": cmd_extract,
    "fill": cmd_fill,
    "match": cmd_match,
    "templates": cmd_templates,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()
    logger.debug(f"{settings.APP_NAME} v{settings.APP_VERSION}: {args.command}")

    try:
        COMMANDS[args.command](args)
    except ExtractionError as e:
        logger.error(f"Extraction failed: {e.detail or e}")
        print(str(e), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

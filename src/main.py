"""
Syllabus Structure Extraction Engine Main Entry Point

Provides a CLI for parsing syllabus documents into the store, inspecting and
deleting stored syllabi, and sending document-generation prompts to the AI
service. Initializes logging on startup.

Usage:
    python -m src.main parse syllabus.docx --subject Physics --curriculum obc --grade-range "Grades 10-12"
    python -m src.main list [--subject Physics] [--curriculum cbc]
    python -m src.main show <id>
    python -m src.main delete <id>
    python -m src.main generate prompt.txt
"""

import argparse
import json
import sys
from pathlib import Path

from src.config import CURRICULUM_TYPES, EDUCATION_CATEGORIES, print_configuration
from src.database.operations import DatabaseError, delete_syllabus, get_syllabus, list_syllabi
from src.pipeline.runner import extract_syllabus, ingest_syllabus
from src.utils.llm_helpers import FallbackError, generate_document
from src.utils.logging_config import logger, setup_logger


def _cmd_parse(args, logger) -> int:
    path = Path(args.file)
    if not path.exists():
        logger.error(f"File not found: {path}")
        return 1

    kwargs = dict(
        data=path.read_bytes(),
        file_format=args.format or path.suffix,
        subject=args.subject,
        curriculum_type=args.curriculum,
        category=args.category,
        grade_range=args.grade_range,
        form=args.form,
        name=path.stem,
        use_fallback=not args.no_fallback,
    )
    result = extract_syllabus(**kwargs) if args.dry_run else ingest_syllabus(**kwargs)

    if not result.success:
        print(json.dumps({"success": False, "reason": result.failure_reason, "error": result.error}, indent=2))
        return 1

    print(json.dumps(result.document.to_dict(), indent=2, ensure_ascii=False))
    return 0


def _cmd_list(args, logger) -> int:
    summaries = list_syllabi(subject=args.subject, curriculum_type=args.curriculum)
    print(json.dumps(summaries, indent=2, ensure_ascii=False))
    logger.info(f"{len(summaries)} syllabi")
    return 0


def _cmd_show(args, logger) -> int:
    document = get_syllabus(args.id)
    if document is None:
        logger.error(f"Syllabus not found: {args.id}")
        return 1
    print(json.dumps(document.to_dict(), indent=2, ensure_ascii=False))
    return 0


def _cmd_delete(args, logger) -> int:
    return 0 if delete_syllabus(args.id) else 1


def _cmd_generate(args, logger) -> int:
    path = Path(args.prompt_file)
    if not path.exists():
        logger.error(f"File not found: {path}")
        return 1

    print(generate_document(path.read_text(encoding="utf-8")))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Syllabus Structure Extraction Engine")
    parser.add_argument("--show-config", action="store_true", help="Print configuration and exit")
    parser.add_argument("--log-level", help="Console and log file level (defaults to LOG_LEVEL)")
    parser.add_argument("--no-log-files", action="store_true", help="Log to the console only")
    subparsers = parser.add_subparsers(dest="command")

    parse = subparsers.add_parser("parse", help="Extract a syllabus document and store it")
    parse.add_argument("file", help="Document to parse (.docx, .pdf, .txt, .html)")
    parse.add_argument("--subject", required=True)
    parse.add_argument("--curriculum", required=True, choices=CURRICULUM_TYPES)
    parse.add_argument("--category", choices=EDUCATION_CATEGORIES)
    parse.add_argument("--grade-range", help='e.g. "Grades 10-12" or "Forms 1-4"')
    parse.add_argument("--form", help='Legacy form descriptor, e.g. "Form 1"')
    parse.add_argument("--format", help="Override the format inferred from the file extension")
    parse.add_argument("--no-fallback", action="store_true", help="Do not call the AI fallback")
    parse.add_argument("--dry-run", action="store_true", help="Extract and print without storing")

    list_cmd = subparsers.add_parser("list", help="List stored syllabi")
    list_cmd.add_argument("--subject")
    list_cmd.add_argument("--curriculum", choices=CURRICULUM_TYPES)

    show = subparsers.add_parser("show", help="Print one stored syllabus")
    show.add_argument("id")

    delete = subparsers.add_parser("delete", help="Delete one stored syllabus")
    delete.add_argument("id")

    generate = subparsers.add_parser("generate", help="Send a document-generation prompt to the AI service")
    generate.add_argument("prompt_file")

    return parser


def main():
    """
    Main entry point for the extraction engine CLI.

    Configures logging from the global options and dispatches the
    requested command.
    """
    parser = build_parser()
    args = parser.parse_args()

    setup_logger(level=args.log_level, log_files=not args.no_log_files)

    if args.show_config:
        print_configuration()
        return

    commands = {
        "parse": _cmd_parse,
        "list": _cmd_list,
        "show": _cmd_show,
        "delete": _cmd_delete,
        "generate": _cmd_generate,
    }
    if args.command not in commands:
        parser.print_help()
        sys.exit(1)

    try:
        exit_code = commands[args.command](args, logger)
    except (DatabaseError, FallbackError) as e:
        logger.error(f"{args.command} failed: {e}")
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()

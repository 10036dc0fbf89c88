# domain_model_gen/cli.py
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from .catalog import bootstrap_model, list_builtins
from .constants import MODEL_FILE_SUFFIX
from .diagrams.registry import render_diagram, render_process_diagram
from .diagrams.render_config import DiagramFormat, Direction, RenderConfig
from .diagrams.sequence import list_processes
from .errors import ModelGenError
from .io import dump_model, load_model
from .logging_config import setup_logging
from .model_view import slugify
from .settings import Settings, load_settings
from .validate import check_model
from .workflow import SuiteConfig, generate_suite
from .writer import write_diagram_source, write_md

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def _report_validation(model_path: Path, strict: bool) -> bool:
    """Print validation findings to stderr; return True when the model may be used."""
    model = load_model(model_path)
    errors, warnings = check_model(model)
    for warning in warnings:
        print(f"warning: {warning}", file=sys.stderr)
    for error in errors:
        print(f"error: {error}", file=sys.stderr)
    return not (errors or (strict and warnings))


def _build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="domain-model-gen",
        description="Validate SIVI AFD domain models and render them as class diagrams.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional YAML/JSON settings file (environment variables override it).",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help=f"Logging level (default: {settings.log_level}).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_init = sub.add_parser("init", help="Create a model seeded with the built-in entities.")
    p_init.add_argument("name", help="Model name")
    p_init.add_argument("--description", default=None)
    p_init.add_argument(
        "--out",
        type=Path,
        default=None,
        help=f"Output file (default: <models-directory>/<name>{MODEL_FILE_SUFFIX}).",
    )

    p_validate = sub.add_parser("validate", help="Validate a model file.")
    p_validate.add_argument("model", type=Path)
    p_validate.add_argument(
        "--strict",
        action="store_true",
        help="Fail on validation warnings (e.g. non-standard cardinality). Errors always fail.",
    )

    p_render = sub.add_parser("render", help="Render a model as a class diagram.")
    p_render.add_argument("model", type=Path)
    p_render.add_argument(
        "--format",
        choices=[f.value for f in DiagramFormat],
        default=settings.default_format.value,
    )
    p_render.add_argument(
        "--direction",
        choices=[d.value for d in Direction],
        default=settings.direction.value,
    )
    p_render.add_argument("--no-attributes", action="store_true", help="Omit attribute lines.")
    p_render.add_argument("--methods", action="store_true", help="Include per-kind method lines.")
    p_render.add_argument(
        "--no-relationships", action="store_true", help="Omit relationship lines."
    )
    p_render.add_argument(
        "--no-header", action="store_true", help="Omit the metadata comment header."
    )
    p_render.add_argument("--theme", default=None, help="Diagram theme name.")
    p_render.add_argument("--strict", action="store_true", help="Fail on validation warnings.")
    p_render.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Write diagram source to this file instead of stdout.",
    )
    p_render.add_argument(
        "--markdown",
        action="store_true",
        help="With --out: write a titled Markdown page with a fenced diagram block.",
    )

    p_sequence = sub.add_parser("sequence", help="Render a built-in process as a sequence diagram.")
    p_sequence.add_argument("process", help=f"One of: {', '.join(list_processes())}")
    p_sequence.add_argument(
        "--format",
        choices=[f.value for f in DiagramFormat],
        default=settings.default_format.value,
    )
    p_sequence.add_argument("--out", type=Path, default=None)

    p_suite = sub.add_parser(
        "suite",
        help="Render every model file in a directory plus the process diagrams and an index.md.",
    )
    p_suite.add_argument("--input", type=Path, default=settings.models_directory)
    p_suite.add_argument("--out-dir", type=Path, default=settings.output_directory)
    p_suite.add_argument(
        "--formats",
        type=str,
        default=settings.default_format.value,
        help="Comma-separated diagram formats (e.g. mermaid,plantuml).",
    )
    p_suite.add_argument(
        "--no-processes", action="store_true", help="Skip the process sequence diagrams."
    )

    sub.add_parser("entities", help="List the built-in entity templates.")
    return parser


def _cmd_init(args: argparse.Namespace, settings: Settings) -> int:
    model = bootstrap_model(
        args.name,
        args.description,
        namespace=settings.namespace,
        schema_version=settings.schema_version,
    )
    out: Path = args.out or settings.models_directory / f"{slugify(args.name)}{MODEL_FILE_SUFFIX}"
    dump_model(model, out)
    print(out)
    return EXIT_OK


def _cmd_validate(args: argparse.Namespace, settings: Settings) -> int:
    if not _report_validation(args.model, args.strict):
        return EXIT_USAGE
    print(f"{args.model}: ok")
    return EXIT_OK


def _cmd_render(args: argparse.Namespace, settings: Settings) -> int:
    if not _report_validation(args.model, args.strict):
        return EXIT_USAGE

    cfg = RenderConfig(
        grammar=args.format,
        direction=args.direction,
        show_attributes=not args.no_attributes,
        show_methods=args.methods,
        show_relationships=not args.no_relationships,
        include_metadata_header=not args.no_header,
        theme=args.theme,
    )
    output = render_diagram(load_model(args.model), cfg)

    if args.out is None:
        sys.stdout.write(output.content)
    elif args.markdown:
        write_md(args.out, output.title, output.content, output.format)
    else:
        write_diagram_source(args.out, output.content)
    return EXIT_OK


def _cmd_sequence(args: argparse.Namespace, settings: Settings) -> int:
    output = render_process_diagram(args.process, args.format)
    if args.out is None:
        sys.stdout.write(output.content)
    else:
        write_diagram_source(args.out, output.content)
    return EXIT_OK


def _cmd_suite(args: argparse.Namespace, settings: Settings) -> int:
    formats = tuple(
        DiagramFormat.parse(f) for f in args.formats.split(",") if f.strip()
    ) or (settings.default_format,)
    cfg = SuiteConfig(
        render=RenderConfig(direction=settings.direction),
        formats=formats,
        include_processes=not args.no_processes,
    )
    entries = generate_suite(args.input, args.out_dir, cfg)
    failed = [e for e in entries if e.status == "failed"]
    for entry in failed:
        print(f"error: {entry.input_file}: {entry.error}", file=sys.stderr)
    print(f"{len(entries) - len(failed)}/{len(entries)} models rendered to {args.out_dir}")
    return EXIT_FAILED if failed else EXIT_OK


def _cmd_entities(args: argparse.Namespace, settings: Settings) -> int:
    for entity in list_builtins():
        print(f"{entity.id}\t{entity.kind}\t{len(entity.attributes)} attributes\t{entity.description or ''}")
    return EXIT_OK


_COMMANDS = {
    "init": _cmd_init,
    "validate": _cmd_validate,
    "render": _cmd_render,
    "sequence": _cmd_sequence,
    "suite": _cmd_suite,
    "entities": _cmd_entities,
}


def _preparse_config(argv: Sequence[str]) -> Optional[Path]:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", type=Path, default=None)
    known, _ = pre.parse_known_args(argv)
    return known.config


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entrypoint. Returns the process exit code."""
    argv = list(sys.argv[1:] if argv is None else argv)

    try:
        settings = load_settings(_preparse_config(argv))
    except ModelGenError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_USAGE

    args = _build_parser(settings).parse_args(argv)

    try:
        setup_logging(args.log_level or settings.log_level, settings.log_file)
        return _COMMANDS[args.command](args, settings)
    except (ModelGenError, FileNotFoundError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_USAGE


if __name__ == "__main__":
    raise SystemExit(main())

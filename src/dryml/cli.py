"""Command-line interface for the DRYML compiler."""

from __future__ import annotations

import argparse
import dataclasses
import io
import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path

from dryml.builder import Instruction, InstructionKind
from dryml.config import CompileOptions, load_config, options_from_config
from dryml.errors import DrymlError

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed CLI options."""

    input_file: Path
    output_file: Path | None
    taglib: bool
    instructions: bool
    compile_options: CompileOptions
    watch: bool
    debug: bool
    verbose: bool


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate function for testability)."""
    p = argparse.ArgumentParser(
        prog="dryml",
        description="DRYML tag-markup compiler (emits ERB)",
    )
    p.add_argument("input", help="Input .dryml file")
    p.add_argument("-o", "--output", help="Output file (default: stdout)")
    p.add_argument("--taglib", action="store_true", help="Compile as a tag library (definitions only)")
    p.add_argument(
        "--instructions",
        action="store_true",
        help="Print every build instruction instead of the page source",
    )
    p.add_argument("--metadata", action="store_true", help="Include source metadata comments")
    p.add_argument(
        "--field-type",
        action="append",
        default=[],
        metavar="NAME=CLASS",
        help="Map a symbolic field type to a Ruby class (repeatable)",
    )
    p.add_argument(
        "--static-tag",
        action="append",
        default=[],
        metavar="NAME",
        help="Treat an extra element name as plain HTML (repeatable)",
    )
    p.add_argument(
        "--config",
        metavar="FILE",
        help="Config file (default: auto-discover dryml.toml)",
    )
    p.add_argument("--watch", action="store_true", help="Watch for changes and recompile")
    p.add_argument("--debug", action="store_true", help="Dump the node tree to stderr")
    p.add_argument("-v", "--verbose", action="store_true", help="Log compile timings")
    return p


def parse_field_type_arg(s: str) -> tuple[str, str]:
    """Parse a NAME=CLASS string into (name, class)."""
    if "=" not in s:
        raise argparse.ArgumentTypeError(f"invalid field type format (expected NAME=CLASS): {s}")
    name, _, value = s.partition("=")
    return name, value


def resolve_options(args: argparse.Namespace) -> CliOptions:
    """Merge config file and CLI args into CliOptions.

    Precedence: config file < CLI flags.
    """
    input_file = Path(args.input)
    input_dir = input_file.parent
    if not input_dir.parts:
        input_dir = Path(".")

    config_path = Path(args.config) if args.config else None
    compile_options = options_from_config(load_config(config_path, input_dir))

    field_types = dict(compile_options.field_types)
    for raw in args.field_type:
        name, value = parse_field_type_arg(raw)
        field_types[name] = value

    compile_options = dataclasses.replace(
        compile_options,
        include_source_metadata=compile_options.include_source_metadata or args.metadata,
        extra_static_tags=compile_options.extra_static_tags + tuple(args.static_tag),
        field_types=field_types,
    )

    output_file = Path(args.output) if args.output else None

    return CliOptions(
        input_file=input_file,
        output_file=output_file,
        taglib=args.taglib,
        instructions=args.instructions,
        compile_options=compile_options,
        watch=args.watch,
        debug=args.debug,
        verbose=args.verbose,
    )


def compile_file(options: CliOptions) -> str:
    """Read and compile a DRYML file; return the text to output."""
    from dryml.debug import dump_instructions, dump_tree
    from dryml.static_tags import static_tag_set
    from dryml.template import Template

    source = options.input_file.read_text(encoding="utf-8")
    template = Template(
        source,
        str(options.input_file),
        options=options.compile_options,
        taglib=options.taglib,
    )
    instructions: list[Instruction] = template.compile()

    if options.debug and template.document is not None:
        dump_tree(
            template.document,
            static_tags=static_tag_set(options.compile_options.extra_static_tags),
            file=sys.stderr,
        )

    if options.instructions:
        out = io.StringIO()
        dump_instructions(instructions, file=out)
        return out.getvalue()

    if options.taglib:
        return "".join(i.payload["src"] + "\n" for i in instructions if i.kind == InstructionKind.DEF)
    return "".join(i.payload["src"] for i in instructions if i.kind == InstructionKind.RENDER_PAGE)


def _write_output(options: CliOptions, text: str) -> None:
    if options.output_file:
        options.output_file.write_text(text, encoding="utf-8")
    else:
        sys.stdout.write(text)
        sys.stdout.flush()


def watch_loop(options: CliOptions) -> None:
    """Poll input file for changes, recompile on each modification."""
    last_mtime = 0.0
    print(f"Watching {options.input_file} for changes...", file=sys.stderr)
    try:
        while True:
            try:
                mtime = options.input_file.stat().st_mtime
            except OSError:
                time.sleep(0.5)
                continue
            if mtime != last_mtime:
                last_mtime = mtime
                try:
                    _write_output(options, compile_file(options))
                    print(f"Compiled {options.input_file}", file=sys.stderr)
                except DrymlError as exc:
                    print(str(exc), file=sys.stderr)
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0/1/2). Does not call sys.exit()."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.debug:
        logging.getLogger("dryml").setLevel(logging.DEBUG)

    try:
        options = resolve_options(args)
    except argparse.ArgumentTypeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if options.watch:
        watch_loop(options)
        return 0

    try:
        text = compile_file(options)
    except DrymlError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except OSError as exc:
        log.debug("failed to read %s", options.input_file, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 2

    _write_output(options, text)
    return 0

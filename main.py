#!/usr/bin/env python3
"""archforge - architecture and codebase generation from requirements.

Usage:
    python main.py roles -r "Build a task tracker with user accounts"
    python main.py vision -r "..." --out level1.json
    python main.py integrate -r "..." --level1 level1.json --out level2.json
    python main.py implement -r "..." --level2 level2.json --output-dir ./out
    python main.py book -r "..." --level2 level2.json --output-dir ./out
    python main.py build --requirements-file reqs.txt --output-dir ./out --with-book
"""

import argparse
import json
import logging
import sys

from core.errors import PipelineError, PipelineRunError
from core.orchestrator import Orchestrator
from core.state import Level2Output
from manager.roles import matched_keywords, select_roles
from utils.log import configure_logging
from utils.output import get_output_dir, write_book, write_units

logger = logging.getLogger(__name__)


def _load_requirements(args):
    requirements = list(args.requirement or [])
    if args.requirements_file:
        with open(args.requirements_file) as f:
            text = f.read()
        if text.lstrip().startswith("["):
            requirements += json.loads(text)
        else:
            requirements += [line.strip() for line in text.splitlines() if line.strip()]
    return requirements


def _load_json(path):
    with open(path) as f:
        return json.load(f)


def _dump(data, path):
    if not path:
        return
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
    print(f"Wrote {path}")


def _resolve_output_dir(args, requirements):
    if not args.output_dir:
        return None
    if args.new_project_dir:
        return get_output_dir(args.output_dir, requirements)
    return args.output_dir


def cmd_roles(args, orchestrator):
    requirements = _load_requirements(args)
    roles = select_roles(requirements)
    hits = matched_keywords(requirements)
    print("Selected roles:")
    for role in roles:
        why = f"  (matched: {', '.join(hits[role])})" if role in hits else ""
        print(f"  {role}{why}")


def cmd_vision(args, orchestrator):
    requirements = _load_requirements(args)
    level1 = orchestrator.run_level1(requirements)
    print(f"Roles: {', '.join(level1.roles)}")
    for vision in level1.specialists:
        print(f"  [ok]     {vision.role}")
    for failure in level1.failures:
        print(f"  [FAILED] {failure.role}: {failure.error}")
    _dump(level1.to_dict(), args.out)


def cmd_integrate(args, orchestrator):
    requirements = _load_requirements(args)
    level2 = orchestrator.run_level2(requirements, _load_json(args.level1))
    arch = level2.architecture
    print(f"Files: {len(arch.dependency_graph)}")
    for node in arch.dependency_graph:
        print(f"  {node.implementation_order:3d}  {node.path}")
    if arch.repair_notes:
        print(f"\nGraph repairs ({len(arch.repair_notes)}):")
        for note in arch.repair_notes:
            print(f"  {note}")
    _dump(level2.to_dict(), args.out)


def _print_progress(completed, total, label):
    print(f"[{completed}/{total}] {label}")


def cmd_implement(args, orchestrator):
    requirements = _load_requirements(args)
    try:
        level3 = orchestrator.run_level3(
            requirements, _load_json(args.level2), on_progress=_print_progress,
        )
    except PipelineRunError as e:
        output_dir = _resolve_output_dir(args, requirements)
        if output_dir and e.completed:
            written = write_units(e.completed, output_dir)
            print(f"Kept {len(written)} completed file(s) in {output_dir}")
        raise
    _dump(level3.to_dict(), args.out)
    output_dir = _resolve_output_dir(args, requirements)
    if output_dir:
        written = write_units(level3.implementations, output_dir)
        print(f"\nWrote {len(written)} file(s) to {output_dir}")


def cmd_book(args, orchestrator):
    requirements = _load_requirements(args)
    level2 = Level2Output.from_dict(_load_json(args.level2))
    job_id = orchestrator.start_book_job(requirements, level2, background=False)
    job = orchestrator.job_status(job_id)
    if job.status == "error":
        print(f"Book generation failed: {job.error}", file=sys.stderr)
        sys.exit(1)
    _dump(job.result, args.out)
    output_dir = _resolve_output_dir(args, requirements)
    if output_dir:
        book = Level2Output.from_dict({**level2.to_dict(), **job.result}).book
        print(f"Wrote {write_book(book, output_dir)}")


def cmd_build(args, orchestrator):
    requirements = _load_requirements(args)
    state = orchestrator.run_full(requirements, with_book=args.with_book)

    print(f"\nPhase:  {state.phase}")
    if state.level1:
        print(f"Roles:  {', '.join(state.level1.roles)}")
    if state.level2:
        print(f"Files planned: {len(state.level2.architecture.dependency_graph)}")
    if state.level3:
        print(f"Files generated: {len(state.level3.implementations)}")
    for error in state.errors:
        print(f"  [ERROR] {error}")

    output_dir = _resolve_output_dir(args, requirements)
    if output_dir and state.level3:
        written = write_units(state.level3.implementations, output_dir)
        print(f"\nWrote {len(written)} file(s) to {output_dir}")
    if output_dir and state.level2 and state.level2.book:
        print(f"Wrote {write_book(state.level2.book, output_dir)}")

    _dump({
        "phase": state.phase,
        "errors": state.errors,
        "level1Output": state.level1.to_dict() if state.level1 else None,
        "level2Output": state.level2.to_dict() if state.level2 else None,
        "level3Output": state.level3.to_dict() if state.level3 else None,
    }, args.out)
    if state.phase == "failed":
        sys.exit(1)


COMMANDS = {
    "roles": cmd_roles,
    "vision": cmd_vision,
    "integrate": cmd_integrate,
    "implement": cmd_implement,
    "book": cmd_book,
    "build": cmd_build,
}


def build_parser():
    parser = argparse.ArgumentParser(
        prog="archforge",
        description="Generate an architecture and codebase from requirements",
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--log-level", help="Log level (default from ARCHFORGE_LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command")

    def add(name, help_text):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("-r", "--requirement", action="append",
                         help="A requirement (repeatable)")
        sub.add_argument("--requirements-file",
                         help="File with one requirement per line, or a JSON list")
        sub.add_argument("--out", help="Write the phase output as JSON to this file")
        return sub

    add("roles", "Show which specialist roles the requirements select")
    add("vision", "Phase 1: specialist visions")
    integrate = add("integrate", "Phase 2: integrated architecture + dependency graph")
    integrate.add_argument("--level1", required=True, help="Phase 1 JSON output")

    for name, help_text in (("implement", "Phase 3: generate every file in dependency order"),
                            ("book", "Write the implementation book for an architecture")):
        sub = add(name, help_text)
        sub.add_argument("--level2", required=True, help="Phase 2 JSON output")
        sub.add_argument("--output-dir", help="Write generated files here")
        sub.add_argument("--new-project-dir", action="store_true",
                         help="Create a fresh project folder inside --output-dir")

    build = add("build", "Run all phases end to end")
    build.add_argument("--with-book", action="store_true",
                       help="Also write the implementation book before generating files")
    build.add_argument("--output-dir", help="Write generated files here")
    build.add_argument("--new-project-dir", action="store_true",
                       help="Create a fresh project folder inside --output-dir")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.log_level, verbose=args.verbose)
    orchestrator = Orchestrator()
    try:
        COMMANDS[args.command](args, orchestrator)
    except PipelineError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

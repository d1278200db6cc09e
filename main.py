#!/usr/bin/env python3
"""PageSmith - multi-page website generation from a single prompt.

Usage:
    python main.py build --prompt "a bakery website with menu and contact page"
    python main.py build --prompt "..." --name "Crumb & Co" --max-units 4
    python main.py build --prompt "..." --dry-run       # plan only, no API calls
    python main.py build --prompt "..." --no-save       # print results, write nothing
"""

import argparse
import logging
import sys

from core.orchestrator import Orchestrator
from core.state import GenerationRequest
from core.store import DirectoryStore


def _print_plan(plan):
    print(f"Mode:       {plan.mode} ({plan.confidence} confidence)")
    print(f"Reason:     {plan.reason}")
    print(f"Tech stack: {', '.join(plan.tech_stack)}")
    print(f"\nPages ({len(plan.units)}):")
    for unit in plan.units:
        line = f"  {unit.filename:20s} {unit.display_name}"
        if unit.description:
            line += f" - {unit.description}"
        print(line)
    for warning in plan.warnings:
        print(f"  [WARN] {warning}")


def _progress(name, data):
    if name == "step_start":
        print(f"  generating {data['unitSlug']} ...")
    elif name == "file" and not data["path"].endswith(".html"):
        print(f"  shared     {data['path']}")
    elif name == "phase" and data["phase"] == "repairing":
        print("  repairing defective pages ...")


def cmd_build(args):
    """Run the full pipeline."""
    orchestrator = Orchestrator(max_units=args.max_units)

    if args.dry_run:
        _print_plan(orchestrator.detect(args.prompt))
        return 0

    request = GenerationRequest(prompt=args.prompt, project_name=args.name)
    store = None if args.no_save else DirectoryStore()
    result = orchestrator.run(request, on_event=_progress, store=store)

    print(f"\nMode:     {result.mode}")
    print(f"Quality:  {result.quality_score}/100")
    print(f"Status:   {'ok' if result.success else 'FAILED'}{' (cancelled)' if result.cancelled else ''}")
    if result.project_id:
        print(f"Project:  {result.project_id} (saved under {store.root})")
    print(f"\nGenerated {len(result.artifacts)} file(s):")
    for path in result.artifacts:
        print(f"  {path}")

    for warning in result.warnings:
        print(f"  [WARN] {warning}")
    for error in result.errors:
        print(f"  [ERROR] {error}")
    return 0 if result.success else 1


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="pagesmith",
        description="Generate a validated multi-page website from a prompt",
    )
    subparsers = parser.add_subparsers(dest="command")

    build_parser = subparsers.add_parser("build", help="Run the generation pipeline")
    build_parser.add_argument("--prompt", required=True, help="Natural language request")
    build_parser.add_argument("--name", default="My Site", help="Site / project name")
    build_parser.add_argument("--max-units", type=int, default=None,
                              help="Max pages to generate (default: 7)")
    build_parser.add_argument("--dry-run", action="store_true",
                              help="Run the detector only, show the plan")
    build_parser.add_argument("--no-save", action="store_true",
                              help="Do not write the site to disk")
    build_parser.add_argument("--verbose", action="store_true",
                              help="Debug logging (routing, extraction, retries)")

    args = parser.parse_args(argv)

    if args.command != "build":
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return cmd_build(args)


if __name__ == "__main__":
    sys.exit(main())

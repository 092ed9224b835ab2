from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Tuple

from . import __version__
from .config import (
    DEFAULT_GANG_WIDTH,
    DEFAULT_MAX_LENGTH_INCH,
    LOG_FILE,
    SAFE_MARGIN_INCH,
    SPACING_INCH,
    SheetSettings,
)
from .errors import GangSheetError, InvalidInputError, ItemTooLargeError
from .job import JobRequest, JobResult, logos_from_quantities, run_job
from .layout import OrientationMode
from .render import render_proof


def _setup_logging() -> None:
    """Setup logging to both file and console."""
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    # File handler - detailed logs
    file_handler = logging.FileHandler(LOG_FILE, mode='w')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(module)s:%(lineno)d - %(message)s'))

    # Console handler - important messages only
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    logging.info(f"Logging initialized. Debug log: {LOG_FILE}")


def _read_inputs(paths: List[str]) -> Tuple[List[str], List[bytes]]:
    names = []
    payloads = []
    for p in paths:
        names.append(os.path.basename(p))
        payloads.append(Path(p).read_bytes())
    return names, payloads


def _build_request(args: argparse.Namespace, render: bool) -> JobRequest:
    try:
        names, payloads = _read_inputs(args.input)
    except OSError as e:
        raise InvalidInputError(f"Error opening input file(s): {e}") from e

    cost_tables = None
    if args.cost_tables:
        # A missing or unreadable file falls back to the defaults like bad JSON does
        try:
            cost_tables = Path(args.cost_tables).read_text(encoding="utf-8")
        except OSError as e:
            logging.warning(f"Cannot read cost tables {args.cost_tables}: {e}")
            cost_tables = ""

    if args.rotate or args.upright:
        orientation = OrientationMode.fixed(args.rotate)
    else:
        orientation = OrientationMode.SMART_FIT

    return JobRequest(
        logos=logos_from_quantities(names, payloads, args.quantity or []),
        settings=SheetSettings(
            gang_width=args.gang_width,
            max_length=args.max_length,
            margin=args.margin,
            spacing=args.spacing,
        ),
        orientation=orientation,
        consolidate=True if args.consolidate else None,
        cost_tables=cost_tables,
        render=render,
        strict_widths=args.strict_widths,
    )


def _print_summary(result: JobResult) -> None:
    mode = "consolidated" if result.consolidated else "single file"
    print(f"{len(result.sheets)} sheet(s), {mode}")
    for s in result.sheets:
        print(f"  #{s.sheet_index + 1} {s.filename}: {s.width:.0f}\" x {s.height}\", "
              f"{len(s.placements)} logos, {s.utilization:.1%} used, ${s.cost:.2f}")
    print(f"Total cost: ${result.total_cost:.2f}")


def _run(args: argparse.Namespace, render: bool) -> int:
    logging.info(f"Starting {args.cmd} operation")
    logging.debug(f"Args: {vars(args)}")

    try:
        request = _build_request(args, render)
        result = run_job(request)
    except InvalidInputError as e:
        logging.error(f"Invalid input: {e}")
        print(f"Error: {e}")
        return 2
    except ItemTooLargeError as e:
        logging.error(f"Layout failed: {e}")
        print(f"Error: {e}")
        return 3

    if render:
        try:
            out_dir = Path(args.output_dir)
            out_dir.mkdir(parents=True, exist_ok=True)
            for s in result.sheets:
                (out_dir / s.filename).write_bytes(s.artifact)
                print(f"Wrote sheet: {out_dir / s.filename}")

            if args.proof_dir:
                proof_dir = Path(args.proof_dir)
                proof_dir.mkdir(parents=True, exist_ok=True)
                for s in result.sheets:
                    proof_path = proof_dir / f"{Path(s.filename).stem}.png"
                    proof_path.write_bytes(render_proof(s.artifact, args.proof_dpi))
                    print(f"Wrote proof: {proof_path}")
        except (OSError, RuntimeError) as e:
            logging.error(f"Error writing output: {e}")
            print(f"Error writing output: {e}")
            return 5

    _print_summary(result)
    return 0


def cli_compose(args: argparse.Namespace) -> int:
    """Pack, price and render gang sheets for the given logos."""
    return _run(args, render=True)


def cli_plan(args: argparse.Namespace) -> int:
    """Pack and price without rendering."""
    return _run(args, render=False)


def _add_job_arguments(c: argparse.ArgumentParser) -> None:
    c.add_argument("--input", action="append", required=True, help="Logo PDF or PNG path (repeatable)")
    c.add_argument("--quantity", action="append", type=int, required=True,
                   help="Copies of the matching --input (repeat once per input, in the same order)")

    # Sheet controls
    c.add_argument("--gang-width", type=float, default=DEFAULT_GANG_WIDTH, help="Sheet width in inches (22 or 30)")
    c.add_argument("--max-length", type=float, default=DEFAULT_MAX_LENGTH_INCH, help="Maximum sheet length in inches")
    c.add_argument("--margin", type=float, default=SAFE_MARGIN_INCH, help="Safe margin on every edge (inches)")
    c.add_argument("--spacing", type=float, default=SPACING_INCH, help="Gap between logos (inches)")
    c.add_argument("--strict-widths", action="store_true", help="Only accept the standard gang widths")

    # Orientation
    o = c.add_mutually_exclusive_group()
    o.add_argument("--smart-fit", action="store_true", help="Rotate each logo when that fits more per sheet (default)")
    o.add_argument("--rotate", action="store_true", help="Rotate every logo 90 degrees")
    o.add_argument("--upright", action="store_true", help="Never rotate logos")

    c.add_argument("--consolidate", action="store_true", help="Use consolidated packing even for a single file")
    c.add_argument("--cost-tables", help="JSON file of {width: {height: price}} tiers")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="gangsheet", description="DTF gang sheet packing CLI")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = p.add_subparsers(dest="cmd")

    c = sub.add_parser("compose", help="Pack logos into gang sheets and write one PDF per sheet")
    _add_job_arguments(c)
    c.add_argument("--output-dir", default="sheets", help="Directory for sheet PDFs")
    c.add_argument("--proof-dir", help="Optional directory for PNG proofs")
    c.add_argument("--proof-dpi", type=int, default=72, help="Proof raster DPI")
    c.set_defaults(func=cli_compose)

    pl = sub.add_parser("plan", help="Show sheet count, heights and cost without rendering")
    _add_job_arguments(pl)
    pl.set_defaults(func=cli_plan)

    return p


def main(argv: List[str] | None = None) -> int:
    _setup_logging()

    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        result = args.func(args)
        logging.info(f"Operation completed with exit code: {result}")
        return result
    except GangSheetError as e:
        logging.error(f"Gang sheet error: {e}", exc_info=True)
        print(f"Error: {e}")
        return 1
    except Exception as e:
        logging.error(f"Unhandled exception: {e}", exc_info=True)
        print(f"Fatal error: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

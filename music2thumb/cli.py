#!/usr/bin/env python3
"""Command-line interface for music2thumb.

This module contains the argument parser, the interactive questions and
main(), which runs the resolver and the executors in order. Every question
can also be answered up front with a flag, which makes the tool usable
from scripts.
"""

from __future__ import annotations

import argparse
import os
import shutil
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence

from music2thumb.executor import execute_jobs
from music2thumb.resolver import (
    build_job_set,
    filter_against_target,
    parse_spec_lines,
    read_spec_file,
    select_formats,
    validate_conversion_table,
)
from music2thumb.target import inspect_target, prepare_target
from music2thumb.types import (
    ALL_FORMATS,
    DEFAULT_TRANSCODER,
    ConfigurationError,
    Decisions,
    TargetState,
    __version__,
)


def ask(question: str) -> str:
    """Print a question and return the stripped answer ('' on EOF)."""
    print(question, end="", flush=True)
    try:
        return input().strip()
    except EOFError:
        print()
        return ""


def confirm(question: str) -> bool:
    return ask(f"{question} [Y/n] ").lower() == "y"


def ask_formats(answer: Optional[str] = None) -> List[str]:
    """Determine the allowed formats, asking if no answer was given.

    Raises:
        ConfigurationError: If no supported format was chosen.
    """
    if answer is None:
        answer = ask(f"Which formats out of [{', '.join(ALL_FORMATS)}] are allowed? ")
    return select_formats(answer, ALL_FORMATS)


def gather_target_decisions(
    target: Path, state: TargetState, args: argparse.Namespace
) -> Decisions:
    """Ask whether to clean or overwrite a non-empty target."""
    clean = args.clean
    overwrite = args.force

    if state is TargetState.NON_EMPTY and not (clean or overwrite):
        clean = confirm(
            f"Target directory '{target}' is not empty.\n\tShould we clean it?"
        )
        if not clean:
            overwrite = confirm(
                "\tOkay, no cleaning. But should we overwrite existing files?"
            )

    return Decisions(clean=clean, overwrite=overwrite)


def check_inputs(spec_file: Path, target: Path) -> TargetState:
    """Validate the positional arguments.

    Raises:
        ConfigurationError: With a message for the user.
    """
    if not spec_file.exists():
        raise ConfigurationError(f"File '{spec_file}' does not exist.")
    if spec_file.is_dir():
        raise ConfigurationError(f"File '{spec_file}' is a directory.")
    return inspect_target(target)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="music2thumb",
        description=(
            "Copy music to a thumb drive or music player, converting down to "
            "the best format the device supports."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Specification files contain one line per item of the form

  artist/album/track

where track (whole album) or album and track (everything by the artist)
can be dropped. All positions are matched as substrings, so

  Stones/Dirty

matches all tracks of Rolling Stones - Dirty Work. Use */Dirty to match
albums with Dirty in the name by any artist.

Only flac, ogg and mp3 files are considered; everything else is ignored.
Abort at any time with CTRL+C and run the command again later, choosing
neither clean nor overwrite, to continue where you stopped.

Examples:
  music2thumb playlist.txt /media/player
  music2thumb playlist.txt /media/player -s ~/Music --formats "ogg mp3" -y
""",
    )

    parser.add_argument("spec_file", help="Specification file, one item per line")
    parser.add_argument("target", help="Target directory on the device")
    parser.add_argument(
        "-s",
        "--source",
        default=".",
        help="Music library root the specifications refer to (default: .)",
    )
    parser.add_argument(
        "--formats",
        help=f"Allowed formats, space separated, out of: {' '.join(ALL_FORMATS)} "
        "(default: ask)",
    )
    parser.add_argument(
        "--clean",
        action="store_true",
        help="Empty a non-empty target directory without asking",
    )
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Overwrite existing files in the target without asking",
    )
    parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Do not ask for confirmation before transferring",
    )
    parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=os.cpu_count() or 1,
        help="Number of parallel conversions (default: number of CPUs)",
    )
    parser.add_argument(
        "--transcoder",
        default=DEFAULT_TRANSCODER,
        help=f"ffmpeg-compatible transcoder to use (default: {DEFAULT_TRANSCODER})",
    )
    parser.add_argument(
        "--tmp-dir",
        help="Directory for conversion output before it is moved to the target",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Suppress progress output"
    )
    parser.add_argument(
        "-v", "--version", action="version", version=f"%(prog)s {__version__}"
    )
    return parser


def run(args: argparse.Namespace) -> int:
    """Execute a parsed command line; returns the exit status."""
    spec_file = Path(args.spec_file)
    target = Path(args.target)

    validate_conversion_table()
    state = check_inputs(spec_file, target)

    formats = ask_formats(args.formats)
    if not args.quiet:
        print(f"Okay, we will use formats {', '.join(formats)}.")

    try:
        lines = read_spec_file(spec_file)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Could not read '{spec_file}': {e}")

    patterns = parse_spec_lines(lines)
    jobs = build_job_set(patterns, formats, ALL_FORMATS, target, root=args.source)
    if not jobs:
        print("We did not find any files to copy; check your specification!")
        return 0

    decisions = gather_target_decisions(target, state, args)
    overwrite = prepare_target(target, state, decisions)
    if state is TargetState.NON_EMPTY and decisions.clean and not args.quiet:
        print(f"\t'{target}' is now empty.")

    jobs = filter_against_target(jobs, overwrite)
    if not jobs:
        print("All files are already there, so there is nothing left to do!")
        return 0

    conversions = sum(1 for job in jobs.values() if job.needs_conversion)
    print(
        f"We will transfer {len(jobs)} files, "
        f"{conversions} of which will be converted first."
    )
    decisions = replace(
        decisions, proceed=args.yes or confirm("This may take a while. Continue?")
    )
    if not decisions.proceed:
        return 0

    if conversions and shutil.which(args.transcoder) is None:
        raise ConfigurationError(
            f"{args.transcoder} not found, but {conversions} files need conversion."
        )

    tmp_dir = Path(args.tmp_dir) if args.tmp_dir else None
    report = execute_jobs(
        jobs,
        transcoder=args.transcoder,
        workers=args.jobs,
        tmp_dir=tmp_dir,
        quiet=args.quiet,
    )

    if report.failed:
        print(
            f"Done, but {len(report.failed)} of {len(jobs)} files failed.",
            file=sys.stderr,
        )
        return 1

    if not args.quiet:
        print("Done.")
        print("Your music awaits you, have fun!")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point for the music2thumb CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.jobs < 1:
        parser.error("--jobs must be at least 1")

    try:
        status = run(args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nAborted; run again to continue where you stopped.", file=sys.stderr)
        sys.exit(130)

    sys.exit(status)


if __name__ == "__main__":
    main()

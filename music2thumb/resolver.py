#!/usr/bin/env python3
"""Job resolution for music2thumb.

Turns the lines of a specification file into the set of file transfers
that have to happen. Every stage returns a new collection, so each one
can be used and tested on its own:

    read_spec_file -> parse_spec_lines -> build_job_set -> filter_against_target

A specification line has the form ``artist/album/track``; trailing
components may be dropped and every given component is matched as a
substring. ``Stones/Dirty`` becomes the pattern
``*Stones*/*Dirty*/*.{flac,ogg,mp3}``.

Files with an extension outside of ALL_FORMATS are never matched.
"""

from __future__ import annotations

import glob
import os
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Sequence, Union

from music2thumb.types import (
    ALL_FORMATS,
    CONVERSIONS,
    ConfigurationError,
    Conversion,
    Job,
    Pattern,
    UnsupportedConversionError,
)

PathLike = Union[str, "os.PathLike[str]"]

MAX_COMPONENTS = 3


def read_spec_file(path: PathLike) -> List[str]:
    """Read a specification file.

    Args:
        path: Path to a UTF-8 text file with one specification per line.

    Returns:
        Stripped, non-empty lines in file order.
    """
    with open(path, "r", encoding="utf-8") as f:
        lines = [line.strip() for line in f]
    return [line for line in lines if line]


def _wildcard(component: str) -> str:
    if not component:
        return "*"
    # "*" stays a wildcard (e.g. "*/Dirty"), "[" and "?" are literal
    literal = "".join(f"[{c}]" if c in "[?" else c for c in component)
    return f"*{literal}*"


def parse_spec_lines(lines: Iterable[str]) -> List[Pattern]:
    """Convert specification lines into three-level glob patterns.

    Lines with more than three components are reported on stderr and
    skipped; they never abort the run.

    Args:
        lines: Stripped, non-empty specification lines.

    Returns:
        One Pattern per valid line, in input order.
    """
    patterns: List[Pattern] = []

    for line in lines:
        parts = line.split("/")
        # "Stones/" means the same as "Stones"
        while parts and parts[-1] == "":
            parts.pop()

        if len(parts) > MAX_COMPONENTS:
            print(
                f"Warning: Specification '{line}' has too many components. Ignoring.",
                file=sys.stderr,
            )
            continue

        parts.extend([""] * (MAX_COMPONENTS - len(parts)))
        artist, album, track = (_wildcard(p) for p in parts)
        patterns.append(Pattern(artist, album, track))

    return patterns


def expand_pattern(
    pattern: Pattern,
    all_formats: Sequence[str] = ALL_FORMATS,
    root: PathLike = ".",
) -> List[str]:
    """Find the files matched by a pattern.

    The extension is restricted to the supported formats, not only the
    allowed ones; format choice happens later in resolve_job.

    Args:
        pattern: Pattern produced by parse_spec_lines.
        all_formats: Every supported format.
        root: Music library root the pattern is relative to.

    Returns:
        Matching regular files as POSIX paths relative to root.
    """
    matches: List[str] = []
    for fmt in all_formats:
        for match in glob.glob(pattern.glob(fmt), root_dir=root):
            if os.path.isfile(os.path.join(root, match)):
                matches.append(Path(match).as_posix())
    return matches


def best_allowed_format(
    allowed_formats: Iterable[str], all_formats: Sequence[str] = ALL_FORMATS
) -> str:
    """Return the highest quality allowed format.

    Raises:
        ConfigurationError: If no supported format is allowed.
    """
    allowed = set(allowed_formats)
    for fmt in all_formats:
        if fmt in allowed:
            return fmt
    raise ConfigurationError("No supported format is allowed")


def resolve_job(
    source: str,
    allowed_formats: Iterable[str],
    all_formats: Sequence[str],
    target_root: PathLike,
    root: PathLike = ".",
) -> Job:
    """Decide where a matched file goes and whether it must be converted.

    Files in an allowed format keep their name. All other files are
    converted to the best allowed format overall, regardless of their own
    quality.

    Args:
        source: File path relative to the library root.
        allowed_formats: Formats the target device plays.
        all_formats: Every supported format, best first.
        target_root: Target directory.
        root: Music library root.

    Returns:
        The resolved Job.

    Raises:
        UnsupportedConversionError: If the conversion would need a rule
            that CONVERSIONS does not define (e.g. mp3->flac).
    """
    allowed = set(allowed_formats)
    relative = Path(source)
    source_format = relative.suffix[1:]

    if source_format in allowed:
        return Job(Path(root) / relative, Path(target_root) / relative)

    target_format = best_allowed_format(allowed, all_formats)
    if (source_format, target_format) not in CONVERSIONS:
        raise UnsupportedConversionError(source_format, target_format)

    return Job(
        Path(root) / relative,
        Path(target_root) / relative.with_suffix(f".{target_format}"),
        Conversion(source_format, target_format),
    )


def build_job_set(
    patterns: Iterable[Pattern],
    allowed_formats: Iterable[str],
    all_formats: Sequence[str],
    target_root: PathLike,
    root: PathLike = ".",
) -> Dict[str, Job]:
    """Collect the jobs for all patterns, keyed by source path.

    A file matched by several patterns appears once. Files that would need
    an undefined conversion are reported and left out.

    Returns:
        Mapping of relative source path to Job; empty if nothing matched.
    """
    allowed = frozenset(allowed_formats)
    jobs: Dict[str, Job] = {}

    for pattern in patterns:
        for source in expand_pattern(pattern, all_formats, root):
            try:
                jobs[source] = resolve_job(
                    source, allowed, all_formats, target_root, root
                )
            except UnsupportedConversionError as e:
                print(f"Warning: {e}; skipping '{source}'.", file=sys.stderr)

    return jobs


def filter_against_target(
    jobs: Mapping[str, Job], overwrite: bool
) -> Dict[str, Job]:
    """Drop jobs whose destination already exists unless overwriting."""
    if overwrite:
        return dict(jobs)
    return {
        source: job for source, job in jobs.items() if not job.destination.exists()
    }


def select_formats(answer: str, all_formats: Sequence[str] = ALL_FORMATS) -> List[str]:
    """Parse the allowed-formats answer.

    Unknown names are ignored; the result follows the quality order.

    Raises:
        ConfigurationError: If no supported format remains.
    """
    wanted = set(answer.split())
    formats = [fmt for fmt in all_formats if fmt in wanted]
    if not formats:
        raise ConfigurationError(
            "No supported format? That's not going to work out, sorry."
        )
    return formats


def validate_conversion_table(
    all_formats: Sequence[str] = ALL_FORMATS,
    conversions: Mapping[tuple, Sequence[str]] = CONVERSIONS,
) -> None:
    """Check that every downgrade pair of the quality order has a rule.

    Raises:
        ConfigurationError: Naming the first missing pair.
    """
    for i, source in enumerate(all_formats):
        for destination in all_formats[i + 1 :]:
            if (source, destination) not in conversions:
                raise ConfigurationError(
                    f"Conversion table lacks {source}->{destination}"
                )

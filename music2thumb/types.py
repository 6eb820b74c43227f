#!/usr/bin/env python3
"""Shared types, constants, and exceptions for the music2thumb package.

This module contains the format list, the conversion table and the small
record types passed between the resolver, the target preparation code and
the executors.

Constants:
    __version__: Package version string
    ALL_FORMATS: Supported audio formats, best first
    CONVERSIONS: Transcoder flags per (source, destination) format pair
    DEFAULT_TRANSCODER: Program used for transcoding

Types:
    Pattern: Three-level glob built from a specification line
    Conversion: Source/destination format pair of a job
    Job: One file transfer, optionally with a conversion
    Decisions: Answers to the clean/overwrite/proceed questions
    TargetState: What the target directory looked like before preparation
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Tuple

# ============================================================================
# VERSION AND METADATA
# ============================================================================

__version__ = "1.0.0"

# ============================================================================
# SUPPORTED FORMATS
# ============================================================================

# Ordered decreasingly by quality/preference.
ALL_FORMATS: Tuple[str, ...] = ("flac", "ogg", "mp3")

# ============================================================================
# TRANSCODING
# ============================================================================

DEFAULT_TRANSCODER: str = "ffmpeg"

# Codec flags placed between the input and output file arguments.
# Only downgrades are listed; we never convert up.
CONVERSIONS: Dict[Tuple[str, str], Tuple[str, ...]] = {
    ("ogg", "mp3"): ("-q:a", "6", "-map_metadata", "0:s:0"),
    ("flac", "mp3"): ("-q:a", "6", "-map_metadata", "0:g:0"),
    ("flac", "ogg"): ("-c:a", "libvorbis", "-q:a", "3", "-map_metadata", "0"),
}

# ============================================================================
# EXCEPTIONS
# ============================================================================


class ConfigurationError(ValueError):
    """Raised for problems that make the whole run pointless."""


class UnsupportedConversionError(ConfigurationError):
    """Raised when no conversion rule exists for a format pair."""

    def __init__(self, source: str, destination: str) -> None:
        super().__init__(f"No conversion from {source} to {destination} is defined")
        self.source = source
        self.destination = destination


# ============================================================================
# TYPE DEFINITIONS
# ============================================================================


@dataclass(frozen=True)
class Pattern:
    """Artist, album and track glob components of one specification line."""

    artist: str
    album: str
    track: str

    def glob(self, extension: str) -> str:
        """Return the glob for files of one extension."""
        return f"{self.artist}/{self.album}/{self.track}.{extension}"

    def __str__(self) -> str:
        return f"{self.artist}/{self.album}/{self.track}.{{{','.join(ALL_FORMATS)}}}"


@dataclass(frozen=True)
class Conversion:
    source: str
    destination: str

    def __str__(self) -> str:
        return f"{self.source}->{self.destination}"


@dataclass(frozen=True)
class Job:
    """A single source-to-destination transfer.

    ``conversion`` is None when the source format is allowed on the target
    and the file is copied as is.
    """

    source: Path
    destination: Path
    conversion: Optional[Conversion] = None

    @property
    def needs_conversion(self) -> bool:
        return self.conversion is not None


@dataclass(frozen=True)
class Decisions:
    """User answers gathered before any file is touched."""

    clean: bool = False
    overwrite: bool = False
    proceed: bool = False


class TargetState(Enum):
    MISSING = "missing"
    EMPTY = "empty"
    NON_EMPTY = "non-empty"

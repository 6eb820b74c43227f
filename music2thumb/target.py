#!/usr/bin/env python3
"""Target directory preparation for music2thumb.

The target is inspected once, then prepared according to the user's
Decisions:

    MISSING   -> created
    EMPTY     -> used as is
    NON_EMPTY -> cleaned, or kept with or without overwriting

The returned overwrite flag is what filter_against_target needs.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Union

from music2thumb.types import ConfigurationError, Decisions, TargetState


def inspect_target(target: Union[str, Path]) -> TargetState:
    """Classify the target directory.

    Raises:
        ConfigurationError: If target exists but is not a directory.
    """
    path = Path(target)
    if not path.exists():
        return TargetState.MISSING
    if not path.is_dir():
        raise ConfigurationError(f"'{target}' is not a directory.")
    if any(path.iterdir()):
        return TargetState.NON_EMPTY
    return TargetState.EMPTY


def clean_directory(target: Union[str, Path]) -> None:
    """Remove everything inside target, keeping target itself."""
    for entry in Path(target).iterdir():
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()


def prepare_target(
    target: Union[str, Path], state: TargetState, decisions: Decisions
) -> bool:
    """Bring the target directory into the state the decisions ask for.

    Returns:
        Whether existing destination files may be overwritten.
    """
    path = Path(target)

    if state is TargetState.MISSING:
        path.mkdir(parents=True)
        return False

    if state is TargetState.NON_EMPTY:
        if decisions.clean:
            clean_directory(path)
            return False
        return decisions.overwrite

    return False

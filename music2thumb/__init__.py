#!/usr/bin/env python3
"""Package initialization and public API for music2thumb.

music2thumb copies music files to a thumb drive or music player, converting
down to the best format the device supports.

Public API:
    # Job resolution
    read_spec_file(path) -> List[str]
    parse_spec_lines(lines) -> List[Pattern]
    expand_pattern(pattern, all_formats, root) -> List[str]
    resolve_job(source, allowed_formats, all_formats, target_root, root) -> Job
    build_job_set(patterns, allowed_formats, all_formats, target_root, root) -> Dict[str, Job]
    filter_against_target(jobs, overwrite) -> Dict[str, Job]

    # Target directory
    inspect_target(target) -> TargetState
    prepare_target(target, state, decisions) -> bool

    # Execution
    copy_jobs(jobs, quiet) -> TransferReport
    transcode_jobs(jobs, transcoder, workers, tmp_dir, quiet) -> TransferReport
    execute_jobs(jobs, ...) -> TransferReport

Usage as a library:
    ```python
    from music2thumb import (
        ALL_FORMATS, build_job_set, filter_against_target, parse_spec_lines,
    )

    patterns = parse_spec_lines(["Stones/Dirty"])
    jobs = build_job_set(patterns, ["mp3"], ALL_FORMATS, "/mnt/player", root="/home/me/Music")
    jobs = filter_against_target(jobs, overwrite=False)
    ```

Usage as CLI:
    ```bash
    python -m music2thumb playlist.txt /mnt/player
    music2thumb playlist.txt /mnt/player --formats mp3 -y
    ```
"""

from __future__ import annotations

from music2thumb.types import (
    __version__,
    ALL_FORMATS,
    CONVERSIONS,
    DEFAULT_TRANSCODER,
    ConfigurationError,
    UnsupportedConversionError,
    Pattern,
    Conversion,
    Job,
    Decisions,
    TargetState,
)

from music2thumb.resolver import (
    read_spec_file,
    parse_spec_lines,
    expand_pattern,
    best_allowed_format,
    resolve_job,
    build_job_set,
    filter_against_target,
    select_formats,
    validate_conversion_table,
)

from music2thumb.target import (
    inspect_target,
    clean_directory,
    prepare_target,
)

from music2thumb.executor import (
    TransferReport,
    run_command,
    build_transcode_command,
    place_file,
    copy_jobs,
    transcode_jobs,
    execute_jobs,
)

from music2thumb.cli import main

__all__ = [
    # Version and constants
    "__version__",
    "ALL_FORMATS",
    "CONVERSIONS",
    "DEFAULT_TRANSCODER",
    # Types
    "ConfigurationError",
    "UnsupportedConversionError",
    "Pattern",
    "Conversion",
    "Job",
    "Decisions",
    "TargetState",
    # Job resolution
    "read_spec_file",
    "parse_spec_lines",
    "expand_pattern",
    "best_allowed_format",
    "resolve_job",
    "build_job_set",
    "filter_against_target",
    "select_formats",
    "validate_conversion_table",
    # Target directory
    "inspect_target",
    "clean_directory",
    "prepare_target",
    # Execution
    "TransferReport",
    "run_command",
    "build_transcode_command",
    "place_file",
    "copy_jobs",
    "transcode_jobs",
    "execute_jobs",
    # CLI
    "main",
]

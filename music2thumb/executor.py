#!/usr/bin/env python3
"""Job execution for music2thumb: copying and transcoding.

Copies run first and strictly one after another; parallelism does not help
for I/O-bound copying and getting the quick jobs done first leaves more
music on the device should the user abort.

Transcodes are independent of each other and run in a thread pool. Every
transcode writes into a private temporary directory; the result only
enters the target directory once it exists. The transcoder's exit status
is not trusted, the output file is.

No file ever appears under its final name in the target directory before
it is complete, so an aborted run can simply be repeated.
"""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
import tempfile
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from tqdm import tqdm

from music2thumb.types import CONVERSIONS, DEFAULT_TRANSCODER, Conversion, Job

PROGRESS_FORMAT = "{desc}: {percentage:3.0f}%|{bar}| {n_fmt}/{total_fmt} [{remaining}]"


@dataclass
class TransferReport:
    copied: int = 0
    converted: int = 0
    failed: List[Path] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def run_command(cmd: Sequence[str]) -> bool:
    """Run a command without a shell, discarding its output.

    Returns:
        False if the program could not be started or exited non-zero.
    """
    try:
        subprocess.run(
            list(cmd),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=True,
        )
        return True
    except (subprocess.CalledProcessError, OSError):
        return False


def build_transcode_command(
    conversion: Conversion,
    infile: Path,
    outfile: Path,
    transcoder: str = DEFAULT_TRANSCODER,
) -> List[str]:
    """Assemble the transcoder argv for one conversion.

    Raises:
        KeyError: If the conversion is not in CONVERSIONS.
    """
    flags = CONVERSIONS[(conversion.source, conversion.destination)]
    return [
        transcoder, "-v", "quiet", "-y",
        "-i", str(infile),
        *flags,
        str(outfile),
    ]


def place_file(source: Path, destination: Path) -> None:
    """Copy source to destination without leaving a partial destination.

    The data goes to a hidden ``.part`` file next to the destination, which
    is renamed once complete. The part file is removed if anything,
    including KeyboardInterrupt, interrupts the copy.
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    part = destination.with_name(f".{destination.name}.part")
    try:
        shutil.copyfile(source, part)
        os.replace(part, destination)
    except BaseException:
        part.unlink(missing_ok=True)
        raise


def copy_jobs(jobs: Mapping[str, Job], quiet: bool = False) -> TransferReport:
    """Copy all jobs without conversion, one at a time.

    A file that cannot be copied (e.g. the target is full) is reported
    and skipped.
    """
    todo = [job for job in jobs.values() if not job.needs_conversion]
    report = TransferReport()

    progress = tqdm(
        todo, desc="Copying   ", unit="file", bar_format=PROGRESS_FORMAT, disable=quiet
    )
    for job in progress:
        try:
            place_file(job.source, job.destination)
        except OSError as e:
            report.failed.append(job.source)
            progress.write(f"Error: Could not copy {job.source}: {e}", file=sys.stderr)
            continue
        report.copied += 1

    return report


def _transcode_one(
    job: Job,
    conversion: Conversion,
    workdir: Path,
    index: int,
    transcoder: str,
    abort: threading.Event,
) -> bool:
    outfile = workdir / f"{index:06d}{job.destination.suffix}"

    run_command(build_transcode_command(conversion, job.source, outfile, transcoder))
    try:
        # An interrupted transcoder may still leave a truncated file behind
        if abort.is_set() or not outfile.exists():
            return False
        place_file(outfile, job.destination)
    except OSError:
        return False
    finally:
        outfile.unlink(missing_ok=True)
    return True


def _join_workers(executor: ThreadPoolExecutor, abort: threading.Event) -> None:
    """Wait for every worker, even if interrupted again while waiting."""
    interrupted: Optional[KeyboardInterrupt] = None
    while True:
        try:
            executor.shutdown(wait=True)
            break
        except KeyboardInterrupt as e:
            abort.set()
            interrupted = e
    if interrupted is not None:
        raise interrupted


def transcode_jobs(
    jobs: Mapping[str, Job],
    transcoder: str = DEFAULT_TRANSCODER,
    workers: int = 1,
    tmp_dir: Optional[Path] = None,
    quiet: bool = False,
) -> TransferReport:
    """Convert all jobs that need it, up to ``workers`` at a time.

    Failures are reported by name and do not stop the other jobs. On
    KeyboardInterrupt, pending jobs are cancelled and running ones are
    waited for; their output is discarded instead of placed in the target.
    """
    todo = [job for job in jobs.values() if job.conversion is not None]
    report = TransferReport()
    if not todo:
        return report

    abort = threading.Event()
    with tempfile.TemporaryDirectory(prefix="music2thumb-", dir=tmp_dir) as workdir:
        progress = tqdm(
            total=len(todo),
            desc="Converting",
            unit="file",
            bar_format=PROGRESS_FORMAT,
            disable=quiet,
        )
        executor = ThreadPoolExecutor(max_workers=max(1, workers))
        try:
            futures: Dict[Future, Job] = {
                executor.submit(
                    _transcode_one,
                    job,
                    job.conversion,
                    Path(workdir),
                    i,
                    transcoder,
                    abort,
                ): job
                for i, job in enumerate(todo)
            }
            for future in as_completed(futures):
                job = futures[future]
                if future.result():
                    report.converted += 1
                else:
                    report.failed.append(job.source)
                    progress.write(
                        f"Error: An error occurred converting {job.source}.",
                        file=sys.stderr,
                    )
                progress.update(1)
        except BaseException:
            abort.set()
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        finally:
            _join_workers(executor, abort)
            progress.close()

    return report


def execute_jobs(
    jobs: Mapping[str, Job],
    transcoder: str = DEFAULT_TRANSCODER,
    workers: int = 1,
    tmp_dir: Optional[Path] = None,
    quiet: bool = False,
) -> TransferReport:
    """Copy first, then transcode."""
    report = copy_jobs(jobs, quiet=quiet)
    converted = transcode_jobs(
        jobs, transcoder=transcoder, workers=workers, tmp_dir=tmp_dir, quiet=quiet
    )
    report.converted = converted.converted
    report.failed.extend(converted.failed)
    return report

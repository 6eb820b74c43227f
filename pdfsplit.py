#!/usr/bin/env python3
"""
pdfsplit - Split PDFs into constant-sized chunks.

Features:
- Split a PDF into chunks of N pages; leftover pages form a final, shorter chunk
- PDF output via pdftk, or PostScript output via pdftops
- Falls back to PyPDF2 when pdftk/pdfinfo are not installed
- Progress bar and quiet mode support

Output files are named <input file name>_<index>.<pdf|ps> with a four-digit,
zero-padded index, e.g. report.pdf_0000.pdf, report.pdf_0001.pdf, ...

Author: EdgeOfAssembly
License: GPLv3 / Commercial dual-license
"""

from __future__ import annotations

import sys
import argparse
import re
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import List, Tuple, Optional

from PyPDF2 import PdfReader, PdfWriter
from tqdm import tqdm


__version__ = "3.1.0"
ENGINES = ("auto", "pdftk", "pypdf")
DEFAULT_ENGINE = "auto"
MODES = ("pdf", "ps")
CHUNK_INDEX_WIDTH = 4
PS_PAPER_SIZE = "A4"


def generate_chunk_ranges(total_pages: int, pages_per_chunk: int) -> List[Tuple[int, int]]:
    """
    Generate page ranges of a fixed chunk size.

    There are total_pages // pages_per_chunk full chunks, followed by one
    chunk with the remaining pages if the division is not exact.

    Args:
        total_pages: Total number of pages.
        pages_per_chunk: Number of pages per chunk.

    Returns:
        List of (start_page, end_page) tuples (1-indexed, inclusive).

    Raises:
        ValueError: If pages_per_chunk is less than 1.
    """
    if pages_per_chunk < 1:
        raise ValueError(f"Pages per chunk must be positive, got {pages_per_chunk}")

    ranges: List[Tuple[int, int]] = []
    start = 1

    while start <= total_pages:
        end = min(start + pages_per_chunk - 1, total_pages)
        ranges.append((start, end))
        start = end + 1

    return ranges


def chunk_filename(name: str, index: int, mode: str = "pdf") -> str:
    """Name of the chunk with the given 0-based index."""
    return f"{name}_{index:0{CHUNK_INDEX_WIDTH}d}.{mode}"


def parse_pdfinfo_pages(output: str) -> int:
    """
    Extract the page count from pdfinfo output.

    Raises:
        ValueError: If there is no "Pages:" line.
    """
    match = re.search(r"^Pages:\s+(\d+)\s*$", output, re.MULTILINE)
    if not match:
        raise ValueError("pdfinfo output has no page count")
    return int(match.group(1))


def resolve_engine(engine: str, mode: str) -> str:
    """
    Pick the engine that will do the work.

    "auto" selects pdftk when both pdftk and pdfinfo are installed, PyPDF2
    otherwise. PostScript output always needs pdftops.

    Raises:
        ValueError: If a required external tool is missing.
    """
    if engine == "auto":
        if shutil.which("pdfinfo") and shutil.which("pdftk"):
            engine = "pdftk"
        else:
            engine = "pypdf"
    elif engine == "pdftk":
        for tool in ("pdfinfo", "pdftk"):
            if not shutil.which(tool):
                raise ValueError(f"{tool} not found. Install poppler-utils and pdftk.")

    if mode == "ps" and not shutil.which("pdftops"):
        raise ValueError("pdftops required for PS output. Install poppler-utils.")

    return engine


def count_pages(input_path: Path, engine: str) -> int:
    """
    Query the number of pages of a PDF.

    Raises:
        ValueError: If the page count cannot be determined.
    """
    if engine == "pypdf":
        try:
            return len(PdfReader(input_path).pages)
        except Exception as e:
            raise ValueError(f"Error reading PDF '{input_path}': {e}")

    try:
        result = subprocess.run(
            ["pdfinfo", str(input_path)],
            capture_output=True, text=True, check=True
        )
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        raise ValueError(f"pdfinfo failed on '{input_path}': {e}")
    return parse_pdfinfo_pages(result.stdout)


def extract_range_pdftk(input_path: Path, start: int, end: int, output_path: Path) -> bool:
    """Write pages start..end to output_path using pdftk."""
    try:
        subprocess.run(
            ["pdftk", str(input_path), "cat", f"{start}-{end}", "output", str(output_path)],
            capture_output=True, check=True
        )
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False
    return output_path.exists()


def extract_range_pypdf(reader: PdfReader, start: int, end: int, output_path: Path) -> bool:
    """Write pages start..end to output_path using PyPDF2."""
    writer = PdfWriter()
    for page_num in range(start - 1, end):
        writer.add_page(reader.pages[page_num])

    try:
        with open(output_path, "wb") as f:
            writer.write(f)
    except OSError as e:
        print(f"Error writing '{output_path}': {e}", file=sys.stderr)
        return False
    return True


def convert_range_ps(input_path: Path, start: int, end: int, output_path: Path) -> bool:
    """Write pages start..end to output_path as PostScript using pdftops."""
    try:
        subprocess.run(
            [
                "pdftops",
                "-f", str(start),
                "-l", str(end),
                "-paper", PS_PAPER_SIZE,
                str(input_path),
                str(output_path),
            ],
            capture_output=True, check=True
        )
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False
    return output_path.exists()


def split_pdf(
    input_path: Path,
    pages_per_chunk: int,
    target_dir: Path,
    mode: str = "pdf",
    engine: str = DEFAULT_ENGINE,
    quiet: bool = False,
) -> int:
    """
    Split a PDF into chunks of pages_per_chunk pages.

    The input is copied into a private temporary directory first, so the
    tools never work on the original file.

    Args:
        input_path: Path to input PDF.
        pages_per_chunk: Number of pages per chunk.
        target_dir: Output directory; must exist.
        mode: "pdf" or "ps".
        engine: "auto", "pdftk" or "pypdf".
        quiet: Suppress output.

    Returns:
        Number of files created.

    Raises:
        ValueError: If the chunk size is invalid, a required tool is missing,
            or the page count cannot be determined.
    """
    if pages_per_chunk < 1:
        raise ValueError(f"Pages per chunk must be positive, got {pages_per_chunk}")

    engine = resolve_engine(engine, mode)
    name = input_path.name

    with tempfile.TemporaryDirectory(prefix="pdfsplit-") as tmp:
        work_copy = Path(tmp) / name
        shutil.copyfile(input_path, work_copy)

        total_pages = count_pages(work_copy, engine)
        if total_pages == 0:
            print(f"Warning: PDF '{input_path}' is empty.", file=sys.stderr)
            return 0

        ranges = generate_chunk_ranges(total_pages, pages_per_chunk)
        full, remainder = divmod(total_pages, pages_per_chunk)

        if not quiet:
            print(
                f"[pdfsplit] Creating {full} documents with {pages_per_chunk} pages "
                f"each in {target_dir}."
            )
            if remainder:
                print(
                    f"[pdfsplit] Creating 1 document with {remainder} pages "
                    f"in {target_dir}."
                )

        reader: Optional[PdfReader] = None
        if engine == "pypdf" and mode == "pdf":
            reader = PdfReader(work_copy)

        files_created = 0
        for index, (start, end) in enumerate(
            tqdm(ranges, desc=f"Splitting {name}", unit="file", disable=quiet)
        ):
            output_path = target_dir / chunk_filename(name, index, mode)

            if mode == "ps":
                ok = convert_range_ps(work_copy, start, end, output_path)
            elif reader is not None:
                ok = extract_range_pypdf(reader, start, end, output_path)
            else:
                ok = extract_range_pdftk(work_copy, start, end, output_path)

            if ok:
                files_created += 1
            else:
                print(
                    f"Error: Could not create '{output_path}' (pages {start}-{end}).",
                    file=sys.stderr,
                )

    return files_created


def main() -> None:
    """Main entry point for pdfsplit."""
    parser = argparse.ArgumentParser(
        prog="pdfsplit",
        description="Split PDFs into constant-sized chunks.",
        epilog="""
Examples:
  pdfsplit document.pdf 5 out              # Chunks of 5 pages as PDF
  pdfsplit document.pdf 10 out ps          # Chunks of 10 pages as PostScript
  pdfsplit document.pdf 5 out --engine pypdf  # Do not use pdftk

A 12 page document split into chunks of 5 yields three files:
document.pdf_0000.pdf (pages 1-5), document.pdf_0001.pdf (pages 6-10)
and document.pdf_0002.pdf (pages 11-12).

Requires pdftk and pdfinfo (or PyPDF2 with --engine pypdf), and pdftops
for PostScript output.
""",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("input", help="PDF file to split")
    parser.add_argument("pages_per_chunk", type=int, help="Number of pages per chunk")
    parser.add_argument("target", help="Target directory (created if missing)")
    parser.add_argument(
        "mode",
        nargs="?",
        choices=MODES,
        default="pdf",
        help="Output format: pdf (default) or ps",
    )
    parser.add_argument(
        "--engine",
        choices=ENGINES,
        default=DEFAULT_ENGINE,
        help=f"Splitting backend (default: {DEFAULT_ENGINE}, pdftk if installed)",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Suppress non-error output"
    )
    parser.add_argument(
        "-v", "--version", action="version", version=f"%(prog)s {__version__}"
    )

    args = parser.parse_args()

    input_path = Path(args.input)
    if not input_path.is_file():
        print(f"Error: File '{input_path}' not found.", file=sys.stderr)
        sys.exit(1)

    if args.pages_per_chunk < 1:
        print("Error: Pages per chunk must be at least 1.", file=sys.stderr)
        sys.exit(1)

    target_dir = Path(args.target)
    if target_dir.exists() and not target_dir.is_dir():
        print(f"Error: '{target_dir}' is not a directory.", file=sys.stderr)
        sys.exit(1)

    try:
        target_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        print(f"Error creating directory '{target_dir}': {e}", file=sys.stderr)
        sys.exit(1)

    try:
        count = split_pdf(
            input_path,
            args.pages_per_chunk,
            target_dir,
            mode=args.mode,
            engine=args.engine,
            quiet=args.quiet,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if not args.quiet:
        print(f"\nTotal files created: {count}")
        print(f"Output directory: {target_dir.absolute()}")


if __name__ == "__main__":
    main()

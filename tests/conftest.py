"""Shared pytest fixtures for pdfsplit and music2thumb tests."""

import sys
from pathlib import Path
from typing import Callable

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


def _write_pdf(path: Path, pages: int) -> Path:
    from PyPDF2 import PdfWriter

    writer = PdfWriter()
    for _ in range(pages):
        # Standard letter size
        writer.add_blank_page(width=612, height=792)
    with open(path, "wb") as f:
        writer.write(f)
    return path


@pytest.fixture
def make_pdf(tmp_path: Path) -> Callable[[int, str], Path]:
    """Factory creating a blank PDF with the given number of pages."""

    def factory(pages: int, name: str = "sample.pdf") -> Path:
        return _write_pdf(tmp_path / name, pages)

    return factory


@pytest.fixture
def minimal_pdf(make_pdf) -> Path:
    """Create a minimal valid single-page PDF file using PyPDF2."""
    return make_pdf(1)


@pytest.fixture
def twelve_page_pdf(make_pdf) -> Path:
    return make_pdf(12, "report.pdf")


@pytest.fixture
def empty_dir(tmp_path: Path) -> Path:
    """Create an empty directory."""
    empty = tmp_path / "empty"
    empty.mkdir()
    return empty


LIBRARY_FILES = [
    "Stones/Dirty Work/01.flac",
    "Stones/Dirty Work/02.mp3",
    "Stones/Dirty Work/03.ogg",
    "Stones/Dirty Work/cover.jpg",
    "Stones/Sticky Fingers/01.flac",
    "Stones/Sticky Fingers/notes.txt",
    "Beatles/Abbey Road/01.mp3",
    "Beatles/Abbey Road/02.wav",
    "Dirty Projectors/Swing Lo Magellan/01.ogg",
]


@pytest.fixture
def music_library(tmp_path: Path) -> Path:
    """A small artist/album/track tree with supported and unsupported files."""
    root = tmp_path / "library"
    for relative in LIBRARY_FILES:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(f"audio:{relative}".encode("utf-8"))
    return root

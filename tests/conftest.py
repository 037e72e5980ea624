"""Shared fixtures for pdfwright tests."""

import io
import re
import tempfile
import shutil
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import yaml
from PIL import Image
from pypdf import PdfReader, PdfWriter
from pypdf.generic import RectangleObject
from reportlab.pdfgen import canvas


def build_pdf(page_sizes, text=True) -> bytes:
    """Build a PDF with one page per size, each with a line of text."""
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer)
    for i, (width, height) in enumerate(page_sizes):
        c.setPageSize((width, height))
        if text:
            c.setFont("Helvetica", 12)
            c.drawString(72, 72, f"Original page {i + 1}")
        c.showPage()
    c.save()
    return buffer.getvalue()


def build_blank_pdf(pages=1, width=612, height=792) -> bytes:
    """Build a PDF whose pages have no content streams at all."""
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=width, height=height)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


# === Path/Directory Fixtures ===

@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


# === PDF Fixtures ===

@pytest.fixture
def sample_pdf_bytes():
    """A single letter-size page with text on it."""
    return build_pdf([(612, 792)])


@pytest.fixture
def multi_page_pdf_bytes():
    """Six letter-size pages with text."""
    return build_pdf([(612, 792)] * 6)


@pytest.fixture
def twenty_page_pdf_bytes():
    """Twenty letter-size pages with text."""
    return build_pdf([(612, 792)] * 20)


@pytest.fixture
def mixed_size_pdf_bytes():
    """A letter portrait page followed by an A4 landscape page."""
    return build_pdf([(612, 792), (842, 595)])


@pytest.fixture
def blank_pdf_bytes():
    """A single letter-size page with no content stream."""
    return build_blank_pdf()


@pytest.fixture
def offset_box_pdf_bytes():
    """A page whose media box does not start at the origin."""
    reader = PdfReader(io.BytesIO(build_pdf([(612, 792)])))
    writer = PdfWriter(clone_from=reader)
    writer.pages[0].mediabox = RectangleObject([100, 50, 400, 450])
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest.fixture
def temp_pdf(temp_dir, sample_pdf_bytes):
    """A single-page PDF on disk."""
    pdf_path = temp_dir / "test.pdf"
    pdf_path.write_bytes(sample_pdf_bytes)
    return pdf_path


@pytest.fixture
def temp_multi_page_pdf(temp_dir, multi_page_pdf_bytes):
    """A six-page PDF on disk."""
    pdf_path = temp_dir / "multi_page.pdf"
    pdf_path.write_bytes(multi_page_pdf_bytes)
    return pdf_path


# === Image Fixtures ===

@pytest.fixture
def png_bytes():
    """A 40x20 semi-transparent red PNG."""
    buffer = io.BytesIO()
    Image.new("RGBA", (40, 20), (255, 0, 0, 128)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def jpeg_bytes():
    """A 30x10 blue JPEG."""
    buffer = io.BytesIO()
    Image.new("RGB", (30, 10), (0, 0, 255)).save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture
def temp_png(temp_dir, png_bytes):
    path = temp_dir / "logo.png"
    path.write_bytes(png_bytes)
    return path


# === Output Inspection ===

@pytest.fixture
def read_marks():
    """Return a function listing the decoded mark streams drawn on a page."""

    def _read(pdf_bytes, page_index=0):
        page = PdfReader(io.BytesIO(pdf_bytes)).pages[page_index]
        resources = page.get("/Resources")
        if resources is None:
            return []
        xobjects = resources.get_object().get("/XObject")
        if xobjects is None:
            return []
        xobjects = xobjects.get_object()
        return [
            xobjects[name].get_object().get_data()
            for name in sorted(xobjects)
            if name.startswith("/PwMark")
        ]

    return _read


@pytest.fixture
def read_contents():
    """Return a function listing the decoded content streams of a page, in order."""

    def _read(pdf_bytes, page_index=0):
        page = PdfReader(io.BytesIO(pdf_bytes)).pages[page_index]
        contents = page.get("/Contents")
        if contents is None:
            return []
        contents = contents.get_object()
        if hasattr(contents, "get_data"):
            return [contents.get_data()]
        return [entry.get_object().get_data() for entry in contents]

    return _read


CM_PATTERN = re.compile(rb"(\S+) (\S+) (\S+) (\S+) (\S+) (\S+) cm")


@pytest.fixture
def read_transforms():
    """Return a function listing the non-identity `cm` matrices in a mark stream."""

    def _read(mark):
        matrices = [tuple(float(v) for v in m.groups()) for m in CM_PATTERN.finditer(mark)]
        return [m for m in matrices if m != (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)]

    return _read


# === Job Fixtures ===

@pytest.fixture
def minimal_job_dict():
    """Minimal valid job dictionary."""
    return {
        "version": 1,
        "operations": [
            {"rotate": {"deltas": {0: 90}}},
        ],
    }


@pytest.fixture
def full_job_dict():
    """Job dictionary using every operation kind."""
    return {
        "version": 1,
        "settings": {
            "preview_debounce_ms": 250,
            "compression_tier": "extreme",
        },
        "operations": [
            {"crop": {"box": [10, 10, 80, 80], "pages": "2-5"}},
            {"rotate": {"deltas": {1: 90, 3: -90}}},
            {"rotate": {"all": 90}},
            {
                "watermark": {
                    "text": "DRAFT",
                    "font_size": 36,
                    "color": "#0000FF",
                    "opacity": 0.3,
                    "rotation": 30,
                    "position": "top-right",
                    "tiled": False,
                    "layer": "under",
                    "pages": "all",
                }
            },
            {
                "page_numbers": {
                    "format": "Page N of T",
                    "start": 1,
                    "position": "bottom-center",
                    "pages": "2-",
                }
            },
        ],
    }


@pytest.fixture
def write_job(temp_dir):
    """Return a function that writes a job dictionary to a YAML file."""

    def _write(job_dict, name="job.yaml"):
        path = temp_dir / name
        with open(path, "w") as f:
            yaml.dump(job_dict, f)
        return path

    return _write


# === Mock subprocess ===

@pytest.fixture
def mock_subprocess_run():
    """Mock subprocess.run for Ghostscript calls."""
    with patch("subprocess.run") as mock_run:
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        yield mock_run

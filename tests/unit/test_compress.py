"""Tests for pdfwright.compress module."""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from pdfwright.compress import (
    BASE_ARGS,
    GHOSTSCRIPT_ENV_VAR,
    TIER_ARGS,
    CompressionResult,
    build_command,
    compress_pdf,
    find_ghostscript,
)
from pdfwright.exceptions import ExternalToolError


class TestFindGhostscript:
    """Test Ghostscript discovery order."""

    def test_explicit_path(self, temp_dir):
        gs = temp_dir / "gs"
        gs.touch()
        assert find_ghostscript(gs) == gs

    def test_explicit_path_missing(self, temp_dir):
        assert find_ghostscript(temp_dir / "gs") is None

    def test_env_var(self, temp_dir):
        gs = temp_dir / "gs-env"
        gs.touch()
        with patch.dict("os.environ", {GHOSTSCRIPT_ENV_VAR: str(gs)}):
            assert find_ghostscript() == gs

    def test_path_lookup(self):
        with patch.dict("os.environ", {}, clear=True):
            with patch("shutil.which", return_value="/usr/bin/gs"):
                assert find_ghostscript() == Path("/usr/bin/gs")

    def test_not_found(self):
        with patch.dict("os.environ", {}, clear=True):
            with patch("shutil.which", return_value=None):
                assert find_ghostscript() is None


class TestBuildCommand:
    def test_layout(self):
        cmd = build_command(Path("gs"), Path("in.pdf"), Path("out.pdf"), "recommended")
        assert cmd[0] == "gs"
        assert cmd[1] == "-sOutputFile=out.pdf"
        assert cmd[2:2 + len(BASE_ARGS)] == BASE_ARGS
        assert cmd[-2:] == ["-f", "in.pdf"]

    @pytest.mark.parametrize(
        "tier,setting,resolution",
        [
            ("extreme", "/screen", "72"),
            ("recommended", "/ebook", "150"),
            ("less", "/prepress", "300"),
        ],
    )
    def test_tiers(self, tier, setting, resolution):
        cmd = build_command(Path("gs"), Path("in.pdf"), Path("out.pdf"), tier)
        assert f"-dPDFSETTINGS={setting}" in cmd
        assert f"-dColorImageResolution={resolution}" in cmd
        assert "-dDownsampleColorImages=true" in cmd

    def test_unknown_tier(self):
        with pytest.raises(ExternalToolError, match="Unknown compression tier"):
            build_command(Path("gs"), Path("in.pdf"), Path("out.pdf"), "maximum")

    def test_every_tier_has_args(self):
        assert set(TIER_ARGS) == {"extreme", "recommended", "less"}


class TestCompressionResult:
    def test_reduction(self):
        assert CompressionResult(1000, 250).reduction_percent == 75.0

    def test_empty_input(self):
        assert CompressionResult(0, 0).reduction_percent == 0.0


class TestCompressPdf:
    @pytest.fixture
    def gs(self):
        with patch("pdfwright.compress.find_ghostscript", return_value=Path("/usr/bin/gs")) as mock_find:
            yield mock_find

    def test_success(self, temp_pdf, temp_dir, gs, mock_subprocess_run):
        output = temp_dir / "small" / "out.pdf"

        def fake_run(cmd, **kwargs):
            output.write_bytes(b"%PDF-1.4 small")
            return mock_subprocess_run.return_value

        mock_subprocess_run.side_effect = fake_run
        result = compress_pdf(temp_pdf, output, tier="extreme")

        assert result.compressed_size == len(b"%PDF-1.4 small")
        assert result.original_size == temp_pdf.stat().st_size
        kwargs = mock_subprocess_run.call_args.kwargs
        assert kwargs["check"] is True
        assert kwargs["timeout"] == 180

    def test_missing_input(self, temp_dir, gs):
        with pytest.raises(ExternalToolError, match="not found"):
            compress_pdf(temp_dir / "missing.pdf", temp_dir / "out.pdf")

    def test_missing_ghostscript(self, temp_pdf, temp_dir):
        with patch("pdfwright.compress.find_ghostscript", return_value=None):
            with pytest.raises(ExternalToolError, match=GHOSTSCRIPT_ENV_VAR):
                compress_pdf(temp_pdf, temp_dir / "out.pdf")

    def test_process_failure(self, temp_pdf, temp_dir, gs, mock_subprocess_run):
        mock_subprocess_run.side_effect = subprocess.CalledProcessError(1, "gs", stderr="Unrecoverable error")
        with pytest.raises(ExternalToolError, match="Unrecoverable error"):
            compress_pdf(temp_pdf, temp_dir / "out.pdf")

    def test_timeout(self, temp_pdf, temp_dir, gs, mock_subprocess_run):
        mock_subprocess_run.side_effect = subprocess.TimeoutExpired("gs", 5)
        with pytest.raises(ExternalToolError, match="timed out after 5 seconds"):
            compress_pdf(temp_pdf, temp_dir / "out.pdf", timeout=5)

    def test_executable_vanished(self, temp_pdf, temp_dir, gs, mock_subprocess_run):
        mock_subprocess_run.side_effect = FileNotFoundError()
        with pytest.raises(ExternalToolError, match="Ghostscript not found at"):
            compress_pdf(temp_pdf, temp_dir / "out.pdf")

    def test_no_output_written(self, temp_pdf, temp_dir, gs, mock_subprocess_run):
        with pytest.raises(ExternalToolError, match="not created"):
            compress_pdf(temp_pdf, temp_dir / "out.pdf")

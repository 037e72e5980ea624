"""PDF compression through Ghostscript."""

import os
import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path

from pdfwright.constants import (
    COMPRESSION_TIERS,
    COMPRESSION_TIMEOUT_SECONDS,
    DEFAULT_COMPRESSION_TIER,
)
from pdfwright.exceptions import ExternalToolError
from pdfwright.logging_config import get_logger

logger = get_logger(__name__)

GHOSTSCRIPT_ENV_VAR = "PDFWRIGHT_GHOSTSCRIPT_PATH"

# Executable names searched on PATH, in order
GHOSTSCRIPT_NAMES = ("gswin64c", "gswin32c", "gs") if sys.platform == "win32" else ("gs",)

BASE_ARGS = [
    "-sDEVICE=pdfwrite",
    "-dCompatibilityLevel=1.4",
    "-dNOPAUSE",
    "-dQUIET",
    "-dBATCH",
    "-dDetectDuplicateImages=true",
]

# Downsampling only takes effect when the matching -dDownsample*Images is true
TIER_ARGS = {
    "extreme": [
        "-dPDFSETTINGS=/screen",
        "-dDownsampleColorImages=true",
        "-dDownsampleGrayImages=true",
        "-dDownsampleMonoImages=true",
        "-dColorImageResolution=72",
        "-dGrayImageResolution=72",
        "-dMonoImageResolution=72",
        "-dAutoFilterColorImages=false",
        "-dColorImageFilter=/DCTEncode",
        "-dAutoFilterGrayImages=false",
        "-dGrayImageFilter=/DCTEncode",
    ],
    "recommended": [
        "-dPDFSETTINGS=/ebook",
        "-dDownsampleColorImages=true",
        "-dColorImageResolution=150",
        "-dGrayImageResolution=150",
        "-dMonoImageResolution=150",
    ],
    "less": [
        "-dPDFSETTINGS=/prepress",
        "-dDownsampleColorImages=true",
        "-dColorImageResolution=300",
        "-dGrayImageResolution=300",
        "-dMonoImageResolution=1200",
        "-dPassThroughJPEGImages=true",
    ],
}


@dataclass(frozen=True)
class CompressionResult:
    """Sizes before and after compression, in bytes."""

    original_size: int
    compressed_size: int

    @property
    def reduction_percent(self) -> float:
        if self.original_size == 0:
            return 0.0
        return (1 - self.compressed_size / self.original_size) * 100


def find_ghostscript(gs_path: Path | str | None = None) -> Path | None:
    """
    Find the Ghostscript executable.

    Search order:
    1. gs_path argument
    2. PDFWRIGHT_GHOSTSCRIPT_PATH environment variable
    3. PATH

    Returns:
        Path to the executable or None if not found
    """
    if gs_path:
        path = Path(gs_path)
        return path if path.exists() else None

    env_path = os.environ.get(GHOSTSCRIPT_ENV_VAR)
    if env_path:
        path = Path(env_path)
        if path.exists():
            return path

    for name in GHOSTSCRIPT_NAMES:
        found = shutil.which(name)
        if found:
            return Path(found)

    return None


def build_command(gs_path: Path, input_path: Path, output_path: Path, tier: str) -> list[str]:
    """Build the Ghostscript command line for a compression tier.

    Raises:
        ExternalToolError: If tier is not a known compression tier
    """
    if tier not in TIER_ARGS:
        raise ExternalToolError(
            f"Unknown compression tier: {tier}. Valid tiers: {', '.join(COMPRESSION_TIERS)}",
            context={"tier": tier},
        )
    cmd = [str(gs_path), f"-sOutputFile={output_path}"]
    cmd.extend(BASE_ARGS)
    cmd.extend(TIER_ARGS[tier])
    # Input file must be last
    cmd.extend(["-f", str(input_path)])
    return cmd


def compress_pdf(
    input_path: Path,
    output_path: Path,
    tier: str = DEFAULT_COMPRESSION_TIER,
    gs_path: Path | str | None = None,
    timeout: float = COMPRESSION_TIMEOUT_SECONDS,
) -> CompressionResult:
    """
    Compress a PDF by re-writing it with Ghostscript.

    Args:
        input_path: PDF to compress
        output_path: Where to write the compressed PDF
        tier: One of "extreme" (72 dpi), "recommended" (150 dpi), "less" (300 dpi)
        gs_path: Ghostscript executable (auto-detected if None)
        timeout: Seconds before the Ghostscript process is abandoned

    Returns:
        CompressionResult with the input and output sizes

    Raises:
        ExternalToolError: If Ghostscript is missing, fails, times out, or
            produces no output
    """
    if not input_path.exists():
        raise ExternalToolError(f"PDF file not found: {input_path}", context={"path": str(input_path)})

    executable = find_ghostscript(gs_path)
    if executable is None:
        raise ExternalToolError(
            "Ghostscript not found. Install Ghostscript or set the "
            f"{GHOSTSCRIPT_ENV_VAR} environment variable.",
            context={"tier": tier},
        )

    cmd = build_command(executable, input_path, output_path, tier)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    logger.debug("Executing: %s", " ".join(cmd))

    try:
        subprocess.run(
            cmd,
            check=True,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise ExternalToolError(f"Ghostscript not found at: {executable}") from e
    except subprocess.TimeoutExpired as e:
        raise ExternalToolError(
            f"Ghostscript timed out after {timeout:g} seconds",
            context={"tier": tier},
        ) from e
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or "").strip() or f"exit status {e.returncode}"
        raise ExternalToolError(
            f"Ghostscript failed: {detail}",
            context={"tier": tier},
        ) from e

    if not output_path.exists():
        raise ExternalToolError(
            "Compression output file not created",
            context={"path": str(output_path)},
        )

    result = CompressionResult(
        original_size=input_path.stat().st_size,
        compressed_size=output_path.stat().st_size,
    )
    logger.info(
        "[%s] %.2fMB -> %.2fMB (%.1f%% reduction)",
        tier.upper(),
        result.original_size / 1024 / 1024,
        result.compressed_size / 1024 / 1024,
        result.reduction_percent,
    )
    return result

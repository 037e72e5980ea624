"""Command-line interface for pdfwright."""

import argparse
import sys
from pathlib import Path

from pdfwright import __version__
from pdfwright.constants import COMPRESSION_TIERS, DEFAULT_PERMISSIONS
from pdfwright.exceptions import ConfigError, PdfWrightError
from pdfwright.logging_config import get_logger

logger = get_logger(__name__)

COMMANDS = ["apply", "preview", "compress", "protect", "unlock", "validate"]


def show_version() -> None:
    """Show version information including Ghostscript status."""
    from pdfwright.compress import find_ghostscript

    logger.info("pdfwright %s", __version__)

    gs_path = find_ghostscript()
    if gs_path is not None:
        logger.info("Ghostscript found at: %s", gs_path)
    else:
        logger.info("Ghostscript: not found (needed for 'pdfw compress')")


def _write_output(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


def cmd_validate(config_path: Path) -> int:
    """Validate a job file."""
    from pdfwright.config import load_job

    job = load_job(config_path)
    logger.info("Job file is valid: %s", config_path)
    logger.info("  Operations defined: %d", len(job.operations))
    for i, operation in enumerate(job.operations, 1):
        logger.info("  %d. %s", i, operation.describe())
    return 0


def cmd_apply(config_path: Path, input_path: Path, output_path: Path | None, dry_run: bool) -> int:
    """Apply every operation in a job file to a document."""
    from pdfwright.applier import TransformApplier
    from pdfwright.config import load_job
    from pdfwright.document import Document

    job = load_job(config_path)
    data = input_path.read_bytes()
    operations = job.resolve_operations(Document.load(data).page_count)

    if dry_run:
        logger.info("[dry-run] Would apply %d operation(s) to %s", len(operations), input_path)
        TransformApplier().apply(data, operations, dry_run=True)
        return 0

    if output_path is None:
        logger.error("--output is required for apply")
        return 1

    result = TransformApplier().apply(data, operations)
    _write_output(output_path, result)
    logger.info("Wrote %s", output_path)
    return 0


def cmd_preview(
    config_path: Path,
    input_path: Path,
    output_path: Path | None,
    operation_number: int,
    png_path: Path | None,
    width: int,
) -> int:
    """Preview one operation of a job file on its preview page."""
    from pdfwright.config import load_job
    from pdfwright.document import Document
    from pdfwright.preview import PreviewPlanner

    if output_path is None and png_path is None:
        logger.error("--output or --png is required for preview")
        return 1

    job = load_job(config_path)
    data = input_path.read_bytes()
    operations = job.resolve_operations(Document.load(data).page_count)

    if not 1 <= operation_number <= len(operations):
        raise ConfigError(
            f"Operation {operation_number} does not exist; the job has {len(operations)} operation(s)"
        )
    operation = operations[operation_number - 1]

    result = PreviewPlanner().render(data, operation)
    logger.info("Previewing %s on page %d", operation.describe(), result.page_index + 1)

    if output_path is not None:
        _write_output(output_path, result.pdf_bytes)
        logger.info("Wrote %s", output_path)

    if png_path is not None:
        from pdfwright.renderer import render_to_png

        render_to_png(result.pdf_bytes, png_path, 0, width)
        logger.info("Wrote %s", png_path)

    return 0


def cmd_compress(
    input_path: Path,
    output_path: Path,
    tier: str | None,
    config_path: Path | None,
) -> int:
    """Compress a document with Ghostscript."""
    from pdfwright.compress import compress_pdf
    from pdfwright.config import Settings, load_job

    settings = load_job(config_path).settings if config_path else Settings()
    compress_pdf(
        input_path,
        output_path,
        tier=tier or settings.compression_tier,
        gs_path=settings.ghostscript_path,
    )
    logger.info("Wrote %s", output_path)
    return 0


def cmd_protect(
    input_path: Path,
    output_path: Path,
    password: str,
    owner_password: str | None,
    permissions: int,
) -> int:
    """Encrypt a document with a password."""
    from pdfwright.security import protect_pdf

    data = protect_pdf(input_path.read_bytes(), password, owner_password, permissions)
    _write_output(output_path, data)
    logger.info("Wrote %s", output_path)
    return 0


def cmd_unlock(input_path: Path, output_path: Path, password: str) -> int:
    """Remove password protection from a document."""
    from pdfwright.security import unlock_pdf

    data = unlock_pdf(input_path.read_bytes(), password)
    _write_output(output_path, data)
    logger.info("Wrote %s", output_path)
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="pdfw",
        description="Compose crop, rotate, watermark and page number transforms on PDF documents.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pdfw validate -c job.yaml                          Validate a job file
  pdfw apply -c job.yaml -i in.pdf -o out.pdf        Apply a job to a document
  pdfw apply -c job.yaml -i in.pdf --dry-run         Show what would happen
  pdfw preview -c job.yaml -i in.pdf -o p.pdf --operation 2
                                                     Preview the second operation
  pdfw preview -c job.yaml -i in.pdf --png p.png     Preview as an image
  pdfw compress -i in.pdf -o out.pdf --tier extreme  Compress with Ghostscript
  pdfw protect -i in.pdf -o out.pdf --password s3cret
  pdfw unlock -i in.pdf -o out.pdf --password s3cret
""",
    )

    parser.add_argument(
        "-V",
        "--version",
        action="store_true",
        help="Show version information and exit",
    )

    parser.add_argument(
        "command",
        nargs="?",
        choices=COMMANDS,
        help="What to do: " + ", ".join(COMMANDS),
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        help="Path to YAML job file",
    )

    parser.add_argument(
        "-i",
        "--input",
        type=Path,
        help="Input PDF file",
    )

    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output PDF file",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be done without writing anything",
    )

    # Preview options
    parser.add_argument(
        "--operation",
        type=int,
        default=1,
        help="Which operation of the job to preview, 1-indexed (default: 1)",
    )

    parser.add_argument(
        "--png",
        type=Path,
        help="Also render the preview page to a PNG image",
    )

    parser.add_argument(
        "--width",
        type=int,
        default=600,
        help="Width in pixels of the PNG preview (default: 600)",
    )

    # Compression options
    parser.add_argument(
        "--tier",
        choices=COMPRESSION_TIERS,
        help="Compression tier (default: job setting or 'recommended')",
    )

    # Security options
    parser.add_argument(
        "--password",
        help="Password to protect or unlock with",
    )

    parser.add_argument(
        "--owner-password",
        help="Owner password for protect (default: same as --password)",
    )

    parser.add_argument(
        "--permissions",
        type=int,
        default=DEFAULT_PERMISSIONS,
        help=f"Permission flags granted to the user (default: {DEFAULT_PERMISSIONS}, allow printing)",
    )

    # Logging options
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for verbose, -vv for debug)",
    )

    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress all output except errors",
    )

    parser.add_argument(
        "--log-file",
        type=Path,
        help="Write logs to file (includes all levels)",
    )

    return parser


def _require(parsed: argparse.Namespace, *names: str) -> str | None:
    """Return the first missing required option, as its flag."""
    for name in names:
        if getattr(parsed, name) is None:
            return "--" + name.replace("_", "-")
    return None


def run_command(parsed: argparse.Namespace) -> int:
    """Dispatch a parsed command line."""
    command = parsed.command

    required = {
        "validate": ("config",),
        "apply": ("config", "input"),
        "preview": ("config", "input"),
        "compress": ("input", "output"),
        "protect": ("input", "output", "password"),
        "unlock": ("input", "output", "password"),
    }[command]
    missing = _require(parsed, *required)
    if missing:
        logger.error("%s is required for %s", missing, command)
        return 1

    if command == "validate":
        return cmd_validate(parsed.config)
    elif command == "apply":
        return cmd_apply(parsed.config, parsed.input, parsed.output, parsed.dry_run)
    elif command == "preview":
        return cmd_preview(
            parsed.config,
            parsed.input,
            parsed.output,
            parsed.operation,
            parsed.png,
            parsed.width,
        )
    elif command == "compress":
        return cmd_compress(parsed.input, parsed.output, parsed.tier, parsed.config)
    elif command == "protect":
        return cmd_protect(
            parsed.input,
            parsed.output,
            parsed.password,
            parsed.owner_password,
            parsed.permissions,
        )
    return cmd_unlock(parsed.input, parsed.output, parsed.password)


def main(args: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    # Setup logging based on CLI flags
    from pdfwright.logging_config import setup_logging

    setup_logging(
        verbosity=parsed.verbose,
        quiet=parsed.quiet,
        log_file=parsed.log_file,
    )

    # Handle --version
    if parsed.version:
        show_version()
        return 0

    if not parsed.command:
        parser.print_help()
        return 1

    try:
        return run_command(parsed)
    except ConfigError as e:
        logger.error("Job file error: %s", e)
        return 1
    except PdfWrightError as e:
        logger.error("%s", e, exc_info=True)
        return 1
    except FileNotFoundError as e:
        logger.error("File not found: %s", e.filename or e)
        return 1
    except Exception as e:
        logger.error("%s", e, exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())

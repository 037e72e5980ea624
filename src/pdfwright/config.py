"""Job file loading and validation for pdfwright."""

import base64
import binascii
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, Union

import yaml

from pdfwright.constants import (
    COMPRESSION_TIERS,
    DEFAULT_COMPRESSION_TIER,
    DEFAULT_IMAGE_SCALE,
    DEFAULT_NUMBER_COLOR,
    DEFAULT_NUMBER_FONT_SIZE,
    DEFAULT_NUMBER_MARGIN,
    DEFAULT_PREVIEW_DEBOUNCE_MS,
    DEFAULT_WATERMARK_COLOR,
    DEFAULT_WATERMARK_FONT_SIZE,
    DEFAULT_WATERMARK_MARGIN,
    DEFAULT_WATERMARK_OPACITY,
    DEFAULT_WATERMARK_ROTATION,
    DEFAULT_WATERMARK_TEXT,
    IMAGE_FORMATS,
    OPERATION_TYPES,
)
from pdfwright.document import parse_color
from pdfwright.exceptions import ConfigError, InvalidGeometry, InvalidRange
from pdfwright.geometry import UIRect
from pdfwright.operations import (
    CropOperation,
    Layer,
    NumberFormat,
    OperationSpec,
    PageNumberOperation,
    RotateOperation,
    WatermarkKind,
    WatermarkOperation,
)
from pdfwright.placement import ANCHOR_CODES, Anchor
from pdfwright.selector import parse_page_range


def _context(index: int | None, field_name: str | None) -> dict[str, Any]:
    context: dict[str, Any] = {}
    if index is not None:
        context["operation"] = index + 1
    if field_name:
        context["field"] = field_name
    return context


def _parse_enum(
    enum_class: type[Enum],
    value: Any,
    index: int | None = None,
    field_name: str | None = None,
) -> Enum:
    """Parse a string value into an enum with validation.

    Args:
        enum_class: The enum class to parse into.
        value: The string value to parse.
        index: Operation index for error context.
        field_name: Field name for error context.

    Returns:
        The parsed enum value.

    Raises:
        ConfigError: If the value is not a valid enum member.
    """
    try:
        return enum_class(value)
    except ValueError:
        valid = ", ".join(e.value for e in enum_class)
        raise ConfigError(
            f"Invalid value '{value}'. Valid values are: {valid}",
            context=_context(index, field_name),
        )


def _parse_anchor(value: Any, index: int | None, field_name: str = "position") -> Anchor:
    """Parse an anchor name, accepting the two-letter picker codes too."""
    if isinstance(value, str) and value.lower() in ANCHOR_CODES:
        return ANCHOR_CODES[value.lower()]
    return _parse_enum(Anchor, value, index, field_name)


def _parse_number(value: Any, index: int | None, field_name: str, cast: type = float):
    if isinstance(value, bool):
        raise ConfigError(f"Expected a number, got {value!r}", context=_context(index, field_name))
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Expected a number, got {value!r}", context=_context(index, field_name))


def _parse_bool(value: Any, index: int | None, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"Expected true or false, got {value!r}", context=_context(index, field_name))
    return value


def _parse_color(value: Any, index: int | None, field_name: str = "color") -> str:
    try:
        parse_color(str(value))
    except ValueError as e:
        raise ConfigError(str(e), context=_context(index, field_name))
    return str(value)


def _parse_pages(value: Any, index: int | None):
    try:
        return parse_page_range(value)
    except InvalidRange as e:
        raise ConfigError(str(e), context=_context(index, "pages")) from e


@dataclass
class Settings:
    """Global settings for a job."""
    preview_debounce_ms: int = DEFAULT_PREVIEW_DEBOUNCE_MS
    compression_tier: str = DEFAULT_COMPRESSION_TIER
    ghostscript_path: Path | None = None


@dataclass(frozen=True)
class RotateAllPages:
    """A rotation of every page, expanded once the page count is known."""

    kind: ClassVar[str] = "rotate"

    degrees: int

    def resolve(self, total_pages: int) -> RotateOperation:
        return RotateOperation({i: self.degrees for i in range(total_pages)})

    def describe(self) -> str:
        return f"rotate all pages {self.degrees:+d}"


JobOperation = Union[OperationSpec, RotateAllPages]


@dataclass
class Job:
    """Root job object."""
    version: int = 1
    settings: Settings = field(default_factory=Settings)
    operations: list[JobOperation] = field(default_factory=list)

    def resolve_operations(self, total_pages: int) -> list[OperationSpec]:
        """Return the operations ready to apply to a document."""
        return [
            op.resolve(total_pages) if isinstance(op, RotateAllPages) else op
            for op in self.operations
        ]


def _parse_crop(data: dict[str, Any], index: int | None) -> CropOperation:
    if not isinstance(data, dict):
        raise ConfigError("Crop must be a mapping", context=_context(index, "crop"))
    box = data.get("box", [10, 10, 80, 80])
    if not isinstance(box, (list, tuple)) or len(box) != 4:
        raise ConfigError(
            "Crop box must be a list of four numbers: [x, y, width, height] in percent",
            context=_context(index, "box"),
        )
    values = [_parse_number(v, index, "box") for v in box]
    return CropOperation(
        box=UIRect.from_sequence(values),
        page_range=_parse_pages(data.get("pages"), index),
    )


def _parse_rotate(value: Any, index: int | None) -> JobOperation:
    if isinstance(value, (int, str)) and not isinstance(value, bool):
        # Simple rotate: every page by one angle
        degrees = _parse_number(value, index, "rotate", int)
        return _checked_rotate_all(degrees, index)

    if not isinstance(value, dict):
        raise ConfigError("Rotate must be an angle or a mapping", context=_context(index, "rotate"))

    if "all" in value:
        degrees = _parse_number(value["all"], index, "all", int)
        return _checked_rotate_all(degrees, index)

    deltas = value.get("deltas", {})
    if not isinstance(deltas, dict):
        raise ConfigError(
            "Rotate deltas must map page indices (0-indexed) to degrees",
            context=_context(index, "deltas"),
        )
    try:
        return RotateOperation({
            _parse_number(k, index, "deltas", int): _parse_number(v, index, "deltas", int)
            for k, v in deltas.items()
        })
    except (InvalidGeometry, InvalidRange) as e:
        raise ConfigError(str(e), context=_context(index, "deltas")) from e


def _checked_rotate_all(degrees: int, index: int | None) -> RotateAllPages:
    if degrees % 90 != 0:
        raise ConfigError(
            f"Rotation must be a multiple of 90 degrees, got {degrees}",
            context=_context(index, "rotate"),
        )
    return RotateAllPages(degrees)


def _load_image(data: dict[str, Any], index: int | None, base_dir: Path | None) -> tuple[bytes | None, str]:
    """Return image bytes and format hint from an image path or inline base64."""
    image_format = str(data.get("image_format", "png")).lower().replace("jpg", "jpeg")

    if "image_base64" in data:
        try:
            image = base64.b64decode(data["image_base64"], validate=True)
        except (binascii.Error, ValueError, TypeError):
            raise ConfigError("image_base64 is not valid base64", context=_context(index, "image_base64"))
    elif data.get("image"):
        path = Path(data["image"])
        if not path.is_absolute() and base_dir is not None:
            path = base_dir / path
        if not path.exists():
            raise ConfigError(f"Watermark image not found: {path}", context=_context(index, "image"))
        image = path.read_bytes()
        if "image_format" not in data:
            suffix = path.suffix.lower().lstrip(".").replace("jpg", "jpeg")
            if suffix in IMAGE_FORMATS:
                image_format = suffix
    else:
        image = None

    if image_format not in IMAGE_FORMATS:
        raise ConfigError(
            f"Unsupported image format '{image_format}'. Valid formats: {', '.join(IMAGE_FORMATS)}",
            context=_context(index, "image_format"),
        )
    return image, image_format


def _parse_watermark(data: Any, index: int | None, base_dir: Path | None) -> WatermarkOperation:
    if isinstance(data, str):
        # Simple watermark: just text
        data = {"text": data}
    elif not isinstance(data, dict):
        raise ConfigError("Watermark must be text or a mapping", context=_context(index, "watermark"))

    if "kind" in data:
        kind = _parse_enum(WatermarkKind, data["kind"], index, "kind")
    elif "image" in data or "image_base64" in data:
        kind = WatermarkKind.IMAGE
    else:
        kind = WatermarkKind.TEXT

    image, image_format = (None, "png")
    if kind is WatermarkKind.IMAGE:
        image, image_format = _load_image(data, index, base_dir)

    return WatermarkOperation(
        watermark_kind=kind,
        text=str(data.get("text", DEFAULT_WATERMARK_TEXT)),
        image=image,
        image_format=image_format,
        font_size=_parse_number(data.get("font_size", DEFAULT_WATERMARK_FONT_SIZE), index, "font_size"),
        image_scale=_parse_number(data.get("scale", DEFAULT_IMAGE_SCALE), index, "scale"),
        color=_parse_color(data.get("color", DEFAULT_WATERMARK_COLOR), index),
        opacity=_parse_number(data.get("opacity", DEFAULT_WATERMARK_OPACITY), index, "opacity"),
        rotation=_parse_number(data.get("rotation", DEFAULT_WATERMARK_ROTATION), index, "rotation"),
        anchor=_parse_anchor(data.get("position", Anchor.CENTER.value), index),
        tiled=_parse_bool(data.get("tiled", False), index, "tiled"),
        layer=_parse_enum(Layer, data.get("layer", Layer.OVER.value), index, "layer"),
        margin=_parse_number(data.get("margin", DEFAULT_WATERMARK_MARGIN), index, "margin"),
        page_range=_parse_pages(data.get("pages"), index),
    )


def _parse_page_numbers(data: Any, index: int | None) -> PageNumberOperation:
    if data is None:
        data = {}
    elif not isinstance(data, dict):
        raise ConfigError("page_numbers must be a mapping", context=_context(index, "page_numbers"))

    format_str = str(data.get("format", NumberFormat.N.value))
    try:
        number_format = NumberFormat.parse(format_str)
    except ValueError:
        valid = ", ".join(f.value for f in NumberFormat)
        raise ConfigError(
            f"Invalid value '{format_str}'. Valid values are: {valid}",
            context=_context(index, "format"),
        )

    return PageNumberOperation(
        number_format=number_format,
        start_value=_parse_number(data.get("start", 1), index, "start", int),
        anchor=_parse_anchor(data.get("position", Anchor.BOTTOM_CENTER.value), index),
        font_size=_parse_number(data.get("font_size", DEFAULT_NUMBER_FONT_SIZE), index, "font_size"),
        margin=_parse_number(data.get("margin", DEFAULT_NUMBER_MARGIN), index, "margin"),
        color=_parse_color(data.get("color", DEFAULT_NUMBER_COLOR), index),
        page_range=_parse_pages(data.get("pages"), index),
    )


def parse_operation(
    operation_data: dict[str, Any],
    index: int | None = None,
    base_dir: Path | None = None,
) -> JobOperation | None:
    """Parse a single operation from job data.

    Args:
        operation_data: Single-key mapping such as {"crop": {...}}
        index: Position in the job's operation list, for error context
        base_dir: Directory that relative image paths resolve against

    Returns:
        The operation, or None if it is disabled
    """
    if not isinstance(operation_data, dict):
        raise ConfigError("Each operation must be a mapping", context=_context(index, None))

    if not _parse_bool(operation_data.get("enabled", True), index, "enabled"):
        return None

    kinds = [k for k in operation_data if k in OPERATION_TYPES]
    if len(kinds) != 1:
        raise ConfigError(
            f"Unknown operation: {operation_data}. Expected exactly one of: {', '.join(OPERATION_TYPES)}",
            context=_context(index, None),
        )
    kind = kinds[0]
    value = operation_data[kind]

    if kind == "crop":
        return _parse_crop(value or {}, index)
    if kind == "rotate":
        return _parse_rotate(value, index)
    if kind == "watermark":
        return _parse_watermark(value or {}, index, base_dir)
    return _parse_page_numbers(value, index)


def operation_from_dict(data: dict[str, Any]) -> JobOperation:
    """Rebuild an operation from its to_dict() form.

    Raises:
        ConfigError: If the data does not describe an enabled operation
    """
    operation = parse_operation(data)
    if operation is None:
        raise ConfigError("Operation is disabled")
    return operation


def load_job(job_path: Path) -> Job:
    """Load and validate a job file."""
    if not job_path.exists():
        raise ConfigError(f"Job file not found: {job_path}", context={"path": str(job_path)})

    with open(job_path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML: {e}", context={"path": str(job_path)}) from e

    if not isinstance(data, dict):
        raise ConfigError("Job file must be a YAML dictionary")

    # Parse settings
    settings = Settings()
    if data.get("settings"):
        s = data["settings"]
        tier = s.get("compression_tier", DEFAULT_COMPRESSION_TIER)
        if tier not in COMPRESSION_TIERS:
            raise ConfigError(
                f"Invalid value '{tier}'. Valid values are: {', '.join(COMPRESSION_TIERS)}",
                context={"field": "settings.compression_tier"},
            )
        gs_path = s.get("ghostscript_path")
        settings = Settings(
            preview_debounce_ms=_parse_number(
                s.get("preview_debounce_ms", DEFAULT_PREVIEW_DEBOUNCE_MS),
                None,
                "settings.preview_debounce_ms",
                int,
            ),
            compression_tier=tier,
            ghostscript_path=Path(gs_path) if gs_path else None,
        )

    # Parse operations
    if "operations" not in data:
        raise ConfigError("Job file must contain an 'operations' section")
    if not isinstance(data["operations"], list):
        raise ConfigError("'operations' must be a list")

    base_dir = job_path.parent
    operations = []
    for index, operation_data in enumerate(data["operations"]):
        operation = parse_operation(operation_data, index, base_dir)
        if operation is not None:
            operations.append(operation)

    return Job(
        version=data.get("version", 1),
        settings=settings,
        operations=operations,
    )

"""Tests for pdfwright.transforms handlers."""

import io

import pytest
from pypdf import PdfReader

from pdfwright.document import Document
from pdfwright.exceptions import ConfigError, EmbedError, MutationError
from pdfwright.geometry import UIRect
from pdfwright.operations import (
    OPERATION_CLASSES,
    CropOperation,
    Layer,
    NumberFormat,
    PageNumberOperation,
    RotateOperation,
    WatermarkKind,
    WatermarkOperation,
)
from pdfwright.placement import Anchor
from pdfwright.selector import PageRange
from pdfwright.transforms import (
    HandlerRegistry,
    TransformContext,
    TransformHandler,
    crop_rect,
    page_number_label,
    rotate_page,
    watermark_page,
)
from pdfwright.transforms.crop import CropHandler
from pdfwright.transforms.page_number import PageNumberHandler
from pdfwright.transforms.rotate import RotateHandler
from pdfwright.transforms.watermark import WatermarkHandler


def run(document, operation, context=None):
    """Apply one operation through its registered handler."""
    context = context or TransformContext.capture(document)
    return HandlerRegistry.get(operation).apply(document, operation, context)


def saved_page(document, index=0):
    return PdfReader(io.BytesIO(document.save())).pages[index]


class TestRegistry:
    def test_every_operation_has_a_handler(self):
        for operation_class in OPERATION_CLASSES:
            assert HandlerRegistry.is_registered(operation_class)

    @pytest.mark.parametrize(
        "operation,handler_class",
        [
            (CropOperation(UIRect(0, 0, 50, 50)), CropHandler),
            (RotateOperation({0: 90}), RotateHandler),
            (WatermarkOperation(), WatermarkHandler),
            (PageNumberOperation(), PageNumberHandler),
        ],
    )
    def test_dispatch_by_type(self, operation, handler_class):
        assert isinstance(HandlerRegistry.get(operation), handler_class)

    def test_unknown_operation(self):
        with pytest.raises(ConfigError, match="No handler"):
            HandlerRegistry.get(object())

    def test_ensure_exhaustive_names_missing(self):
        class Unhandled:
            pass

        with pytest.raises(ConfigError, match="Unhandled"):
            HandlerRegistry.ensure_exhaustive([CropOperation, Unhandled])


class TestCrop:
    def test_crop_rect_letter(self, sample_pdf_bytes):
        geometry = Document.load(sample_pdf_bytes).page(0).geometry
        rect = crop_rect(UIRect(10, 10, 80, 80), geometry)
        assert rect.x == pytest.approx(61.2)
        assert rect.y == pytest.approx(79.2)
        assert rect.width == pytest.approx(489.6)
        assert rect.height == pytest.approx(633.6)

    def test_sets_crop_and_media_box(self, sample_pdf_bytes):
        document = Document.load(sample_pdf_bytes)
        run(document, CropOperation(UIRect(10, 10, 80, 80)))
        page = saved_page(document)
        assert float(page.mediabox.width) == pytest.approx(489.6)
        assert float(page.cropbox.height) == pytest.approx(633.6)

    def test_offset_box(self, offset_box_pdf_bytes):
        document = Document.load(offset_box_pdf_bytes)
        run(document, CropOperation(UIRect(10, 10, 80, 80)))
        page = saved_page(document)
        assert float(page.cropbox.left) == pytest.approx(130)
        assert float(page.cropbox.bottom) == pytest.approx(90)
        assert float(page.cropbox.width) == pytest.approx(240)

    def test_repeated_crop_does_not_compound(self, sample_pdf_bytes):
        document = Document.load(sample_pdf_bytes)
        context = TransformContext.capture(document)
        operation = CropOperation(UIRect(10, 10, 80, 80))
        run(document, operation, context)
        run(document, operation, context)
        assert document.page(0).size.width == pytest.approx(489.6)

    def test_mixed_sizes_crop_relative(self, mixed_size_pdf_bytes):
        document = Document.load(mixed_size_pdf_bytes)
        run(document, CropOperation(UIRect(0, 0, 50, 50)))
        assert document.page(0).size.width == pytest.approx(306)
        assert document.page(1).size.width == pytest.approx(421)

    def test_only_pages_in_range(self, multi_page_pdf_bytes):
        document = Document.load(multi_page_pdf_bytes)
        touched = run(document, CropOperation(UIRect(0, 0, 50, 50), PageRange(2, 3)))
        assert touched == [1, 2]
        assert document.page(0).size.width == pytest.approx(612)
        assert document.page(3).size.width == pytest.approx(612)


class TestRotate:
    def test_rotate_page_accumulates(self, sample_pdf_bytes):
        page = Document.load(sample_pdf_bytes).page(0)
        for _ in range(5):
            rotate_page(page, 90)
        assert page.rotation == 90

    def test_negative_delta(self, sample_pdf_bytes):
        page = Document.load(sample_pdf_bytes).page(0)
        assert rotate_page(page, -90) == 270

    def test_only_listed_pages(self, multi_page_pdf_bytes):
        document = Document.load(multi_page_pdf_bytes)
        touched = run(document, RotateOperation({1: 90, 4: 180, 20: 90}))
        assert touched == [1, 4]
        assert [p.rotation for p in document.pages] == [0, 90, 0, 0, 180, 0]

    def test_full_turn_is_skipped(self, sample_pdf_bytes):
        document = Document.load(sample_pdf_bytes)
        assert run(document, RotateOperation({0: 360})) == []

    def test_content_is_untouched(self, sample_pdf_bytes):
        document = Document.load(sample_pdf_bytes)
        before = len(document.page(0).content_entries())
        run(document, RotateOperation({0: 90}))
        assert len(document.page(0).content_entries()) == before


class TestWatermark:
    def test_centered_text(self, sample_pdf_bytes, read_marks):
        document = Document.load(sample_pdf_bytes)
        page = document.page(0)
        rects = watermark_page(page, WatermarkOperation(text="DRAFT"))
        assert len(rects) == 1
        assert rects[0].center.x == pytest.approx(306)
        assert rects[0].center.y == pytest.approx(396)
        assert b"DRAFT" in read_marks(document.save())[0]

    def test_anchor_with_margin(self, sample_pdf_bytes):
        page = Document.load(sample_pdf_bytes).page(0)
        rect = watermark_page(page, WatermarkOperation(anchor=Anchor.TOP_RIGHT, margin=20))[0]
        assert rect.right == pytest.approx(592)
        assert rect.top == pytest.approx(772)

    def test_tiled_draws_nine(self, sample_pdf_bytes, read_marks):
        document = Document.load(sample_pdf_bytes)
        rects = watermark_page(document.page(0), WatermarkOperation(text="T", tiled=True, anchor=Anchor.TOP_LEFT))
        assert len(rects) == 9
        assert rects[0].center.x == pytest.approx(102)
        assert rects[0].center.y == pytest.approx(132)
        assert rects[-1].center.x == pytest.approx(510)
        assert rects[-1].center.y == pytest.approx(660)
        # All nine land in a single content entry
        marks = read_marks(document.save())
        assert len(marks) == 1
        assert marks[0].count(b"(T) Tj") == 9

    def test_rotation_pivots_on_placement_origin(self, sample_pdf_bytes, read_marks, read_transforms):
        document = Document.load(sample_pdf_bytes)
        operation = WatermarkOperation(text="X", anchor=Anchor.BOTTOM_LEFT, margin=20, rotation=-45)
        rect = watermark_page(document.page(0), operation)[0]
        assert (rect.x, rect.y) == (20, 20)

        a, b, c, d, e, f = read_transforms(read_marks(document.save())[0])[0]
        assert (e, f) == pytest.approx((20, 20))
        assert (a, b) == pytest.approx((0.707107, -0.707107), abs=1e-5)

    def test_tiled_marks_pivot_on_each_origin(self, sample_pdf_bytes, read_marks, read_transforms):
        document = Document.load(sample_pdf_bytes)
        rects = watermark_page(document.page(0), WatermarkOperation(text="T", tiled=True, rotation=30))
        matrices = read_transforms(read_marks(document.save())[0])
        origins = [(m[4], m[5]) for m in matrices]
        assert origins == [pytest.approx((r.x, r.y), abs=1e-3) for r in rects]

    def test_under_layer_goes_first(self, sample_pdf_bytes, read_contents):
        document = Document.load(sample_pdf_bytes)
        run(document, WatermarkOperation(layer=Layer.UNDER))
        contents = read_contents(document.save())
        assert b"Do" in contents[0]
        assert b"Do" not in contents[-1]

    def test_over_layer_goes_last(self, sample_pdf_bytes, read_contents):
        document = Document.load(sample_pdf_bytes)
        run(document, WatermarkOperation(layer=Layer.OVER))
        contents = read_contents(document.save())
        assert b"Do" in contents[-1]

    def test_under_on_blank_page(self, blank_pdf_bytes, read_marks):
        document = Document.load(blank_pdf_bytes)
        run(document, WatermarkOperation(layer=Layer.UNDER))
        assert len(read_marks(document.save())) == 1

    def test_image_natural_size_times_scale(self, sample_pdf_bytes, png_bytes, read_marks):
        document = Document.load(sample_pdf_bytes)
        operation = WatermarkOperation(watermark_kind=WatermarkKind.IMAGE, image=png_bytes, image_scale=2.0)
        image = document.embed_image(png_bytes, "png")
        rect = watermark_page(document.page(0), operation, image)[0]
        assert (rect.width, rect.height) == (80, 40)

    def test_image_without_data_raises(self, sample_pdf_bytes):
        document = Document.load(sample_pdf_bytes)
        with pytest.raises(EmbedError):
            run(document, WatermarkOperation(watermark_kind=WatermarkKind.IMAGE))

    def test_undecodable_image_raises(self, sample_pdf_bytes):
        document = Document.load(sample_pdf_bytes)
        operation = WatermarkOperation(watermark_kind=WatermarkKind.IMAGE, image=b"not an image")
        with pytest.raises(EmbedError):
            run(document, operation)

    def test_placeholder_in_preview(self, sample_pdf_bytes, read_marks):
        document = Document.load(sample_pdf_bytes)
        context = TransformContext.capture(document, preview=True)
        operation = WatermarkOperation(watermark_kind=WatermarkKind.IMAGE, image=b"not an image")
        run(document, operation, context)
        marks = read_marks(document.save())
        assert b"(IMAGE) Tj" in marks[0]

    def test_placeholder_size(self, sample_pdf_bytes):
        page = Document.load(sample_pdf_bytes).page(0)
        rect = watermark_page(page, WatermarkOperation(watermark_kind=WatermarkKind.IMAGE, image_scale=0.5))[0]
        assert (rect.width, rect.height) == (100, 50)

    def test_empty_text_is_legal(self, sample_pdf_bytes):
        document = Document.load(sample_pdf_bytes)
        assert run(document, WatermarkOperation(text="")) == [0]

    def test_each_page_in_range(self, multi_page_pdf_bytes, read_marks):
        document = Document.load(multi_page_pdf_bytes)
        run(document, WatermarkOperation(page_range=PageRange(5, None)))
        data = document.save()
        assert read_marks(data, 3) == []
        assert len(read_marks(data, 4)) == 1
        assert len(read_marks(data, 5)) == 1


class TestPageNumbers:
    def test_label_counts_from_range_start(self):
        operation = PageNumberOperation(NumberFormat.PAGE_N_OF_T, page_range=PageRange(2, None))
        assert page_number_label(operation, 1, 6) == "Page 1 of 6"
        assert page_number_label(operation, 5, 6) == "Page 5 of 6"

    def test_total_is_whole_document(self, twenty_page_pdf_bytes, read_marks):
        document = Document.load(twenty_page_pdf_bytes)
        run(document, PageNumberOperation(NumberFormat.PAGE_N_OF_T))
        data = document.save()
        assert b"(Page 1 of 20) Tj" in read_marks(data, 0)[0]
        assert b"(Page 20 of 20) Tj" in read_marks(data, 19)[0]

    def test_custom_start(self, multi_page_pdf_bytes, read_marks):
        document = Document.load(multi_page_pdf_bytes)
        run(document, PageNumberOperation(start_value=10, page_range=PageRange(3, 4)))
        data = document.save()
        assert read_marks(data, 1) == []
        assert b"(10) Tj" in read_marks(data, 2)[0]
        assert b"(11) Tj" in read_marks(data, 3)[0]

    def test_range_past_end_is_a_no_op(self, multi_page_pdf_bytes, read_marks):
        document = Document.load(multi_page_pdf_bytes)
        assert run(document, PageNumberOperation(page_range=PageRange(8, None))) == []
        data = document.save()
        assert all(read_marks(data, i) == [] for i in range(6))


class TestHandlerErrors:
    class ExplodingHandler(TransformHandler):
        operation_class = RotateOperation

        def target_pages(self, operation, context):
            return [0]

        def apply_page(self, page, operation, context, prepared):
            raise RuntimeError("boom")

    def test_page_failure_is_wrapped(self, sample_pdf_bytes):
        document = Document.load(sample_pdf_bytes)
        operation = RotateOperation({0: 90})
        with pytest.raises(MutationError) as exc_info:
            self.ExplodingHandler().apply(document, operation, TransformContext.capture(document))
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert exc_info.value.context == {"page": 1, "operation": "rotate"}

    def test_only_pages_overrides_selection(self, multi_page_pdf_bytes):
        document = Document.load(multi_page_pdf_bytes)
        context = TransformContext.capture(document)
        context.only_pages = [3, 99]
        assert run(document, WatermarkOperation(), context) == [3]

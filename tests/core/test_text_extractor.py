from __future__ import annotations

import pytest

from hirepipeline.errors import ExtractionError, UnsupportedDocumentError
from hirepipeline.extraction import ExtractionConfig, TextExtractor

LONG_TEXT = "Senior platform engineer. " * 10


class StubPDFReader:
    def __init__(self, text: str = "", error: Exception | None = None) -> None:
        self._text = text
        self._error = error
        self.calls = 0

    def __call__(self, data: bytes) -> str:
        self.calls += 1
        if self._error is not None:
            raise self._error
        return self._text


def test_plain_text_is_decoded_without_oracle(stub_oracle):
    vision = stub_oracle(vision_text="unused")
    extractor = TextExtractor(vision=vision)

    text = extractor.extract(("\ufeff" + LONG_TEXT).encode("utf-8"), "text/plain; charset=utf-8")

    assert text == LONG_TEXT.strip()
    assert vision.vision_calls == []


def test_pdf_text_layer_is_preferred(stub_oracle):
    vision = stub_oracle(vision_text="unused")
    reader = StubPDFReader(LONG_TEXT * 2)
    extractor = TextExtractor(vision=vision, pdf_reader=reader)

    text = extractor.extract(b"%PDF-1.4", "application/pdf")

    assert text.startswith("Senior platform engineer.")
    assert reader.calls == 1
    assert vision.vision_calls == []


def test_scanned_pdf_falls_back_to_vision(stub_oracle):
    vision = stub_oracle(vision_text=LONG_TEXT)
    reader = StubPDFReader("  Page 1  ")
    extractor = TextExtractor(vision=vision, pdf_reader=reader)

    text = extractor.extract(b"%PDF-1.4", "application/pdf")

    assert text == LONG_TEXT.strip()
    assert vision.vision_calls == ["application/pdf"]


@pytest.mark.parametrize(
    "error",
    [RuntimeError("broken xref"), KeyError("xref"), IndexError("page out of range"), AttributeError("trailer")],
)
def test_unreadable_pdf_falls_back_to_vision(stub_oracle, error):
    vision = stub_oracle(vision_text=LONG_TEXT)
    extractor = TextExtractor(vision=vision, pdf_reader=StubPDFReader(error=error))

    assert extractor.extract(b"%PDF-1.4", "application/pdf") == LONG_TEXT.strip()
    assert vision.vision_calls == ["application/pdf"]


def test_images_go_straight_to_vision(stub_oracle):
    vision = stub_oracle(vision_text=LONG_TEXT)
    reader = StubPDFReader(LONG_TEXT)
    extractor = TextExtractor(vision=vision, pdf_reader=reader)

    extractor.extract(b"\x89PNG", "image/jpg")

    assert vision.vision_calls == ["image/jpeg"]
    assert reader.calls == 0


def test_insufficient_text_raises(stub_oracle):
    extractor = TextExtractor(vision=stub_oracle(vision_text="Hi"))

    with pytest.raises(ExtractionError, match="insufficient text"):
        extractor.extract(b"\x89PNG", "image/png")


def test_missing_vision_oracle_raises():
    extractor = TextExtractor(pdf_reader=StubPDFReader(""))

    with pytest.raises(ExtractionError):
        extractor.extract(b"%PDF-1.4", "application/pdf")


def test_unsupported_type_and_size_are_rejected(stub_oracle):
    extractor = TextExtractor(vision=stub_oracle(), config=ExtractionConfig(max_bytes=16))

    with pytest.raises(UnsupportedDocumentError):
        extractor.extract(b"PK\x03\x04", "application/zip")
    with pytest.raises(UnsupportedDocumentError):
        extractor.extract(b"x" * 17, "text/plain")
    with pytest.raises(ExtractionError):
        extractor.extract(b"", "text/plain")

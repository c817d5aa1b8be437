"""Tests for slide extraction."""

from io import BytesIO

import pytest
from pptx import Presentation
from pptx.util import Inches
from PyPDF2 import PdfWriter

from src.core.presentation_parser import ParseError, PresentationParser
from src.models.presentation import PresentationUpload
from src.prompts.reviewer import GREETING, UPLOAD_ERROR


DECK = """Fraud Detection Pipeline
Real-time scoring of card transactions
- Kafka ingestion
- Feature store lookups
Notes: mention the latency budget
---
Model
1. Gradient boosted trees
2) Nightly retraining
\f
Results
Chargebacks down 30%
---

"""


@pytest.fixture
def parser() -> PresentationParser:
    return PresentationParser()


@pytest.mark.asyncio
async def test_text_deck_is_split_into_slides(parser):
    upload = PresentationUpload(filename="deck.txt", content=DECK.encode())

    parsed = await parser.parse(upload)

    assert parsed.metadata.filename == "deck.txt"
    assert parsed.metadata.slide_count == 3
    assert parsed.metadata.file_size == len(DECK.encode())
    assert [s.slide_number for s in parsed.slides] == [1, 2, 3]

    first = parsed.slides[0]
    assert first.title == "Fraud Detection Pipeline"
    assert first.content == "Real-time scoring of card transactions"
    assert first.bullets == ["Kafka ingestion", "Feature store lookups"]
    assert first.notes == "mention the latency budget"

    assert parsed.slides[1].bullets == ["Gradient boosted trees", "Nightly retraining"]
    assert parsed.slides[2].notes is None


@pytest.mark.asyncio
async def test_pdf_pages_without_text_yield_no_slides(parser):
    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)
    writer.add_blank_page(width=612, height=792)
    buffer = BytesIO()
    writer.write(buffer)

    parsed = await parser.parse(PresentationUpload(filename="deck.PDF", content=buffer.getvalue()))

    assert parsed.slides == []
    assert parsed.metadata.slide_count == 0


@pytest.mark.asyncio
async def test_corrupt_pdf_raises(parser):
    with pytest.raises(ParseError, match="Failed to read PDF"):
        await parser.parse(PresentationUpload(filename="deck.pdf", content=b"not a pdf"))


@pytest.mark.asyncio
async def test_unsupported_type_raises(parser):
    with pytest.raises(ParseError, match="Unsupported file type"):
        await parser.parse(PresentationUpload(filename="deck.key", content=b"PK\x03\x04"))


@pytest.mark.asyncio
async def test_non_utf8_text_raises(parser):
    with pytest.raises(ParseError):
        await parser.parse(PresentationUpload(filename="deck.txt", content=b"\xff\xfe\xfa"))


def _pptx_deck() -> bytes:
    deck = Presentation()

    slide = deck.slides.add_slide(deck.slide_layouts[1])
    slide.shapes.title.text = "Fraud Detection Pipeline"
    body = slide.placeholders[1].text_frame
    body.text = "Kafka ingestion"
    body.add_paragraph().text = "Feature store lookups"
    box = slide.shapes.add_textbox(Inches(1), Inches(5), Inches(6), Inches(1))
    box.text_frame.text = "Real-time scoring of card transactions"
    slide.notes_slide.notes_text_frame.text = "mention the latency budget"

    deck.slides.add_slide(deck.slide_layouts[6])

    untitled = deck.slides.add_slide(deck.slide_layouts[6])
    box = untitled.shapes.add_textbox(Inches(1), Inches(1), Inches(6), Inches(1))
    box.text_frame.text = "Results"
    box.text_frame.add_paragraph().text = "Chargebacks down 30%"

    buffer = BytesIO()
    deck.save(buffer)
    return buffer.getvalue()


@pytest.mark.asyncio
async def test_pptx_deck_is_read_slide_by_slide(parser):
    content = _pptx_deck()

    parsed = await parser.parse(PresentationUpload(filename="Deck.PPTX", content=content))

    # The blank middle slide is dropped
    assert parsed.metadata.slide_count == 2
    assert [s.slide_number for s in parsed.slides] == [1, 2]

    first = parsed.slides[0]
    assert first.title == "Fraud Detection Pipeline"
    assert first.bullets == ["Kafka ingestion", "Feature store lookups"]
    assert first.content == "Real-time scoring of card transactions"
    assert first.notes == "mention the latency budget"

    second = parsed.slides[1]
    assert second.title == "Results"
    assert second.content == "Chargebacks down 30%"
    assert second.notes is None


@pytest.mark.asyncio
async def test_corrupt_pptx_raises(parser):
    with pytest.raises(ParseError, match="Failed to read PowerPoint file"):
        await parser.parse(PresentationUpload(filename="deck.pptx", content=b"not a deck"))


def test_candidate_prompts_name_accepted_formats():
    for line in (GREETING, UPLOAD_ERROR):
        assert "PowerPoint (.pptx)" in line
        assert "PDF" in line

"""
Presentation Parser for DeckReview

Turns an uploaded deck into slides:
- PowerPoint decks (.pptx): one slide per slide (python-pptx)
- PDF exports: one page per slide (PyPDF2)
- Plain-text decks: slides separated by form feeds or `---` lines

For PDF and text decks the first non-empty line of a slide is the
title, bulleted lines become bullets, and anything after a `Notes:`
line becomes speaker notes.
"""

import asyncio
import logging
import re
from io import BytesIO

from pptx import Presentation
from PyPDF2 import PdfReader

from src.models.presentation import (
    ParsedPresentation,
    ParsedSlide,
    PresentationMetadata,
    PresentationUpload,
)

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = (".txt", ".md")
SUPPORTED_FORMATS = "PowerPoint (.pptx), PDF or plain text"

_SLIDE_SEPARATOR = re.compile(r"\f|^\s*-{3,}\s*$", re.MULTILINE)
_BULLET = re.compile(r"^\s*(?:[-*•–]|\d+[.)])\s+")
_NOTES_MARKER = re.compile(r"^\s*notes?\s*:\s*", re.IGNORECASE)


class ParseError(Exception):
    """Raised when a presentation cannot be read."""
    pass


class PresentationParser:
    """Extracts slide text from uploaded presentations."""

    async def parse(self, upload: PresentationUpload) -> ParsedPresentation:
        """
        Parse an uploaded presentation.

        Parsing is CPU-bound, so it runs off the event loop.

        Raises:
            ParseError: If the file type is unsupported or unreadable
        """
        logger.info(f"Parsing presentation: {upload.filename} ({len(upload.content)} bytes)")
        slides = await asyncio.to_thread(self._extract_slides, upload)

        logger.info(f"Extracted {len(slides)} slides from {upload.filename}")

        return ParsedPresentation(
            metadata=PresentationMetadata(
                filename=upload.filename,
                slide_count=len(slides),
                file_size=len(upload.content),
            ),
            slides=slides,
        )

    def _extract_slides(self, upload: PresentationUpload) -> list[ParsedSlide]:
        """Read the raw file into slides; blank slides are dropped and the rest renumbered."""
        if upload.filename.lower().endswith(".pptx"):
            slides = self._read_pptx(upload.content)
        else:
            slides = [self._build_slide(page_text) for page_text in self._extract_pages(upload)]

        kept = [s for s in slides if s is not None]
        return [
            slide.model_copy(update={"slide_number": number})
            for number, slide in enumerate(kept, start=1)
        ]

    def _read_pptx(self, content: bytes) -> list[ParsedSlide | None]:
        """
        Read a PowerPoint deck.

        The title placeholder gives the title (falling back to the first
        line of text), other placeholders give bullets, free text boxes
        give content and the notes page gives notes.
        """
        try:
            deck = Presentation(BytesIO(content))
        except Exception as exc:
            raise ParseError(f"Failed to read PowerPoint file: {exc}") from exc

        slides: list[ParsedSlide | None] = []
        for slide in deck.slides:
            title_shape = slide.shapes.title
            title = title_shape.text_frame.text.strip() if title_shape is not None else ""
            content: list[str] = []
            bullets: list[str] = []

            for shape in slide.shapes:
                if not shape.has_text_frame:
                    continue
                if title_shape is not None and shape.shape_id == title_shape.shape_id:
                    continue
                target = bullets if shape.is_placeholder else content
                for paragraph in shape.text_frame.paragraphs:
                    text = paragraph.text.strip()
                    if text:
                        target.append(text)

            notes = None
            if slide.has_notes_slide and slide.notes_slide.notes_text_frame is not None:
                notes = slide.notes_slide.notes_text_frame.text.strip() or None

            if not title and (content or bullets):
                title = (content or bullets).pop(0)

            if not title:
                slides.append(None)
                continue

            slides.append(ParsedSlide(
                slide_number=1,
                title=title,
                content=" ".join(content),
                bullets=bullets,
                notes=notes,
            ))

        return slides

    def _extract_pages(self, upload: PresentationUpload) -> list[str]:
        """Split a PDF or text deck into per-slide text blocks."""
        name = upload.filename.lower()

        if name.endswith(".pdf"):
            try:
                reader = PdfReader(BytesIO(upload.content))
                return [page.extract_text() or "" for page in reader.pages]
            except Exception as exc:
                raise ParseError(f"Failed to read PDF: {exc}") from exc

        if name.endswith(TEXT_EXTENSIONS):
            try:
                text = upload.content.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise ParseError(f"Presentation is not valid UTF-8 text: {exc}") from exc
            return _SLIDE_SEPARATOR.split(text.replace("\x00", ""))

        raise ParseError(
            f"Unsupported file type: {upload.filename} "
            f"(please upload a {SUPPORTED_FORMATS} file)"
        )

    def _build_slide(self, text: str) -> ParsedSlide | None:
        """Structure one slide's text; blank slides give None."""
        lines = [line.strip() for line in text.splitlines() if line.strip()]
        if not lines:
            return None

        title, body = lines[0], lines[1:]
        content: list[str] = []
        bullets: list[str] = []
        notes: list[str] = []
        in_notes = False

        for line in body:
            marker = _NOTES_MARKER.match(line)
            if marker:
                in_notes = True
                line = line[marker.end():]
                if not line:
                    continue
            if in_notes:
                notes.append(line)
            elif _BULLET.match(line):
                bullets.append(_BULLET.sub("", line))
            else:
                content.append(line)

        return ParsedSlide(
            slide_number=1,
            title=title,
            content=" ".join(content),
            bullets=bullets,
            notes=" ".join(notes) or None,
        )

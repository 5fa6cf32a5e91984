"""
PDF rendering with reportlab.

Codex and master (whole run) documents are laid out with platypus flowables.
The active PDF template controls cover page, table of contents, header and
footer, margins, font sizes and colours. Footers carry the document label and
"Page X of Y", which needs the total page count, so pages are buffered by the
canvas and decorated on save.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any, Dict, List, Optional, Sequence, Tuple
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas as pdfcanvas
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer

from codexalpha.core.database.base import utc_now
from codexalpha.core.database.entities.pdf import PdfTemplate

# (section name, content) pairs
SectionContent = Tuple[str, str]

_REPLACEMENTS = {
    "→": "->",
    "•": "*",
    "–": "-",
    "—": "--",
    "…": "...",
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
}
_NON_ASCII = re.compile(r"[^\x00-\x7F]")


def sanitize_text(text: Optional[str]) -> str:
    """Map common typographic characters to ASCII and drop the rest."""
    if not text:
        return ""
    for char, replacement in _REPLACEMENTS.items():
        text = text.replace(char, replacement)
    return _NON_ASCII.sub("", text)


def _rgb(values: Sequence[int], fallback: Tuple[int, int, int]) -> colors.Color:
    try:
        r, g, b = (max(0, min(255, int(v))) for v in values)
    except (TypeError, ValueError):
        r, g, b = fallback
    return colors.Color(r / 255.0, g / 255.0, b / 255.0)


@dataclass
class PdfStyle:
    """Rendering options resolved from a PDF template."""

    company_name: str = ""
    header_text: str = ""
    footer_text: str = ""
    show_header: bool = True
    show_footer: bool = True
    show_page_numbers: bool = True
    show_cover_page: bool = True
    show_toc: bool = True
    margins_mm: Tuple[float, float, float, float] = (20.0, 20.0, 20.0, 20.0)
    title_font_size: float = 24.0
    heading_font_size: float = 16.0
    body_font_size: float = 11.0
    primary_color: List[int] = field(default_factory=lambda: [37, 99, 235])
    heading_color: List[int] = field(default_factory=lambda: [17, 24, 39])
    text_color: List[int] = field(default_factory=lambda: [55, 65, 81])

    @classmethod
    def from_template(cls, template: Optional[PdfTemplate]) -> "PdfStyle":
        if template is None:
            return cls()
        return cls(
            company_name=sanitize_text(template.company_name),
            header_text=sanitize_text(template.header_text),
            footer_text=sanitize_text(template.footer_text),
            show_header=template.show_header,
            show_footer=template.show_footer,
            show_page_numbers=template.show_page_numbers,
            show_cover_page=template.show_cover_page,
            show_toc=template.show_toc,
            margins_mm=(template.margin_top, template.margin_right, template.margin_bottom, template.margin_left),
            title_font_size=template.title_font_size,
            heading_font_size=template.heading_font_size,
            body_font_size=template.body_font_size,
            primary_color=list(template.primary_color or []),
            heading_color=list(template.heading_color or []),
            text_color=list(template.text_color or []),
        )


class _DecoratedCanvas(pdfcanvas.Canvas):
    """Canvas that buffers pages to draw header and "Page X of Y" footers on save."""

    def __init__(self, *args: Any, decorations: Optional[Dict[str, Any]] = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._decorations = decorations or {}
        self._saved_page_states: List[Dict[str, Any]] = []

    def showPage(self) -> None:
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self) -> None:
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_decorations(total)
            super().showPage()
        super().save()

    def _draw_decorations(self, total: int) -> None:
        style: PdfStyle = self._decorations["style"]
        label: str = self._decorations["label"]
        page = self.getPageNumber()
        if style.show_cover_page and page == 1:
            return
        width, height = self._pagesize
        top, right, bottom, left = (m * mm for m in style.margins_mm)

        self.saveState()
        self.setFont("Helvetica", 8)
        self.setFillColor(_rgb(style.text_color, (55, 65, 81)))
        if style.show_header:
            header = style.header_text or style.company_name
            if header:
                self.drawString(left, height - top / 2, header[:120])
        if style.show_footer:
            self.drawString(left, bottom / 2, label[:70])
            if style.footer_text:
                self.drawCentredString(width / 2, bottom / 4, style.footer_text[:100])
        if style.show_page_numbers:
            self.drawRightString(width - right, bottom / 2, f"Page {page} of {total}")
        self.restoreState()


def _styles(style: PdfStyle) -> Dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    heading_color = _rgb(style.heading_color, (17, 24, 39))
    text_color = _rgb(style.text_color, (55, 65, 81))
    primary = _rgb(style.primary_color, (37, 99, 235))
    return {
        "cover_title": ParagraphStyle(
            name="CoverTitle",
            parent=base["Title"],
            fontName="Helvetica-Bold",
            fontSize=style.title_font_size + 8,
            leading=(style.title_font_size + 8) * 1.25,
            textColor=primary,
            spaceAfter=18,
        ),
        "cover_sub": ParagraphStyle(
            name="CoverSub",
            parent=base["Normal"],
            fontName="Helvetica",
            fontSize=style.body_font_size + 2,
            leading=(style.body_font_size + 2) * 1.4,
            textColor=text_color,
            alignment=1,
        ),
        "title": ParagraphStyle(
            name="DocTitle",
            parent=base["Title"],
            fontName="Helvetica-Bold",
            fontSize=style.title_font_size,
            leading=style.title_font_size * 1.25,
            textColor=primary,
            spaceAfter=14,
        ),
        "heading": ParagraphStyle(
            name="SectionHeading",
            parent=base["Heading2"],
            fontName="Helvetica-Bold",
            fontSize=style.heading_font_size,
            leading=style.heading_font_size * 1.3,
            textColor=heading_color,
            spaceBefore=10,
            spaceAfter=6,
        ),
        "toc": ParagraphStyle(
            name="TocEntry",
            parent=base["Normal"],
            fontName="Helvetica",
            fontSize=style.body_font_size,
            leading=style.body_font_size * 1.6,
            textColor=text_color,
            leftIndent=12,
        ),
        "body": ParagraphStyle(
            name="Body",
            parent=base["Normal"],
            fontName="Helvetica",
            fontSize=style.body_font_size,
            leading=style.body_font_size * 1.45,
            textColor=text_color,
            spaceAfter=6,
        ),
    }


def _paragraphs(text: str, style: ParagraphStyle) -> List[Paragraph]:
    """Content split on blank lines; single newlines become line breaks."""
    blocks = [b.strip() for b in re.split(r"\n\s*\n", sanitize_text(text)) if b.strip()]
    return [Paragraph(escape(block).replace("\n", "<br/>"), style) for block in blocks]


def _cover(story: List[Any], styles: Dict[str, ParagraphStyle], style: PdfStyle, title: str, subtitle: str) -> None:
    story.append(Spacer(1, 60 * mm))
    story.append(Paragraph(escape(sanitize_text(title)), styles["cover_title"]))
    if subtitle:
        story.append(Paragraph(escape(sanitize_text(subtitle)), styles["cover_sub"]))
    if style.company_name:
        story.append(Spacer(1, 12 * mm))
        story.append(Paragraph(escape(style.company_name), styles["cover_sub"]))
    story.append(Spacer(1, 8 * mm))
    story.append(Paragraph(utc_now().strftime("%B %d, %Y"), styles["cover_sub"]))
    story.append(PageBreak())


def _toc(story: List[Any], styles: Dict[str, ParagraphStyle], entries: Sequence[str]) -> None:
    story.append(Paragraph("Table of Contents", styles["title"]))
    for idx, entry in enumerate(entries, start=1):
        story.append(Paragraph(f"{idx}. {escape(sanitize_text(entry))}", styles["toc"]))
    story.append(PageBreak())


def _build(story: List[Any], style: PdfStyle, label: str, title: str) -> bytes:
    top, right, bottom, left = (m * mm for m in style.margins_mm)
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        topMargin=top,
        rightMargin=right,
        bottomMargin=bottom,
        leftMargin=left,
        title=sanitize_text(title),
        author=style.company_name or "CodeXAlpha",
    )

    def canvasmaker(*args: Any, **kwargs: Any) -> _DecoratedCanvas:
        return _DecoratedCanvas(*args, decorations={"style": style, "label": sanitize_text(label)}, **kwargs)

    doc.build(story, canvasmaker=canvasmaker)
    return buffer.getvalue()


def render_codex_pdf(
    codex_name: str,
    sections: Sequence[SectionContent],
    *,
    persona_title: str = "",
    template: Optional[PdfTemplate] = None,
) -> bytes:
    """One codex: optional cover and contents, then each section with content."""
    style = PdfStyle.from_template(template)
    styles = _styles(style)
    filled = [(name, content) for name, content in sections if content and content.strip()]

    story: List[Any] = []
    if style.show_cover_page:
        _cover(story, styles, style, codex_name, persona_title)
    if style.show_toc and filled:
        _toc(story, styles, [name for name, _ in filled])

    story.append(Paragraph(escape(sanitize_text(codex_name)), styles["title"]))
    if not filled:
        story.append(Paragraph("No content has been generated for this codex yet.", styles["body"]))
    for name, content in filled:
        story.append(Paragraph(escape(sanitize_text(name)), styles["heading"]))
        story.extend(_paragraphs(content, styles["body"]))
    return _build(story, style, codex_name, codex_name)


def render_master_pdf(
    persona_title: str,
    codexes: Sequence[Tuple[str, Sequence[SectionContent]]],
    *,
    owner_name: str = "",
    template: Optional[PdfTemplate] = None,
) -> bytes:
    """Every codex of a run in one document: cover, contents, one part per codex."""
    style = PdfStyle.from_template(template)
    styles = _styles(style)

    story: List[Any] = []
    if style.show_cover_page:
        _cover(story, styles, style, persona_title, owner_name)
    if style.show_toc and codexes:
        _toc(story, styles, [name for name, _ in codexes])

    for idx, (codex_name, sections) in enumerate(codexes):
        if idx:
            story.append(PageBreak())
        story.append(Paragraph(escape(sanitize_text(codex_name)), styles["title"]))
        for name, content in sections:
            if not content or not content.strip():
                continue
            story.append(Paragraph(escape(sanitize_text(name)), styles["heading"]))
            story.extend(_paragraphs(content, styles["body"]))
    if not codexes:
        story.append(Paragraph("No codexes are ready for export yet.", styles["body"]))
    return _build(story, style, persona_title, persona_title)

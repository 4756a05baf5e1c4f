# pdf.py
import io
import re
from datetime import date
from typing import Dict, List, Optional
from xml.sax.saxutils import escape, quoteattr

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import ListFlowable, ListItem, Paragraph, SimpleDocTemplate, Spacer

from schemas import ExportIn, MindMap

MARGIN = 20 * mm


def pdf_filename(query: str) -> str:
    slug = re.sub(r"[^a-z0-9]", "-", query.lower()).strip("-") or "export"
    return f"info-quest-{slug}.pdf"


def esc(text: str) -> str:
    return escape(text or "").replace("\n", "<br/>")


def mind_map_edges(mind_map: MindMap) -> List[str]:
    """'A -> B' for every connection whose endpoints both name a node; the rest are skipped."""
    labels: Dict[str, str] = {n.id: n.label or n.id for n in mind_map.nodes if n.id}
    edges = []
    for c in mind_map.connections:
        if c.from_ in labels and c.to in labels:
            edges.append(f"{labels[c.from_]} -> {labels[c.to]}")
    return edges


def _bullets(items: List[str], style: ParagraphStyle, bullet: str = "•") -> ListFlowable:
    return ListFlowable(
        [ListItem(Paragraph(esc(item), style), leftIndent=12) for item in items],
        bulletType="bullet",
        start=bullet,
        leftIndent=12,
    )


def _footer(generated: str):
    def draw(canvas, doc):
        canvas.saveState()
        canvas.setFont("Helvetica", 8)
        canvas.setFillColor(colors.grey)
        canvas.drawCentredString(A4[0] / 2, 10 * mm, f"Info Quest - Generated {generated} | Page {doc.page}")
        canvas.restoreState()
    return draw


def build_pdf(export: ExportIn, generated_on: Optional[date] = None) -> bytes:
    """Flatten study content into a PDF document and return its bytes."""
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=MARGIN,
        title=f"Info Quest: {export.query}",
    )

    styles = getSampleStyleSheet()
    title_style = styles["Title"]
    h2_style = styles["Heading2"]
    h3_style = styles["Heading4"]
    body_style = styles["BodyText"]

    story = [Paragraph(esc(f"Info Quest: {export.query}"), title_style), Spacer(1, 6 * mm)]

    def section(title: str):
        story.append(Paragraph(esc(title), h2_style))

    section("Brief Answer")
    story.append(Paragraph(esc(export.brief_answer), body_style))

    if export.key_points:
        section("Key Points")
        story.append(_bullets(list(export.key_points), body_style))

    section("Overview")
    for s in export.overview:
        story.append(Paragraph(esc(s.subtopic), h3_style))
        story.append(Paragraph(esc(s.content), body_style))

    if export.flashcards:
        section("Flashcards")
        for i, card in enumerate(export.flashcards, start=1):
            story.append(Paragraph(f"<b>{esc(f'Q{i}: {card.front}')}</b>", body_style))
            story.append(Paragraph(esc(f"A: {card.back}"), body_style))
            story.append(Spacer(1, 2 * mm))

    if export.timeline:
        section("Timeline")
        for t in export.timeline:
            heading = " - ".join(part for part in (t.date, t.title) if part)
            story.append(Paragraph(esc(heading), h3_style))
            if t.description:
                story.append(Paragraph(esc(t.description), body_style))

    if export.did_you_know:
        section("Did You Know?")
        story.append(_bullets(list(export.did_you_know), body_style, bullet="*"))

    if export.mind_map and export.mind_map.nodes:
        section("Mind Map")
        story.append(_bullets([n.label or n.id for n in export.mind_map.nodes], body_style))
        edges = mind_map_edges(export.mind_map)
        if edges:
            story.append(Paragraph("Connections", h3_style))
            story.append(_bullets(edges, body_style, bullet="-"))

    if export.resources:
        section("Sources & Resources")
        for r in export.resources:
            story.append(Paragraph(f"<link href={quoteattr(r.url)}>{esc(r.title)}</link>", body_style))

    footer = _footer((generated_on or date.today()).isoformat())
    doc.build(story, onFirstPage=footer, onLaterPages=footer)
    return buf.getvalue()

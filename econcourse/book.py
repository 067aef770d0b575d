"""
Assemble chapter text and figures into a single PDF.

Layout: a cover page, then for every section a monospace text page
followed by its figure scaled to the usable page area.
"""

import os
from collections import namedtuple

from PIL import Image
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import (SimpleDocTemplate, Paragraph, Spacer,
                                PageBreak, Image as RLImage)

Section = namedtuple("Section", ["title", "text", "figure"], defaults=(None,))

MARGIN = 0.75 * inch


def _escape(line):
    # Escape XML-sensitive chars for reportlab
    return line.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _styles():
    styles = getSampleStyleSheet()
    return dict(
        normal=styles["Normal"],
        code=ParagraphStyle(
            "CodeBlock", parent=styles["Normal"], fontName="Courier",
            fontSize=8.5, leading=11, spaceAfter=4, leftIndent=0,
        ),
        section=ParagraphStyle(
            "SectionTitle", parent=styles["Heading1"],
            fontName="Helvetica-Bold", fontSize=14, leading=18,
            spaceAfter=12, textColor="#2171B5",
        ),
        title=ParagraphStyle(
            "BookTitle", parent=styles["Title"], fontName="Helvetica-Bold",
            fontSize=18, leading=22, spaceAfter=6,
        ),
        subtitle=ParagraphStyle(
            "Subtitle", parent=styles["Normal"], fontName="Helvetica",
            fontSize=10, leading=13, spaceAfter=20, textColor="#555555",
        ),
    )


def fit_image(path, max_w, max_h):
    """Display size (w, h) preserving the aspect ratio of the image file."""
    with Image.open(path) as img:
        iw, ih = img.size
    aspect = ih / iw
    w, h = max_w, max_w * aspect
    # Cap height to avoid overflow
    if h > max_h:
        h = max_h
        w = h / aspect
    return w, h


def text_flowables(section, styles):
    story = [Paragraph(_escape(section.title), styles["section"])]
    for line in section.text.strip("\n").split("\n"):
        if line.strip() == "":
            story.append(Spacer(1, 6))
        else:
            # Preserve leading indentation in the monospace block
            indent = len(line) - len(line.lstrip(" "))
            story.append(Paragraph("&nbsp;" * indent + _escape(line.lstrip(" ")),
                                   styles["code"]))
    return story


def build_pdf(sections, path, title, subtitle="", intro=()):
    """
    Write the book PDF.

    Parameters
    ----------
    sections : list of Section
    path : str
        Output PDF path.
    title, subtitle : str
        Cover page headings.
    intro : sequence of str
        Cover page lines; empty strings become vertical space.

    Returns
    -------
    str : the PDF path
    """
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    doc = SimpleDocTemplate(path, pagesize=letter,
                            leftMargin=MARGIN, rightMargin=MARGIN,
                            topMargin=MARGIN, bottomMargin=MARGIN)
    styles = _styles()

    story = [Paragraph(_escape(title), styles["title"])]
    if subtitle:
        story.append(Paragraph(_escape(subtitle), styles["subtitle"]))
    story.append(Spacer(1, 12))
    for line in intro:
        if line == "":
            story.append(Spacer(1, 6))
        else:
            story.append(Paragraph(_escape(line), styles["normal"]))
    story.append(PageBreak())

    page_w = letter[0] - 2 * MARGIN
    page_h = letter[1] - 2 * MARGIN
    for section in sections:
        story.extend(text_flowables(section, styles))
        story.append(PageBreak())
        if section.figure:
            w, h = fit_image(section.figure, page_w, page_h)
            story.append(RLImage(section.figure, width=w, height=h))
            story.append(PageBreak())

    doc.build(story)
    return path

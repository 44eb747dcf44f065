"""
PDF reports for the inventory and for AI analyses.

Both reports are drawn with the reportlab canvas on A4 and returned as
bytes, ready for a download button.
"""

import re
from datetime import datetime
from io import BytesIO

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from core.models import ExpiryFilter, InventoryStats, Medication

PAGE_WIDTH, PAGE_HEIGHT = A4
LEFT = 15 * mm
RIGHT = PAGE_WIDTH - 15 * mm

BLUE = colors.HexColor("#2563eb")
INDIGO = colors.HexColor("#4f46e5")
TEXT = colors.HexColor("#1f2937")
STRIPE = colors.HexColor("#f3f4f6")
MUTED = colors.HexColor("#9ca3af")
RULE = colors.HexColor("#e5e7eb")
NOTE = colors.HexColor("#6b7280")

ROW_HEIGHT = 6 * mm
TABLE_BOTTOM = 20 * mm

# (header, x offset from LEFT, width)
TABLE_COLUMNS = [
    ("CODE", 0, 28 * mm),
    ("MEDICATION", 28 * mm, 72 * mm),
    ("LOT", 100 * mm, 27 * mm),
    ("EXPIRY", 127 * mm, 28 * mm),
    ("QUANTITY", 155 * mm, 25 * mm),
]

REPORT_TITLES = {
    ExpiryFilter.ALL: "General Inventory",
    ExpiryFilter.UPCOMING: "Upcoming Expirations Report",
    ExpiryFilter.EXPIRED: "Expired Report",
}

DISCLAIMER = [
    "LEGAL NOTICE: This report was generated with artificial intelligence for administrative support.",
    "Critical health and supply decisions must be validated by qualified pharmacy staff.",
]


def expiry_report_title(expiry_filter: ExpiryFilter) -> str:
    return REPORT_TITLES[expiry_filter]


def report_filename(title: str, when: datetime, brand: str = "FarmaINPER") -> str:
    """e.g. FarmaINPER_Report_Expired_Report_1718000000000.pdf"""
    slug = re.sub(r"\s+", "_", title.strip())
    return f"{brand}_Report_{slug}_{int(when.timestamp() * 1000)}.pdf"


def insight_report_filename(when: datetime, brand: str = "FarmaINPER") -> str:
    return f"{brand}_AI_Analysis_{int(when.timestamp() * 1000)}.pdf"


def _fit(text: str, font: str, size: float, width: float) -> str:
    """Clip text with an ellipsis so it fits in width."""
    if stringWidth(text, font, size) <= width:
        return text
    while text and stringWidth(text + "...", font, size) > width:
        text = text[:-1]
    return text + "..."


def _y(from_top_mm: float) -> float:
    """Canvas y for a distance measured from the top edge."""
    return PAGE_HEIGHT - from_top_mm * mm


def _header_band(c: canvas.Canvas, fill, title: str, size: int) -> None:
    c.setFillColor(fill)
    c.rect(0, _y(40), PAGE_WIDTH, 40 * mm, stroke=0, fill=1)
    c.setFillColor(colors.white)
    c.setFont("Helvetica-Bold", size)
    c.drawString(LEFT, _y(20), title)


def paginate(n_rows: int, first_capacity: int, capacity: int) -> list[range]:
    """Split row indices into pages; always at least one (possibly empty) page."""
    pages = [range(0, min(n_rows, first_capacity))]
    start = first_capacity
    while start < n_rows:
        pages.append(range(start, min(n_rows, start + capacity)))
        start += capacity
    return pages


def _table_header(c: canvas.Canvas, y: float) -> None:
    c.setFillColor(BLUE)
    c.rect(LEFT, y - 1.8 * mm, RIGHT - LEFT, ROW_HEIGHT, stroke=0, fill=1)
    c.setFillColor(colors.white)
    c.setFont("Helvetica-Bold", 9)
    for label, offset, width in TABLE_COLUMNS:
        c.drawString(LEFT + offset + 1.5 * mm, y, label)


def _table_row(c: canvas.Canvas, y: float, med: Medication, striped: bool) -> None:
    if striped:
        c.setFillColor(STRIPE)
        c.rect(LEFT, y - 1.8 * mm, RIGHT - LEFT, ROW_HEIGHT, stroke=0, fill=1)
    c.setFillColor(TEXT)
    c.setFont("Helvetica", 9)
    values = [med.code, med.name, med.lot, med.expiry_date.isoformat(), str(med.quantity)]
    for value, (_, offset, width) in zip(values, TABLE_COLUMNS):
        c.drawString(LEFT + offset + 1.5 * mm, y, _fit(value, "Helvetica", 9, width - 3 * mm))


def generate_medication_report(
    title: str,
    records: list[Medication],
    stats: InventoryStats | None = None,
    generated_at: datetime | None = None,
    brand: str = "FarmaINPER",
    subtitle: str = "Hospital Inventory Management System",
) -> bytes:
    """
    Inventory report: branded header, optional executive summary, striped
    table of lots and a page counter in every footer.
    """
    generated_at = generated_at or datetime.now()
    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    c.setTitle(f"{brand} - {title}")

    first_top = _y(85 if stats else 65)
    next_top = _y(20)
    first_capacity = int((first_top - TABLE_BOTTOM) // ROW_HEIGHT) - 1
    capacity = int((next_top - TABLE_BOTTOM) // ROW_HEIGHT) - 1
    pages = paginate(len(records), first_capacity, capacity)

    for page_no, rows in enumerate(pages, start=1):
        if page_no == 1:
            _header_band(c, BLUE, brand, 24)
            c.setFont("Helvetica", 10)
            c.drawString(LEFT, _y(28), subtitle)
            c.drawRightString(RIGHT, _y(28), f"Generated: {generated_at:%d %B %Y %H:%M}")

            c.setFillColor(TEXT)
            c.setFont("Helvetica-Bold", 16)
            c.drawString(LEFT, _y(55), title.upper())

            if stats:
                c.setFont("Helvetica-Bold", 10)
                c.drawString(LEFT, _y(65), "EXECUTIVE SUMMARY:")
                c.setFont("Helvetica", 10)
                c.drawString(LEFT, _y(72), f"Total Medications: {stats.total_medications}")
                c.drawString(LEFT, _y(78), f"Total Stock Units: {stats.total_units}")
                c.drawString(100 * mm, _y(72), f"Expiring Soon (90 days): {stats.expiring_soon}")
                c.drawString(100 * mm, _y(78), f"Expired: {stats.expired}")
            y = first_top
        else:
            y = next_top

        _table_header(c, y)
        y -= ROW_HEIGHT
        for i in rows:
            _table_row(c, y, records[i], striped=(i % 2 == 1))
            y -= ROW_HEIGHT

        c.setFont("Helvetica", 8)
        c.setFillColor(MUTED)
        c.drawString(
            LEFT, 12 * mm,
            f"{brand} - Inventory Control Report - Page {page_no} of {len(pages)}",
        )
        c.showPage()

    c.save()
    return buffer.getvalue()


def generate_insight_report(
    analysis_text: str,
    generated_at: datetime | None = None,
    brand: str = "FarmaINPER",
) -> bytes:
    """AI analysis report: wrapped analysis text and a legal disclaimer."""
    generated_at = generated_at or datetime.now()
    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    c.setTitle(f"{brand} - AI Insights")

    font, size, leading = "Helvetica", 11, 5 * mm
    lines: list[str] = []
    for paragraph in analysis_text.splitlines():
        lines.extend(simpleSplit(paragraph, font, size, RIGHT - LEFT) or [""])

    _header_band(c, INDIGO, f"{brand} - AI Insights", 22)
    c.setFont("Helvetica", 10)
    c.drawString(LEFT, _y(28), f"Strategic analysis generated by AI - {generated_at:%d %B %Y}")
    c.setFillColor(TEXT)
    c.setFont("Helvetica-Bold", 14)
    c.drawString(LEFT, _y(55), "INVENTORY ANALYSIS RESULTS")

    # Text stays above the disclaimer block on every page
    bottom = 55 * mm
    y = _y(65)
    c.setFont(font, size)
    for line in lines:
        if y < bottom:
            c.showPage()
            c.setFillColor(TEXT)
            c.setFont(font, size)
            y = _y(20)
        c.drawString(LEFT, y, line)
        y -= leading

    c.setStrokeColor(RULE)
    c.line(LEFT, _y(250), RIGHT, _y(250))
    c.setFont("Helvetica-Oblique", 8)
    c.setFillColor(NOTE)
    c.drawString(LEFT, _y(258), DISCLAIMER[0])
    c.drawString(LEFT, _y(263), DISCLAIMER[1])

    c.showPage()
    c.save()
    return buffer.getvalue()

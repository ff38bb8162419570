"""Export Formatter — checklist downloads in JSON, YAML, Markdown and PDF.

Every format renders the same logical export object built by
``build_export``: checklist metadata, the owner's display name, creation
and export timestamps, the progress counters, and the items grouped by
raw category string. Groups appear in order of first appearance and
items keep their source (creation) order inside a group; ``order`` is ignored.

Output is a pure function of the stored checklist and ``exported_at``:
no wall-clock reads happen once ``exported_at`` is fixed, and the PDF is
built with reportlab's ``invariant`` mode.
"""

from __future__ import annotations

import io
import json
import logging
from datetime import datetime, timezone
from urllib.parse import urlsplit
from xml.sax.saxutils import escape

import yaml
from reportlab.lib.colors import HexColor
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from securelistify.core.exceptions import SerializationError, ValidationError
from securelistify.services import checklist_service
from securelistify.utils.helpers import download_filename, format_timestamp

logger = logging.getLogger(__name__)

PRODUCT_NAME = "SecureListify"

# format → (content type, file extension)
EXPORT_FORMATS = {
    "json": ("application/json", "json"),
    "yaml": ("application/yaml", "yaml"),
    "markdown": ("text/markdown", "md"),
    "pdf": ("application/pdf", "pdf"),
}

STATUS_SYMBOLS = {
    "Done": "[x]",
    "In Progress": "[~]",
    "Not Applicable": "[-]",
}
DEFAULT_STATUS_SYMBOL = "[ ]"

RISK_COLORS = {
    "Critical": "#D32F2F",
    "High": "#D32F2F",
    "Medium": "#F57C00",
    "Low": "#388E3C",
}

PROGRESS_LABELS = (
    ("not_started", "Not Started"),
    ("in_progress", "In Progress"),
    ("done", "Done"),
    ("not_applicable", "Not Applicable"),
    ("total", "Total Items"),
)


def status_symbol(status: str) -> str:
    return STATUS_SYMBOLS.get(status, DEFAULT_STATUS_SYMBOL)


def reference_host(url: str, fmt: str) -> str:
    """Hostname shown as the link text for an item reference."""
    try:
        host = urlsplit(url or "").hostname
    except ValueError as exc:
        raise SerializationError(fmt, f"malformed reference URL {url!r}") from exc
    if not host:
        raise SerializationError(fmt, f"reference URL {url!r} has no hostname")
    return host


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


# ── Logical export object ─────────────────────────────────────────────────────


def _export_item(item) -> dict:
    return {
        "title": item.title,
        "description": item.description,
        "risk_rating": item.risk_rating,
        "category": item.category,
        "status": item.status,
        "notes": item.notes or "",
        "completed_at": _iso(item.completed_at),
        "completed_by": item.completed_by.name if item.completed_by else None,
        "reference_url": item.reference_url,
        "tags": list(item.tags or []),
        "compliance_frameworks": list(item.compliance_frameworks or []),
    }


def group_by_category(items) -> list[tuple[str, list]]:
    groups: dict[str, list] = {}
    for item in items:
        groups.setdefault(item.category, []).append(item)
    return list(groups.items())


def build_export(checklist, exported_at: datetime) -> dict:
    return {
        "name": checklist.name,
        "description": checklist.description or "",
        "system_type": checklist.system_type,
        "created_by": checklist.created_by.name if checklist.created_by else None,
        "created_at": _iso(checklist.created_at),
        "exported_at": _iso(exported_at),
        "progress": checklist.progress,
        "categories": [
            {"category": category, "items": [_export_item(i) for i in items]}
            for category, items in group_by_category(checklist.items)
        ],
    }


# ── Renderers ─────────────────────────────────────────────────────────────────


def render_json(checklist, exported_at: datetime) -> bytes:
    payload = build_export(checklist, exported_at)
    return (json.dumps(payload, indent=2, ensure_ascii=False) + "\n").encode("utf-8")


def render_yaml(checklist, exported_at: datetime) -> bytes:
    payload = build_export(checklist, exported_at)
    return yaml.safe_dump(payload, sort_keys=False, allow_unicode=True).encode("utf-8")


def render_markdown(checklist, exported_at: datetime) -> bytes:
    progress = checklist.progress
    lines = [f"# {checklist.name}", ""]
    if checklist.description:
        lines += [checklist.description, ""]

    lines += [
        "## Metadata",
        "",
        f"- **System Type:** {checklist.system_type}",
        f"- **Created By:** {checklist.created_by.name if checklist.created_by else ''}",
        f"- **Created At:** {format_timestamp(checklist.created_at)}",
        f"- **Exported At:** {format_timestamp(exported_at)}",
        "",
        "## Progress Summary",
        "",
    ]
    lines += [f"- **{label}:** {progress[key]}" for key, label in PROGRESS_LABELS]
    lines += ["", "## Checklist Items", ""]

    for category, items in group_by_category(checklist.items):
        lines += [f"### {category}", ""]
        for number, item in enumerate(items, start=1):
            lines.append(f"- {status_symbol(item.status)} **{number}. {item.title}** [{item.risk_rating}]")
            lines.append(f"  - {item.description}")
            host = reference_host(item.reference_url, "markdown")
            lines.append(f"  - **Reference:** [{host}]({item.reference_url})")
            if item.notes:
                lines.append(f"  - **Notes:** {item.notes}")
            if item.status == "Done" and item.completed_by:
                lines.append(f"  - **Completed by:** {item.completed_by.name} "
                             f"on {format_timestamp(item.completed_at)}")
            if item.tags:
                lines.append(f"  - **Tags:** {', '.join(item.tags)}")
            if item.compliance_frameworks:
                lines.append(f"  - **Compliance:** {', '.join(item.compliance_frameworks)}")
        lines.append("")

    lines += ["---", "", f"*Generated by {PRODUCT_NAME} on {format_timestamp(exported_at)}*", ""]
    return "\n".join(lines).encode("utf-8")


_STYLES = getSampleStyleSheet()
_STYLES.add(ParagraphStyle(name="Product", parent=_STYLES["Title"], fontSize=28, leading=34,
                           alignment=TA_CENTER, spaceAfter=12 * mm))
_STYLES.add(ParagraphStyle(name="ChecklistTitle", parent=_STYLES["Title"], fontSize=20, leading=24,
                           alignment=TA_CENTER))
_STYLES.add(ParagraphStyle(name="Centered", parent=_STYLES["Normal"], alignment=TA_CENTER))
_STYLES.add(ParagraphStyle(name="ItemTitle", parent=_STYLES["Normal"], fontSize=11, leading=14,
                           spaceBefore=6))
_STYLES.add(ParagraphStyle(name="ItemDetail", parent=_STYLES["Normal"], fontSize=9, leading=12,
                           leftIndent=15))


def _p(text, style: str) -> Paragraph:
    return Paragraph(escape(str(text)), _STYLES[style])


def _risk_badge(rating: str) -> str:
    color = RISK_COLORS.get(rating, "#000000")
    return f'<font color="{color}"><b>[{escape(rating)}]</b></font>'


def _pdf_story(checklist, exported_at: datetime) -> list:
    story = [
        Spacer(1, 40 * mm),
        _p(PRODUCT_NAME, "Product"),
        _p(checklist.name, "ChecklistTitle"),
    ]
    if checklist.description:
        story += [Spacer(1, 6 * mm), _p(checklist.description, "Centered")]
    story.append(PageBreak())

    meta = [
        ("System Type", checklist.system_type),
        ("Created By", checklist.created_by.name if checklist.created_by else ""),
        ("Created At", format_timestamp(checklist.created_at)),
        ("Exported At", format_timestamp(exported_at)),
    ]
    story.append(_p("Metadata", "Heading2"))
    story.append(_key_value_table(meta))
    story.append(Spacer(1, 6 * mm))

    progress = checklist.progress
    story.append(_p("Progress Summary", "Heading2"))
    story.append(_key_value_table([(label, progress[key]) for key, label in PROGRESS_LABELS]))
    story.append(Spacer(1, 6 * mm))

    story.append(_p("Checklist Items", "Heading1"))
    for category, items in group_by_category(checklist.items):
        story.append(_p(category, "Heading3"))
        for number, item in enumerate(items, start=1):
            title = (f"{escape(status_symbol(item.status))} {number}. {escape(item.title)} "
                     f"{_risk_badge(item.risk_rating)}")
            story.append(Paragraph(title, _STYLES["ItemTitle"]))
            story.append(_p(item.description, "ItemDetail"))
            host = reference_host(item.reference_url, "pdf")
            href = escape(item.reference_url, {'"': "&quot;"})
            story.append(Paragraph(
                f'Reference: <link href="{href}" color="blue">{escape(host)}</link>',
                _STYLES["ItemDetail"],
            ))
            if item.notes:
                story.append(_p(f"Notes: {item.notes}", "ItemDetail"))
            if item.status == "Done" and item.completed_by:
                story.append(_p(f"Completed by {item.completed_by.name} "
                                f"on {format_timestamp(item.completed_at)}", "ItemDetail"))
            if item.tags:
                story.append(_p(f"Tags: {', '.join(item.tags)}", "ItemDetail"))
            if item.compliance_frameworks:
                story.append(_p(f"Compliance: {', '.join(item.compliance_frameworks)}", "ItemDetail"))
        story.append(Spacer(1, 4 * mm))
    return story


def _key_value_table(rows) -> Table:
    table = Table([[_p(k, "Normal"), _p(v, "Normal")] for k, v in rows], colWidths=[45 * mm, 120 * mm])
    table.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LINEBELOW", (0, 0), (-1, -1), 0.25, HexColor("#DDDDDD")),
    ]))
    return table


def render_pdf(checklist, exported_at: datetime) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        title=f"{checklist.name} - {PRODUCT_NAME}",
        author=checklist.created_by.name if checklist.created_by else PRODUCT_NAME,
        creator=PRODUCT_NAME,
        leftMargin=18 * mm, rightMargin=18 * mm, topMargin=18 * mm, bottomMargin=18 * mm,
        invariant=1,
    )
    story = _pdf_story(checklist, exported_at)
    try:
        doc.build(story)
    except ValueError as exc:
        raise SerializationError("pdf", str(exc)) from exc
    return buffer.getvalue()


RENDERERS = {
    "json": render_json,
    "yaml": render_yaml,
    "markdown": render_markdown,
    "pdf": render_pdf,
}


def render_checklist(checklist, fmt: str, exported_at: datetime) -> bytes:
    return RENDERERS[fmt](checklist, exported_at)


def export_checklist(caller, checklist_id: str, fmt: str, exported_at: datetime | None = None):
    """Return ``(body, content_type, filename)`` for a readable checklist."""
    if fmt not in EXPORT_FORMATS:
        raise ValidationError(
            f"Unsupported export format {fmt!r}",
            details={"format": f"must be one of {', '.join(EXPORT_FORMATS)}"},
        )
    checklist = checklist_service.get_checklist(caller, checklist_id)
    exported_at = exported_at or datetime.now(timezone.utc)
    body = render_checklist(checklist, fmt, exported_at)
    content_type, ext = EXPORT_FORMATS[fmt]
    logger.info("Checklist exported checklist_id=%s format=%s bytes=%d", checklist.id, fmt, len(body),
                extra={"checklist_id": checklist.id, "export_format": fmt, "user_id": caller.id})
    return body, content_type, download_filename(checklist.name, f"_export.{ext}")

"""Contact export service.

Renders a user's filtered contacts as CSV, JSON, Excel or PDF, optionally
with derived analytics (engagement and influence scores, platform and
verification breakdowns, engagement statistics).

Usage:
    service = ExportService(db=session)

    result = service.export_contacts(
        "u1",
        ExportOptions(format="csv", filters=ExportFilters(platforms=["instagram"])),
    )
    result.data      # bytes
    result.filename  # contacts_2024-01-31.csv
"""

import csv
import io
import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Optional
from xml.sax.saxutils import escape

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import landscape, letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import (
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)
from sqlalchemy.orm import Session

from socialscout_core.domain.errors import ValidationError
from socialscout_core.domain.models import ContactTag, ContactTagRelation, ScrapedContact, utcnow
from socialscout_core.domain.services.contacts import tagged_contact_ids

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================


# (key, label, type) for every exportable field
EXPORT_FIELDS: list[tuple[str, str, str]] = [
    ("username", "Username", "text"),
    ("display_name", "Display Name", "text"),
    ("platform", "Platform", "text"),
    ("profile_url", "Profile URL", "url"),
    ("avatar_url", "Avatar URL", "url"),
    ("bio", "Bio", "text"),
    ("email", "Email", "email"),
    ("phone", "Phone", "text"),
    ("website", "Website", "url"),
    ("location", "Location", "text"),
    ("follower_count", "Followers", "number"),
    ("following_count", "Following", "number"),
    ("post_count", "Posts", "number"),
    ("is_verified", "Verified", "boolean"),
    ("is_business", "Business", "boolean"),
    ("category", "Category", "text"),
    ("tags", "Tags", "array"),
    ("engagement_rate", "Engagement Rate", "percentage"),
    ("scraping_source", "Source", "text"),
    ("scraping_query", "Query", "text"),
    ("scraped_at", "Scraped Date", "date"),
    ("created_at", "Created Date", "date"),
    ("updated_at", "Updated Date", "date"),
]

DEFAULT_HEADERS = {key: label for key, label, _ in EXPORT_FIELDS}
FIELD_TYPES = {key: kind for key, _, kind in EXPORT_FIELDS}

DEFAULT_FIELDS = [
    "username",
    "display_name",
    "platform",
    "profile_url",
    "avatar_url",
    "bio",
    "email",
    "phone",
    "location",
    "follower_count",
    "following_count",
    "post_count",
    "is_verified",
    "is_business",
    "category",
    "tags",
    "engagement_rate",
    "scraping_source",
    "scraping_query",
    "scraped_at",
]
PDF_DEFAULT_FIELD_COUNT = 8

COLUMN_WIDTHS = {
    "username": 15,
    "display_name": 20,
    "platform": 10,
    "profile_url": 30,
    "bio": 40,
    "email": 25,
    "phone": 15,
    "location": 20,
    "category": 15,
    "tags": 25,
    "engagement_rate": 12,
}
DEFAULT_COLUMN_WIDTH = 15

MIME_TYPES = {
    "csv": "text/csv",
    "json": "application/json",
    "excel": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "pdf": "application/pdf",
}
EXTENSIONS = {"csv": "csv", "json": "json", "excel": "xlsx", "pdf": "pdf"}

DEFAULT_PDF_MAX_ROWS = 100
DEFAULT_PREVIEW_ROWS = 10
PDF_CELL_MAX_CHARS = 40

ANALYTICS_SECTIONS = ("Platform Distribution", "Verification Status", "Engagement Statistics")


# =============================================================================
# OPTIONS AND RESULTS
# =============================================================================


@dataclass
class ExportFilters:
    """Contact filters for an export. None means not applied."""

    platforms: Optional[list[str]] = None
    tags: Optional[list[str]] = None
    min_followers: Optional[int] = None
    max_followers: Optional[int] = None
    is_verified: Optional[bool] = None
    is_business: Optional[bool] = None
    location: Optional[str] = None
    category: Optional[str] = None
    date_start: Optional[datetime] = None
    date_end: Optional[datetime] = None

    def describe(self) -> dict[str, Any]:
        """Set filters as JSON-friendly values."""
        described = {}
        for key, value in asdict(self).items():
            if value is None:
                continue
            described[key] = value.isoformat() if isinstance(value, datetime) else value
        return described


@dataclass
class ExportOptions:
    format: str
    fields: Optional[list[str]] = None
    filters: Optional[ExportFilters] = None
    include_analytics: bool = False
    custom_headers: Optional[dict[str, str]] = None


@dataclass
class ExportResult:
    data: bytes
    filename: str
    mime_type: str
    record_count: int


@dataclass
class ExportPreview:
    format: str
    records: list[dict[str, Any]]
    record_count: int
    preview_count: int
    filename: str
    data: Optional[str] = None


@dataclass
class EngagementStats:
    average: float = 0.0
    median: float = 0.0
    min: float = 0.0
    max: float = 0.0


@dataclass
class ExportRow:
    """A contact with its tag names, ready for rendering."""

    contact: ScrapedContact
    tags: list[str] = field(default_factory=list)

    def value(self, key: str) -> Any:
        if key == "tags":
            return self.tags
        return getattr(self.contact, key)


# =============================================================================
# ANALYTICS
# =============================================================================


def engagement_score(contact: ScrapedContact) -> float:
    """Engagement rate plus up to 10 points for reach, capped at 100."""
    base = contact.engagement_rate or 0.0
    follower_bonus = min((contact.follower_count or 0) / 10000, 10)
    return round(min(base + follower_bonus, 100), 2)


def influence_score(contact: ScrapedContact) -> float:
    """Weighted 0-100 score from reach, flags, engagement and activity.

    Followers give up to 40 points, verification 10, a business account 5,
    engagement up to 30 and post count up to 15.
    """
    score = min((contact.follower_count or 0) / 2500, 40)
    if contact.is_verified:
        score += 10
    if contact.is_business:
        score += 5
    if contact.engagement_rate:
        score += min(contact.engagement_rate * 3, 30)
    if contact.post_count:
        score += min(contact.post_count / 100, 15)
    return round(min(score, 100), 2)


def platform_distribution(contacts: list[ScrapedContact]) -> dict[str, int]:
    stats: dict[str, int] = {}
    for contact in contacts:
        stats[contact.platform] = stats.get(contact.platform, 0) + 1
    return stats


def verification_counts(contacts: list[ScrapedContact]) -> tuple[int, int]:
    verified = sum(1 for contact in contacts if contact.is_verified)
    return verified, len(contacts) - verified


def engagement_stats(contacts: list[ScrapedContact]) -> EngagementStats:
    rates = sorted(
        contact.engagement_rate for contact in contacts if contact.engagement_rate is not None
    )
    if not rates:
        return EngagementStats()
    return EngagementStats(
        average=sum(rates) / len(rates),
        median=rates[len(rates) // 2],
        min=rates[0],
        max=rates[-1],
    )


def _percent(part: int, total: int) -> str:
    return f"{(part / total * 100) if total else 0:.1f}%"


# =============================================================================
# SERVICE
# =============================================================================


class ExportService:
    """Exports filtered contacts to documents."""

    def __init__(
        self,
        db: Session,
        pdf_max_rows: int = DEFAULT_PDF_MAX_ROWS,
        preview_rows: int = DEFAULT_PREVIEW_ROWS,
    ):
        """Initialize the export service.

        Args:
            db: SQLAlchemy database session.
            pdf_max_rows: Maximum contact rows rendered into a PDF.
            preview_rows: Number of records returned by a preview.
        """
        self.db = db
        self.pdf_max_rows = pdf_max_rows
        self.preview_rows = preview_rows

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def export_contacts(self, user_id: str, options: ExportOptions) -> ExportResult:
        """Export a user's contacts.

        Raises:
            ValidationError: If the format or a field is unknown.
        """
        fields = self._resolve_fields(options)
        rows = self.get_filtered_contacts(user_id, options.filters)

        if options.format == "csv":
            data = self.render_csv(rows, fields, options)
        elif options.format == "json":
            data = self.render_json(rows, fields, options)
        elif options.format == "excel":
            data = self.render_excel(rows, fields, options)
        else:
            data = self.render_pdf(rows, fields, options)

        logger.info(f"Exported {len(rows)} contacts for user {user_id} as {options.format}")
        return ExportResult(
            data=data,
            filename=self._filename(options.format),
            mime_type=MIME_TYPES[options.format],
            record_count=len(rows),
        )

    def preview_export(self, user_id: str, options: ExportOptions) -> ExportPreview:
        """Preview the first records of an export.

        Text formats also include the rendered preview document.
        """
        fields = self._resolve_fields(options)
        rows = self.get_filtered_contacts(user_id, options.filters)
        head = rows[: self.preview_rows]

        data = None
        if options.format == "csv":
            data = self.render_csv(head, fields, options).decode("utf-8")
        elif options.format == "json":
            document = json.loads(self.render_json(head, fields, options))
            document["total_records"] = len(rows)
            document["preview"] = True
            data = json.dumps(document, indent=2)

        return ExportPreview(
            format=options.format,
            records=[self._record(row, fields, options.include_analytics) for row in head],
            record_count=len(rows),
            preview_count=len(head),
            filename=self._filename(options.format).replace(".", "_preview.", 1),
            data=data,
        )

    def get_filtered_contacts(
        self, user_id: str, filters: Optional[ExportFilters] = None
    ) -> list[ExportRow]:
        """Read a user's contacts matching the export filters, with tag names."""
        query = self.db.query(ScrapedContact).filter(ScrapedContact.user_id == user_id)

        if filters:
            if filters.platforms:
                query = query.filter(ScrapedContact.platform.in_(filters.platforms))
            if filters.min_followers is not None:
                query = query.filter(ScrapedContact.follower_count >= filters.min_followers)
            if filters.max_followers is not None:
                query = query.filter(ScrapedContact.follower_count <= filters.max_followers)
            if filters.is_verified is not None:
                query = query.filter(ScrapedContact.is_verified == filters.is_verified)
            if filters.is_business is not None:
                query = query.filter(ScrapedContact.is_business == filters.is_business)
            if filters.location:
                query = query.filter(ScrapedContact.location.ilike(f"%{filters.location}%"))
            if filters.category:
                query = query.filter(ScrapedContact.category.ilike(f"%{filters.category}%"))
            if filters.tags:
                query = query.filter(
                    ScrapedContact.id.in_(tagged_contact_ids(user_id, filters.tags))
                )
            if filters.date_start:
                query = query.filter(ScrapedContact.scraped_at >= filters.date_start)
            if filters.date_end:
                query = query.filter(ScrapedContact.scraped_at <= filters.date_end)

        contacts = query.order_by(ScrapedContact.id).all()
        tag_names = self._tag_names([contact.id for contact in contacts])
        return [ExportRow(contact, tag_names.get(contact.id, [])) for contact in contacts]

    # =========================================================================
    # RENDERERS
    # =========================================================================

    def render_csv(
        self, rows: list[ExportRow], fields: list[str], options: ExportOptions
    ) -> bytes:
        headers = self._headers(options)
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow([headers.get(key, key) for key in fields])
        for row in rows:
            writer.writerow([self._text(key, row.value(key)) for key in fields])
        return buffer.getvalue().encode("utf-8")

    def render_json(
        self, rows: list[ExportRow], fields: list[str], options: ExportOptions
    ) -> bytes:
        document = {
            "exported_at": utcnow().isoformat(),
            "total_records": len(rows),
            "filters": options.filters.describe() if options.filters else None,
            "contacts": [self._record(row, fields, options.include_analytics) for row in rows],
        }
        return json.dumps(document, indent=2).encode("utf-8")

    def render_excel(
        self, rows: list[ExportRow], fields: list[str], options: ExportOptions
    ) -> bytes:
        headers = self._headers(options)
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = "Contacts"

        sheet.append([headers.get(key, key) for key in fields])
        for cell in sheet[1]:
            cell.font = Font(bold=True)
            cell.fill = PatternFill(fill_type="solid", fgColor="FFE0E0E0")

        for index, key in enumerate(fields, start=1):
            sheet.column_dimensions[get_column_letter(index)].width = COLUMN_WIDTHS.get(
                key, DEFAULT_COLUMN_WIDTH
            )

        for row in rows:
            sheet.append([self._excel_value(key, row.value(key)) for key in fields])

        if "engagement_rate" in fields:
            column = get_column_letter(fields.index("engagement_rate") + 1)
            for cell in sheet[column][1:]:
                cell.number_format = "0.00%"

        if options.include_analytics:
            self._add_analytics_sheet(workbook, [row.contact for row in rows])

        buffer = io.BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()

    def render_pdf(
        self, rows: list[ExportRow], fields: list[str], options: ExportOptions
    ) -> bytes:
        headers = self._headers(options)
        if not options.fields:
            fields = fields[:PDF_DEFAULT_FIELD_COUNT]

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=landscape(letter),
            rightMargin=36,
            leftMargin=36,
            topMargin=36,
            bottomMargin=36,
        )
        styles = getSampleStyleSheet()
        info_style = ParagraphStyle(
            "ExportInfo",
            parent=styles["Normal"],
            fontSize=9,
            textColor=colors.HexColor("#64748b"),
        )

        elements = [
            Paragraph("Social Media Contacts Export", styles["Title"]),
            Paragraph(f"Exported on: {utcnow():%Y-%m-%d %H:%M} UTC", info_style),
            Paragraph(f"Total Records: {len(rows)}", info_style),
        ]
        described = options.filters.describe() if options.filters else {}
        if described:
            text = " | ".join(
                f"{key}: {', '.join(map(str, value)) if isinstance(value, list) else value}"
                for key, value in described.items()
            )
            elements.append(Paragraph(escape(f"Filters: {text}"), info_style))
        elements.append(Spacer(1, 12))

        table_data = [[headers.get(key, key) for key in fields]]
        for row in rows[: self.pdf_max_rows]:
            table_data.append(
                [self._text(key, row.value(key))[:PDF_CELL_MAX_CHARS] for key in fields]
            )

        table = Table(table_data, repeatRows=1)
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#28A745")),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 8),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#e2e8f0")),
                    (
                        "ROWBACKGROUNDS",
                        (0, 1),
                        (-1, -1),
                        [colors.white, colors.HexColor("#f8fafc")],
                    ),
                ]
            )
        )
        elements.append(table)

        if len(rows) > self.pdf_max_rows:
            elements.append(Spacer(1, 8))
            elements.append(
                Paragraph(f"... and {len(rows) - self.pdf_max_rows} more records", info_style)
            )

        if options.include_analytics:
            elements.append(PageBreak())
            elements.extend(self._pdf_analytics([row.contact for row in rows], styles))

        doc.build(elements)
        return buffer.getvalue()

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _resolve_fields(self, options: ExportOptions) -> list[str]:
        if options.format not in MIME_TYPES:
            raise ValidationError(f"Unsupported export format: {options.format}")

        fields = list(options.fields) if options.fields else list(DEFAULT_FIELDS)
        unknown = [key for key in fields if key not in DEFAULT_HEADERS]
        if unknown:
            raise ValidationError(f"Unknown export fields: {', '.join(unknown)}")
        return fields

    def _headers(self, options: ExportOptions) -> dict[str, str]:
        headers = dict(DEFAULT_HEADERS)
        headers.update(options.custom_headers or {})
        return headers

    def _filename(self, export_format: str) -> str:
        return f"contacts_{utcnow():%Y-%m-%d}.{EXTENSIONS[export_format]}"

    def _tag_names(self, contact_ids: list[int]) -> dict[int, list[str]]:
        if not contact_ids:
            return {}
        pairs = (
            self.db.query(ContactTagRelation.contact_id, ContactTag.name)
            .join(ContactTag, ContactTag.id == ContactTagRelation.tag_id)
            .filter(ContactTagRelation.contact_id.in_(contact_ids))
            .order_by(ContactTag.name)
            .all()
        )
        names: dict[int, list[str]] = {}
        for contact_id, name in pairs:
            names.setdefault(contact_id, []).append(name)
        return names

    def _record(
        self, row: ExportRow, fields: list[str], include_analytics: bool
    ) -> dict[str, Any]:
        record = {}
        for key in fields:
            value = row.value(key)
            record[key] = value.isoformat() if isinstance(value, datetime) else value
        if include_analytics:
            record["analytics"] = {
                "engagement_score": engagement_score(row.contact),
                "influence_score": influence_score(row.contact),
            }
        return record

    @staticmethod
    def _text(key: str, value: Any) -> str:
        if value is None:
            return ""
        kind = FIELD_TYPES.get(key)
        if kind == "array":
            return "; ".join(value)
        if kind == "percentage":
            return f"{value:.2f}%"
        if kind == "boolean":
            return "Yes" if value else "No"
        if isinstance(value, datetime):
            return value.isoformat()
        return str(value)

    @staticmethod
    def _excel_value(key: str, value: Any) -> Any:
        if value is None:
            return None
        kind = FIELD_TYPES.get(key)
        if kind == "array":
            return "; ".join(value)
        if kind == "percentage":
            return value / 100
        return value

    def _add_analytics_sheet(self, workbook: Workbook, contacts: list[ScrapedContact]) -> None:
        sheet = workbook.create_sheet("Analytics")
        total = len(contacts)

        sheet.append(["Platform Distribution"])
        sheet.append(["Platform", "Count", "Percentage"])
        for platform, count in platform_distribution(contacts).items():
            sheet.append([platform, count, _percent(count, total)])

        verified, not_verified = verification_counts(contacts)
        sheet.append([])
        sheet.append(["Verification Status"])
        sheet.append(["Status", "Count", "Percentage"])
        sheet.append(["Verified", verified, _percent(verified, total)])
        sheet.append(["Not Verified", not_verified, _percent(not_verified, total)])

        stats = engagement_stats(contacts)
        sheet.append([])
        sheet.append(["Engagement Statistics"])
        sheet.append(["Metric", "Value"])
        sheet.append(["Average Engagement Rate", f"{stats.average:.2f}%"])
        sheet.append(["Median Engagement Rate", f"{stats.median:.2f}%"])
        sheet.append(["Highest Engagement Rate", f"{stats.max:.2f}%"])
        sheet.append(["Lowest Engagement Rate", f"{stats.min:.2f}%"])

        for row in sheet.iter_rows(min_col=1, max_col=1):
            if row[0].value in ANALYTICS_SECTIONS:
                row[0].font = Font(bold=True)

    def _pdf_analytics(self, contacts: list[ScrapedContact], styles) -> list:
        total = len(contacts)
        verified, not_verified = verification_counts(contacts)
        stats = engagement_stats(contacts)

        elements = [Paragraph("Analytics Summary", styles["Heading1"])]

        elements.append(Paragraph("Platform Distribution", styles["Heading2"]))
        for platform, count in platform_distribution(contacts).items():
            elements.append(
                Paragraph(f"{escape(platform)}: {count} ({_percent(count, total)})", styles["Normal"])
            )

        elements.append(Paragraph("Verification Status", styles["Heading2"]))
        elements.append(
            Paragraph(f"Verified: {verified} ({_percent(verified, total)})", styles["Normal"])
        )
        elements.append(
            Paragraph(
                f"Not Verified: {not_verified} ({_percent(not_verified, total)})",
                styles["Normal"],
            )
        )

        elements.append(Paragraph("Engagement Statistics", styles["Heading2"]))
        elements.append(Paragraph(f"Average: {stats.average:.2f}%", styles["Normal"]))
        elements.append(Paragraph(f"Median: {stats.median:.2f}%", styles["Normal"]))
        elements.append(
            Paragraph(f"Range: {stats.min:.2f}% - {stats.max:.2f}%", styles["Normal"])
        )
        return elements


__all__ = [
    "ExportService",
    "ExportOptions",
    "ExportFilters",
    "ExportResult",
    "ExportPreview",
    "EXPORT_FIELDS",
    "DEFAULT_FIELDS",
    "MIME_TYPES",
    "engagement_score",
    "influence_score",
    "engagement_stats",
]

"""
Registration exports for admins (CSV and XLSX).

One row per registration with the user, amounts, guest counters and one
column per custom form field (by label, in form order).
"""

import csv
import io
from dataclasses import dataclass

import xlsxwriter
from sqlalchemy.ext.asyncio import AsyncSession

from alumni_api.core.clock import utcnow
from alumni_api.core.config import get_settings
from alumni_api.core.logging import get_logger
from alumni_api.services.event_service import get_event
from alumni_api.services.form_service import find_form
from alumni_api.services.registration_query_service import iter_export_rows

logger = get_logger(__name__)
settings = get_settings()

CSV_MEDIA_TYPE = "text/csv"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

BASE_COLUMNS = [
    ("Registration ID", "id"),
    ("Name", "user_full_name"),
    ("Email", "user_email"),
    ("Status", "status"),
    ("Payment Status", "payment_status"),
    ("Meal Preference", "meal_preference"),
    ("Active Guests", "active_guests"),
    ("Registration Fee", "registration_fee_paid"),
    ("Guest Fees", "guest_fees_paid"),
    ("Merchandise", "merchandise_total"),
    ("Donation", "donation_amount"),
    ("Total Amount", "total_amount"),
    ("Registered At", "created_at"),
]


@dataclass
class ExportFile:
    content: bytes
    media_type: str
    filename: str


def _cell(value):
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


async def _table(db: AsyncSession, event_id: int) -> tuple[list[str], list[list]]:
    form = await find_form(db, event_id)
    fields = list(form.fields) if form else []
    header = [label for label, _ in BASE_COLUMNS] + [field.field_label for field in fields]

    rows = []
    for row in await iter_export_rows(db, event_id, settings.EXPORT_MAX_ROWS):
        answers = {response.field_id: response.response for response in row["form_responses"]}
        rows.append(
            [_cell(row[key]) for _, key in BASE_COLUMNS]
            + [answers.get(field.id, "") for field in fields]
        )
    return header, rows


def render_csv(header: list[str], rows: list[list]) -> bytes:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(header)
    writer.writerows(rows)
    return output.getvalue().encode("utf-8")


def render_xlsx(header: list[str], rows: list[list], title: str) -> bytes:
    output = io.BytesIO()
    workbook = xlsxwriter.Workbook(output, {"in_memory": True})
    worksheet = workbook.add_worksheet("Registrations")

    header_format = workbook.add_format({
        "bold": True,
        "bg_color": "#4154f1",
        "font_color": "white",
        "align": "center",
    })

    worksheet.write_row(0, 0, header, header_format)
    for index, row in enumerate(rows, 1):
        worksheet.write_row(index, 0, row)
    worksheet.freeze_panes(1, 0)
    worksheet.set_column(0, len(header) - 1, 18)
    workbook.set_properties({"title": title})

    workbook.close()
    return output.getvalue()


async def export_registrations(db: AsyncSession, event_id: int, export_format: str = "csv") -> ExportFile:
    event = await get_event(db, event_id)
    header, rows = await _table(db, event_id)
    stamp = utcnow().strftime("%Y%m%d")

    if export_format == "xlsx":
        content = render_xlsx(header, rows, f"{event.title} registrations")
        export = ExportFile(content, XLSX_MEDIA_TYPE, f"{event.slug}_registrations_{stamp}.xlsx")
    else:
        export = ExportFile(render_csv(header, rows), CSV_MEDIA_TYPE, f"{event.slug}_registrations_{stamp}.csv")

    logger.info("registrations_exported", event_id=event_id, format=export_format, rows=len(rows))
    return export

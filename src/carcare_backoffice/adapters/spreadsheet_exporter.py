"""Excel workbook export for listings."""

from collections.abc import Sequence
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

WASH_TYPE_LABELS = {
    "outside": "Outside",
    "inside": "Inside",
    "outInside": "Out/Inside",
    "motorrad": "Motorrad",
    "turnaround": "Turnaround",
    "quickTurnaround": "Quick Turnaround",
    "special": "Special",
}
TRANSFER_TYPE_LABELS = {
    "hzp": "HZP",
    "hbp": "HBP",
    "apdt": "AP-DT",
    "presumptive": "Transfer KM",
    "special": "Special",
}
TRANSFER_METHOD_LABELS = {
    "collection": "Collection",
    "delivery": "Delivery",
}

_HEADER_FILL = PatternFill(start_color="3A3838", end_color="3A3838", fill_type="solid")
_HEADER_FONT = Font(color="FFFFFF", bold=True)
_TOTAL_FONT = Font(bold=True)
_THIN = Side(style="thin", color="A6A6A6")
_BORDER = Border(left=_THIN, right=_THIN, top=_THIN, bottom=_THIN)
_CENTER = Alignment(horizontal="center", vertical="center")
_MAX_WIDTH = 40


def build_workbook(
    title: str,
    columns: Sequence[tuple[str, str]],
    rows: Sequence[dict[str, object]],
    totals: dict[str, object] | None = None,
) -> bytes:
    """Render rows into an xlsx document.

    `columns` pairs a header label with the row key it reads. `totals`
    maps row keys to values written in a bold last line.
    """
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = title[:31]

    sheet.append([label for label, _ in columns])
    for row in rows:
        sheet.append([_cell_value(row.get(key)) for _, key in columns])
    if totals:
        total_row = [_cell_value(totals.get(key)) for _, key in columns]
        total_row[0] = "Total"
        sheet.append(total_row)

    for row_idx in range(1, sheet.max_row + 1):
        for col_idx in range(1, sheet.max_column + 1):
            cell = sheet.cell(row=row_idx, column=col_idx)
            cell.border = _BORDER
            if row_idx == 1:
                cell.fill = _HEADER_FILL
                cell.font = _HEADER_FONT
                cell.alignment = _CENTER
            elif totals and row_idx == sheet.max_row:
                cell.font = _TOTAL_FONT
            if isinstance(cell.value, float):
                cell.number_format = "0.00"

    for col_idx, (label, key) in enumerate(columns, start=1):
        widest = max(
            [len(label)] + [len(str(row.get(key) or "")) for row in rows]
        )
        sheet.column_dimensions[get_column_letter(col_idx)].width = min(
            widest + 2, _MAX_WIDTH
        )
    sheet.freeze_panes = "A2"

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def _cell_value(value: object) -> object:
    if value is None or isinstance(value, bool | int | float | str):
        return value
    return str(value)

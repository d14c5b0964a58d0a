"""
Exporter - Write a ScrapingResult to an .xlsx workbook
=======================================================
Sheet "Pages produit": one line per product.
Sheet "Guides de taille": one block per guide (id/URL banner, size header,
brand row, then one row per measurement system).
"""

import logging
import os
import re
from typing import Union
from urllib.parse import urlparse

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from models import ScrapingResult, SizeGuide

logger = logging.getLogger(__name__)

PRODUCT_SHEET = "Pages produit"
GUIDE_SHEET = "Guides de taille"
PRODUCT_HEADERS = ["Nom Produit", "Gender", "Type", "URL", "Guide de taille"]
PRODUCT_WIDTHS = [50, 12, 15, 70, 18]

HEADER_FILL = PatternFill("solid", start_color="1F4E79")
CODE_FILL = PatternFill("solid", start_color="00B0F0")
ID_FILL = PatternFill("solid", start_color="00FFFF")
HEADER_FONT = Font(bold=True, color="FFFFFF", name="Arial", size=10)
BOLD_FONT = Font(bold=True, name="Arial", size=10)
NORMAL_FONT = Font(name="Arial", size=10)
CENTER = Alignment(horizontal="center", vertical="center")

_NUMBER_RE = re.compile(r"^[+-]?\d+([.,]\d+)?$")


def output_dir() -> str:
    return os.environ.get("SIZE_GUIDE_OUTPUT_DIR", "output")


def output_path_for(url: str, directory: str = None) -> str:
    """'https://www.kleman-france.com' -> 'output/kleman-france_size_guides.xlsx'"""
    host = urlparse(url).hostname or url
    if host.startswith("www."):
        host = host[4:]
    name = host.rsplit(".", 1)[0] if "." in host else host
    return os.path.join(directory or output_dir(), f"{name}_size_guides.xlsx")


def parse_numeric(value: str) -> Union[str, int, float]:
    """'42' -> 42, '6.5' / '6,5' -> 6.5, anything else unchanged."""
    text = (value or "").strip()
    if not _NUMBER_RE.match(text):
        return value
    if "." in text or "," in text:
        return float(text.replace(",", "."))
    return int(text)


def _write_products(ws, result: ScrapingResult) -> None:
    for col, (header, width) in enumerate(zip(PRODUCT_HEADERS, PRODUCT_WIDTHS), 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = CENTER
        ws.column_dimensions[get_column_letter(col)].width = width

    for row, product in enumerate(result.products, 2):
        values = [product.name, product.gender, product.type, product.url, product.size_guide_id]
        for col, value in enumerate(values, 1):
            cell = ws.cell(row=row, column=col, value=value)
            cell.font = NORMAL_FONT
            if col in (2, 3, 5):
                cell.alignment = CENTER


def _write_guide(ws, guide: SizeGuide, start_row: int) -> int:
    """Write one guide block, return the next free row."""
    ws.cell(row=start_row, column=1, value="Guide de taille").font = HEADER_FONT
    ws.cell(row=start_row, column=1).fill = HEADER_FILL
    ws.cell(row=start_row, column=2, value=guide.id).font = BOLD_FONT
    ws.cell(row=start_row, column=2).fill = ID_FILL
    ws.cell(row=start_row, column=2).alignment = CENTER
    ws.cell(row=start_row, column=3, value="URL").font = BOLD_FONT
    ws.cell(row=start_row, column=4, value=guide.url).font = NORMAL_FONT

    row = start_row + 2
    ws.cell(row=row, column=2, value="Systèmes métriques").font = HEADER_FONT
    ws.cell(row=row, column=2).fill = HEADER_FILL
    for i in range(guide.width):
        cell = ws.cell(row=row, column=3 + i, value=f"Size {i + 1}")
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = CENTER
    row += 1

    for index, size_row in enumerate(guide.rows):
        if index == 0:
            ws.cell(row=row, column=1, value=guide.brand).font = BOLD_FONT
            ws.cell(row=row, column=2, value=guide.brand).font = BOLD_FONT
        else:
            ws.cell(row=row, column=1, value=size_row.label).font = NORMAL_FONT
            # Foot length carries no code in the template
            if size_row.short_label != "cm":
                code = ws.cell(row=row, column=2, value=size_row.short_label)
                code.font = HEADER_FONT
                code.fill = CODE_FILL
                code.alignment = CENTER
        for i, value in enumerate(size_row.values):
            cell = ws.cell(row=row, column=3 + i, value=parse_numeric(value))
            cell.font = NORMAL_FONT
            cell.alignment = CENTER
        row += 1

    return row + 2


def export_to_excel(result: ScrapingResult, output_path: str) -> str:
    """Write both sheets and return the file path."""
    directory = os.path.dirname(output_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    wb = Workbook()
    products_ws = wb.active
    products_ws.title = PRODUCT_SHEET
    _write_products(products_ws, result)

    guides_ws = wb.create_sheet(GUIDE_SHEET)
    row = 1
    for guide in result.size_guides:
        row = _write_guide(guides_ws, guide, row)

    guides_ws.column_dimensions["A"].width = 20
    guides_ws.column_dimensions["B"].width = 22
    widest = max((g.width for g in result.size_guides), default=0)
    for col in range(3, max(widest, 23) + 3):
        guides_ws.column_dimensions[get_column_letter(col)].width = 10

    wb.save(output_path)
    logger.info(f"✓ Saved {len(result.products)} products and "
                f"{len(result.size_guides)} size guide(s) to {output_path}")
    return output_path

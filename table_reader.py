"""
Table Reader - Turn size tables into SizeRow lists
===================================================
Three shapes are supported:

- read_row_table: a real <table>, one system per <tr>
- read_div_grid: a flat list of div items (header prefix + values)
- read_dropdown_table: a table that shows the anchor scale plus one system
  picked from a <select>; every wanted option is selected and re-read

Readers never raise. A shape that cannot be read gives an empty list and the
caller moves on to its next candidate.
"""

import logging
from typing import Callable, List, Optional, Sequence

from bs4 import BeautifulSoup, Tag

from models import SizeGuide, SizeRow
from size_labels import make_row, short_label

logger = logging.getLogger(__name__)

GRID_HEADER_TOKENS = ("EU", "UK", "US", "CM", "POUCES")

DROPDOWN_SETTLE_MS = 2000

ValueCleaner = Callable[[str], str]


def cell_text(cell: Tag) -> str:
    return " ".join(cell.get_text(" ", strip=True).split())


def strip_cm_suffix(value: str) -> str:
    """'25.5 cm' -> '25.5'"""
    value = value.strip()
    if value.lower().endswith("cm"):
        value = value[:-2]
    return value.strip()


def _clean_values(values: Sequence[str], clean_value: Optional[ValueCleaner]) -> List[str]:
    if clean_value:
        values = [clean_value(v) for v in values]
    return [v.strip() for v in values if v and v.strip()]


# =============================================================================
# ROW-MAJOR HTML TABLE
# =============================================================================

def row_cells(row: Tag) -> List[str]:
    """Header cells first, then data cells."""
    headers = row.find_all("th")
    cells = row.find_all("td")
    return [cell_text(c) for c in headers + cells]


def read_row_table(table: Tag, brands: Sequence[str] = (),
                   clean_value: Optional[ValueCleaner] = None) -> List[SizeRow]:
    """Read a <table> where each <tr> is one measurement system."""
    size_rows = []
    try:
        for row in table.find_all("tr"):
            cells = row_cells(row)
            if len(cells) < 2:
                continue
            values = _clean_values(cells[1:], clean_value)
            if not values:
                continue
            size_rows.append(make_row(cells[0], values, brands))
    except Exception as e:
        logger.warning(f"Could not read size table: {e}")
        return []
    return size_rows


# =============================================================================
# FLATTENED DIV GRID
# =============================================================================

def grid_items(container: Tag, item_selector: str) -> List[str]:
    """Texts of the grid items inside a container, in document order."""
    return [cell_text(item) for item in container.select(item_selector)]


def read_div_grid(items: Sequence[str], brands: Sequence[str] = ()) -> List[SizeRow]:
    """Reshape [EU, UK, US, 40, 6.5, 7, 41, 7, 8, ...] into one row per header.

    The header prefix is every leading item found in GRID_HEADER_TOKENS.
    Data items follow one size at a time, so row h takes every
    header_count-th item starting at h.
    """
    try:
        headers = []
        for item in items:
            if item.strip().upper() not in GRID_HEADER_TOKENS:
                break
            headers.append(item.strip())

        if not headers:
            logger.debug("Grid has no recognizable header prefix")
            return []

        data = list(items[len(headers):])
        width = len(headers)
        positions = len(data) // width

        size_rows = []
        for h, header in enumerate(headers):
            values = [data[h + i * width].strip() for i in range(positions)]
            if not any(values):
                continue
            size_rows.append(make_row(header, values, brands))
        return size_rows
    except Exception as e:
        logger.warning(f"Could not read size grid: {e}")
        return []


# =============================================================================
# DROPDOWN-DRIVEN TABLE
# =============================================================================

def select_options(soup: BeautifulSoup, control_selector: str) -> List[str]:
    """Visible labels of a <select>'s options."""
    control = soup.select_one(control_selector)
    if control is None:
        return []
    return [cell_text(o) for o in control.find_all("option") if cell_text(o)]


def _read_current(page, table_selector: str, brands: Sequence[str],
                  clean_value: Optional[ValueCleaner]) -> List[SizeRow]:
    soup = BeautifulSoup(page.content(), "lxml")
    table = soup.select_one(table_selector)
    if table is None:
        return []
    return read_row_table(table, brands, clean_value)


def read_dropdown_table(page, table_selector: str, control_selector: str,
                        wanted: Callable[[str], bool], brands: Sequence[str] = (),
                        clean_value: Optional[ValueCleaner] = strip_cm_suffix,
                        settle_ms: int = DROPDOWN_SETTLE_MS) -> List[SizeRow]:
    """Read a table whose second row is driven by a country <select>.

    The default render gives the anchor row, one alternate system and the
    foot length. Each wanted option is then selected and its second row
    appended. The foot-length row goes last, unless the last appended row
    already carries the same code.
    """
    try:
        baseline = _read_current(page, table_selector, brands, clean_value)
        if len(baseline) < 2:
            logger.debug(f"Dropdown table '{table_selector}' has fewer than two rows")
            return baseline

        rows = baseline[:2]
        foot = next((r for r in baseline if r.short_label == "cm"), None)
        if foot is rows[1]:
            foot = None

        soup = BeautifulSoup(page.content(), "lxml")
        options = select_options(soup, control_selector)
        if not options:
            logger.debug("No system selector found, keeping default systems")

        seen_codes = {r.short_label for r in rows}
        for option in options:
            code = short_label(option, brands)
            if code in seen_codes or not wanted(option):
                continue
            try:
                page.select_option(control_selector, label=option)
                page.wait_for_timeout(settle_ms)
            except Exception as e:
                logger.debug(f"Could not select '{option}': {e}")
                continue

            current = _read_current(page, table_selector, brands, clean_value)
            if len(current) < 2 or current[1].short_label in seen_codes:
                continue
            rows.append(current[1])
            seen_codes.add(current[1].short_label)

        # Lenient: two systems sharing a code collapse here
        if foot is not None and foot.short_label != rows[-1].short_label:
            rows.append(foot)

        return rows
    except Exception as e:
        logger.warning(f"Could not read dropdown size table: {e}")
        return []


def guide_from_rows(rows: List[SizeRow], brand: str, url: str,
                    guide_id: int = 1) -> Optional[SizeGuide]:
    """Wrap rows in a SizeGuide, or None when nothing was read."""
    rows = [r for r in rows if any(v.strip() for v in r.values)]
    if not rows:
        return None
    return SizeGuide(id=guide_id, brand=brand, url=url, rows=rows)

"""
Tests for the table readers (row table, div grid, dropdown table).
"""
from bs4 import BeautifulSoup

from table_reader import (
    grid_items,
    guide_from_rows,
    read_div_grid,
    read_dropdown_table,
    read_row_table,
    strip_cm_suffix,
)


def table_from(html):
    return BeautifulSoup(html, "lxml").find("table")


class TestReadRowTable:
    """Row-major <table> reading."""

    def test_europe_uk_table(self):
        """Should read two systems with three sizes each"""
        table = table_from("""
            <table>
              <tr><td>Europe</td><td>40</td><td>41</td><td>42</td></tr>
              <tr><td>UK</td><td>6.5</td><td>7</td><td>7.5</td></tr>
            </table>
        """)
        rows = read_row_table(table)
        assert [r.short_label for r in rows] == ["EU", "UK"]
        assert [r.label for r in rows] == ["Europe", "Royaume-Uni"]
        assert rows[0].values == ["40", "41", "42"]
        assert all(len(r.values) == 3 for r in rows)

    def test_rows_without_values_are_dropped(self):
        """Should keep only rows with a label and at least one value, in order"""
        table = table_from("""
            <table>
              <tr><th>Pointure</th></tr>
              <tr><th>EU</th><td>38</td><td>39</td></tr>
              <tr><td>UK</td><td></td><td> </td></tr>
              <tr><td>US</td><td>6</td><td>7</td></tr>
              <tr></tr>
            </table>
        """)
        rows = read_row_table(table)
        assert [r.short_label for r in rows] == ["EU", "US"]

    def test_header_cells_come_first(self):
        """Should put th cells before td cells"""
        table = table_from("<table><tr><td>40</td><th>Europe</th><td>41</td></tr></table>")
        rows = read_row_table(table)
        assert rows[0].short_label == "EU"
        assert rows[0].values == ["40", "41"]

    def test_value_cleaner(self):
        """Should apply the value cleaner before filtering"""
        table = table_from("<table><tr><th>Pied</th><td>24.5 cm</td><td>25 cm</td></tr></table>")
        rows = read_row_table(table, clean_value=strip_cm_suffix)
        assert rows[0].values == ["24.5", "25"]

    def test_brand_rows(self):
        """Should recognize the brand scale row"""
        table = table_from("<table><tr><th>Taille Prada</th><td>5</td></tr></table>")
        rows = read_row_table(table, brands=("Prada",))
        assert rows[0].short_label == "Prada"


class TestReadDivGrid:
    """Flattened div grid reshaping."""

    def test_three_headers_nine_items(self):
        """Should give one row per header, taking every third item"""
        data = ["40", "6.5", "7", "41", "7", "8", "42", "8", "9"]
        rows = read_div_grid(["EU", "UK", "US"] + data)
        assert [r.short_label for r in rows] == ["EU", "UK", "US"]
        for h, row in enumerate(rows):
            assert row.values == [data[h], data[h + 3], data[h + 6]]

    def test_incomplete_last_position_is_ignored(self):
        """Should use floor(remaining / headers) positions"""
        rows = read_div_grid(["EU", "UK", "40", "6.5", "41"])
        assert rows[0].values == ["40"]
        assert rows[1].values == ["6.5"]

    def test_no_header_prefix(self):
        """Should return nothing when the first item is not a header"""
        assert read_div_grid(["40", "EU", "UK"]) == []
        assert read_div_grid([]) == []

    def test_cm_and_pouces_headers(self):
        """Should accept CM and Pouces headers, passing Pouces through"""
        rows = read_div_grid(["EU", "CM", "Pouces", "40", "25", "9.8"])
        assert [r.short_label for r in rows] == ["EU", "cm", "Pouces"]

    def test_grid_items_from_markup(self):
        """Should read item texts in document order"""
        soup = BeautifulSoup("""
            <div class="size-guide-table">
              <div class="row"><span class="item">EU</span><span class="item">UK</span></div>
              <div class="row"><span class="item"> 40 </span><span class="item">6.5</span></div>
            </div>
        """, "lxml")
        items = grid_items(soup.select_one(".size-guide-table"), ".item")
        assert items == ["EU", "UK", "40", "6.5"]


class FakeDropdownPage:
    """Renders a Prada-like table whose second row follows the selected country."""

    SYSTEMS = {
        "Europe": ["38", "39"],
        "Royaume-Uni": ["4", "5"],
        "États-Unis": ["5", "6"],
        "Japon": ["24", "25"],
    }

    def __init__(self, with_control=True, foot=True, options=None):
        self.selected = "Europe"
        self.with_control = with_control
        self.foot = foot
        self.options = options or list(self.SYSTEMS)
        self.selections = []

    def content(self):
        values = "".join(f"<td>{v}</td>" for v in self.SYSTEMS[self.selected])
        foot = "<tr><th>Pied</th><td>24 cm</td><td>25 cm</td></tr>" if self.foot else ""
        control = ""
        if self.with_control:
            options = "".join(f"<option>{o}</option>" for o in self.options)
            control = f"<select name='select country'>{options}</select>"
        return f"""
            <html><body>{control}
            <table class="size-table__table">
              <tr><th>Taille Prada</th><td>5</td><td>6</td></tr>
              <tr><th>{self.selected}</th>{values}</tr>
              {foot}
            </table></body></html>
        """

    def select_option(self, selector, label=None):
        self.selections.append(label)
        self.selected = label

    def wait_for_timeout(self, ms):
        pass


def wanted_standard(option):
    return option in ("Royaume-Uni", "États-Unis")


class TestReadDropdownTable:
    """Dropdown-driven table reading."""

    def test_reads_every_wanted_system(self):
        """Should give brand, EU, each wanted system, then the foot length"""
        page = FakeDropdownPage()
        rows = read_dropdown_table(page, "table.size-table__table",
                                   "select[name='select country']",
                                   wanted_standard, brands=("Prada",))
        assert [r.short_label for r in rows] == ["Prada", "EU", "UK", "US", "cm"]
        assert rows[-1].values == ["24", "25"]
        assert page.selections == ["Royaume-Uni", "États-Unis"]

    def test_missing_control_keeps_default_pair(self):
        """Should keep the default systems and the foot length"""
        page = FakeDropdownPage(with_control=False)
        rows = read_dropdown_table(page, "table.size-table__table",
                                   "select[name='select country']",
                                   wanted_standard, brands=("Prada",))
        assert [r.short_label for r in rows] == ["Prada", "EU", "cm"]

    def test_foot_row_not_duplicated(self):
        """Should not append the foot row twice when the second row is already cm"""
        page = FakeDropdownPage(with_control=False)
        page.SYSTEMS = dict(page.SYSTEMS, Pied=["24", "25"])
        page.selected = "Pied"
        page.foot = False
        rows = read_dropdown_table(page, "table.size-table__table",
                                   "select[name='select country']",
                                   wanted_standard, brands=("Prada",))
        assert [r.short_label for r in rows] == ["Prada", "cm"]

    def test_foot_row_dropped_when_last_row_shares_its_code(self):
        """Known edge case: a selected system canonicalized to cm hides the foot row"""
        page = FakeDropdownPage(options=["Europe", "Longueur (cm)"])
        page.SYSTEMS = dict(page.SYSTEMS, **{"Longueur (cm)": ["23.5", "24.5"]})
        rows = read_dropdown_table(page, "table.size-table__table",
                                   "select[name='select country']",
                                   lambda option: True, brands=("Prada",))
        assert [r.short_label for r in rows] == ["Prada", "EU", "cm"]
        assert rows[-1].values == ["23.5", "24.5"]

    def test_missing_table(self):
        """Should return nothing when the table is absent"""
        page = FakeDropdownPage()
        rows = read_dropdown_table(page, "table.other", "select", wanted_standard)
        assert rows == []


class TestGuideFromRows:
    """guide_from_rows wraps rows in a SizeGuide."""

    def test_no_rows_gives_none(self):
        """Should return None when nothing was read"""
        assert guide_from_rows([], "Kleman", "https://example.com") is None

    def test_builds_guide(self):
        """Should keep brand, url and rows"""
        table = table_from("<table><tr><td>EU</td><td>40</td></tr></table>")
        guide = guide_from_rows(read_row_table(table), "Kleman", "https://example.com/p")
        assert guide.id == 1
        assert guide.brand == "Kleman"
        assert guide.rows[0].short_label == "EU"

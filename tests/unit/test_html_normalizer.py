"""
Unit Tests for src.utils.cleanup.html_normalizer

Tests table row extraction, cell rendering, HTML flattening and cell
bullet splitting.
"""

from src.utils.cleanup.html_normalizer import (
    TableRow,
    extract_table_rows,
    has_tables,
    html_to_text,
    split_cell_items,
)


def _lines(text):
    return [line for line in text.split("\n") if line.strip()]


class TestExtractTableRows:
    """Tests for extract_table_rows()"""

    def test_simple_table(self):
        """Rows and cells come back in document order"""
        html = (
            "<table><tr><td>10.1 Physics</td><td>10.1.1 Units</td></tr>"
            "<tr><td>10.2 Waves</td><td>10.2.1 Sound</td></tr></table>"
        )
        rows = extract_table_rows(html)

        assert [row.cells for row in rows] == [
            ["10.1 Physics", "10.1.1 Units"],
            ["10.2 Waves", "10.2.1 Sound"],
        ]

    def test_br_becomes_newline(self):
        """<br> inside a cell becomes an embedded newline"""
        rows = extract_table_rows("<table><tr><td>Line one<br>Line two</td></tr></table>")
        assert rows[0].cells == ["Line one\nLine two"]

    def test_list_items_become_bullets(self):
        """<li> items are rendered as '- ' lines"""
        rows = extract_table_rows("<table><tr><td><ul><li>A</li><li>B</li></ul></td></tr></table>")
        assert _lines(rows[0].cells[0]) == ["- A", "- B"]

    def test_entities_decoded(self):
        """HTML entities are decoded in cell text"""
        rows = extract_table_rows("<table><tr><td>Speed &amp; velocity</td></tr></table>")
        assert rows[0].cells == ["Speed & velocity"]

    def test_raw_cells_kept(self):
        """Raw cell markup is kept parallel to the text"""
        rows = extract_table_rows("<table><tr><td><b>10.1</b> Physics</td></tr></table>")
        assert len(rows[0].raw_cells) == 1
        assert "<b>10.1</b>" in rows[0].raw_cells[0]

    def test_header_cells_included(self):
        """<th> cells are extracted like <td> cells"""
        rows = extract_table_rows("<table><tr><th>TOPIC</th><th>SUB-TOPIC</th></tr></table>")
        assert rows[0].cells == ["TOPIC", "SUB-TOPIC"]

    def test_nested_table_flattened(self):
        """Nested tables do not produce rows of their own"""
        html = (
            "<table>"
            "<tr><td>10.1 Physics<table><tr><td>inner</td></tr></table></td></tr>"
            "<tr><td>10.2 Waves</td></tr>"
            "</table>"
        )
        rows = extract_table_rows(html)

        assert len(rows) == 2
        assert "inner" in rows[0].cells[0]
        assert rows[1].cells == ["10.2 Waves"]

    def test_blank_rows_dropped(self):
        """Rows whose cells are all blank are dropped"""
        rows = extract_table_rows("<table><tr><td> </td><td></td></tr><tr><td>x</td></tr></table>")
        assert len(rows) == 1

    def test_no_tables(self):
        """Markup without tables yields no rows"""
        assert extract_table_rows("<p>10.1 Physics</p>") == []
        assert extract_table_rows("") == []


class TestTableRow:
    """Tests for TableRow"""

    def test_is_empty(self):
        """A row of blank cells is empty"""
        assert TableRow(cells=["", "  "]).is_empty()
        assert not TableRow(cells=["", "x"]).is_empty()


class TestHasTables:
    """Tests for has_tables()"""

    def test_detects_tables(self):
        """True only when a table with rows exists"""
        assert has_tables("<table><tr><td>x</td></tr></table>")
        assert not has_tables("<p>no table</p>")
        assert not has_tables("")


class TestHtmlToText:
    """Tests for html_to_text()"""

    def test_paragraphs_and_lists(self):
        """Paragraphs and list items become separate lines"""
        text = html_to_text("<p>10.1 General Physics</p><ul><li>Knows units</li></ul>")
        assert _lines(text) == ["10.1 General Physics", "- Knows units"]

    def test_table_cells_one_per_line(self):
        """Table cells are emitted one per line in reading order"""
        html = "<table><tr><td>10.1 Physics</td><td>10.1.1 Units</td></tr></table>"
        assert _lines(html_to_text(html)) == ["10.1 Physics", "10.1.1 Units"]

    def test_empty(self):
        """Empty markup yields empty text"""
        assert html_to_text("") == ""


class TestSplitCellItems:
    """Tests for split_cell_items()"""

    def test_list_markup_preferred(self):
        """<li> items in the raw markup define the items"""
        raw = "<td><ul><li>Listing base units</li><li>Deriving <b>units</b></li></ul></td>"
        assert split_cell_items("ignored", raw) == ["Listing base units", "Deriving units"]

    def test_splits_on_lines(self):
        """Without list markup the text is split on line breaks"""
        items = split_cell_items("- Measuring length\n\n- Recording results")
        assert items == ["Measuring length", "Recording results"]

    def test_strips_bullet_glyphs(self):
        """Bullet glyphs are stripped from items"""
        assert split_cell_items("• Measuring length") == ["Measuring length"]

    def test_plain_cell(self):
        """A plain cell is one item"""
        assert split_cell_items("Units converted correctly", "<td>Units converted correctly</td>") == [
            "Units converted correctly"
        ]

    def test_empty(self):
        """Empty cells have no items"""
        assert split_cell_items("") == []

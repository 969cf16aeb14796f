from __future__ import annotations

import pytest

from campaign_tracker.csvimport.header_map import GROSS_AMOUNT
from campaign_tracker.csvimport.parser import (
    INSUFFICIENT_COLUMNS,
    INVALID_ROW,
    EmptyInputError,
    MissingColumnsError,
    NoValidRowsError,
    parse_csv_content,
    tokenize_line,
)
from campaign_tracker.models.import_row import ImportRow


def test_italian_upload(italian_csv):
    result = parse_csv_content(italian_csv)
    assert result.issues == []
    assert [r.product_name for r in result.rows] == ["Crema viso, 50ml", "Siero"]

    first, second = result.rows
    assert first.units_sold == 10
    assert first.gross_amount == pytest.approx(1220.0)
    assert first.tax_amount == pytest.approx(220.0)
    assert first.net_amount == pytest.approx(1000.0)

    # "22%" is a VAT rate included in gross
    assert second.tax_amount == pytest.approx(44.0)
    assert second.net_amount == pytest.approx(200.0)


def test_quoted_commas_do_not_split():
    assert tokenize_line('"Widget, Deluxe",5,"1.220,00"') == ["Widget, Deluxe", "5", "1.220,00"]
    assert tokenize_line("'A, B',1") == ["A, B", "1"]


def test_unmatched_apostrophe_is_literal():
    assert tokenize_line("L'Oreal cream,2,30") == ["L'Oreal cream", "2", "30"]


def test_tokens_trimmed_and_empty_kept():
    assert tokenize_line(" a , ,c ") == ["a", "", "c"]


def test_missing_gross_column_names_field():
    with pytest.raises(MissingColumnsError) as exc:
        parse_csv_content("Prodotto,Pezzi totali,IVA\nSiero,4,22\n")
    assert GROSS_AMOUNT in str(exc.value)
    assert exc.value.missing == [GROSS_AMOUNT]
    assert exc.value.error_type == "MISSING_COLUMNS"


@pytest.mark.parametrize("text", ["", "\n\n", "  \r\n \n"])
def test_empty_input(text):
    with pytest.raises(EmptyInputError, match="empty input"):
        parse_csv_content(text)


def test_no_valid_rows_carries_issues():
    with pytest.raises(NoValidRowsError) as exc:
        parse_csv_content("Product,Qty,Total\n,1,10\nWidget,0,10\n")
    assert [i.row for i in exc.value.issues] == [1, 2]
    assert str(exc.value) == "no valid data rows found"


def test_header_only_has_no_valid_rows():
    with pytest.raises(NoValidRowsError):
        parse_csv_content("Product,Qty,Total\n")


def test_row_level_issues_skip_rows():
    text = (
        "Product,Qty,Total\n"
        "Widget,2,20\n"
        "Short,1\n"
        ",3,30\n"
        "Gadget,1,0\n"
        "Gizmo,1,abc\n"
        "Thing,1,15\n"
    )
    result = parse_csv_content(text)
    assert [r.product_name for r in result.rows] == ["Widget", "Thing"]
    assert result.errors == [
        "Row 2: Insufficient columns",
        "Row 3: Invalid data - No product name",
        "Row 4: Invalid data - Gadget",
        "Row 5: Invalid data - Gizmo",
    ]
    assert [i.error_type for i in result.issues] == [
        INSUFFICIENT_COLUMNS,
        INVALID_ROW,
        INVALID_ROW,
        INVALID_ROW,
    ]


def test_blank_lines_and_crlf_ignored():
    text = "\r\nProduct,Qty,Total\r\n\r\nWidget,2,20\rGadget,1,5\n\n"
    result = parse_csv_content(text)
    assert [r.product_name for r in result.rows] == ["Widget", "Gadget"]


def test_optional_columns_absent():
    result = parse_csv_content("Product,Qty,Total\nWidget,2,20\n")
    row = result.rows[0]
    assert row.tax_amount == 0.0
    assert row.net_amount == pytest.approx(20.0)


def test_net_without_tax_derives_tax():
    result = parse_csv_content("Product,Qty,Gross,Net\nWidget,1,122,100\n")
    assert result.rows[0].tax_amount == pytest.approx(22.0)


def test_tax_without_net_derives_net():
    result = parse_csv_content("Product,Qty,Gross,Tax\nWidget,1,500,110\n")
    row = result.rows[0]
    assert row.tax_amount == pytest.approx(110.0)
    assert row.net_amount == pytest.approx(390.0)


def test_bare_rate_below_gross_is_vat_rate():
    result = parse_csv_content("Product,Qty,Gross,Tax,Net\nWidget,10,122.00,22.00,100.00\n")
    assert result.rows[0].tax_amount == pytest.approx(22.0)


def test_extra_columns_ignored():
    result = parse_csv_content("Product,Qty,Total,Notes\nWidget,2,20,gift,extra\n")
    assert result.rows == [ImportRow("Widget", 2.0, 20.0, 0.0, 20.0)]


def test_parse_is_deterministic(italian_csv):
    first = parse_csv_content(italian_csv)
    second = parse_csv_content(italian_csv)
    assert first.rows == second.rows
    assert first.issues == second.issues
    # fresh objects on every call
    assert first.rows is not second.rows
    assert first.issues is not second.issues
    assert all(a is not b for a, b in zip(first.rows, second.rows))


def test_units_cell_with_unit_suffix_keeps_row():
    result = parse_csv_content("Prodotto,Pezzi totali,Importo totale\nSiero,10 pz,122.00\nCrema,3pz,\"1.220,00 EUR\"\n")
    assert result.issues == []
    assert [(r.product_name, r.units_sold, r.gross_amount) for r in result.rows] == [
        ("Siero", 10.0, 122.0),
        ("Crema", 3.0, 1220.0),
    ]


def test_row_dict_keys(italian_csv):
    row = parse_csv_content(italian_csv).rows[1]
    assert set(row.to_dict()) == {"productName", "unitsSold", "grossAmount", "taxAmount", "netAmount"}

import pytest

from crm_app.importer.adapters.csv_rows import CSVParseError, decode_csv_source, parse_csv_rows
from crm_app.importer.contracts import CONTACT_CONTRACT, VENUE_CONTRACT


def test_rows_are_keyed_by_header_and_trimmed():
    parsed = parse_csv_rows("name,city\n  Arena One , Austin \n")

    assert parsed.header == ("name", "city")
    assert len(parsed) == 1
    row = parsed.rows[0]
    assert row.values == {"name": "Arena One", "city": "Austin"}
    assert row.row_number == 2


def test_row_numbers_follow_source_lines_across_blank_rows():
    parsed = parse_csv_rows("name,city\nA,Austin\n\n,\nB,Boston\n")

    assert [row.row_number for row in parsed] == [2, 5]
    assert parsed.statistics.rows_parsed == 2
    assert parsed.statistics.rows_skipped_blank == 2


def test_quoted_values_keep_commas_and_newlines():
    parsed = parse_csv_rows('name,notes\n"Arena, The","line one\nline two"\nNext,ok\n')

    first, second = parsed.rows
    assert first.get("name") == "Arena, The"
    assert first.get("notes") == "line one\nline two"
    assert first.row_number == 2
    # The quoted newline consumed a source line.
    assert second.row_number == 4


def test_parsing_same_text_twice_gives_equal_results():
    text = 'name,notes\n"Arena, One","line1\nline2"\n\n,\nDome,x\n'

    first = parse_csv_rows(text, contract=VENUE_CONTRACT)
    second = parse_csv_rows(text, contract=VENUE_CONTRACT)

    assert first == second
    assert [(row.row_number, row.get("name")) for row in first] == [(2, "Arena, One"), (6, "Dome")]
    assert first.statistics.rows_skipped_blank == 2


def test_missing_columns_read_as_empty_and_extra_cells_are_ignored():
    parsed = parse_csv_rows("name,city,state\nShort Row\nLong,Row,TX,extra\n")

    short, long = parsed.rows
    assert short.get("city") == ""
    assert short.get("state") == ""
    assert long.values == {"name": "Long", "city": "Row", "state": "TX"}


def test_duplicate_headers_keep_first_column():
    parsed = parse_csv_rows("name,name\nfirst,second\n")

    assert parsed.rows[0].get("name") == "first"


def test_header_only_file_yields_no_rows():
    parsed = parse_csv_rows("name,email\n")

    assert parsed.header == ("name", "email")
    assert parsed.rows == ()


def test_empty_content_is_a_parse_error():
    with pytest.raises(CSVParseError, match="no header row"):
        parse_csv_rows("   \n\n")


def test_unterminated_quote_is_a_parse_error():
    with pytest.raises(CSVParseError) as excinfo:
        parse_csv_rows('name,city\n"Unclosed,Austin\n')

    assert "Malformed CSV" in str(excinfo.value)


def test_bytes_are_decoded_and_bom_is_stripped():
    parsed = parse_csv_rows("\ufeffname,email\nJane,jane@example.com\n".encode("utf-8"))

    assert parsed.raw_header == ("name", "email")
    assert parsed.rows[0].get("email") == "jane@example.com"


def test_invalid_utf8_is_a_parse_error():
    with pytest.raises(CSVParseError, match="not valid UTF-8"):
        decode_csv_source(b"name\n\xff\xfe\xfa\n")


def test_contract_resolves_aliases_and_case_insensitive_headers():
    parsed = parse_csv_rows(
        "Venue Name,Street Address,CITY,region,venue-type,Deal Value,operator_name\n"
        "Arena,1 Main St,Austin,TX,arena,1000,Live Nation\n",
        contract=VENUE_CONTRACT,
    )

    assert parsed.header == ("name", "address", "city", "state", "type", "dealValue", "operatorName")
    assert parsed.raw_header[0] == "Venue Name"
    assert parsed.rows[0].get("operatorName") == "Live Nation"


def test_contract_keeps_unknown_headers_verbatim():
    parsed = parse_csv_rows("name,email,Favourite Colour\nJane,j@example.com,blue\n", contract=CONTACT_CONTRACT)

    assert parsed.header == ("name", "email", "Favourite Colour")
    assert parsed.rows[0].get("Favourite Colour") == "blue"

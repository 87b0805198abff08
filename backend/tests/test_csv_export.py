from app.services.csv_export import csv_filename, format_cell, parse_csv, records_to_csv, to_csv


def test_tricky_values_round_trip():
    tricky = 'Prize: "Gold", 24k\nsecond line'
    document = to_csv(["id", "note"], [["d1", tricky], ["d2", "plain"]])

    assert document.endswith("\n")
    assert parse_csv(document) == [["id", "note"], ["d1", tricky], ["d2", "plain"]]


def test_quoting_is_minimal():
    document = to_csv(["a", "b"], [["x", 'say "hi"'], ["y,z", "ok"]])
    assert document == 'a,b\nx,"say ""hi"""\n"y,z",ok\n'


def test_cell_formatting():
    assert format_cell(None) == ""
    assert format_cell(True) == "true"
    assert format_cell(False) == "false"
    assert format_cell(3) == "3"
    assert format_cell({"status": "ok"}) == '{"status":"ok"}'


def test_records_keep_column_order():
    rows = [{"email": "a@example.com", "id": "1", "extra": "dropped"}, {"id": "2"}]
    assert records_to_csv(rows, ["id", "email"]) == "id,email\n1,a@example.com\n2,\n"


def test_filename():
    assert csv_filename("campaign", "c1", "deliveries") == "snapwin-campaign-c1-deliveries.csv"

"""
Test per import, ricerca ed export CSV
"""

import csv

import pytest

from admintools.disambiguator import SelectionStatus
from admintools.exceptions import (
    ExternalCallError, InvalidArgumentError, MissingRequiredFieldError
)
from admintools.tabular import (
    Table, check_required_fields, export_csv, find_record,
    import_csv, read_csv, require_fields, search_records
)

RECORDS = [
    {"Name": "Mario Rossi", "Color": "rosso", "Size": "M"},
    {"Name": "Luca Bianchi", "Color": "bianco", "Size": "L"},
    {"Name": "Anna Rossini", "Color": "verde", "Size": "S"},
]


def write_csv(path, rows, fields=None, delimiter=","):
    fields = fields or list(rows[0].keys())
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fields, delimiter=delimiter)
        writer.writeheader()
        writer.writerows(rows)
    return str(path)


class TestRequiredFields:
    """Test per check_required_fields"""

    def test_reports_missing_and_present(self):
        check = check_required_fields({"Name", "Color"}, ["Name", "Size"])

        assert check.missing == ["Size"]
        assert check.present == ["Name"]
        assert not check.ok

    def test_case_insensitive(self):
        check = check_required_fields(["name", " COLOR "], ["Name", "Color"])
        assert check.ok

    def test_require_fields_raises(self):
        table = Table(fields=["Name"], path="utenti.csv")
        with pytest.raises(MissingRequiredFieldError) as exc_info:
            require_fields(table, ["Name", "Mail"])
        assert exc_info.value.missing == ["Mail"]
        assert "utenti.csv" in str(exc_info.value)


class TestReadCsv:
    """Test per read_csv"""

    def test_reads_records(self, tmp_path):
        path = write_csv(tmp_path / "dati.csv", RECORDS)
        table = read_csv(path)

        assert table.fields == ["Name", "Color", "Size"]
        assert len(table) == 3
        assert table.records[1]["Name"] == "Luca Bianchi"

    def test_bom_and_spaces_in_header(self, tmp_path):
        path = tmp_path / "excel.csv"
        path.write_text("\ufeffName ; Size\nMario;M\n", encoding="utf-8")
        table = read_csv(str(path), delimiter=";")

        assert table.fields == ["Name", "Size"]
        assert table.records == [{"Name": "Mario", "Size": "M"}]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ExternalCallError):
            read_csv(str(tmp_path / "assente.csv"))


class TestSearch:
    """Test per search_records e find_record"""

    def test_substring_case_insensitive(self):
        matches = search_records(RECORDS, "ROSS")
        assert [m["Name"] for m in matches] == ["Mario Rossi", "Anna Rossini"]

    def test_limited_fields(self):
        assert search_records(RECORDS, "rosso", fields=["Name"]) == []
        assert search_records(RECORDS, "rosso", fields=["Color"]) == [RECORDS[0]]

    def test_empty_term_rejected(self):
        with pytest.raises(InvalidArgumentError):
            search_records(RECORDS, "  ")

    def test_single_match_no_prompt(self, presenter_factory):
        presenter = presenter_factory()
        selection = find_record(RECORDS, "bianchi", presenter)

        assert selection.record is RECORDS[1]
        assert presenter.prompts == []

    def test_ambiguous_match_picks(self, presenter_factory):
        presenter = presenter_factory(answers=["2"])
        selection = find_record(RECORDS, "ross", presenter, display_fields=["Name"])

        assert selection.record is RECORDS[2]
        assert presenter.shown == [["1) Name=Mario Rossi", "2) Name=Anna Rossini"]]

    def test_no_match_then_new_term(self, presenter_factory):
        presenter = presenter_factory(answers=["verde"])
        selection = find_record(RECORDS, "giallo", presenter)

        assert selection.record is RECORDS[2]

    def test_no_match_then_quit(self, presenter_factory):
        presenter = presenter_factory(answers=[""])
        selection = find_record(RECORDS, "giallo", presenter)

        assert selection.status is SelectionStatus.CANCELLED


class TestImport:
    """Test per import_csv"""

    def test_retry_with_new_file(self, tmp_path, presenter_factory):
        bad = write_csv(tmp_path / "bad.csv", [{"Name": "a", "Color": "b"}])
        good = write_csv(tmp_path / "good.csv", RECORDS)
        paths = [bad, good]
        presenter = presenter_factory(answers=["s"])

        table = import_csv(["Name", "Size"], presenter, lambda: paths.pop(0))

        assert table.path == good
        assert len(table) == 3
        errors = [m for level, m in presenter.reports if level == "error"]
        assert errors == ["Colonne obbligatorie mancanti: Size"]

    def test_operator_gives_up(self, tmp_path, presenter_factory):
        bad = write_csv(tmp_path / "bad.csv", [{"Name": "a"}])
        presenter = presenter_factory(answers=["n"])

        assert import_csv(["Size"], presenter, lambda: bad) is None

    def test_dialog_cancelled(self, presenter_factory):
        presenter = presenter_factory()
        assert import_csv(["Name"], presenter, lambda: None) is None
        assert presenter.reports[0][0] == "warning"

    def test_unreadable_file_offers_retry(self, tmp_path, presenter_factory):
        good = write_csv(tmp_path / "good.csv", RECORDS)
        paths = [str(tmp_path / "assente.csv"), good]
        presenter = presenter_factory(answers=[""])

        table = import_csv(["Name"], presenter, lambda: paths.pop(0))
        assert table.path == good


class TestExport:
    """Test per export_csv"""

    def test_export_then_read(self, tmp_path):
        path = str(tmp_path / "out.csv")
        assert export_csv(RECORDS, path) == 3

        table = read_csv(path)
        assert table.fields == ["Name", "Color", "Size"]
        assert table.records == RECORDS

    def test_export_selected_fields(self, tmp_path):
        path = str(tmp_path / "out.csv")
        export_csv(RECORDS, path, fields=["Size", "Name"])

        table = read_csv(path)
        assert table.fields == ["Size", "Name"]
        assert table.records[0] == {"Size": "M", "Name": "Mario Rossi"}

    def test_export_unwritable(self, tmp_path):
        with pytest.raises(ExternalCallError):
            export_csv(RECORDS, str(tmp_path / "manca" / "out.csv"))

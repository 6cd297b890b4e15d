"""
Test per la riga di comando
"""

import csv

import pytest

import run
from admintools.password_generator import EXCLUDED_CHARS


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("LOGONSERVER", "USERDNSDOMAIN", "ADMINTOOLS_DC", "ADMINTOOLS_SMTP_SERVER",
                 "ADMINTOOLS_MAIL_FROM", "ADMINTOOLS_PASSWORD_LENGTH"):
        monkeypatch.delenv(name, raising=False)


class TestCommandLine:
    """Test per run.main()"""

    def test_password_count_and_length(self, capsys):
        assert run.main(["--no-color", "password", "-l", "20", "-n", "3"]) == 0

        lines = capsys.readouterr().out.split()
        assert len(lines) == 3
        assert all(len(line) == 20 for line in lines)
        assert not set("".join(lines)) & EXCLUDED_CHARS

    def test_password_default_length(self, capsys, monkeypatch):
        monkeypatch.setenv("ADMINTOOLS_PASSWORD_LENGTH", "10")
        assert run.main(["--no-color", "password"]) == 0
        assert len(capsys.readouterr().out.strip()) == 10

    def test_password_no_default(self, capsys):
        assert run.main(["--no-color", "password", "--no-default"]) == 1
        assert "Lunghezza 0 non valida" in capsys.readouterr().out

    def test_password_out_of_range(self, capsys):
        assert run.main(["--no-color", "password", "-l", "128"]) == 1

    def test_send_mail_without_recipients(self, capsys, monkeypatch):
        monkeypatch.setenv("ADMINTOOLS_SMTP_SERVER", "smtp.corp.local")
        assert run.main(["--no-color", "send-mail", "--from", "it@corp.local", "--subject", "x"]) == 1
        assert "destinatario" in capsys.readouterr().out

    def test_find_user_without_server(self, capsys):
        assert run.main(["--no-color", "find-user", "mrossi"]) == 1
        assert "non configurato" in capsys.readouterr().out

    def test_search_csv(self, tmp_path, capsys, monkeypatch):
        path = tmp_path / "dati.csv"
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(["Name", "Color"])
            writer.writerow(["Mario Rossi", "rosso"])
            writer.writerow(["Anna Rossini", "verde"])

        monkeypatch.setattr("builtins.input", lambda prompt: "2")
        assert run.main(["--no-color", "search-csv", "ross", "--file", str(path), "--show", "Name"]) == 0
        assert "Name=Anna Rossini" in capsys.readouterr().out

    def test_search_csv_term_with_picker(self, tmp_path, capsys, monkeypatch):
        """Con il solo termine, il file arriva dalla finestra di dialogo"""
        path = tmp_path / "dati.csv"
        path.write_text("Name,Color\nMario Rossi,rosso\nLuca Bianchi,blu\n", encoding="utf-8")

        monkeypatch.setattr("admintools.file_picker.pick_file", lambda **kwargs: str(path))
        monkeypatch.setattr("builtins.input", lambda prompt: pytest.fail(f"domanda inattesa: {prompt}"))

        assert run.main(["--no-color", "search-csv", "bianchi", "--show", "Name"]) == 0
        assert "Name=Luca Bianchi" in capsys.readouterr().out

    def test_import_csv_export(self, tmp_path, capsys):
        src = tmp_path / "in.csv"
        src.write_text("Name,Size\nMario,M\n", encoding="utf-8")
        dst = tmp_path / "out.csv"

        assert run.main([
            "--no-color", "import-csv", "--file", str(src),
            "--require", "Name", "--export", str(dst)
        ]) == 0
        assert dst.read_text(encoding="utf-8").splitlines() == ["Name,Size", "Mario,M"]

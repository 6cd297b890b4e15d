"""
Test per la disambiguazione interattiva
"""

import pytest

from admintools.disambiguator import (
    ConsolePresenter, Outcome, SelectionStatus,
    disambiguate, parse_choice, format_candidates, require_single
)
from admintools.exceptions import AmbiguousResultError, InvalidArgumentError, NotFoundError


class TestDisambiguate:
    """Test per disambiguate()"""

    def test_empty_is_not_found(self, presenter_factory):
        presenter = presenter_factory()
        selection = disambiguate([], presenter)

        assert selection.status is SelectionStatus.NOT_FOUND
        assert not selection.found
        assert presenter.prompts == []

    def test_single_returned_without_interaction(self, presenter_factory):
        presenter = presenter_factory()
        selection = disambiguate(["x"], presenter)

        assert selection.found
        assert selection.record == "x"
        assert presenter.shown == []
        assert presenter.prompts == []
        assert presenter.reports == []

    def test_operator_picks_second(self, presenter_factory):
        presenter = presenter_factory(answers=["2"])
        selection = disambiguate(["x", "y", "z"], presenter)

        assert selection.found
        assert selection.record == "y"
        assert selection.index == 1
        assert presenter.shown == [["1) x", "2) y", "3) z"]]

    def test_invalid_choice_reprompts(self, presenter_factory):
        presenter = presenter_factory(answers=["0", "4", "abc", "", "3"])
        selection = disambiguate(["x", "y", "z"], presenter)

        assert selection.record == "z"
        assert len(presenter.prompts) == 5
        warnings = [m for level, m in presenter.reports if level == "warning"]
        assert len(warnings) == 4

    def test_quit_cancels(self, presenter_factory):
        presenter = presenter_factory(answers=["q"])
        selection = disambiguate(["x", "y"], presenter)

        assert selection.status is SelectionStatus.CANCELLED
        assert selection.record is None

    def test_extra_option(self, presenter_factory):
        presenter = presenter_factory(answers=["S"])
        selection = disambiguate(["x", "y"], presenter, options={"s": "ambito"})

        assert selection.status is SelectionStatus.OPTION
        assert selection.option == "s"
        assert "s = ambito" in presenter.prompts[0]

    @pytest.mark.parametrize("key", ["q", "Esci", "2", " 1 "])
    def test_option_key_conflicts_rejected(self, presenter_factory, key):
        """Un tasto opzione non può oscurare l'uscita o un ordinale"""
        presenter = presenter_factory(answers=["1"])
        with pytest.raises(InvalidArgumentError):
            disambiguate(["x", "y"], presenter, options={key: "altro"})
        assert presenter.prompts == []

    def test_describe_used(self, presenter_factory):
        presenter = presenter_factory(answers=["1"])
        records = [{"Name": "Rossi"}, {"Name": "Russo"}]
        disambiguate(records, presenter, describe=lambda r: r["Name"])

        assert presenter.shown == [["1) Rossi", "2) Russo"]]

    def test_none_candidates_rejected(self, presenter_factory):
        with pytest.raises(TypeError):
            disambiguate(None, presenter_factory())


class TestHelpers:
    """Test per le funzioni di supporto"""

    def test_parse_choice(self):
        assert parse_choice("1", 3) == 0
        assert parse_choice(" 3 ", 3) == 2
        assert parse_choice("4", 3) is None
        assert parse_choice("-1", 3) is None
        assert parse_choice("due", 3) is None

    def test_format_candidates_one_based(self):
        assert format_candidates(["a", "b"]) == ["1) a", "2) b"]

    def test_require_single(self):
        assert require_single(["x"]) == "x"
        with pytest.raises(NotFoundError):
            require_single([])
        with pytest.raises(AmbiguousResultError) as exc_info:
            require_single(["x", "y"])
        assert exc_info.value.candidates == ["x", "y"]


class TestConsolePresenter:
    """Test per ConsolePresenter"""

    def test_confirm_answers(self, capsys):
        answers = iter(["boh", "r"])
        presenter = ConsolePresenter(input_func=lambda prompt: next(answers))

        assert presenter.confirm("Utente trovato") is Outcome.RETRY
        out = capsys.readouterr().out
        assert "Utente trovato" in out
        assert "Risposta non valida" in out

    def test_confirm_empty_reprompts(self):
        """Invio a vuoto non conferma: serve una risposta esplicita"""
        prompts = []
        answers = iter(["", "c"])

        def answer(prompt):
            prompts.append(prompt)
            return next(answers)

        presenter = ConsolePresenter(input_func=answer)
        assert presenter.confirm("ok") is Outcome.CONTINUE
        assert len(prompts) == 2

    def test_confirm_quit(self):
        presenter = ConsolePresenter(input_func=lambda prompt: "Q")
        assert presenter.confirm("ok") is Outcome.QUIT

    def test_disambiguate_through_console(self, capsys):
        presenter = ConsolePresenter(input_func=lambda prompt: " 1 ")
        selection = disambiguate(["alfa", "beta"], presenter)

        assert selection.record == "alfa"
        out = capsys.readouterr().out
        assert "1) alfa" in out
        assert "2) beta" in out

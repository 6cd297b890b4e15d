import sys
from pathlib import Path

import pytest

# Rende importabile la radice del progetto
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from admintools.disambiguator import Outcome  # noqa: E402


class FakePresenter:
    """Presenter con risposte predefinite, registra tutto ciò che mostra"""

    def __init__(self, answers=(), outcomes=()):
        self.answers = list(answers)
        self.outcomes = list(outcomes)
        self.shown = []
        self.prompts = []
        self.reports = []
        self.confirmed = []

    def show_candidates(self, lines):
        self.shown.append(list(lines))

    def ask(self, prompt):
        self.prompts.append(prompt)
        if not self.answers:
            raise AssertionError(f"Domanda inattesa: {prompt}")
        return self.answers.pop(0)

    def confirm(self, description):
        self.confirmed.append(description)
        return self.outcomes.pop(0) if self.outcomes else Outcome.CONTINUE

    def report(self, message, level="info"):
        self.reports.append((level, message))


@pytest.fixture
def presenter_factory():
    return FakePresenter

"""
Disambiguator - Scelta interattiva tra più risultati di una ricerca

Usato sia per le righe di un CSV sia per gli utenti di Active Directory.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Protocol, Sequence

from . import console
from .exceptions import AmbiguousResultError, InvalidArgumentError, NotFoundError

log = logging.getLogger(__name__)

QUIT_KEYS = ("q", "quit", "esci")


class Outcome(Enum):
    """Risposta dell'operatore alla conferma"""
    CONTINUE = "continue"
    RETRY = "retry"
    QUIT = "quit"


class SelectionStatus(Enum):
    """Esito della disambiguazione"""
    FOUND = "found"
    NOT_FOUND = "not_found"
    CANCELLED = "cancelled"
    OPTION = "option"


@dataclass
class Selection:
    """Risultato di disambiguate()"""
    status: SelectionStatus
    record: Any = None
    index: Optional[int] = None
    option: str = ""

    @property
    def found(self) -> bool:
        return self.status is SelectionStatus.FOUND


class Presenter(Protocol):
    """Capacità di mostrare candidati e leggere risposte dall'operatore"""

    def show_candidates(self, lines: Sequence[str]) -> None:
        ...

    def ask(self, prompt: str) -> str:
        ...

    def confirm(self, description: str) -> Outcome:
        ...

    def report(self, message: str, level: str = "info") -> None:
        ...


class ConsolePresenter:
    """
    Presenter da console: stampa con colorama e legge con input().
    """

    def __init__(self, input_func: Optional[Callable[[str], str]] = None):
        self._input = input_func or input

    def show_candidates(self, lines: Sequence[str]) -> None:
        for line in lines:
            print(f"  {line}")

    def ask(self, prompt: str) -> str:
        return self._input(prompt).strip()

    def confirm(self, description: str) -> Outcome:
        console.info(description)
        while True:
            answer = self.ask("[C]ontinua, [R]iprova, [Q]uit: ").lower()
            if answer in ("c", "continua", "continue"):
                return Outcome.CONTINUE
            if answer in ("r", "riprova", "retry"):
                return Outcome.RETRY
            if answer in QUIT_KEYS:
                return Outcome.QUIT
            console.warning(f"Risposta non valida: {answer}")

    def report(self, message: str, level: str = "info") -> None:
        printer = {
            "info": console.info,
            "success": console.success,
            "warning": console.warning,
            "error": console.error,
        }.get(level, console.info)
        printer(message)


def parse_choice(text: str, count: int) -> Optional[int]:
    """
    Converte la risposta dell'operatore in indice 0-based.

    Returns:
        Indice valido, oppure None se il testo non è un numero in 1..count
    """
    try:
        choice = int(text.strip())
    except (ValueError, AttributeError):
        return None
    if 1 <= choice <= count:
        return choice - 1
    return None


def format_candidates(
    candidates: Sequence[Any],
    describe: Callable[[Any], str] = str
) -> list:
    """Etichette con ordinale 1-based, nell'ordine dei candidati"""
    return [f"{n}) {describe(c)}" for n, c in enumerate(candidates, start=1)]


def disambiguate(
    candidates: Sequence[Any],
    presenter: Presenter,
    describe: Callable[[Any], str] = str,
    options: Optional[Mapping[str, str]] = None
) -> Selection:
    """
    Riduce un insieme di candidati a una sola scelta.

    Args:
        candidates: Risultati ordinati della ricerca
        presenter: Interfaccia verso l'operatore
        describe: Funzione che descrive un candidato su una riga
        options: Scelte aggiuntive (tasto -> descrizione), restituite
            con stato OPTION

    Returns:
        Selection con stato FOUND, NOT_FOUND, CANCELLED oppure OPTION

    Raises:
        InvalidArgumentError: tasto opzione vuoto, numerico o riservato all'uscita
    """
    if candidates is None:
        raise TypeError("candidates non può essere None")

    options = {k.strip().lower(): v for k, v in (options or {}).items()}
    for key in options:
        if not key or key.lstrip("+-").isdigit() or key in QUIT_KEYS:
            raise InvalidArgumentError(f"Tasto opzione non ammesso: {key!r}")

    count = len(candidates)
    if count == 0:
        return Selection(SelectionStatus.NOT_FOUND)
    if count == 1:
        return Selection(SelectionStatus.FOUND, candidates[0], 0)

    log.debug("Disambiguazione tra %d candidati", count)

    presenter.report(f"{count} risultati trovati, sceglierne uno:")
    presenter.show_candidates(format_candidates(candidates, describe))

    hints = [f"1-{count}"] + [f"{k} = {v}" for k, v in options.items()] + ["q = esci"]
    prompt = "Scelta (" + ", ".join(hints) + "): "

    while True:
        answer = presenter.ask(prompt)
        key = answer.strip().lower()
        if key in QUIT_KEYS:
            return Selection(SelectionStatus.CANCELLED)
        if key in options:
            return Selection(SelectionStatus.OPTION, option=key)

        index = parse_choice(answer, count)
        if index is not None:
            return Selection(SelectionStatus.FOUND, candidates[index], index)

        presenter.report(
            f"Scelta non valida: {answer!r}. Inserire un numero tra 1 e {count}.",
            "warning"
        )


def require_single(candidates: Sequence[Any], what: str = "record") -> Any:
    """
    Variante non interattiva: esattamente un candidato, altrimenti errore.

    Raises:
        NotFoundError: nessun candidato
        AmbiguousResultError: più di un candidato
    """
    if not candidates:
        raise NotFoundError(f"Nessun {what} trovato")
    if len(candidates) > 1:
        raise AmbiguousResultError(
            f"{len(candidates)} {what} trovati, atteso uno solo",
            candidates
        )
    return candidates[0]


def describe_mapping(record: Mapping[str, Any], fields: Optional[Sequence[str]] = None) -> str:
    """Descrizione su una riga di un record campo -> valore"""
    keys = list(fields) if fields else list(record.keys())
    return ", ".join(f"{k}={record.get(k, '')}" for k in keys)

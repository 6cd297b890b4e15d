"""
User Lookup - Risoluzione interattiva di un utente AD per nome di logon

Il risultato viene di norma usato per modificare l'oggetto in directory,
quindi prima di restituirlo si chiede conferma all'operatore.
"""

import logging
from enum import Enum
from typing import List, Optional

from .ad_connector import ADConnector, DirectoryUser, scope_to_search_base
from .config import ToolsConfig
from .disambiguator import (
    Outcome, Presenter, Selection, SelectionStatus, QUIT_KEYS,
    disambiguate, require_single
)
from .exceptions import InvalidArgumentError

log = logging.getLogger(__name__)

SCOPE_OPTION = "s"


class LookupState(Enum):
    """Stati della ricerca interattiva"""
    SEARCHING = "searching"
    NOT_FOUND = "not_found"
    UNAMBIGUOUS = "unambiguous"
    AMBIGUOUS = "ambiguous"


def _ask_new_name(presenter: Presenter) -> Optional[str]:
    answer = presenter.ask("Nuovo nome di logon (invio o q per uscire): ").strip()
    if not answer or answer.lower() in QUIT_KEYS:
        return None
    return answer


def resolve_user(
    connector,
    logon_name: str,
    presenter: Presenter,
    search_base: Optional[str] = None,
    confirm: bool = True
) -> Selection:
    """
    Cerca un utente e lo riduce a un solo risultato confermato.

    Args:
        connector: Oggetto con find_users(logon_name, search_base)
        logon_name: sAMAccountName da cercare
        presenter: Interfaccia verso l'operatore
        search_base: Ambito iniziale (default: base DN del connettore)
        confirm: Chiedi Continua/Riprova/Esci prima di restituire

    Returns:
        Selection FOUND con il DirectoryUser, oppure CANCELLED
    """
    state = LookupState.SEARCHING
    base = search_base
    users: List[DirectoryUser] = []
    candidate: Optional[DirectoryUser] = None

    while True:
        if state is LookupState.SEARCHING:
            presenter.report(
                f"Ricerca di {logon_name}" + (f" in {base}" if base else "") + "..."
            )
            users = connector.find_users(logon_name, search_base=base)
            if not users:
                state = LookupState.NOT_FOUND
            elif len(users) == 1:
                candidate = users[0]
                state = LookupState.UNAMBIGUOUS
            else:
                state = LookupState.AMBIGUOUS

        elif state is LookupState.NOT_FOUND:
            presenter.report(f"Nessun utente trovato per {logon_name}", "warning")
            new_name = _ask_new_name(presenter)
            if new_name is None:
                return Selection(SelectionStatus.CANCELLED)
            logon_name, base = new_name, search_base
            state = LookupState.SEARCHING

        elif state is LookupState.AMBIGUOUS:
            selection = disambiguate(
                users,
                presenter,
                describe=DirectoryUser.describe,
                options={SCOPE_OPTION: "specifica dominio o OU"}
            )
            if selection.status is SelectionStatus.FOUND:
                candidate = selection.record
                state = LookupState.UNAMBIGUOUS
            elif selection.status is SelectionStatus.OPTION:
                scope = presenter.ask("Dominio (es. emea.corp.local) o DN: ")
                try:
                    base = scope_to_search_base(scope)
                except InvalidArgumentError as e:
                    presenter.report(str(e), "warning")
                    continue
                state = LookupState.SEARCHING
            else:
                return Selection(SelectionStatus.CANCELLED)

        elif state is LookupState.UNAMBIGUOUS:
            if not confirm:
                return Selection(SelectionStatus.FOUND, candidate, users.index(candidate))

            outcome = presenter.confirm(f"Utente trovato: {candidate.describe()}")
            if outcome is Outcome.CONTINUE:
                log.info("Utente selezionato: %s", candidate.dn)
                return Selection(SelectionStatus.FOUND, candidate, users.index(candidate))
            if outcome is Outcome.QUIT:
                return Selection(SelectionStatus.CANCELLED)

            new_name = _ask_new_name(presenter)
            if new_name is None:
                return Selection(SelectionStatus.CANCELLED)
            logon_name, base = new_name, search_base
            state = LookupState.SEARCHING


def find_user(
    config: ToolsConfig,
    logon_name: str,
    presenter: Presenter,
    scope: Optional[str] = None,
    confirm: bool = True
) -> Selection:
    """
    Apre la connessione dalla configurazione e risolve l'utente.

    Raises:
        ConfigurationError: server di directory non configurato
        ExternalCallError: connessione o ricerca fallita
    """
    base = scope_to_search_base(scope) if scope else None
    with ADConnector.from_config(config) as connector:
        return resolve_user(connector, logon_name, presenter, search_base=base, confirm=confirm)


def lookup_user(connector, logon_name: str, search_base: Optional[str] = None) -> DirectoryUser:
    """
    Variante non interattiva: esattamente un utente.

    Raises:
        NotFoundError, AmbiguousResultError
    """
    users = connector.find_users(logon_name, search_base=search_base)
    return require_single(users, f"utente {logon_name}")

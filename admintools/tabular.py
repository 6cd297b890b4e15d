"""
Tabular - Import, ricerca ed export di dati CSV
"""

import csv
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from .disambiguator import (
    Presenter, Selection, SelectionStatus, QUIT_KEYS,
    describe_mapping, disambiguate
)
from .exceptions import ExternalCallError, InvalidArgumentError, MissingRequiredFieldError

log = logging.getLogger(__name__)

Record = Dict[str, Any]


@dataclass
class Table:
    """Contenuto di un file CSV"""
    fields: List[str]
    records: List[Record] = field(default_factory=list)
    path: str = ""

    def __len__(self) -> int:
        return len(self.records)


@dataclass
class FieldCheck:
    """Esito della verifica delle colonne obbligatorie"""
    present: List[str]
    missing: List[str]

    @property
    def ok(self) -> bool:
        return not self.missing


def read_csv(path: str, delimiter: str = ",", encoding: str = "utf-8-sig") -> Table:
    """
    Legge un file CSV con intestazione.

    Args:
        path: Percorso del file
        delimiter: Separatore di campo
        encoding: Codifica (utf-8-sig gestisce il BOM di Excel)

    Returns:
        Table con nomi colonna e righe come dizionari

    Raises:
        ExternalCallError: file non leggibile o CSV malformato
    """
    try:
        with open(path, newline="", encoding=encoding) as f:
            reader = csv.DictReader(f, delimiter=delimiter)
            records = [dict(row) for row in reader]
            raw_fields = list(reader.fieldnames or [])
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise ExternalCallError(f"Impossibile leggere {path}: {e}") from e

    # Intestazioni normalizzate senza spazi
    fields = [name.strip() for name in raw_fields]
    if fields != raw_fields:
        records = [
            {(k.strip() if isinstance(k, str) else k): v for k, v in row.items()}
            for row in records
        ]

    log.info("Lette %d righe da %s", len(records), path)
    return Table(fields=fields, records=records, path=path)


def check_required_fields(fields: Iterable[str], required: Sequence[str]) -> FieldCheck:
    """
    Verifica che le colonne obbligatorie siano presenti.

    Il confronto ignora maiuscole e spazi esterni.
    """
    available = {f.strip().lower() for f in fields}
    present = [r for r in required if r.strip().lower() in available]
    missing = [r for r in required if r.strip().lower() not in available]
    return FieldCheck(present=present, missing=missing)


def require_fields(table: Table, required: Sequence[str]) -> Table:
    """Come check_required_fields, ma solleva MissingRequiredFieldError"""
    check = check_required_fields(table.fields, required)
    if not check.ok:
        raise MissingRequiredFieldError(check.missing, table.path)
    return table


def import_csv(
    required: Sequence[str],
    presenter: Presenter,
    picker: Callable[[], Optional[str]],
    delimiter: str = ","
) -> Optional[Table]:
    """
    Chiede un file all'operatore finché contiene le colonne obbligatorie.

    Args:
        required: Colonne obbligatorie
        presenter: Interfaccia verso l'operatore
        picker: Funzione che restituisce un percorso o None (annullato)
        delimiter: Separatore di campo

    Returns:
        Table importata, oppure None se l'operatore rinuncia
    """
    while True:
        path = picker()
        if not path:
            presenter.report("Nessun file selezionato", "warning")
            return None

        try:
            table = read_csv(path, delimiter=delimiter)
        except ExternalCallError as e:
            presenter.report(str(e), "error")
            table = None

        if table is not None:
            check = check_required_fields(table.fields, required)
            if check.ok:
                presenter.report(f"{len(table)} righe importate da {path}", "success")
                return table
            presenter.report(
                "Colonne obbligatorie mancanti: " + ", ".join(check.missing),
                "error"
            )
            if check.present:
                presenter.report("Colonne presenti: " + ", ".join(check.present))

        answer = presenter.ask("Scegliere un altro file? [S/n]: ").strip().lower()
        if answer in ("n", "no") or answer in QUIT_KEYS:
            return None


def search_records(
    records: Sequence[Record],
    term: str,
    fields: Optional[Sequence[str]] = None
) -> List[Record]:
    """
    Righe in cui almeno un campo contiene il termine (senza maiuscole).

    Args:
        records: Righe da filtrare
        term: Testo da cercare
        fields: Limita la ricerca a queste colonne (default: tutte)

    Returns:
        Lista delle righe corrispondenti, nell'ordine originale
    """
    if term is None or not str(term).strip():
        raise InvalidArgumentError("Termine di ricerca vuoto")
    needle = str(term).strip().lower()

    matches = []
    for record in records:
        keys = fields if fields else record.keys()
        for key in keys:
            value = record.get(key)
            if value is not None and needle in str(value).lower():
                matches.append(record)
                break
    return matches


def find_record(
    records: Sequence[Record],
    term: str,
    presenter: Presenter,
    fields: Optional[Sequence[str]] = None,
    display_fields: Optional[Sequence[str]] = None
) -> Selection:
    """
    Cerca una riga e la riduce a una sola scelta.

    Se non ci sono corrispondenze chiede un nuovo termine; invio o q
    annullano.
    """
    while True:
        matches = search_records(records, term, fields)
        selection = disambiguate(
            matches,
            presenter,
            describe=lambda r: describe_mapping(r, display_fields)
        )
        if selection.status is not SelectionStatus.NOT_FOUND:
            return selection

        presenter.report(f"Nessuna riga contiene {term!r}", "warning")
        answer = presenter.ask("Nuovo termine di ricerca (invio o q per uscire): ").strip()
        if not answer or answer.lower() in QUIT_KEYS:
            return Selection(SelectionStatus.CANCELLED)
        term = answer


def export_csv(
    records: Sequence[Record],
    path: str,
    fields: Optional[Sequence[str]] = None,
    delimiter: str = ","
) -> int:
    """
    Scrive le righe in un CSV.

    Args:
        records: Righe da scrivere
        path: File di destinazione
        fields: Colonne (default: unione delle chiavi, in ordine di comparsa)

    Returns:
        Numero di righe scritte
    """
    if fields is None:
        fields = []
        for record in records:
            for key in record:
                if key is not None and key not in fields:
                    fields.append(key)

    try:
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=list(fields), delimiter=delimiter, extrasaction="ignore")
            writer.writeheader()
            for record in records:
                writer.writerow({k: record.get(k, "") for k in fields})
    except OSError as e:
        raise ExternalCallError(f"Impossibile scrivere {path}: {e}") from e

    log.info("Esportate %d righe in %s", len(records), path)
    return len(records)

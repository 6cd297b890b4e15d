"""
File Picker - Selezione file tramite finestra di dialogo tkinter
"""

import logging
import os
from typing import Optional, Sequence, Tuple

from .exceptions import ExternalCallError

log = logging.getLogger(__name__)

CSV_FILETYPES = (("CSV files", "*.csv"), ("All files", "*.*"))
ALL_FILETYPES = (("All files", "*.*"),)


def _load_filedialog():
    """Modulo tkinter.filedialog, o ExternalCallError se tkinter manca"""
    try:
        from tkinter import filedialog
    except ImportError as e:
        raise ExternalCallError(f"tkinter non disponibile: {e}") from e
    return filedialog


def _open_root():
    """Crea una finestra tkinter nascosta, in primo piano"""
    try:
        import tkinter as tk
    except ImportError as e:
        raise ExternalCallError(f"tkinter non disponibile: {e}") from e
    try:
        root = tk.Tk()
    except tk.TclError as e:
        raise ExternalCallError(f"Impossibile aprire la finestra di dialogo: {e}") from e
    root.withdraw()
    root.attributes("-topmost", True)
    return root


def pick_file(
    initial_dir: Optional[str] = None,
    title: str = "Seleziona file",
    filetypes: Sequence[Tuple[str, str]] = ALL_FILETYPES
) -> Optional[str]:
    """
    Mostra la finestra "Apri file".

    Args:
        initial_dir: Cartella iniziale (default: cartella corrente)
        title: Titolo finestra
        filetypes: Filtri (descrizione, pattern)

    Returns:
        Percorso selezionato, oppure None se l'operatore annulla

    Raises:
        ExternalCallError: tkinter o display non disponibili
    """
    filedialog = _load_filedialog()
    root = _open_root()
    try:
        path = filedialog.askopenfilename(
            parent=root,
            title=title,
            initialdir=initial_dir or os.getcwd(),
            filetypes=list(filetypes)
        )
    finally:
        root.destroy()

    if not path:
        log.debug("Selezione file annullata")
        return None
    return path


def pick_save_file(
    initial_dir: Optional[str] = None,
    title: str = "Salva con nome",
    default_extension: str = ".csv",
    filetypes: Sequence[Tuple[str, str]] = CSV_FILETYPES
) -> Optional[str]:
    """Mostra la finestra "Salva con nome". None se annullata."""
    filedialog = _load_filedialog()
    root = _open_root()
    try:
        path = filedialog.asksaveasfilename(
            parent=root,
            title=title,
            initialdir=initial_dir or os.getcwd(),
            defaultextension=default_extension,
            filetypes=list(filetypes)
        )
    finally:
        root.destroy()

    return path or None

"""
Exceptions - Gerarchia errori di admintools
"""


class AdminToolsError(Exception):
    """Errore base di admintools"""


class InvalidArgumentError(AdminToolsError, ValueError):
    """Argomento non valido (lunghezza password, destinatari mancanti, ...)"""


class NotFoundError(AdminToolsError, LookupError):
    """Nessun risultato per la ricerca"""


class AmbiguousResultError(AdminToolsError):
    """Più risultati dove ne era atteso uno solo"""

    def __init__(self, message: str, candidates=None):
        super().__init__(message)
        self.candidates = list(candidates or [])


class MissingRequiredFieldError(AdminToolsError):
    """Il file importato non contiene le colonne obbligatorie"""

    def __init__(self, missing, path: str = ""):
        self.missing = list(missing)
        self.path = path
        super().__init__(
            f"Colonne obbligatorie mancanti{' in ' + path if path else ''}: "
            + ", ".join(self.missing)
        )


class ExternalCallError(AdminToolsError):
    """Errore di un servizio esterno (LDAP, SMTP, finestra di dialogo, file)"""


class ConfigurationError(AdminToolsError):
    """Configurazione non valida"""

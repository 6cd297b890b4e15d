"""
admintools - Strumenti di amministrazione per la sessione dell'operatore
Password casuali, selezione file, CSV, email e ricerca utenti Active Directory
"""

__version__ = "1.0.0"

from .config import ToolsConfig
from .exceptions import (
    AdminToolsError,
    InvalidArgumentError,
    NotFoundError,
    AmbiguousResultError,
    MissingRequiredFieldError,
    ExternalCallError,
    ConfigurationError,
)
from .password_generator import RandomStringGenerator, generate_password
from .disambiguator import (
    ConsolePresenter,
    Outcome,
    Selection,
    SelectionStatus,
    disambiguate,
    require_single,
)
from .ad_connector import ADConnector, DirectoryUser
from .user_lookup import resolve_user, find_user, lookup_user
from .tabular import (
    Table,
    FieldCheck,
    read_csv,
    check_required_fields,
    import_csv,
    search_records,
    find_record,
    export_csv,
)
from .file_picker import pick_file, pick_save_file
from .mailer import Mailer, MailMessage, send_mail

__all__ = [
    "ToolsConfig",
    "AdminToolsError",
    "InvalidArgumentError",
    "NotFoundError",
    "AmbiguousResultError",
    "MissingRequiredFieldError",
    "ExternalCallError",
    "ConfigurationError",
    "RandomStringGenerator",
    "generate_password",
    "ConsolePresenter",
    "Outcome",
    "Selection",
    "SelectionStatus",
    "disambiguate",
    "require_single",
    "ADConnector",
    "DirectoryUser",
    "resolve_user",
    "find_user",
    "lookup_user",
    "Table",
    "FieldCheck",
    "read_csv",
    "check_required_fields",
    "import_csv",
    "search_records",
    "find_record",
    "export_csv",
    "pick_file",
    "pick_save_file",
    "Mailer",
    "MailMessage",
    "send_mail",
]

#!/usr/bin/env python3
"""
admintools - Strumenti di amministrazione da riga di comando

Uso:
    python run.py password --length 16 --count 5
    python run.py find-user mrossi --server dc01.corp.local --username CORP\\admin
    python run.py search-csv rossi --file utenti.csv --field Name
    python run.py import-csv --require Name --require Mail
    python run.py send-mail --to it@corp.local --subject "Test" --body "Ciao"
"""

import argparse
import dataclasses
import getpass
import logging
import sys

from admintools import __version__
from admintools import console
from admintools.console import print_colored

log = logging.getLogger("admintools")


def print_banner():
    """Stampa banner applicazione"""
    print_colored("=" * 60, "cyan")
    print_colored(f"  admintools v{__version__} - strumenti per l'operatore", "cyan")
    print_colored("=" * 60, "cyan")
    print()


def setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="admintools - Strumenti di amministrazione",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Configurazione:
  Il Domain Controller viene letto da ADMINTOOLS_DC o LOGONSERVER.
  Server SMTP, mittente e credenziali da ADMINTOOLS_SMTP_SERVER,
  ADMINTOOLS_MAIL_FROM, ADMINTOOLS_USER, ADMINTOOLS_PASSWORD.
        """
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Output dettagliato")
    parser.add_argument("--no-color", action="store_true", help="Disattiva i colori")
    parser.add_argument(
        "--version",
        action="version",
        version=f"admintools v{__version__}"
    )

    sub = parser.add_subparsers(dest="command", metavar="COMANDO")
    sub.required = True

    p = sub.add_parser("password", help="Genera password casuali")
    p.add_argument("-l", "--length", type=int, default=0,
                   help="Lunghezza 1-127 (0 = default configurato)")
    p.add_argument("-n", "--count", type=int, default=1, help="Numero di password")
    p.add_argument("--no-default", action="store_true",
                   help="Lunghezza 0 è un errore invece del default")

    p = sub.add_parser("pick-file", help="Seleziona un file con finestra di dialogo")
    p.add_argument("-d", "--dir", help="Cartella iniziale")

    p = sub.add_parser("search-csv", help="Cerca una riga in un file CSV")
    p.add_argument("term", nargs="?", help="Testo da cercare (default: richiesto a video)")
    p.add_argument("--file", help="File CSV (default: finestra di dialogo)")
    p.add_argument("-f", "--field", action="append", help="Cerca solo in questa colonna")
    p.add_argument("-s", "--show", action="append", help="Colonna da mostrare")
    p.add_argument("--delimiter", default=",", help="Separatore (default: ,)")

    p = sub.add_parser("import-csv", help="Importa un CSV verificando le colonne")
    p.add_argument("--file", help="File CSV (default: finestra di dialogo)")
    p.add_argument("-r", "--require", action="append", default=[],
                   help="Colonna obbligatoria (ripetibile)")
    p.add_argument("--delimiter", default=",", help="Separatore (default: ,)")
    p.add_argument("--export", help="Riscrive le righe importate in questo file")

    p = sub.add_parser("send-mail", help="Invia un'email")
    p.add_argument("--from", dest="sender", help="Mittente (default: ADMINTOOLS_MAIL_FROM)")
    p.add_argument("--to", action="append", help="Destinatario (ripetibile)")
    p.add_argument("--cc", action="append", help="Copia (ripetibile)")
    p.add_argument("--bcc", action="append", help="Copia nascosta (ripetibile)")
    p.add_argument("--subject", default="", help="Oggetto")
    group = p.add_mutually_exclusive_group()
    group.add_argument("--body", default="", help="Testo del messaggio")
    group.add_argument("--body-file", help="Legge il testo da file")
    p.add_argument("--html", action="store_true", help="Il testo è HTML")
    p.add_argument("--attach", action="append", default=[], help="Allegato (ripetibile)")
    p.add_argument("--smtp-server", help="Server SMTP")
    p.add_argument("--smtp-port", type=int, help="Porta SMTP")

    p = sub.add_parser("find-user", help="Trova un utente AD per nome di logon")
    p.add_argument("logon_name", help="sAMAccountName (ammessi *)")
    p.add_argument("--scope", help="Dominio o DN in cui cercare")
    p.add_argument("-s", "--server", help="Domain Controller (default: ADMINTOOLS_DC/LOGONSERVER)")
    p.add_argument("-u", "--username", help="Username (user@domain o DOMAIN\\user)")
    p.add_argument("-p", "--password", help="Password (meglio usare prompt interattivo)")
    p.add_argument("-d", "--domain", help="Nome dominio")
    p.add_argument("--no-ssl", action="store_true", help="Usa LDAP (389) invece di LDAPS (636)")
    p.add_argument("--skip-cert-check", action="store_true",
                   help="Non verificare certificato SSL (non consigliato)")
    p.add_argument("--timeout", type=int, help="Timeout in secondi")
    p.add_argument("-y", "--yes", action="store_true",
                   help="Non chiedere conferma sul risultato univoco")

    return parser


def cmd_password(args, config, presenter) -> int:
    from admintools.password_generator import RandomStringGenerator

    generator = RandomStringGenerator(
        default_length=config.password_length,
        substitute_default=config.substitute_default_length and not args.no_default,
    )
    for password in generator.generate_many(args.count, args.length):
        print(password)
    return 0


def cmd_pick_file(args, config, presenter) -> int:
    from admintools.file_picker import pick_file

    path = pick_file(initial_dir=args.dir)
    if not path:
        console.warning("Nessun file selezionato")
        return 1
    print(path)
    return 0


def cmd_search_csv(args, config, presenter) -> int:
    from admintools.file_picker import pick_file, CSV_FILETYPES
    from admintools.tabular import read_csv, find_record
    from admintools.disambiguator import describe_mapping

    path = args.file or pick_file(title="Seleziona CSV", filetypes=CSV_FILETYPES)
    if not path:
        console.warning("Nessun file selezionato")
        return 1
    term = args.term or presenter.ask("Testo da cercare: ")

    table = read_csv(path, delimiter=args.delimiter)
    console.info(f"{len(table)} righe lette da {path}")

    selection = find_record(
        table.records, term, presenter,
        fields=args.field, display_fields=args.show
    )
    if not selection.found:
        console.warning("Ricerca annullata")
        return 1
    console.success(describe_mapping(selection.record, args.show))
    return 0


def cmd_import_csv(args, config, presenter) -> int:
    from admintools.file_picker import pick_file, CSV_FILETYPES
    from admintools.tabular import import_csv, export_csv

    # Il file indicato viene usato una volta, poi finestra di dialogo
    queue = [args.file] if args.file else []

    def picker():
        if queue:
            return queue.pop()
        return pick_file(title="Seleziona CSV", filetypes=CSV_FILETYPES)

    table = import_csv(args.require, presenter, picker, delimiter=args.delimiter)
    if table is None:
        return 1

    console.info("Colonne: " + ", ".join(table.fields))
    if args.export:
        count = export_csv(table.records, args.export, table.fields)
        console.success(f"{count} righe scritte in {args.export}")
    return 0


def cmd_send_mail(args, config, presenter) -> int:
    from admintools.mailer import send_mail
    from admintools.exceptions import ExternalCallError

    overrides = {}
    if args.smtp_server:
        overrides["smtp_server"] = args.smtp_server
    if args.smtp_port:
        overrides["smtp_port"] = args.smtp_port
    if overrides:
        config = dataclasses.replace(config, **overrides)

    body = args.body
    if args.body_file:
        try:
            with open(args.body_file, encoding="utf-8") as f:
                body = f.read()
        except OSError as e:
            raise ExternalCallError(f"Impossibile leggere {args.body_file}: {e}") from e

    message = send_mail(
        config,
        subject=args.subject,
        body=body,
        to=args.to,
        cc=args.cc,
        bcc=args.bcc,
        sender=args.sender,
        html=args.html,
        attachments=args.attach,
    )
    console.success(f"Email inviata a {len(message.recipients)} destinatari")
    return 0


def cmd_find_user(args, config, presenter) -> int:
    from admintools.user_lookup import find_user

    overrides = {}
    if args.server:
        overrides["directory_server"] = args.server
    if args.username:
        overrides["bind_user"] = args.username
    if args.password:
        overrides["bind_password"] = args.password
    if args.domain:
        overrides["domain"] = args.domain
        overrides["base_dn"] = ""
    if args.no_ssl:
        overrides["use_ssl"] = False
    if args.skip_cert_check:
        overrides["validate_cert"] = False
    if args.timeout:
        overrides["ldap_timeout"] = args.timeout
    if overrides:
        config = dataclasses.replace(config, **overrides)

    if config.bind_user and not config.bind_password:
        password = getpass.getpass(f"Password per {config.bind_user}: ")
        if not password:
            console.error("Password richiesta")
            return 1
        config = dataclasses.replace(config, bind_password=password)

    console.info(f"Connessione a {config.directory_server}...")
    selection = find_user(
        config, args.logon_name, presenter,
        scope=args.scope, confirm=not args.yes
    )
    if not selection.found:
        console.warning("Ricerca annullata")
        return 1

    user = selection.record
    console.success(f"Utente: {user.sam_account_name}")
    print(user.dn)
    return 0


COMMANDS = {
    "password": cmd_password,
    "pick-file": cmd_pick_file,
    "search-csv": cmd_search_csv,
    "import-csv": cmd_import_csv,
    "send-mail": cmd_send_mail,
    "find-user": cmd_find_user,
}


def main(argv=None) -> int:
    """Funzione principale"""
    parser = build_parser()
    args = parser.parse_args(argv)

    console.init_console(use_color=not args.no_color)
    setup_logging(args.verbose)

    from admintools.config import ToolsConfig
    from admintools.disambiguator import ConsolePresenter
    from admintools.exceptions import AdminToolsError

    if args.command != "password":
        print_banner()

    try:
        config = ToolsConfig.from_env()
        return COMMANDS[args.command](args, config, ConsolePresenter())
    except AdminToolsError as e:
        console.error(str(e))
        log.debug("Dettaglio errore", exc_info=True)
        return 1
    except (KeyboardInterrupt, EOFError):
        print("\n")
        print_colored("[!] Operazione annullata", "yellow")
        return 130


if __name__ == "__main__":
    sys.exit(main())

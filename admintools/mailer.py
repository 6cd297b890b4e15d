"""
Mailer - Invio email tramite SMTP
"""

import logging
import mimetypes
import os
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import formatdate, make_msgid
from typing import Callable, List, Optional, Sequence, Union

from .config import ToolsConfig
from .exceptions import ConfigurationError, ExternalCallError, InvalidArgumentError

log = logging.getLogger(__name__)

Recipients = Union[None, str, Sequence[str]]


def _normalize(recipients: Recipients) -> List[str]:
    """Accetta None, "a@x; b@x" o una lista"""
    if not recipients:
        return []
    if isinstance(recipients, str):
        recipients = recipients.replace(";", ",").split(",")
    return [r.strip() for r in recipients if r and r.strip()]


@dataclass
class MailMessage:
    """Messaggio da inviare"""
    sender: str
    subject: str
    body: str
    to: List[str] = field(default_factory=list)
    cc: List[str] = field(default_factory=list)
    bcc: List[str] = field(default_factory=list)
    html: bool = False
    attachments: List[str] = field(default_factory=list)

    @property
    def recipients(self) -> List[str]:
        return self.to + self.cc + self.bcc

    def to_email(self) -> EmailMessage:
        """Costruisce l'EmailMessage (Bcc non compare nelle intestazioni)"""
        msg = EmailMessage()
        msg["From"] = self.sender
        if self.to:
            msg["To"] = ", ".join(self.to)
        if self.cc:
            msg["Cc"] = ", ".join(self.cc)
        msg["Subject"] = self.subject
        msg["Date"] = formatdate(localtime=True)
        msg["Message-ID"] = make_msgid(domain=self.sender.rpartition("@")[2] or None)

        if self.html:
            msg.set_content("Questo messaggio richiede un client con supporto HTML.")
            msg.add_alternative(self.body, subtype="html")
        else:
            msg.set_content(self.body)

        for path in self.attachments:
            ctype, encoding = mimetypes.guess_type(path)
            if ctype is None or encoding is not None:
                ctype = "application/octet-stream"
            maintype, subtype = ctype.split("/", 1)
            try:
                with open(path, "rb") as f:
                    data = f.read()
            except OSError as e:
                raise ExternalCallError(f"Allegato non leggibile {path}: {e}") from e
            msg.add_attachment(
                data, maintype=maintype, subtype=subtype,
                filename=os.path.basename(path)
            )
        return msg


def build_message(
    sender: str,
    subject: str = "",
    body: str = "",
    to: Recipients = None,
    cc: Recipients = None,
    bcc: Recipients = None,
    html: bool = False,
    attachments: Optional[Sequence[str]] = None
) -> MailMessage:
    """
    Valida i parametri e crea il MailMessage.

    Raises:
        InvalidArgumentError: mittente mancante o nessun destinatario
    """
    message = MailMessage(
        sender=(sender or "").strip(),
        subject=subject or "",
        body=body or "",
        to=_normalize(to),
        cc=_normalize(cc),
        bcc=_normalize(bcc),
        html=html,
        attachments=list(attachments or []),
    )
    if not message.recipients:
        raise InvalidArgumentError("Specificare almeno un destinatario (to, cc o bcc)")
    if not message.sender:
        raise InvalidArgumentError("Mittente non specificato")
    return message


class Mailer:
    """
    Invia messaggi tramite un server SMTP, con timeout esplicito.
    """

    def __init__(
        self,
        server: str,
        port: int = 25,
        timeout: int = 30,
        starttls: bool = False,
        username: str = "",
        password: str = "",
        smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP
    ):
        """
        Inizializza il mailer.

        Args:
            server: Hostname del server SMTP
            port: Porta SMTP
            timeout: Timeout in secondi
            starttls: Attiva STARTTLS prima del login
            username: Utente SMTP (vuoto = nessun login)
            password: Password SMTP
            smtp_factory: Classe client SMTP (sostituibile nei test)
        """
        if not server:
            raise ConfigurationError("Server SMTP non configurato (ADMINTOOLS_SMTP_SERVER)")
        self.server = server
        self.port = port
        self.timeout = timeout
        self.starttls = starttls
        self.username = username
        self.password = password
        self._smtp_factory = smtp_factory

    @classmethod
    def from_config(cls, config: ToolsConfig, **overrides) -> "Mailer":
        params = dict(
            server=config.smtp_server,
            port=config.smtp_port,
            timeout=config.smtp_timeout,
            starttls=config.smtp_starttls,
            username=config.smtp_user,
            password=config.smtp_password,
        )
        params.update(overrides)
        return cls(**params)

    def send(self, message: MailMessage) -> None:
        """
        Consegna il messaggio. Nessun tentativo automatico in caso di errore.

        Raises:
            InvalidArgumentError: nessun destinatario
            ExternalCallError: errore SMTP o di rete
        """
        if not message.recipients:
            raise InvalidArgumentError("Specificare almeno un destinatario (to, cc o bcc)")

        email_msg = message.to_email()
        log.debug("Connessione a %s:%s", self.server, self.port)
        try:
            with self._smtp_factory(self.server, self.port, timeout=self.timeout) as smtp:
                if self.starttls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password)
                refused = smtp.send_message(
                    email_msg,
                    from_addr=message.sender,
                    to_addrs=message.recipients
                )
        except smtplib.SMTPException as e:
            raise ExternalCallError(f"Invio email fallito: {e}") from e
        except OSError as e:
            raise ExternalCallError(
                f"Server SMTP {self.server}:{self.port} non raggiungibile: {e}"
            ) from e

        if refused:
            log.warning("Destinatari rifiutati: %s", ", ".join(refused))
        log.info(
            "Email '%s' inviata a %d destinatari", message.subject, len(message.recipients)
        )


def send_mail(
    config: ToolsConfig,
    subject: str,
    body: str,
    to: Recipients = None,
    cc: Recipients = None,
    bcc: Recipients = None,
    sender: Optional[str] = None,
    html: bool = False,
    attachments: Optional[Sequence[str]] = None,
    mailer: Optional[Mailer] = None
) -> MailMessage:
    """
    Valida e invia un'email con il server configurato.

    I destinatari vengono controllati prima di creare il client SMTP.
    """
    message = build_message(
        sender or config.mail_sender,
        subject=subject,
        body=body,
        to=to,
        cc=cc,
        bcc=bcc,
        html=html,
        attachments=attachments,
    )
    (mailer or Mailer.from_config(config)).send(message)
    return message

"""
AD Connector - Connessione ad Active Directory via LDAP e ricerca utenti
"""

import logging
import ssl
from typing import Optional, Dict, List, Any
from dataclasses import dataclass, field
from ldap3 import (
    Server, Connection, ALL, NTLM, SIMPLE, ANONYMOUS,
    SUBTREE, ALL_ATTRIBUTES, Tls
)
from ldap3.core.exceptions import (
    LDAPBindError, LDAPSocketOpenError,
    LDAPInvalidCredentialsResult, LDAPException
)
from ldap3.utils.conv import escape_filter_chars

from .config import ToolsConfig, domain_to_dn
from .exceptions import ExternalCallError, InvalidArgumentError, ConfigurationError

log = logging.getLogger(__name__)

# userAccountControl: ACCOUNTDISABLE
UAC_ACCOUNTDISABLE = 0x0002

# Codici risultato LDAP (RFC 4511)
RESULT_SUCCESS = 0
RESULT_NO_SUCH_OBJECT = 32

USER_ATTRIBUTES = [
    "sAMAccountName",
    "userPrincipalName",
    "displayName",
    "distinguishedName",
    "userAccountControl",
    "mail",
]


@dataclass
class ADConnectionInfo:
    """Informazioni sulla connessione AD"""
    server: str
    domain: str
    base_dn: str
    connected: bool = False
    ssl: bool = False
    user: str = ""
    error: str = ""


@dataclass
class DirectoryUser:
    """Utente restituito da una ricerca per nome di logon"""
    dn: str
    sam_account_name: str
    display_name: str = ""
    user_principal_name: str = ""
    mail: str = ""
    enabled: bool = True
    attributes: Dict[str, Any] = field(default_factory=dict)

    @property
    def domain(self) -> str:
        """Dominio DNS ricavato dalle componenti DC= del DN"""
        return dn_to_domain(self.dn)

    def describe(self) -> str:
        state = "" if self.enabled else " [disabilitato]"
        name = self.display_name or self.sam_account_name
        return f"{self.domain}\\{self.sam_account_name} - {name} ({self.dn}){state}"


def dn_to_domain(dn: str) -> str:
    """Converte le componenti DC= di un DN in nome dominio"""
    parts = []
    for rdn in dn.split(","):
        key, _, value = rdn.strip().partition("=")
        if key.strip().upper() == "DC" and value:
            parts.append(value.strip().lower())
    return ".".join(parts)


def scope_to_search_base(scope: str) -> str:
    """
    Converte l'ambito indicato dall'operatore in search base.

    Accetta un DN (OU=Staff,DC=corp,DC=local) o un dominio (emea.corp.local).
    """
    scope = (scope or "").strip()
    if not scope:
        raise InvalidArgumentError("Ambito di ricerca vuoto")
    if "=" in scope:
        return scope
    return domain_to_dn(scope)


class ADConnector:
    """
    Gestisce la connessione ad Active Directory via LDAP.
    Supporta connessioni LDAP (389) e LDAPS (636).
    """

    def __init__(
        self,
        server: str,
        username: str = "",
        password: str = "",
        domain: Optional[str] = None,
        base_dn: Optional[str] = None,
        use_ssl: bool = True,
        port: Optional[int] = None,
        timeout: int = 30,
        validate_cert: bool = True
    ):
        """
        Inizializza il connettore AD.

        Args:
            server: Hostname o IP del Domain Controller
            username: Username (user@domain o DOMAIN\\user, vuoto = anonimo)
            password: Password
            domain: Nome dominio (opzionale, estratto da username)
            base_dn: Base DN (default: ricavato dal dominio)
            use_ssl: Usa LDAPS (porta 636) invece di LDAP (389)
            port: Porta personalizzata (default: 636 se SSL, 389 altrimenti)
            timeout: Timeout connessione e risposta in secondi
            validate_cert: Valida certificato SSL
        """
        if not server:
            raise ConfigurationError(
                "Server di directory non configurato (ADMINTOOLS_DC o LOGONSERVER)"
            )
        self.server_address = server
        self.username = username
        self.password = password
        self.use_ssl = use_ssl
        self.timeout = timeout
        self.validate_cert = validate_cert

        if port:
            self.port = port
        else:
            self.port = 636 if use_ssl else 389

        # Estrai dominio da username se non specificato
        if domain:
            self.domain = domain
        elif "@" in username:
            self.domain = username.split("@")[1]
        elif "\\" in username:
            self.domain = username.split("\\")[0]
        else:
            self.domain = ""

        self.base_dn = base_dn or domain_to_dn(self.domain)

        self._server: Optional[Server] = None
        self._connection: Optional[Connection] = None
        self._connected = False

    @classmethod
    def from_config(cls, config: ToolsConfig, **overrides) -> "ADConnector":
        """Crea il connettore dalla configurazione di processo"""
        params = dict(
            server=config.directory_server,
            username=config.bind_user,
            password=config.bind_password,
            domain=config.domain or None,
            base_dn=config.base_dn or None,
            use_ssl=config.use_ssl,
            port=config.ldap_port,
            timeout=config.ldap_timeout,
            validate_cert=config.validate_cert,
        )
        params.update(overrides)
        return cls(**params)

    def __enter__(self) -> "ADConnector":
        info = self.connect()
        if not info.connected:
            raise ExternalCallError(info.error)
        return self

    def __exit__(self, exc_type, exc, tb):
        self.disconnect()
        return False

    def _auth(self):
        """Determina utente e metodo di bind"""
        if not self.username:
            return None, ANONYMOUS
        if "\\" in self.username:
            # DOMAIN\\user - usa NTLM
            return self.username, NTLM
        if "@" in self.username or not self.domain:
            return self.username, SIMPLE
        return f"{self.username}@{self.domain}", SIMPLE

    def connect(self) -> ADConnectionInfo:
        """
        Stabilisce la connessione ad Active Directory.

        Returns:
            ADConnectionInfo con dettagli connessione
        """
        info = ADConnectionInfo(
            server=self.server_address,
            domain=self.domain,
            base_dn=self.base_dn,
            ssl=self.use_ssl,
            user=self.username
        )

        try:
            tls_config = None
            if self.use_ssl:
                if self.validate_cert:
                    tls_config = Tls(validate=ssl.CERT_REQUIRED)
                else:
                    tls_config = Tls(validate=ssl.CERT_NONE)

            self._server = Server(
                self.server_address,
                port=self.port,
                use_ssl=self.use_ssl,
                get_info=ALL,
                tls=tls_config,
                connect_timeout=self.timeout
            )

            auth_user, auth_method = self._auth()
            log.debug("Bind su %s:%s come %s", self.server_address, self.port, auth_user or "anonimo")

            self._connection = Connection(
                self._server,
                user=auth_user,
                password=self.password if auth_user else None,
                authentication=auth_method,
                auto_bind=True,
                receive_timeout=self.timeout
            )

            self._connected = True
            info.connected = True

            # Aggiorna base_dn dal server se vuoto
            if not self.base_dn and self._server.info:
                naming_contexts = self._server.info.naming_contexts
                if naming_contexts:
                    self.base_dn = naming_contexts[0]
                    info.base_dn = self.base_dn

        except LDAPInvalidCredentialsResult:
            info.error = "Credenziali non valide. Verifica username e password."
        except LDAPSocketOpenError:
            info.error = f"Impossibile connettersi al server {self.server_address}:{self.port}. Verifica che il server sia raggiungibile."
        except LDAPBindError as e:
            info.error = f"Errore autenticazione: {str(e)}"
        except LDAPException as e:
            info.error = f"Errore LDAP: {str(e)}"

        if info.error:
            log.warning("Connessione a %s fallita: %s", self.server_address, info.error)
        return info

    def disconnect(self):
        """Chiude la connessione"""
        if self._connection:
            self._connection.unbind()
        self._connected = False

    @property
    def is_connected(self) -> bool:
        """Verifica se la connessione è attiva"""
        return bool(self._connected and self._connection and self._connection.bound)

    def search(
        self,
        search_filter: str,
        attributes: List[str] = None,
        search_base: str = None,
        scope: str = SUBTREE,
        size_limit: int = 0,
        paged_size: int = 1000
    ) -> List[Dict[str, Any]]:
        """
        Esegue ricerca LDAP.

        Args:
            search_filter: Filtro LDAP (es: "(objectClass=user)")
            attributes: Lista attributi da recuperare
            search_base: Base DN per ricerca (default: base_dn)
            scope: Scope ricerca (SUBTREE, BASE, LEVEL)
            size_limit: Limite risultati (0 = nessun limite)
            paged_size: Dimensione pagina per paginazione

        Returns:
            Lista di dizionari con chiavi "dn" e "attributes"

        Raises:
            ExternalCallError: connessione assente o errore LDAP
        """
        if not self.is_connected:
            raise ExternalCallError("Non connesso ad Active Directory")

        base = search_base or self.base_dn
        attrs = attributes or ALL_ATTRIBUTES

        log.debug("Ricerca %s in %s", search_filter, base)
        try:
            found = self._connection.search(
                search_base=base,
                search_filter=search_filter,
                search_scope=scope,
                attributes=attrs,
                size_limit=size_limit,
                paged_size=paged_size
            )
        except LDAPException as e:
            raise ExternalCallError(f"Errore ricerca LDAP in {base}: {e}") from e

        # search() restituisce False anche quando non ci sono risultati:
        # conta solo il codice in connection.result
        outcome = self._connection.result or {}
        code = outcome.get("result", 0)
        if code == RESULT_NO_SUCH_OBJECT:
            log.debug("Base %s inesistente", base)
            return []
        if code != RESULT_SUCCESS:
            detail = outcome.get("description") or str(code)
            if outcome.get("message"):
                detail = f"{detail} ({outcome['message']})"
            raise ExternalCallError(f"Errore ricerca LDAP in {base}: {detail}")
        log.debug("Ricerca completata (%s)", "risultati" if found else "nessun risultato")

        results = []
        for entry in self._connection.entries:
            result = {
                "dn": entry.entry_dn,
                "attributes": {}
            }
            for attr in entry.entry_attributes:
                result["attributes"][attr] = entry[attr].value
            results.append(result)

        return results

    def find_users(
        self,
        logon_name: str,
        search_base: Optional[str] = None
    ) -> List[DirectoryUser]:
        """
        Cerca utenti per sAMAccountName.

        Args:
            logon_name: Nome di logon (sono ammessi i caratteri jolly *)
            search_base: Limita la ricerca a un dominio o OU

        Returns:
            Lista ordinata di DirectoryUser (vuota se nessun risultato)
        """
        logon_name = (logon_name or "").strip()
        if not logon_name:
            raise InvalidArgumentError("Nome di logon vuoto")

        # Gli asterischi restano jolly, il resto viene escapato
        value = "*".join(escape_filter_chars(part) for part in logon_name.split("*"))
        search_filter = (
            "(&(objectCategory=person)(objectClass=user)"
            f"(sAMAccountName={value}))"
        )

        entries = self.search(search_filter, USER_ATTRIBUTES, search_base=search_base)
        users = [entry_to_user(e) for e in entries]
        log.info("Trovati %d utenti per %s", len(users), logon_name)
        return users


def _first(value):
    if isinstance(value, list):
        return value[0] if value else None
    return value


def entry_to_user(entry: Dict[str, Any]) -> DirectoryUser:
    """Converte un risultato di ADConnector.search() in DirectoryUser"""
    attrs = entry.get("attributes", {})
    uac = int(_first(attrs.get("userAccountControl")) or 0)
    return DirectoryUser(
        dn=entry.get("dn", ""),
        sam_account_name=_first(attrs.get("sAMAccountName")) or "",
        display_name=_first(attrs.get("displayName")) or "",
        user_principal_name=_first(attrs.get("userPrincipalName")) or "",
        mail=_first(attrs.get("mail")) or "",
        enabled=not bool(uac & UAC_ACCOUNTDISABLE),
        attributes=attrs,
    )

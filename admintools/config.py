"""
Config - Configurazione di processo per admintools

Il server di directory viene individuato una sola volta dall'ambiente
(ADMINTOOLS_DC o LOGONSERVER) e passato esplicitamente a ogni ricerca.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .exceptions import ConfigurationError

ENV_PREFIX = "ADMINTOOLS_"

_TRUE = {"1", "true", "yes", "on", "si", "sì"}
_FALSE = {"0", "false", "no", "off"}


def domain_to_dn(domain: str) -> str:
    """Converte nome dominio in Distinguished Name"""
    if not domain:
        return ""
    parts = domain.strip().lower().split(".")
    return ",".join(f"DC={part}" for part in parts if part)


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(
            f"{ENV_PREFIX}{name} deve essere un intero, trovato {raw!r}"
        ) from None


def _get_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigurationError(
        f"{ENV_PREFIX}{name} deve essere un booleano, trovato {raw!r}"
    )


@dataclass(frozen=True)
class ToolsConfig:
    """Valori di configurazione, letti una volta all'avvio"""
    directory_server: Optional[str] = None
    domain: str = ""
    base_dn: str = ""
    bind_user: str = ""
    bind_password: str = ""
    use_ssl: bool = True
    ldap_port: Optional[int] = None
    ldap_timeout: int = 30
    validate_cert: bool = True
    smtp_server: Optional[str] = None
    smtp_port: int = 25
    smtp_timeout: int = 30
    smtp_starttls: bool = False
    smtp_user: str = ""
    smtp_password: str = ""
    mail_sender: str = ""
    password_length: int = 8
    substitute_default_length: bool = True

    def __post_init__(self):
        if self.ldap_timeout <= 0 or self.smtp_timeout <= 0:
            raise ConfigurationError("I timeout devono essere positivi")
        if not 1 <= self.password_length <= 127:
            raise ConfigurationError(
                "La lunghezza password predefinita deve essere tra 1 e 127"
            )
        # base_dn derivato dal dominio se non indicato
        if not self.base_dn and self.domain:
            object.__setattr__(self, "base_dn", domain_to_dn(self.domain))

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ToolsConfig":
        """
        Costruisce la configurazione dalle variabili d'ambiente.

        Args:
            env: Mappa da usare al posto di os.environ (per i test)

        Returns:
            ToolsConfig immutabile

        Raises:
            ConfigurationError: valori numerici o booleani non validi
        """
        if env is None:
            env = os.environ

        server = env.get(ENV_PREFIX + "DC") or env.get("LOGONSERVER") or None
        if server:
            # LOGONSERVER ha la forma \\DC01
            server = server.lstrip("\\/").strip() or None

        domain = env.get(ENV_PREFIX + "DOMAIN") or env.get("USERDNSDOMAIN") or ""

        return cls(
            directory_server=server,
            domain=domain.strip().lower(),
            base_dn=env.get(ENV_PREFIX + "BASE_DN", ""),
            bind_user=env.get(ENV_PREFIX + "USER", ""),
            bind_password=env.get(ENV_PREFIX + "PASSWORD", ""),
            use_ssl=_get_bool(env, "LDAP_SSL", True),
            ldap_port=_get_int(env, "LDAP_PORT", 0) or None,
            ldap_timeout=_get_int(env, "LDAP_TIMEOUT", 30),
            validate_cert=_get_bool(env, "LDAP_VALIDATE_CERT", True),
            smtp_server=env.get(ENV_PREFIX + "SMTP_SERVER") or None,
            smtp_port=_get_int(env, "SMTP_PORT", 25),
            smtp_timeout=_get_int(env, "SMTP_TIMEOUT", 30),
            smtp_starttls=_get_bool(env, "SMTP_STARTTLS", False),
            smtp_user=env.get(ENV_PREFIX + "SMTP_USER", ""),
            smtp_password=env.get(ENV_PREFIX + "SMTP_PASSWORD", ""),
            mail_sender=env.get(ENV_PREFIX + "MAIL_FROM", ""),
            password_length=_get_int(env, "PASSWORD_LENGTH", 8),
            substitute_default_length=_get_bool(env, "SUBSTITUTE_DEFAULT", True),
        )

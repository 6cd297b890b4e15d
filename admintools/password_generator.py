"""
Password Generator - Generazione password casuali

Le password sono estratte in modo uniforme, con reinserimento, da un
alfabeto privo dei caratteri facilmente confondibili (0 O o 1 l I i).
"""

import logging
import secrets
import string
from typing import List, Optional

from .exceptions import InvalidArgumentError

log = logging.getLogger(__name__)

MIN_LENGTH = 1
MAX_LENGTH = 127
DEFAULT_LENGTH = 8

# Caratteri esclusi perché ambigui a video
EXCLUDED_CHARS = frozenset("0Oo1lIi")

CHARACTER_SETS = (
    string.ascii_uppercase,
    string.ascii_lowercase,
    string.digits,
    string.punctuation,
)


def build_alphabet(
    character_sets=CHARACTER_SETS,
    excluded=EXCLUDED_CHARS
) -> str:
    """
    Costruisce l'alfabeto della password.

    Args:
        character_sets: Sottoinsiemi disgiunti di caratteri ammessi
        excluded: Caratteri da rimuovere

    Returns:
        Stringa ordinata dei caratteri ammessi

    Raises:
        ValueError: se l'alfabeto risultante è vuoto
    """
    alphabet = []
    seen = set()
    for charset in character_sets:
        for char in charset:
            if char not in excluded and char not in seen:
                seen.add(char)
                alphabet.append(char)

    if not alphabet:
        # Errore di programmazione, non recuperabile
        raise ValueError("Alfabeto password vuoto")

    return "".join(alphabet)


class RandomStringGenerator:
    """
    Genera password casuali con una sorgente crittograficamente sicura.
    """

    def __init__(
        self,
        default_length: int = DEFAULT_LENGTH,
        substitute_default: bool = True,
        alphabet: Optional[str] = None
    ):
        """
        Inizializza il generatore.

        Args:
            default_length: Lunghezza usata quando viene richiesto 0
            substitute_default: Se False, una lunghezza 0 è un errore
            alphabet: Alfabeto alternativo (default: build_alphabet()),
                ripulito comunque dai caratteri ambigui
        """
        if not MIN_LENGTH <= default_length <= MAX_LENGTH:
            raise InvalidArgumentError(
                f"Lunghezza predefinita {default_length} fuori intervallo "
                f"{MIN_LENGTH}-{MAX_LENGTH}"
            )
        self.default_length = default_length
        self.substitute_default = substitute_default
        if alphabet is None:
            self.alphabet = build_alphabet()
        else:
            self.alphabet = build_alphabet((alphabet,), EXCLUDED_CHARS)

    @classmethod
    def from_config(cls, config) -> "RandomStringGenerator":
        return cls(
            default_length=config.password_length,
            substitute_default=config.substitute_default_length,
        )

    def resolve_length(self, length: int) -> int:
        """Valida la lunghezza richiesta, applicando il default per 0"""
        if isinstance(length, bool) or not isinstance(length, int):
            raise InvalidArgumentError(
                f"La lunghezza deve essere un intero, ricevuto {length!r}"
            )
        if length == 0 and self.substitute_default:
            log.debug("Lunghezza 0 richiesta, uso il default %d", self.default_length)
            return self.default_length
        if not MIN_LENGTH <= length <= MAX_LENGTH:
            raise InvalidArgumentError(
                f"Lunghezza {length} non valida: ammessi valori da "
                f"{MIN_LENGTH} a {MAX_LENGTH}"
            )
        return length

    def generate(self, length: int = 0) -> str:
        """
        Genera una password.

        Args:
            length: Numero di caratteri (1-127, 0 = default se abilitato)

        Returns:
            Password di esattamente `length` caratteri
        """
        length = self.resolve_length(length)
        password = "".join(secrets.choice(self.alphabet) for _ in range(length))
        log.debug("Generata password di %d caratteri", length)
        return password

    def generate_many(self, count: int, length: int = 0) -> List[str]:
        """Genera `count` password indipendenti"""
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise InvalidArgumentError(
                f"Il numero di password deve essere >= 1, ricevuto {count!r}"
            )
        return [self.generate(length) for _ in range(count)]


def generate_password(length: int = 0) -> str:
    """Scorciatoia con i valori predefiniti"""
    return RandomStringGenerator().generate(length)

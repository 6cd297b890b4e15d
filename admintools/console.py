"""
Console - Output colorato per l'operatore
"""

import os

from colorama import init, Fore, Style

COLORS_MAP = {
    "red": Fore.RED,
    "green": Fore.GREEN,
    "yellow": Fore.YELLOW,
    "blue": Fore.BLUE,
    "cyan": Fore.CYAN,
    "white": Fore.WHITE,
}

# Disattivato con NO_COLOR o --no-color
HAS_COLOR = "NO_COLOR" not in os.environ


def init_console(use_color: bool = True):
    """Inizializza colorama (necessario su console Windows)"""
    global HAS_COLOR
    HAS_COLOR = use_color and "NO_COLOR" not in os.environ
    if HAS_COLOR:
        init()


def print_colored(text: str, color: str = "white"):
    """Stampa testo colorato"""
    if HAS_COLOR:
        print(COLORS_MAP.get(color, Fore.WHITE) + text + Style.RESET_ALL)
    else:
        print(text)


def info(text: str):
    print_colored(f"[*] {text}", "cyan")


def success(text: str):
    print_colored(f"[+] {text}", "green")


def warning(text: str):
    print_colored(f"[!] {text}", "yellow")


def error(text: str):
    print_colored(f"[!] {text}", "red")

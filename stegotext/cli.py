"""
Console output helpers for the StegoText command line
"""

import sys
from typing import Dict, Iterable

from colorama import Fore, Style, just_fix_windows_console
from tqdm import tqdm


class CLIInterface:
    """Coloured terminal output"""

    def __init__(self, stream=None):
        just_fix_windows_console()
        self.stream = stream or sys.stdout

    def _write(self, text: str):
        print(text, file=self.stream)

    def print_header(self, title: str):
        self._write(f"{Style.BRIGHT}{Fore.CYAN}{title}{Style.RESET_ALL}")

    def print_info(self, message: str):
        self._write(f"{Fore.BLUE}[*]{Style.RESET_ALL} {message}")

    def print_success(self, message: str):
        self._write(f"{Fore.GREEN}[+]{Style.RESET_ALL} {message}")

    def print_warning(self, message: str):
        self._write(f"{Fore.YELLOW}[!]{Style.RESET_ALL} {message}")

    def print_error(self, message: str):
        self._write(f"{Fore.RED}[-]{Style.RESET_ALL} {message}")

    def print_message(self, text: str):
        """Print a recovered message between rulers"""
        rule = '-' * 40
        self._write(rule)
        self._write(text)
        self._write(rule)

    def print_capacity(self, info: Dict, fit: Dict = None):
        self._write(f"  Dimensions:  {info['width']}x{info['height']}")
        self._write(f"  Usable bits: {info['total_bits']}")
        self._write(f"  Overhead:    {info['overhead_bytes']} bytes")
        self._write(f"  Capacity:    {info['max_bytes']} characters (ASCII)")
        if fit is not None:
            colour = Fore.GREEN if fit['fits'] else Fore.RED
            verdict = 'fits' if fit['fits'] else 'does not fit'
            self._write(
                f"  Text:        {fit['required_bytes']} bytes, "
                f"{colour}{verdict}{Style.RESET_ALL} ({fit['usage_percent']}% used)"
            )

    def progress(self, items: Iterable, total: int, desc: str, enabled: bool = True):
        """Wrap ``items`` in a tqdm progress bar when ``enabled``"""
        return tqdm(items, total=total, desc=desc, unit='img', leave=False,
                    disable=not enabled, file=sys.stderr)

    @staticmethod
    def format_size(size: int) -> str:
        value = float(size)
        for unit in ('B', 'KB', 'MB', 'GB'):
            if value < 1024 or unit == 'GB':
                if unit == 'B':
                    return f"{int(value)} {unit}"
                return f"{value:.1f} {unit}"
            value /= 1024

"""
Presentation — Display layer for the scopekit CLI

- Symbols: visual vocabulary (unicode/ascii) and encoding-safe printing
"""

from .symbols import (
    SymbolSet, get_symbols, supports_unicode,
    safe_print, truncate, status_symbol, outcome_symbol,
    UNICODE, ASCII,
)

__all__ = [
    "SymbolSet", "get_symbols", "supports_unicode",
    "safe_print", "truncate", "status_symbol", "outcome_symbol",
    "UNICODE", "ASCII",
]

"""
Symbols — Visual vocabulary for scope states and sync outcomes

Progressive enhancement: Unicode when supported, ASCII fallback.
Selected by SCOPEKIT_SYMBOLS (unicode | ascii | auto).
"""

import os
import sys
from dataclasses import dataclass
from typing import Optional

from ..core.models import ItemStatus, ScopeStatus


SYMBOLS_ENV = "SCOPEKIT_SYMBOLS"

# Common Unicode to ASCII replacements for display
UNICODE_TO_ASCII = {
    '→': '->',
    '←': '<-',
    '…': '...',
    '•': '*',
    '✓': '[OK]',
    '⚠': '[!]',
    '✗': '[x]',
    '├─': '|-',
    '└─': '`-',
}


def safe_print(text: str, end: str = '\n', file=None) -> None:
    """
    Print with graceful encoding fallback.

    Replaces known Unicode symbols with ASCII equivalents, then '?' as a
    last resort, when the stream cannot encode them.
    """
    if file is None:
        file = sys.stdout

    try:
        print(text, end=end, file=file)
    except UnicodeEncodeError:
        safe_text = text
        for unicode_char, ascii_equiv in UNICODE_TO_ASCII.items():
            safe_text = safe_text.replace(unicode_char, ascii_equiv)

        try:
            print(safe_text, end=end, file=file)
        except UnicodeEncodeError:
            encoding = getattr(file, 'encoding', 'utf-8') or 'utf-8'
            encoded = safe_text.encode(encoding, errors='replace')
            print(encoded.decode(encoding), end=end, file=file)


DESCRIPTION_LENGTH = 60


def truncate(text: str, length: int = DESCRIPTION_LENGTH) -> str:
    """Truncate text with '...' if it exceeds length."""
    if not text:
        return ""
    if len(text) <= length:
        return text
    if length <= 3:
        return text[:length]
    return text[:length - 3] + "..."


@dataclass(frozen=True)
class SymbolSet:
    """Complete set of symbols for scope listings and sync reports."""
    # Scope status
    active: str
    archived: str

    # Item outcomes
    transferred: str
    up_to_date: str
    skipped: str
    conflict: str
    error: str

    # Status markers
    check_pass: str
    check_warn: str
    check_fail: str
    arrow: str

    # Tree/structure markers
    tree_branch: str
    tree_end: str
    bullet: str


UNICODE = SymbolSet(
    active='●',
    archived='○',
    transferred='↑',
    up_to_date='=',
    skipped='·',
    conflict='⚡',
    error='✗',
    check_pass='✓',
    check_warn='⚠',
    check_fail='✗',
    arrow='→',
    tree_branch='├─',
    tree_end='└─',
    bullet='•',
)

ASCII = SymbolSet(
    active='[*]',
    archived='[ ]',
    transferred='[+]',
    up_to_date='[=]',
    skipped='[.]',
    conflict='[!]',
    error='[x]',
    check_pass='[OK]',
    check_warn='[!]',
    check_fail='[ERR]',
    arrow='->',
    tree_branch='|-',
    tree_end='`-',
    bullet='*',
)


def supports_unicode() -> bool:
    """
    Check if the environment likely supports Unicode output.

    Conservative: defaults to ASCII if uncertain.
    """
    stdout_encoding = getattr(sys.stdout, 'encoding', None)
    if stdout_encoding:
        encoding_lower = stdout_encoding.lower().replace('-', '').replace('_', '')
        if encoding_lower.startswith('utf'):
            return True
        if encoding_lower.startswith('cp') or encoding_lower in ('ascii', 'latin1', 'iso88591'):
            return False

    lang = os.environ.get('LANG', '').lower()
    lc_all = os.environ.get('LC_ALL', '').lower()
    if 'utf-8' in lang or 'utf8' in lang or 'utf-8' in lc_all or 'utf8' in lc_all:
        return True

    if os.environ.get('WT_SESSION'):
        return True

    return False


def get_symbols(preference: Optional[str] = None) -> SymbolSet:
    """
    Get the symbol set for a preference ("unicode", "ascii", "auto").

    None reads SCOPEKIT_SYMBOLS, then auto-detects.
    """
    if preference is None:
        preference = os.environ.get(SYMBOLS_ENV, 'auto').lower()
    if preference == 'unicode':
        return UNICODE
    if preference == 'ascii':
        return ASCII
    return UNICODE if supports_unicode() else ASCII


def status_symbol(symbols: SymbolSet, status: ScopeStatus) -> str:
    return symbols.active if status == ScopeStatus.ACTIVE else symbols.archived


def outcome_symbol(symbols: SymbolSet, status: ItemStatus) -> str:
    return getattr(symbols, status.value)

"""Normalization of netsh console output.

netsh writes in the console's OEM code page (GBK on Chinese Windows, cp437
or cp850 on most Western installs). Everything that inspects netsh output
goes through this module so the rule logic only ever sees decoded text.
"""

import os
import platform
from typing import Optional

# Used off Windows and when no console code page is available
DEFAULT_ENCODING = 'gbk'

# "No rules match the specified criteria." in English and Simplified Chinese
NO_MATCH_PHRASES = (
    'no rules match',
    '没有与指定标准相匹配的规则',
)


def _console_code_page() -> int:
    """Return the console output code page, or 0 without a console."""
    try:
        import ctypes
        return ctypes.windll.kernel32.GetConsoleOutputCP()
    except (AttributeError, OSError):
        return 0


def console_encoding() -> str:
    """Return the encoding netsh output is assumed to use.

    ``NETBLOCK_CONSOLE_ENCODING`` wins when set. On Windows the console's
    output code page is used, falling back to the OEM code page when the
    process has no console.
    """
    override = os.getenv('NETBLOCK_CONSOLE_ENCODING')
    if override:
        return override
    if platform.system() == 'Windows':
        code_page = _console_code_page()
        return f'cp{code_page}' if code_page else 'oem'
    return DEFAULT_ENCODING


def decode_output(raw: bytes, encoding: Optional[str] = None) -> str:
    """Decode raw console bytes into text.

    Args:
        raw: Bytes captured from the process
        encoding: Console encoding (default: ``console_encoding()``)

    Returns:
        Decoded text. Bytes that are not valid in the console encoding are
        decoded as UTF-8 with replacement characters instead.
    """
    if not raw:
        return ''
    try:
        return raw.decode(encoding or console_encoding())
    except (UnicodeDecodeError, LookupError):
        return raw.decode('utf-8', errors='replace')


def says_no_rule_matches(text: str) -> bool:
    """Check whether netsh reported that no rule matched the query."""
    text_lower = text.lower()
    return any(phrase in text_lower for phrase in NO_MATCH_PHRASES)


def mentions_path(text: str, program_path: str) -> bool:
    """Check whether output names the given program path (case-insensitive)."""
    return program_path.lower() in text.lower()

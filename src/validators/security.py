"""Pattern-based injection/XSS detection and storage sanitization.

These are heuristics, not parsers: they produce false positives (a surname
containing the word "Drop") and can be evaded. Every function is pure and
accepts ``None``.
"""

from __future__ import annotations

import re


SQL_KEYWORDS: tuple[str, ...] = (
    "union",
    "select",
    "insert",
    "update",
    "delete",
    "drop",
    "create",
    "alter",
    "exec",
    "execute",
    "script",
    "declare",
    "truncate",
)

# Quote, double quote, statement separator, backslash, comment dash.
SQL_META_CHARS = "'\";\\-"

XSS_TAGS: tuple[str, ...] = (
    "script",
    "iframe",
    "object",
    "embed",
    "form",
    "input",
    "link",
    "style",
    "img",
    "svg",
    "math",
)

_SQL_KEYWORD_RE = re.compile(r"\b(" + "|".join(SQL_KEYWORDS) + r")\b", re.IGNORECASE)

_XSS_RE = re.compile(
    r"<(" + "|".join(XSS_TAGS) + r")[^>]*>"
    r"|<[^>]*on\w+\s*="
    r"|javascript:"
    r"|data:text/html"
    r"|vbscript:",
    re.IGNORECASE,
)

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")
# An ampersand that does not already open one of the entities we emit.
_BARE_AMPERSAND_RE = re.compile(r"&(?!(?:amp|lt|gt|quot|#x27);)")

_CONTROL_CHARS = ("\x00", "\x1a")


def is_sql_injection_attempt(text: str | None, *, allowed_chars: str = "") -> bool:
    """True if ``text`` contains an SQL keyword or an SQL metacharacter.

    ``allowed_chars`` exempts metacharacters that the caller's field grammar
    legitimately admits (e.g. ``-`` and ``'`` in "O'Neil-Smith"). Keywords are
    never exempt.
    """

    if text is None or not text.strip():
        return False

    if _SQL_KEYWORD_RE.search(text):
        return True

    return any(ch in text for ch in SQL_META_CHARS if ch not in allowed_chars)


def is_xss_attempt(text: str | None) -> bool:
    if text is None or not text.strip():
        return False
    return _XSS_RE.search(text) is not None


def _html_encode(text: str) -> str:
    text = _BARE_AMPERSAND_RE.sub("&amp;", text)
    return (
        text.replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#x27;")
    )


def sanitize_input(text: str | None) -> str | None:
    """Encode markup characters, drop NUL/SUB, collapse whitespace, trim.

    Idempotent: ``sanitize_input(sanitize_input(s)) == sanitize_input(s)``.
    """

    if text is None:
        return None

    for ch in _CONTROL_CHARS:
        text = text.replace(ch, "")

    text = _html_encode(text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def sanitize_html(text: str | None) -> str | None:
    """Strip every tag, then entity-encode what is left."""

    if text is None or not text.strip():
        return text

    return _html_encode(_TAG_RE.sub("", text))


def remove_special_characters(text: str | None, *, allow_spaces: bool = True) -> str | None:
    if text is None or not text.strip():
        return text

    pattern = r"[^a-zA-Z0-9\s]" if allow_spaces else r"[^a-zA-Z0-9]"
    return re.sub(pattern, "", text)

"""Jira wiki markup to chat Markdown converter.

Jira issue descriptions and comments arrive in Jira's wiki syntax; the chat
platform renders its own Markdown dialect.

Conversions, applied in this order:
- Code blocks: `{code}x{code}` / `{noformat}` → fenced block (content kept verbatim)
- Inline code: `{{code}}` → `` `code` `` (content kept verbatim)
- Headers: `h1. Title` → `*Title*`
- Colour: `{color:#f00}text{color}` → `text`
- Superscript / subscript / inserted: `^x^`, `~x~`, `+x+` → `x`
- Strikethrough: `-text-` → `~text~`
- Quote blocks: `{quote}x{quote}` → fenced block
- Links: `[text|url]` → `[text](url)`
- Thumbnails: `!file.png|thumbnail!` → `[:camera:](thumbnail url)` or `:camera:`

The order is part of the contract. Code is lifted out first so no later
rule touches its content, and subscript `~x~` is stripped before
strikethrough produces `~x~` of its own.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Iterable, Optional, Union

CAMERA = ":camera:"

_PLACEHOLDER = "\x00{}\x00"
_PLACEHOLDER_RE = re.compile(r"\x00(\d+)\x00")


class _Translation:
    """Per-call state shared by the rewrite callables."""

    def __init__(self, attachments: Optional[Iterable[Any]]):
        self.attachments = list(attachments or [])
        self.protected: list[str] = []

    def protect(self, text: str) -> str:
        self.protected.append(text)
        return _PLACEHOLDER.format(len(self.protected) - 1)

    def restore(self, text: str) -> str:
        return _PLACEHOLDER_RE.sub(lambda m: self.protected[int(m.group(1))], text)

    def thumbnail_for(self, filename: str) -> Optional[str]:
        for item in self.attachments:
            name = item.get("filename") if isinstance(item, dict) else getattr(item, "filename", None)
            if name != filename:
                continue
            thumb = item.get("thumbnail") if isinstance(item, dict) else getattr(item, "thumbnail", None)
            return thumb or None
        return None


Rewrite = Union[str, Callable[[re.Match, _Translation], str]]


def _fence_code(match: re.Match, state: _Translation) -> str:
    return state.protect(f"```\n{match.group(2).strip(chr(10))}\n```")


def _inline_code(match: re.Match, state: _Translation) -> str:
    return state.protect(f"`{match.group(1)}`")


def _thumbnail(match: re.Match, state: _Translation) -> str:
    thumbnail = state.thumbnail_for(match.group(1))
    return f"[{CAMERA}]({thumbnail})" if thumbnail else CAMERA


def _between(mark: str) -> str:
    """Pattern for `<mark>text<mark>` with no whitespace just inside the marks."""
    m = re.escape(mark)
    body = rf"[^\s{m}](?:[^{m}\n]*[^\s{m}])?"
    return rf"\B{m}({body}){m}\B"


MARKUP_RULES: tuple[tuple[re.Pattern, Rewrite], ...] = (
    (re.compile(r"\{(code|noformat)(?::[^}]*)?\}(.*?)\{\1\}", re.DOTALL), _fence_code),
    (re.compile(r"\{\{(.+?)\}\}"), _inline_code),
    (re.compile(r"^h[1-6]\.\s+([^\n]+)", re.MULTILINE), r"*\1*"),
    (re.compile(r"\{color(?::[^}]*)?\}(.*?)\{color\}", re.DOTALL), r"\1"),
    (re.compile(_between("^")), r"\1"),
    (re.compile(_between("~")), r"\1"),
    (re.compile(_between("+")), r"\1"),
    (re.compile(_between("-")), r"~\1~"),
    (re.compile(r"\{quote\}(.*?)\{quote\}", re.DOTALL), lambda m, s: f"```\n{m.group(1).strip(chr(10))}\n```"),
    (re.compile(r"\[([^|\[\]\n]+)\|([^\]\n]+)\]"), r"[\1](\2)"),
    (re.compile(r"!([^|!\n]+)\|thumbnail!"), _thumbnail),
)


def translate(body: Optional[str], attachments: Optional[Iterable[Any]] = None) -> str:
    """Convert Jira wiki markup to chat Markdown.

    Args:
        body: Jira-formatted text. None or empty yields "".
        attachments: Issue attachments (dicts or objects with ``filename`` and
            ``thumbnail``) used to link thumbnail references.

    Returns:
        Chat-formatted text.
    """
    if not body:
        return ""

    state = _Translation(attachments)
    # NUL delimits code placeholders, so it may not appear in the input
    text = body.replace("\x00", "")
    for pattern, rewrite in MARKUP_RULES:
        if callable(rewrite):
            text = pattern.sub(lambda m, r=rewrite: r(m, state), text)
        else:
            text = pattern.sub(rewrite, text)

    return state.restore(text)

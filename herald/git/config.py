"""Parser for git's ``config`` file format.

Only the subset git itself writes into ``.git/config`` is needed here:
``[section]`` and ``[section "subsection"]`` headers, ``key = value``
entries, comments, quoted values with backslash escapes, and line
continuations.
"""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ

from herald.errors import GitReadError

if typ.TYPE_CHECKING:
    from pathlib import Path

_SECTION_PATTERN = re.compile(
    r'^\[\s*(?P<section>[A-Za-z0-9.-]+)(?:\s+"(?P<sub>(?:[^"\\]|\\.)*)")?\s*\]'
    r"\s*(?:[#;].*)?$"
)
_ENTRY_PATTERN = re.compile(
    r"^(?P<key>[A-Za-z][A-Za-z0-9-]*)\s*(?:=\s*(?P<value>.*))?$"
)
_ESCAPES = {"n": "\n", "t": "\t", "b": "\b", '"': '"', "\\": "\\"}

SectionKey = tuple[str, str | None]


@dc.dataclass(frozen=True, slots=True)
class GitConfig:
    """Parsed git configuration.

    Section and key names are case-insensitive in git and are stored
    lowercased; subsection names are case-sensitive and kept verbatim.
    """

    sections: dict[SectionKey, dict[str, list[str]]] = dc.field(default_factory=dict)

    def get(
        self, section: str, key: str, *, subsection: str | None = None
    ) -> str | None:
        """Return the last value of ``key``, as git does for single-valued keys."""
        entries = self.sections.get((section.lower(), subsection), {})
        values = entries.get(key.lower())
        return values[-1] if values else None

    def remote_url(self, remote: str = "origin") -> str | None:
        """Return the fetch URL configured for ``remote``."""
        return self.get("remote", "url", subsection=remote)


def _unescape_subsection(raw: str) -> str:
    return re.sub(r"\\(.)", r"\1", raw)


def _parse_value(raw: str) -> str | None:
    """Strip comments and quotes from a raw value, resolving escapes.

    Returns ``None`` when the value has an unterminated quote or an unknown
    escape sequence.
    """
    out: list[str] = []
    in_quotes = False
    pending_space = ""
    index = 0
    while index < len(raw):
        char = raw[index]
        if char == "\\":
            index += 1
            if index >= len(raw) or raw[index] not in _ESCAPES:
                return None
            out.append(pending_space + _ESCAPES[raw[index]])
            pending_space = ""
        elif char == '"':
            in_quotes = not in_quotes
        elif char in "#;" and not in_quotes:
            break
        elif char.isspace() and not in_quotes:
            if out:
                pending_space += char
        else:
            out.append(pending_space + char)
            pending_space = ""
        index += 1
    if in_quotes:
        return None
    return "".join(out)


def _logical_lines(text: str) -> typ.Iterator[tuple[int, str]]:
    """Yield ``(line number, line)`` pairs with continuations joined."""
    buffer = ""
    start = 0
    for line_no, line in enumerate(text.splitlines(), start=1):
        if not buffer:
            start = line_no
        if line.endswith("\\") and not line.endswith("\\\\"):
            buffer += line[:-1]
            continue
        yield start, buffer + line
        buffer = ""
    if buffer:
        yield start, buffer


def parse_git_config(text: str, *, path: Path) -> GitConfig:
    """Parse the contents of a git config file.

    Raises
    ------
    GitReadError
        On the first line that is neither a header, an entry, a comment, nor
        blank, or on an entry before any section header.

    """
    sections: dict[SectionKey, dict[str, list[str]]] = {}
    current: dict[str, list[str]] | None = None
    for line_no, raw_line in _logical_lines(text):
        line = raw_line.strip()
        if not line or line[0] in "#;":
            continue
        if header := _SECTION_PATTERN.match(line):
            name = header["section"].lower()
            sub = header["sub"]
            if sub is None and "." in name:
                name, _, sub = name.partition(".")
            elif sub is not None:
                sub = _unescape_subsection(sub)
            current = sections.setdefault((name, sub), {})
            continue
        entry = _ENTRY_PATTERN.match(line)
        if entry is None or current is None:
            raise GitReadError.config_malformed(path, line_no, raw_line)
        raw_value = entry["value"]
        # A key without "=" is a boolean set to true.
        value = "true" if raw_value is None else _parse_value(raw_value)
        if value is None:
            raise GitReadError.config_malformed(path, line_no, raw_line)
        current.setdefault(entry["key"].lower(), []).append(value)
    return GitConfig(sections=sections)


def read_git_config(path: Path) -> GitConfig:
    """Read and parse the git config file at ``path``.

    Raises
    ------
    GitReadError
        If the file cannot be opened or does not parse.

    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise GitReadError.config_unreadable(path, exc) from exc
    return parse_git_config(text, path=path)

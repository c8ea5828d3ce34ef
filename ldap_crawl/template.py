#  Copyright (c) 2024. The ldap_crawl Authors. See the AUTHORS file.
#  This file is part of the ldap_crawl project and licensed under the terms of
#  the Apache License, Version 2.0. See the LICENSE file for details
"""
ldap_crawl.template
~~~~~~~~~~~~~~~~~~~
Display templates are plain text with ``{attributeName}`` placeholders,
e.g. ``"Name: {givenName} {sn}<br>Mail: {mail}"``.
"""
from __future__ import annotations

import typing

from .exc import InvalidConfigurationError


class Placeholder(typing.NamedTuple):
    #: index of the opening brace
    start: int
    #: index of the closing brace
    end: int
    attribute: str


#: Template fragments are either literal text or a placeholder
Fragment = typing.Union[str, Placeholder]


def iter_fragments(template: str) -> typing.Iterator[Fragment]:
    """Split a template into literal characters and placeholders.

    A ``{`` opens a placeholder which runs up to the next ``}``.

    :raises AssertionError: if a placeholder is never closed.  Templates
        are validated on startup by :func:`validate_display_template`,
        so this means the validation has been bypassed.
    """
    i = 0
    while i < len(template):
        if template[i] != "{":
            yield template[i]
            i += 1
            continue
        close = template.find("}", i)
        if close < 0:
            raise AssertionError(
                f"invalid display template: {template}.  "
                f"No close brace matches open at character {i}"
            )
        yield Placeholder(start=i, end=close, attribute=template[i + 1:close])
        i = close + 1


def iter_placeholders(template: str) -> typing.Iterator[Placeholder]:
    return (f for f in iter_fragments(template) if isinstance(f, Placeholder))


def referenced_attributes(template: str) -> list[str]:
    """All attribute names used in `template`, in order and with repetitions."""
    return [p.attribute for p in iter_placeholders(template)]


def validate_display_template(template: str) -> None:
    """Make sure the braces of `template` balance and never nest.

    Whether every referenced attribute is actually fetched can only be
    checked against a server's attribute list, see
    :class:`ldap_crawl.coverage.CoverageTracker`.

    :raises InvalidConfigurationError: pointing to the (1-based) position
        where the problem got noticed
    """
    brace_level = 0
    position = 0
    for c in template:
        position += 1
        if c == "{":
            brace_level += 1
            if brace_level > 1:
                break
        elif c == "}":
            brace_level -= 1
            if brace_level < 0:
                break
    if brace_level != 0:
        raise InvalidConfigurationError(
            f"invalid value for displayTemplate: {template} found at position {position}"
        )


def default_template(attributes: str) -> str:
    """A template listing every attribute of a comma-separated list."""
    names = (a.strip() for a in attributes.split(","))
    return "".join(f"{name}: {{{name}}}<br>" for name in names)


def escape_html(text: str) -> str:
    """Replace non-ASCII characters and ``<``, ``>``, ``&`` by numeric
    character references.  Quotes are left alone."""
    return "".join(
        f"&#{ord(c)};" if ord(c) > 127 or c in "<>&" else c
        for c in text
    )


#: The escaped form of ``<br>``, which template authors may use on purpose
ESCAPED_LINE_BREAK = escape_html("<br>")


def escape_document(text: str) -> str:
    """Escape `text` with :func:`escape_html`, keeping ``<br>`` intact."""
    return escape_html(text).replace(ESCAPED_LINE_BREAK, "<br>")

#  Copyright (c) 2024. The ldap_crawl Authors. See the AUTHORS file.
#  This file is part of the ldap_crawl project and licensed under the terms of
#  the Apache License, Version 2.0. See the LICENSE file for details
"""
ldap_crawl.concepts.doc_id
~~~~~~~~~~~~~~~~~~~~~~~~~~
Document ids have the form ``server=<index>/<dn>``, where ``<index>`` is
the position of the server in the configuration.
"""
from __future__ import annotations

import typing

from ..exc import InvalidDocIdError
from .types import DN

MARKER = "server="
SEPARATOR = "/"


class ParsedDocId(typing.NamedTuple):
    server_number: int
    dn: DN


def make_doc_id(server_number: int, dn: str) -> str:
    return f"{MARKER}{server_number}{SEPARATOR}{dn}"


def parse_doc_id(doc_id: str, server_count: int) -> ParsedDocId:
    """Split a document id into server number and DN.

    The DN may contain further slashes; only the first one separates.

    :raises InvalidDocIdError: if `doc_id` has not been created by
        :func:`make_doc_id` for one of `server_count` servers
    """
    if not doc_id.startswith(MARKER):
        raise InvalidDocIdError(f"invalid DocId: {doc_id}")
    slash = doc_id.find(SEPARATOR)
    if slash < 0:
        raise InvalidDocIdError(f"invalid DocId: {doc_id}")
    try:
        server_number = int(doc_id[len(MARKER):slash])
    except ValueError:
        raise InvalidDocIdError(f"invalid DocId: {doc_id}") from None
    if not 0 <= server_number < server_count:
        raise InvalidDocIdError(f"invalid DocId: {doc_id}")
    return ParsedDocId(server_number, DN(doc_id[slash + 1:]))

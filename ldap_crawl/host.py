#  Copyright (c) 2024. The ldap_crawl Authors. See the AUTHORS file.
#  This file is part of the ldap_crawl project and licensed under the terms of
#  the Apache License, Version 2.0. See the LICENSE file for details
"""
ldap_crawl.host
~~~~~~~~~~~~~~~
What the crawler expects from the framework hosting it.
"""
from __future__ import annotations

import sys
import typing


class DocIdPusher(typing.Protocol):
    def push_doc_ids(self, doc_ids: list[str]) -> None:
        ...


class Response(typing.Protocol):
    def add_metadata(self, key: str, value: str) -> None:
        ...

    def set_content_type(self, content_type: str) -> None:
        ...

    def write(self, content: bytes) -> None:
        ...

    def respond_not_found(self) -> None:
        ...


class PrintingPusher:
    """Write document ids to a stream, one per line."""

    def __init__(self, stream: typing.TextIO = sys.stdout) -> None:
        self.stream = stream

    def push_doc_ids(self, doc_ids: list[str]) -> None:
        for doc_id in doc_ids:
            print(doc_id, file=self.stream)


class StreamResponse:
    """Write a document body to a binary stream, ignoring the metadata."""

    def __init__(self, stream: typing.BinaryIO) -> None:
        self.stream = stream
        self.found = True

    def add_metadata(self, key: str, value: str) -> None:
        pass

    def set_content_type(self, content_type: str) -> None:
        pass

    def write(self, content: bytes) -> None:
        self.stream.write(content)

    def respond_not_found(self) -> None:
        self.found = False

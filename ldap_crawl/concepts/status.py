#  Copyright (c) 2024. The ldap_crawl Authors. See the AUTHORS file.
#  This file is part of the ldap_crawl project and licensed under the terms of
#  the Apache License, Version 2.0. See the LICENSE file for details
"""
ldap_crawl.concepts.status
~~~~~~~~~~~~~~~~~~~~~~~~~~
Attribute validation results, as shown on an operations dashboard.
"""
from __future__ import annotations

import dataclasses
import enum
import typing


class StatusCode(enum.IntEnum):
    """Severity of a status, ordered from least to most alarming."""

    #: nothing to report on, e.g. because no server is configured
    INACTIVE = 0
    NORMAL = 1
    WARNING = 2
    ERROR = 3
    #: no full scan has finished yet, so nothing has been validated
    UNAVAILABLE = 4


class Message(enum.Enum):
    """Human-readable status messages, formatted with :meth:`format`."""

    ATTRIBUTE_VALIDATION = "Attribute Validation"
    ALL_FOUND = "Server {0}: All attributes found."
    EMPTY = "No LDAP servers are configured."
    IN_PROGRESS = "Server {0}: Attribute validation in progress."
    NOT_ALL_FOUND = "Server {0}: The following attribute(s) were not found in any user: {1}."
    USED_NOT_FETCHED = (
        "Server {0}: The following attribute(s) are specified in the display of users, "
        "but are not fetched from LDAP: {1}."
    )

    def format(self, *params: typing.Any) -> str:
        return self.value.format(*params)


@dataclasses.dataclass(frozen=True)
class Status:
    code: StatusCode
    message: str = ""

    @classmethod
    def from_message(cls, code: StatusCode, message: Message, *params: typing.Any) -> Status:
        return cls(code=code, message=message.format(*params))


class StatusSource(typing.Protocol):
    def get_status(self) -> Status:
        ...


def aggregate_status(sources: typing.Iterable[StatusSource]) -> Status:
    """Combine the statuses of several servers into one.

    The result carries the most severe code of all servers and the
    messages of all servers, in order.
    """
    sources = list(sources)
    if not sources:
        return Status.from_message(StatusCode.INACTIVE, Message.EMPTY)

    code = StatusCode.INACTIVE
    messages: list[str] = []
    for source in sources:
        status = source.get_status()
        if status.code > code:
            code = status.code
        if status.message:
            messages.append(status.message)
    return Status(code=code, message=", ".join(messages))

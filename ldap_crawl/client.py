#  Copyright (c) 2024. The ldap_crawl Authors. See the AUTHORS file.
#  This file is part of the ldap_crawl project and licensed under the terms of
#  the Apache License, Version 2.0. See the LICENSE file for details
"""
ldap_crawl.client
~~~~~~~~~~~~~~~~~
Paged searches against a single directory server.
"""
from __future__ import annotations

import dataclasses
import enum
import functools
import logging
import typing as t
from collections.abc import Mapping

import ldap3
from ldap3.core.exceptions import (
    LDAPBindError,
    LDAPCommunicationError,
    LDAPException,
    LDAPInvalidCredentialsResult,
)
from ldap3.protocol.rfc2696 import paged_search_control

from .concepts.entity import DirectoryEntity, canonical_attribute_name
from .concepts.status import Message, Status, StatusCode
from .concepts.types import DN, PAGED_RESULTS_OID
from .config import DEFAULT_READ_TIMEOUT_SECS, ENV_PREFIX, ServerConfig
from .coverage import PSEUDO_ATTRIBUTES, AttributeCoverage, CoverageTracker
from .exc import (
    AmbiguousEntityError,
    AuthenticationError,
    EntityIntegrityError,
    TransientConnectionError,
)
from .ldap import establish_and_return_ldap_connection

logger = logging.getLogger("ldap_crawl.client")

PAGE_SIZE = 1000
#: ldap3 reports socket timeouts as e.g. "error receiving data: timed out"
READ_TIMEOUT_MARKER = "timed out"


class ConnectionState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    #: a communication fault has been detected, reconnecting
    DEGRADED = "degraded"
    #: the server refused our credentials
    FATAL = "fatal"


@dataclasses.dataclass
class ConnectionHealth:
    state: ConnectionState = ConnectionState.DISCONNECTED
    #: set after the first full scan returned, even if it found nothing
    full_scan_completed: bool = False


@dataclasses.dataclass
class SearchSession:
    """The state of one (possibly multi-page) search."""

    base_dn: str
    search_filter: str
    attributes: list[str]
    page_size: int = PAGE_SIZE
    cookie: bytes | None = None
    controls: list[t.Any] | None = None
    pages: int = 0

    @property
    def requested_attributes(self) -> list[str] | str:
        """The attributes to ask the server for.

        ``dn`` is not an attribute the server knows about, so it is left out.
        """
        names = [a for a in self.attributes if canonical_attribute_name(a) not in PSEUDO_ATTRIBUTES]
        return names or ldap3.NO_ATTRIBUTES

    def install_paging(self, cookie: bytes | None = None, critical: bool = False) -> bool:
        """Request the next page with a paged results control.

        :returns: whether the control could be installed.  If not, no
            control is sent at all.
        """
        try:
            self.controls = [paged_search_control(critical, self.page_size, cookie)]
        except (LDAPException, TypeError, ValueError):
            logger.warning("Couldn't initialize LDAP paging control.", exc_info=True)
            self.controls = None
            return False
        self.cookie = cookie
        return True


def _paging_cookie(result: t.Any) -> bytes | None:
    try:
        return result["controls"][PAGED_RESULTS_OID]["value"]["cookie"]
    except (KeyError, TypeError):
        return None


def _is_read_timeout(exc: BaseException) -> bool:
    return READ_TIMEOUT_MARKER in str(exc).lower()


def _is_search_reference(response: t.Any) -> bool:
    return isinstance(response, Mapping) and response.get("type") == "searchResRef"


def _discard(connection: ldap3.Connection) -> None:
    try:
        connection.unbind()
    except (LDAPException, OSError):
        logger.debug("Ignoring error while closing a stale connection", exc_info=True)


class PagedSearchClient:
    """Client talking to one directory server.

    The client owns its connection exclusively: don't run two searches
    on the same client concurrently.  Clients of different servers share
    no state.

    :param config: the server to talk to
    :param read_timeout_secs: passed on to the connection
    :param connection_factory: returns a new bound connection.  Defaults
        to :func:`ldap_crawl.ldap.establish_and_return_ldap_connection`.
    """

    def __init__(
        self,
        config: ServerConfig,
        read_timeout_secs: int = DEFAULT_READ_TIMEOUT_SECS,
        connection_factory: t.Callable[[], ldap3.Connection] | None = None,
    ) -> None:
        self.config = config
        self._connection_factory = connection_factory or functools.partial(
            establish_and_return_ldap_connection, config, read_timeout_secs
        )
        self._connection: ldap3.Connection | None = None
        self.health = ConnectionHealth()
        self.coverage = AttributeCoverage()

    @property
    def host_name(self) -> str:
        return self.config.host

    @property
    def nick_name(self) -> str:
        return self.config.name

    @property
    def display_template(self) -> str:
        return self.config.display_template

    @property
    def connection(self) -> ldap3.Connection:
        if self._connection is None:
            return self.connect()
        return self._connection

    def _cannot_connect_message(self) -> str:
        return (
            f'Cannot connect to server "{self.host_name}" as user "{self.config.bind_dn}" '
            "with the specified password.  Please make sure they are specified correctly.  "
            "If the LDAP server is currently down, please try again later."
        )

    def connect(self) -> ldap3.Connection:
        """Open a new connection, replacing the current one.

        :raises AuthenticationError: if the credentials are rejected
        :raises TransientConnectionError: if the server can't be reached
        """
        try:
            connection = self._connection_factory()
        except (LDAPBindError, LDAPInvalidCredentialsResult) as e:
            self.health.state = ConnectionState.FATAL
            raise AuthenticationError(self._cannot_connect_message()) from e
        except LDAPException as e:
            self.health.state = ConnectionState.DISCONNECTED
            raise TransientConnectionError(self._cannot_connect_message()) from e
        self._connection = connection
        self.health.state = ConnectionState.CONNECTED
        return connection

    def reconnect(self) -> ldap3.Connection:
        stale, self._connection = self._connection, None
        if stale is not None:
            _discard(stale)
        return self.connect()

    def close(self) -> None:
        if self._connection is not None:
            _discard(self._connection)
            self._connection = None
        self.health.state = ConnectionState.DISCONNECTED

    def _probe(self) -> None:
        # reading the root DSE is about the cheapest request there is
        self.connection.search(
            search_base="",
            search_filter="(objectClass=*)",
            search_scope=ldap3.BASE,
            attributes=ldap3.NO_ATTRIBUTES,
        )

    def ensure_connection_is_current(self) -> None:
        """Make sure the connection is alive, reconnecting once if it is not.

        :raises AuthenticationError: if reconnecting fails due to the credentials
        :raises TransientConnectionError: if reconnecting fails otherwise
        :raises LDAPException: if the server doesn't answer properly
        """
        try:
            self._probe()
        except LDAPException as e:
            if _is_read_timeout(e):
                logger.warning("Read timeout insufficient for %s", self.host_name,
                               exc_info=True)
                logger.warning("Consider increasing the value of "
                               "%sREAD_TIMEOUT_SECS.", ENV_PREFIX)
                raise
            if not isinstance(e, LDAPCommunicationError):
                raise
            logger.debug("Reconnecting to %s after detecting issue", self.host_name,
                         exc_info=True)
            self.health.state = ConnectionState.DEGRADED
            self.reconnect()
            self._probe()

    def initialize(self) -> None:
        """Connect and check the connection.

        :raises AuthenticationError: on bad credentials, which should abort startup
        :raises TransientConnectionError: if the server isn't usable right now
        """
        try:
            self.ensure_connection_is_current()
        except LDAPException as e:
            raise TransientConnectionError(
                f"Could not initialize the connection to {self.host_name}"
            ) from e
        logger.info("Successfully created an LDAP connection to %s.", self.host_name)

    def search(
        self,
        base_dn: str,
        search_filter: str,
        attributes: t.Sequence[str],
        validate: bool = False,
    ) -> list[DirectoryEntity]:
        """Search the subtree of `base_dn`, page by page.

        Directory errors end the search early: the entities found up to
        then are returned.  Entries which can't be turned into an entity
        are skipped.

        :param validate: Record which of `attributes` have been found on
            any entry, and which attributes the display template uses
            without them being fetched, in :attr:`coverage`.
        """
        results: list[DirectoryEntity] = []
        session = SearchSession(base_dn, search_filter, list(attributes))
        tracker = CoverageTracker(session.attributes) if validate else None
        if not session.install_paging():
            logger.warning("Will continue without paging - this can cause issues "
                           "if there are too many entries being retrieved.")
        try:
            self.ensure_connection_is_current()
            while True:
                self._fetch_page(session, results, tracker)
                cookie = _paging_cookie(self.connection.result)
                if not cookie:
                    break
                if not session.install_paging(cookie, critical=True):
                    logger.warning("Stopping the search of %s after %d pages",
                                   base_dn, session.pages)
                    break
        except LDAPException:
            logger.warning("Search of %s on %s stopped early", base_dn, self.host_name,
                           exc_info=True)

        logger.debug("Search of %s returned %d entities in %d pages",
                     base_dn, len(results), session.pages)
        if tracker is not None:
            self.coverage = tracker.result(self.display_template)
        return results

    def _fetch_page(
        self,
        session: SearchSession,
        results: list[DirectoryEntity],
        tracker: CoverageTracker | None,
    ) -> None:
        connection = self.connection
        session.pages += 1
        success = connection.search(
            search_base=session.base_dn,
            search_filter=session.search_filter,
            search_scope=ldap3.SUBTREE,
            attributes=session.requested_attributes,
            controls=session.controls,
        )
        if not success and connection.result and connection.result.get("result"):
            logger.warning("LDAP search not successful.  Result: %s", connection.result)

        for response in connection.response or ():
            if _is_search_reference(response):
                continue
            try:
                entity = DirectoryEntity.from_ldap_record(response)
            except ValueError:
                # e.g. an entry missing its dn.  Ignore it to keep the
                # rest of the scan going.
                logger.warning("Error processing search result %s", response, exc_info=True)
                continue
            results.append(entity)
            if tracker is not None:
                tracker.observe(entity)

    def scan_all(self) -> list[DirectoryEntity]:
        """Fetch every entry matching the user filter, validating the attributes.

        Until the scan returns, :meth:`get_status` reports the validation
        as in progress.  :attr:`coverage` is replaced once the search is done.
        """
        self.health.full_scan_completed = False
        results = self.search(
            self.config.base_dn,
            self.config.user_filter,
            self.config.attribute_list,
            validate=True,
        )
        self.health.full_scan_completed = True
        return results

    def fetch_one(self, dn: DN) -> DirectoryEntity | None:
        """Fetch the entry at `dn`.

        :returns: the entity, or ``None`` if there is none
        :raises AmbiguousEntityError: if the search returns more than one entry
        """
        logger.debug("Fetching %s from %s", dn, self.nick_name)
        results = self.search(dn, self.config.user_filter, self.config.attribute_list)
        if not results:
            return None
        if len(results) > 1:
            raise AmbiguousEntityError(
                f"More than one entity found at {dn} : {len(results)} results."
            )
        entity = results[0]
        if entity is None:
            raise EntityIntegrityError(f"non-entity found at {dn}: {entity!r}")
        return entity

    def get_status(self) -> Status:
        nick = self.nick_name
        if not self.health.full_scan_completed:
            return Status.from_message(StatusCode.UNAVAILABLE, Message.IN_PROGRESS, nick)
        if (template_only := self.coverage.template_only_report) is not None:
            return Status.from_message(StatusCode.ERROR, Message.USED_NOT_FETCHED,
                                       nick, template_only)
        if (missing := self.coverage.missing_report) is not None:
            return Status.from_message(StatusCode.WARNING, Message.NOT_ALL_FOUND,
                                       nick, missing)
        return Status.from_message(StatusCode.NORMAL, Message.ALL_FOUND, nick)

    def __str__(self) -> str:
        return f"[{self.host_name}] "

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.nick_name}@{self.host_name}:{self.config.port}>"

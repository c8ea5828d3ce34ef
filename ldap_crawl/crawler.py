#  Copyright (c) 2024. The ldap_crawl Authors. See the AUTHORS file.
#  This file is part of the ldap_crawl project and licensed under the terms of
#  the Apache License, Version 2.0. See the LICENSE file for details
"""
ldap_crawl.crawler
~~~~~~~~~~~~~~~~~~
Drives the search clients of all configured servers.  The crawler has no
loop of its own: the hosting framework decides when to list or fetch.
"""
from __future__ import annotations

import typing as t

from ldap3.core.exceptions import LDAPException

from . import logger
from .client import PagedSearchClient
from .concepts.doc_id import make_doc_id, parse_doc_id
from .concepts.status import Message, Status, aggregate_status
from .config import CrawlConfig, ServerConfig
from .exc import DocumentFetchError, ScanFailedError, TransientConnectionError
from .host import DocIdPusher, Response

CHARSET = "utf-8"
CONTENT_TYPE = "text/html; charset=UTF-8"

ClientFactory = t.Callable[[ServerConfig, int], PagedSearchClient]


class AttributeValidationStatusSource:
    """Summarizes the attribute validation of all servers."""

    def __init__(self, clients: t.Sequence[PagedSearchClient]) -> None:
        self.clients = clients

    @property
    def name(self) -> str:
        return Message.ATTRIBUTE_VALIDATION.format()

    def retrieve_status(self) -> Status:
        return aggregate_status(self.clients)


class LdapCrawler:
    """Lists and fetches the entries of several directory servers.

    :param client_factory: creates the client for one server, given its
        config and the read timeout
    """

    def __init__(self, client_factory: ClientFactory = PagedSearchClient) -> None:
        self.client_factory = client_factory
        self.clients: list[PagedSearchClient] = []
        self.status_source = AttributeValidationStatusSource(self.clients)

    def init(self, config: CrawlConfig) -> None:
        """Connect to every configured server.

        :raises AuthenticationError: if a server rejects the credentials
        :raises TransientConnectionError: if a server can't be reached
        """
        # in case init gets called again
        self.clients.clear()
        for server_config in config.servers:
            client = self.client_factory(server_config, config.read_timeout_secs)
            client.initialize()
            self.clients.append(client)
            logger.info("LDAP server config: %s", server_config.for_logging())

    def get_doc_ids(self, pusher: DocIdPusher) -> None:
        """Push the document ids of all entries of all servers.

        A failing server does not keep the others from being crawled.

        :raises ScanFailedError: after all servers have been tried, if
            any of them failed
        :raises AuthenticationError: immediately, since there's no point
            in going on with bad credentials
        """
        bad_hosts: list[str] = []
        last_exception: Exception | None = None
        for server_number, client in enumerate(self.clients):
            try:
                client.ensure_connection_is_current()
                entities = client.scan_all()
            except (LDAPException, TransientConnectionError) as e:
                bad_hosts.append(client.host_name)
                last_exception = e
                logger.warning("Could not get entities from %s", client.host_name,
                               exc_info=True)
                continue
            logger.debug("received %d entities from server", len(entities))
            doc_ids = [make_doc_id(server_number, entity.dn) for entity in entities]
            logger.debug("About to push %d docIds for host %s", len(doc_ids),
                         client.host_name)
            pusher.push_doc_ids(doc_ids)
            logger.debug("Done with push of %d docIds for host %s", len(doc_ids),
                         client.host_name)

        if last_exception is not None:
            raise ScanFailedError(
                "Could not get entities from the following server(s): "
                + ",".join(bad_hosts)
            ) from last_exception

    def get_doc_content(self, doc_id: str, response: Response) -> None:
        """Render the entry identified by `doc_id` into `response`.

        :raises InvalidDocIdError: if `doc_id` is not one of ours
        :raises DocumentFetchError: if the server can't be reached
        """
        parsed = parse_doc_id(doc_id, len(self.clients))
        if doc_id != make_doc_id(parsed.server_number, parsed.dn):
            # e.g. leading zeros in the server number
            logger.warning("%s is not a valid id generated by this crawler.", doc_id)
            response.respond_not_found()
            return

        client = self.clients[parsed.server_number]
        try:
            entity = client.fetch_one(parsed.dn)
        except (LDAPException, TransientConnectionError) as e:
            raise DocumentFetchError(f"Could not fetch {doc_id}") from e
        if entity is None:
            logger.debug("No results found for DN %s", parsed.dn)
            response.respond_not_found()
            return

        for key, value in entity.as_metadata().items():
            response.add_metadata(key, value)
        response.set_content_type(CONTENT_TYPE)
        response.write(entity.render_document(client.display_template).encode(CHARSET))

    def close(self) -> None:
        for client in self.clients:
            client.close()

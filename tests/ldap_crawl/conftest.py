#  Copyright (c) 2024. The ldap_crawl Authors. See the AUTHORS file.
#  This file is part of the ldap_crawl project and licensed under the terms of
#  the Apache License, Version 2.0. See the LICENSE file for details
import logging
import typing as t

import ldap3
import pytest

from ldap_crawl.client import PagedSearchClient
from ldap_crawl.config import ServerConfig, parse_server_config
from ldap_crawl.ldap import fake_connection
from tests.ldap_crawl import FakeConnection


@pytest.fixture(scope="session", autouse=True)
def muted_ldap_logger():
    logging.getLogger("ldap_crawl").addHandler(logging.NullHandler())


@pytest.fixture(scope="session")
def raw_server_config() -> dict[str, str]:
    return {
        "host": "localhost",
        "bind_dn": "cn=admin,dc=example,dc=com",
        "bind_pw": "password",
        "base_dn": "ou=basedn",
        "user_filter": "(objectClass=person)",
        "attributes": "cn,dn",
        "display_template": "dn={dn}, cn={cn}",
    }


@pytest.fixture(scope="session")
def server_config(raw_server_config) -> ServerConfig:
    return parse_server_config("nickname", raw_server_config)


@pytest.fixture
def make_client(server_config) -> t.Callable[..., PagedSearchClient]:
    """Create a client which talks to the given fake connections, in order."""

    def make_client(*connections: t.Any, config: ServerConfig = server_config,
                    **overrides: str) -> PagedSearchClient:
        if overrides:
            config = config._replace(**overrides)
        remaining = list(connections) or [FakeConnection()]

        def connection_factory():
            next_connection = remaining.pop(0)
            if isinstance(next_connection, BaseException):
                raise next_connection
            return next_connection

        return PagedSearchClient(config, connection_factory=connection_factory)

    return make_client


def _add_users(connection: ldap3.Connection) -> None:
    connection.strategy.add_entry("ou=users,dc=example,dc=com", {
        "objectClass": "organizationalUnit",
        "ou": "users",
    })
    connection.strategy.add_entry("cn=user,ou=users,dc=example,dc=com", {
        "objectClass": "person",
        "cn": "user",
        "sn": "User",
        "givenName": "Test",
    })
    connection.strategy.add_entry("cn=other,ou=users,dc=example,dc=com", {
        "objectClass": "person",
        "cn": "other",
        "sn": "Other",
    })


@pytest.fixture(scope="class")
def mock_connection() -> ldap3.Connection:
    connection = fake_connection()
    _add_users(connection)
    yield connection
    connection.strategy.close()


@pytest.fixture(scope="class")
def schema_connection() -> ldap3.Connection:
    """Like `mock_connection`, but the server knows the OpenLDAP schema."""
    connection = fake_connection(get_info=ldap3.OFFLINE_SLAPD_2_4)
    _add_users(connection)
    yield connection
    connection.strategy.close()

#  Copyright (c) 2024. The ldap_crawl Authors. See the AUTHORS file.
#  This file is part of the ldap_crawl project and licensed under the terms of
#  the Apache License, Version 2.0. See the LICENSE file for details
"""
ldap_crawl.ldap
~~~~~~~~~~~~~~~
"""
import ssl
import typing

import ldap3

from .config import ServerConfig

#: Options shared by every connection we open
CONNECTION_OPTIONS: dict[str, typing.Any] = {
    # Requested attributes unknown to the server's schema must reach the
    # server, so that attribute validation can report them as missing.
    "check_names": False,
    # only report attributes an entry actually has
    "return_empty_attributes": False,
}


def establish_and_return_ldap_connection(
    config: ServerConfig, read_timeout_secs: int
) -> ldap3.Connection:
    """Open and bind a connection to the server described by `config`.

    :raises ldap3.core.exceptions.LDAPBindError: on bad credentials
    :raises ldap3.core.exceptions.LDAPSocketOpenError: if the server
        can't be reached
    """
    tls = None
    if config.ca_certs_file or config.ca_certs_data:
        tls = ldap3.Tls(
            ca_certs_file=config.ca_certs_file,
            ca_certs_data=config.ca_certs_data,
            validate=ssl.CERT_REQUIRED,
        )
    server = ldap3.Server(
        host=config.host,
        port=config.port,
        use_ssl=config.use_ssl,
        tls=tls,
        connect_timeout=read_timeout_secs,
    )
    return ldap3.Connection(
        server,
        user=config.bind_dn,
        password=config.bind_pw,
        auto_bind=True,
        receive_timeout=read_timeout_secs,
        **CONNECTION_OPTIONS,
    )


def fake_connection(get_info: typing.Any = ldap3.NONE) -> ldap3.Connection:
    """A ``MOCK_SYNC`` connection, optionally with a schema like
    ``ldap3.OFFLINE_SLAPD_2_4``."""
    server = ldap3.Server("mocked", get_info=get_info)
    connection = ldap3.Connection(server, client_strategy=ldap3.MOCK_SYNC,
                                  **CONNECTION_OPTIONS)
    connection.open()
    return connection

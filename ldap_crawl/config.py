#  Copyright (c) 2024. The ldap_crawl Authors. See the AUTHORS file.
#  This file is part of the ldap_crawl project and licensed under the terms of
#  the Apache License, Version 2.0. See the LICENSE file for details
"""
ldap_crawl.config
~~~~~~~~~~~~~~~~~
"""
from __future__ import annotations

import os
import typing
from typing import NamedTuple

from . import logger
from .concepts import types
from .exc import InvalidConfigurationError
from .template import default_template, validate_display_template

ENV_PREFIX = "LDAP_CRAWL_"
DEFAULT_READ_TIMEOUT_SECS = 90
# the largest timeout whose value in milliseconds still fits a signed 32 bit int
MAX_READ_TIMEOUT_SECS = (2**31 - 1) // 1000

CONNECTION_METHODS: dict[str, tuple[bool, int]] = {
    # method: (use_ssl, default port)
    "standard": (False, 389),
    "ssl": (True, 636),
}


class SensitiveValueDecoder(typing.Protocol):
    def decode_value(self, value: str) -> str:
        ...


class PlainTextDecoder:
    """Use configured passwords as they are."""

    def decode_value(self, value: str) -> str:
        return value


class ServerConfig(NamedTuple):
    name: str
    host: str
    port: int
    use_ssl: bool
    bind_dn: types.DN
    bind_pw: str
    base_dn: types.DN
    user_filter: str
    #: comma-separated, as configured
    attributes: str
    display_template: str
    ca_certs_file: str | None = None
    ca_certs_data: str | None = None

    @property
    def attribute_list(self) -> list[str]:
        return [a.strip() for a in self.attributes.split(",")]

    def for_logging(self) -> dict[str, typing.Any]:
        return self._asdict() | {"bind_pw": "XXXXXX"}


class CrawlConfig(NamedTuple):
    read_timeout_secs: int
    servers: list[ServerConfig]


def parse_read_timeout(value: str | None) -> int:
    """Parse the read timeout in seconds.  Empty or zero means the default."""
    if value is None or value.strip() in ("", "0"):
        logger.info("read timeout set to default of %s sec.", DEFAULT_READ_TIMEOUT_SECS)
        return DEFAULT_READ_TIMEOUT_SECS
    try:
        seconds = int(value)
    except ValueError:
        raise InvalidConfigurationError(
            f"invalid (non-numeric) value for read timeout: {value}"
        ) from None
    if seconds < 0:
        raise InvalidConfigurationError(f"invalid (too small) value for read timeout: {value}")
    if seconds > MAX_READ_TIMEOUT_SECS:
        logger.warning("invalid (too big) value for read timeout, "
                       "it has been set to the maximum value.")
        return MAX_READ_TIMEOUT_SECS
    return seconds


def parse_server_config(
    name: str,
    raw: typing.Mapping[str, str | None],
    decoder: SensitiveValueDecoder | None = None,
) -> ServerConfig:
    """Validate the settings of a single server.

    :param name: the nickname of the server
    :param raw: the settings, keyed by the lowercase names of
        :class:`ServerConfig` fields, with ``connection_method`` instead
        of ``use_ssl``
    :param decoder: used to decode the bind password
    """
    decoder = decoder or PlainTextDecoder()

    host = raw.get("host")
    if not host:
        raise InvalidConfigurationError(f"host not specified for server {name}")

    method = (raw.get("connection_method") or "standard").lower()
    if method not in CONNECTION_METHODS:
        raise InvalidConfigurationError(
            f"invalid connectionMethod: {method} specified for host {host}"
        )
    use_ssl, port = CONNECTION_METHODS[method]
    if port_str := raw.get("port"):
        try:
            port = int(port_str)
        except ValueError:
            raise InvalidConfigurationError(
                f"invalid port: {port_str} specified for host {host}"
            ) from None

    def _get_or_fail(key: str) -> str:
        if not (value := raw.get(key)):
            raise InvalidConfigurationError(f"{key} not specified for host {host}")
        return value

    bind_dn = types.DN(_get_or_fail("bind_dn"))
    bind_pw = raw.get("bind_pw")
    if bind_pw:
        bind_pw = decoder.decode_value(bind_pw)
    if not bind_pw:
        raise InvalidConfigurationError(f"bind_pw not specified for host {host}")
    base_dn = types.DN(_get_or_fail("base_dn"))
    user_filter = _get_or_fail("user_filter")
    attributes = _get_or_fail("attributes")

    display_template = raw.get("display_template") or default_template(attributes)
    validate_display_template(display_template)

    return ServerConfig(
        name=name,
        host=host,
        port=port,
        use_ssl=use_ssl,
        bind_dn=bind_dn,
        bind_pw=bind_pw,
        base_dn=base_dn,
        user_filter=user_filter,
        attributes=attributes,
        display_template=display_template,
        ca_certs_file=raw.get("ca_certs_file"),
        ca_certs_data=raw.get("ca_certs_data"),
    )


SERVER_KEYS = (
    "host", "port", "connection_method", "bind_dn", "bind_pw", "base_dn",
    "user_filter", "attributes", "display_template", "ca_certs_file", "ca_certs_data",
)


def _from_environ(key: str, environ: typing.Mapping[str, str]) -> str | None:
    return environ.get(f"{ENV_PREFIX}{key.upper()}")


def get_config(
    environ: typing.Mapping[str, str] | None = None,
    decoder: SensitiveValueDecoder | None = None,
) -> CrawlConfig:
    """Fetch the config from the environment.

    The environment variables need to be of the format ``LDAP_CRAWL_$VAR``.
    ``LDAP_CRAWL_SERVERS`` holds a comma-separated list of server names,
    whose settings are read from ``LDAP_CRAWL_$NAME_$KEY``, e.g.
    ``LDAP_CRAWL_CORP_HOST``.
    """
    if environ is None:
        environ = os.environ
    server_names = [
        n.strip() for n in (_from_environ("servers", environ) or "").split(",") if n.strip()
    ]
    servers = [
        parse_server_config(
            name,
            {key: _from_environ(f"{name}_{key}", environ) for key in SERVER_KEYS},
            decoder,
        )
        for name in server_names
    ]
    return CrawlConfig(
        read_timeout_secs=parse_read_timeout(_from_environ("read_timeout_secs", environ)),
        servers=servers,
    )


def get_config_or_exit(**kwargs: typing.Any) -> CrawlConfig:
    """See :func:`get_config`"""
    try:
        return get_config(**kwargs)
    except InvalidConfigurationError as exc:
        logger.critical("%s, quitting", exc)
        exit(1)

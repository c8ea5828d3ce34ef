#  Copyright (c) 2024. The ldap_crawl Authors. See the AUTHORS file.
#  This file is part of the ldap_crawl project and licensed under the terms of
#  the Apache License, Version 2.0. See the LICENSE file for details
import typing
from typing import Union

AttributeValues = Union[
    str, bytes, int,
    typing.Collection[str], typing.Collection[bytes], typing.Collection[int],
    None
]
# Depending on the schema information ldap3 got from the server, values
# are either single values or lists of values.
Attributes = typing.Mapping[str, AttributeValues]

#: An LDAP Distinguished Name
DN = typing.NewType('DN', str)

#: The OID of the simple paged results control, see :rfc:`2696`
PAGED_RESULTS_OID = "1.2.840.113556.1.4.319"


# an ldap record, as represented by the `ldap3` response dict.
# see https://ldap3.readthedocs.io/en/latest/connection.html#responses
class LdapRecord(typing.TypedDict, total=False):
    type: str
    dn: DN
    attributes: Attributes
    raw_attributes: dict[str, list[bytes]]

"""
ldap_crawl.concepts.entity
~~~~~~~~~~~~~~~~~~~~~~~~~~
"""
#  Copyright (c) 2024. The ldap_crawl Authors. See the AUTHORS file.
#  This file is part of the ldap_crawl project and licensed under the terms of
#  the Apache License, Version 2.0. See the LICENSE file for details

from __future__ import annotations

import dataclasses
import logging
import typing
from collections.abc import Mapping

from ldap3.core.exceptions import LDAPException

from .. import template as tpl
from .types import Attributes, AttributeValues, DN, LdapRecord

logger = logging.getLogger("ldap_crawl.entity")


def canonical_attribute_name(name: str) -> str:
    """Directory attribute names are case-insensitive; compare them in this form."""
    return name.lower()


def _first_value(value: AttributeValues) -> typing.Any:
    """Reduce a possibly multi-valued attribute to its first value.

    An empty list counts as absent, an empty string is a value.
    """
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _to_text(value: typing.Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


@dataclasses.dataclass(frozen=True)
class DirectoryEntity:
    """A read-only view of one entry returned by a directory search.

    :param dn: The DN of the entry, as sent by the server
    :param attributes: The attributes of the entry.  Keys keep the
        case the server used, lookups ignore it.
    """

    dn: DN
    attributes: Attributes = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.dn:
            raise ValueError("An entity needs a non-empty dn")

    @classmethod
    def from_ldap_record(cls, record: LdapRecord | None) -> DirectoryEntity:
        """Construct an entity from an ``ldap3`` response entry.

        :raises ValueError: if `record` is absent or carries no dn
        """
        if record is None:
            raise ValueError("record can not be None")
        if not isinstance(record, Mapping):
            raise ValueError(f"record must be a mapping, not {type(record).__name__}")
        attributes = record.get("attributes")
        return cls(dn=record.get("dn"), attributes=attributes if attributes is not None else {})

    @property
    def common_name(self) -> str:
        """The value of the first RDN, e.g. ``user`` for ``cn=user,ou=Users``.

        Directory servers escape commas inside values, so the first
        unescaped comma ends the RDN.
        """
        dn = self.dn
        comma = dn.find(",")
        while comma > 0 and dn[comma - 1] == "\\":
            comma = dn.find(",", comma + 1)
        rdn = dn[:comma] if comma > 0 else dn
        rdn = rdn[rdn.find("=") + 1:]
        return rdn.replace("\\", "")

    def _lookup(self, name: str) -> AttributeValues:
        try:
            return self.attributes[name]
        except KeyError:
            pass
        wanted = canonical_attribute_name(name)
        for key in self.attributes:
            if canonical_attribute_name(key) == wanted:
                return self.attributes[key]
        return None

    def attribute_value(self, name: str) -> typing.Any:
        """The (first) value of attribute `name`, or ``None`` if not present."""
        try:
            return _first_value(self._lookup(name))
        except (LDAPException, LookupError):
            logger.warning("Could not retrieve attribute %s of %s", name, self.dn,
                           exc_info=True)
            return None

    def iter_attributes(self) -> typing.Iterator[tuple[str, typing.Any]]:
        """Lazily yield ``(name, first value)`` for every attribute present.

        A fault while enumerating ends the iteration; what has been
        yielded up to that point stays valid.
        """
        names = iter(self.attributes)
        while True:
            try:
                name = next(names)
                value = _first_value(self.attributes[name])
            except StopIteration:
                return
            except (LDAPException, LookupError, RuntimeError):
                logger.warning("Unexpected error while enumerating attributes of %s",
                               self.dn, exc_info=True)
                return
            yield name, value

    def observed_attribute_names(self) -> typing.Iterator[str]:
        """Names of the attributes actually carrying a value."""
        return (name for name, value in self.iter_attributes() if value is not None)

    def as_metadata(self) -> dict[str, str]:
        """All attributes as strings, absent values included (as ``"None"``)."""
        return {name: _to_text(value) for name, value in self.iter_attributes()}

    def render_document(self, template: str) -> str:
        """Substitute the attributes into `template` and HTML-escape the result.

        Unknown or empty attributes are substituted by nothing.  After
        escaping, ``<br>`` is the only markup left in the document.
        """
        parts = []
        for fragment in tpl.iter_fragments(template):
            if not isinstance(fragment, tpl.Placeholder):
                parts.append(fragment)
                continue
            value = self.attribute_value(fragment.attribute)
            if value is None:
                logger.debug("For DN %s, no value found for attribute %s",
                             self.dn, fragment.attribute)
            else:
                parts.append(_to_text(value))
        return tpl.escape_document("".join(parts))

    @staticmethod
    def default_template(attributes: str) -> str:
        """See :func:`ldap_crawl.template.default_template`"""
        return tpl.default_template(attributes)

    def __str__(self) -> str:
        fields = [("dn", self.dn), *self.iter_attributes()]
        return ",".join(f"{name} = {value}" for name, value in fields)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} dn={self.dn}>"

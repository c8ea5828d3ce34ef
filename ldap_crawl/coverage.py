#  Copyright (c) 2024. The ldap_crawl Authors. See the AUTHORS file.
#  This file is part of the ldap_crawl project and licensed under the terms of
#  the Apache License, Version 2.0. See the LICENSE file for details
"""
ldap_crawl.coverage
~~~~~~~~~~~~~~~~~~~
Validation of the configured attribute list against what a full scan
actually returned, and against what the display template uses.
"""
from __future__ import annotations

import dataclasses
import typing

from .concepts.entity import DirectoryEntity, canonical_attribute_name
from .template import referenced_attributes

#: ``dn`` may be listed as an attribute, but the server never returns it as one
PSEUDO_ATTRIBUTES = frozenset({"dn", ""})


@dataclasses.dataclass(frozen=True)
class AttributeCoverage:
    #: requested attributes (canonicalized) not present on any entry
    missing_attributes: frozenset[str] = frozenset()
    #: attributes used by the display template but never requested
    template_only_attributes: tuple[str, ...] = ()

    @property
    def missing_report(self) -> str | None:
        if not self.missing_attributes:
            return None
        return ", ".join(sorted(self.missing_attributes))

    @property
    def template_only_report(self) -> str | None:
        if not self.template_only_attributes:
            return None
        return ", ".join(self.template_only_attributes)


class CoverageTracker:
    """Bookkeeping for one validated search.

    :param attributes: the attribute names requested from the server
    """

    def __init__(self, attributes: typing.Iterable[str]) -> None:
        self.fetched: set[str] = set()
        self.not_yet_seen: set[str] = set()
        for attribute in attributes:
            name = canonical_attribute_name(attribute)
            self.fetched.add(name)
            if name not in PSEUDO_ATTRIBUTES:
                self.not_yet_seen.add(name)

    def observe(self, entity: DirectoryEntity) -> None:
        if not self.not_yet_seen:
            return
        self.not_yet_seen.difference_update(
            canonical_attribute_name(name) for name in entity.observed_attribute_names()
        )

    def result(self, display_template: str) -> AttributeCoverage:
        template_only = tuple(
            name for name in referenced_attributes(display_template)
            if canonical_attribute_name(name) not in self.fetched
        )
        return AttributeCoverage(
            missing_attributes=frozenset(self.not_yet_seen),
            template_only_attributes=template_only,
        )

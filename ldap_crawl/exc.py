#  Copyright (c) 2024. The ldap_crawl Authors. See the AUTHORS file.
#  This file is part of the ldap_crawl project and licensed under the terms of
#  the Apache License, Version 2.0. See the LICENSE file for details
"""
ldap_crawl.exc
~~~~~~~~~~~~~~
"""


class CrawlError(Exception):
    pass


class InvalidConfigurationError(ValueError, CrawlError):
    """A required setting is missing or malformed.  Never retried."""


class CrawlConnectionError(CrawlError):
    pass


class AuthenticationError(CrawlConnectionError):
    """The directory refused our bind credentials.

    Retrying won't help, so callers should abort instead.
    """


class TransientConnectionError(CrawlConnectionError):
    """The directory could not be reached, even after reconnecting once."""


class EntityIntegrityError(RuntimeError, CrawlError):
    pass


class AmbiguousEntityError(EntityIntegrityError):
    pass


class InvalidDocIdError(ValueError, CrawlError):
    pass


class ScanFailedError(OSError, CrawlError):
    pass


class DocumentFetchError(OSError, CrawlError):
    pass

#  Copyright (c) 2024. The ldap_crawl Authors. See the AUTHORS file.
#  This file is part of the ldap_crawl project and licensed under the terms of
#  the Apache License, Version 2.0. See the LICENSE file for details
"""
This package provides a crawler turning the entries of an LDAP directory
into documents for a search index.  For more information on how to
execute it standalone, run ``python -m ldap_crawl --help``.

The process is separated into the following steps:

1. Connect to every configured directory server (:mod:`ldap_crawl.client`)
2. Run a paged full scan of each server, validating the configured
   attributes along the way (:meth:`ldap_crawl.client.PagedSearchClient.scan_all`)
3. Push one document id per entry (:mod:`ldap_crawl.crawler`)
4. On request, render a single entry through its display template
   (:mod:`ldap_crawl.concepts.entity`)
"""
import logging

logger = logging.getLogger('ldap_crawl')

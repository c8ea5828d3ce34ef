#  Copyright (c) 2024. The ldap_crawl Authors. See the AUTHORS file.
#  This file is part of the ldap_crawl project and licensed under the terms of
#  the Apache License, Version 2.0. See the LICENSE file for details
"""
ldap_crawl.concepts
~~~~~~~~~~~~~~~~~~~
Entities, statuses and document ids: the values passed between the
search client and the crawler.
"""

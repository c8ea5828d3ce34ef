import typing as t

import ldap3

from ldap_crawl.concepts.types import DN, PAGED_RESULTS_OID, LdapRecord


def entry(dn: str, **attributes) -> LdapRecord:
    """A search result entry as found in ``ldap3.Connection.response``"""
    return {
        "type": "searchResEntry",
        "dn": DN(dn),
        "attributes": attributes,
        "raw_attributes": {},
    }


class FakeConnection:
    """Stands in for an ``ldap3.Connection``, serving scripted pages.

    :param pages: one item per search call, either an exception to raise
        or a tuple ``(entries, cookie)``.  ``cookie=None`` means the
        response carries no paging control at all.
    :param probe_errors: exceptions to raise on the next root DSE reads
    """

    def __init__(
        self,
        pages: t.Iterable[t.Any] = (),
        probe_errors: t.Iterable[BaseException] = (),
    ) -> None:
        self.pages = list(pages)
        self.probe_errors = list(probe_errors)
        self.searches: list[dict] = []
        self.probes = 0
        self.response: list = []
        self.result: dict = {}
        self.unbound = False

    def search(self, search_base, search_filter, search_scope=ldap3.SUBTREE,
               attributes=None, controls=None, **kwargs):
        if search_base == "" and search_scope == ldap3.BASE:
            self.probes += 1
            if self.probe_errors:
                raise self.probe_errors.pop(0)
            self.response = []
            self.result = {"result": 0, "description": "success"}
            return True

        self.searches.append({
            "search_base": search_base,
            "search_filter": search_filter,
            "attributes": attributes,
            "controls": controls,
        })
        page = self.pages.pop(0) if self.pages else ([], None)
        if isinstance(page, BaseException):
            raise page
        entries, cookie = page
        self.response = list(entries)
        self.result = {"result": 0, "description": "success", "type": "searchResDone"}
        if cookie is not None:
            self.result["controls"] = {
                PAGED_RESULTS_OID: {
                    "description": "Simple Paged Results",
                    "criticality": False,
                    "value": {"size": 0, "cookie": cookie},
                }
            }
        return bool(entries)

    def unbind(self):
        self.unbound = True
        return True


class RecordingPusher:
    def __init__(self) -> None:
        self.pushed: list[list[str]] = []

    @property
    def doc_ids(self) -> list[str]:
        return [doc_id for batch in self.pushed for doc_id in batch]

    def push_doc_ids(self, doc_ids: list[str]) -> None:
        self.pushed.append(list(doc_ids))


class RecordingResponse:
    def __init__(self) -> None:
        self.metadata: dict[str, str] = {}
        self.content_type: str | None = None
        self.content = b""
        self.not_found = False

    def add_metadata(self, key: str, value: str) -> None:
        self.metadata[key] = value

    def set_content_type(self, content_type: str) -> None:
        self.content_type = content_type

    def write(self, content: bytes) -> None:
        self.content += content

    def respond_not_found(self) -> None:
        self.not_found = True

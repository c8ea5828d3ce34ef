from collections.abc import Mapping

import pytest
from ldap3.core.exceptions import LDAPException

from ldap_crawl.concepts.entity import DirectoryEntity
from ldap_crawl.concepts.types import DN
from tests.ldap_crawl import entry


class FaultyAttributes(Mapping):
    """Attributes which blow up when accessing the key ``exception``."""

    def __init__(self, data):
        self._data = data

    def __getitem__(self, key):
        if key == "exception":
            raise LDAPException("testing")
        return self._data[key]

    def __iter__(self):
        return iter(self._data)

    def __len__(self):
        return len(self._data)


@pytest.fixture(scope="module")
def person() -> DirectoryEntity:
    return DirectoryEntity(
        dn=DN("cn=user,ou=Users,dc=example,dc=com"),
        attributes={"givenName": "Test", "sn": "User", "cn": "user"},
    )


class TestConstruction:
    def test_from_ldap_record(self):
        entity = DirectoryEntity.from_ldap_record(entry("cn=user", cn=["user"]))
        assert entity.dn == "cn=user"
        assert entity.attributes == {"cn": ["user"]}

    def test_missing_attributes_mean_no_attributes(self):
        entity = DirectoryEntity.from_ldap_record({"dn": "cn=user"})
        assert entity.attributes == {}

    @pytest.mark.parametrize("record", [
        None,
        "cn=user",
        {"attributes": {"cn": ["user"]}},
        {"dn": "", "attributes": {}},
    ])
    def test_invalid_record_raises(self, record):
        with pytest.raises(ValueError):
            DirectoryEntity.from_ldap_record(record)

    def test_entities_are_immutable(self, person):
        with pytest.raises(AttributeError):
            person.dn = DN("cn=other")


class TestCommonName:
    @pytest.mark.parametrize("dn, common_name", [
        ("cn=user,ou=Users,dc=example,dc=com", "user"),
        ("cn=name\\,with\\,commas,ou=Users,dc=example,dc=com", "name,with,commas"),
        ("dc=com", "com"),
        ("dc=com,", "com"),
        ("no equals sign", "no equals sign"),
    ])
    def test_common_name(self, dn, common_name):
        assert DirectoryEntity(dn=DN(dn)).common_name == common_name


class TestAttributeAccess:
    def test_lookup_ignores_case(self, person):
        assert person.attribute_value("GIVENNAME") == "Test"

    def test_unknown_attribute_is_none(self, person):
        assert person.attribute_value("mail") is None

    @pytest.mark.parametrize("value, expected", [
        (["a@example.com", "b@example.com"], "a@example.com"),
        ([], None),
        ("", ""),
        ("single", "single"),
    ])
    def test_first_value_is_used(self, value, expected):
        entity = DirectoryEntity(dn=DN("cn=x"), attributes={"mail": value})
        assert entity.attribute_value("mail") == expected

    def test_str(self, person):
        assert str(person) == \
            "dn = cn=user,ou=Users,dc=example,dc=com,givenName = Test,sn = User,cn = user"

    def test_metadata_renders_absent_values(self):
        entity = DirectoryEntity(dn=DN("cn=x"), attributes={"name": None, "cn": ["user"]})
        assert entity.as_metadata() == {"name": "None", "cn": "user"}

    def test_empty_string_is_a_value(self):
        entity = DirectoryEntity(dn=DN("cn=x"), attributes={"name": "", "photo": b""})
        assert entity.as_metadata() == {"name": "", "photo": ""}
        assert list(entity.observed_attribute_names()) == ["name", "photo"]
        assert entity.render_document("[{name}]") == "[]"

    def test_absent_values_are_not_observed(self):
        entity = DirectoryEntity(dn=DN("cn=x"), attributes={"name": [], "cn": ["user"]})
        assert list(entity.observed_attribute_names()) == ["cn"]


class TestEnumerationFault:
    @pytest.fixture(scope="class")
    def entity(self) -> DirectoryEntity:
        return DirectoryEntity(
            dn=DN("cn=user"),
            attributes=FaultyAttributes({"givenName": "Test", "exception": None, "sn": "User"}),
        )

    def test_iteration_stops_at_fault(self, entity):
        assert list(entity.iter_attributes()) == [("givenName", "Test")]

    def test_metadata_is_partial(self, entity):
        assert entity.as_metadata() == {"givenName": "Test"}

    def test_faulty_attribute_is_absent(self, entity):
        assert entity.attribute_value("exception") is None

    def test_rendering_substitutes_nothing(self, entity):
        assert entity.render_document("Name: {exception}") == "Name: "


class TestRendering:
    def test_placeholders_are_substituted(self, person):
        assert person.render_document("Name: {givenName} {sn}") == "Name: Test User"

    def test_unknown_attribute_renders_empty(self, person):
        assert person.render_document("Name: {name}") == "Name: "
        assert person.render_document("{missing}") == ""

    def test_template_without_placeholders(self, person):
        assert person.render_document("a<br>b") == "a<br>b"

    def test_template_is_escaped(self, person):
        assert person.render_document("<\"&'\x92>") == "&#60;\"&#38;'&#146;&#62;"

    def test_values_are_escaped(self):
        entity = DirectoryEntity(dn=DN("cn=x"), attributes={"cn": ["<b>Jürgen</b>"]})
        assert entity.render_document("{cn}") == "&#60;b&#62;J&#252;rgen&#60;/b&#62;"

    def test_bytes_values_are_decoded(self):
        entity = DirectoryEntity(dn=DN("cn=x"), attributes={"cn": [b"user"]})
        assert entity.render_document("{cn}") == "user"

    def test_default_template(self, person):
        template = DirectoryEntity.default_template("givenName,sn")
        assert person.render_document(template) == "givenName: Test<br>sn: User<br>"

    def test_unclosed_brace_raises(self, person):
        with pytest.raises(AssertionError, match="No close brace matches open at character 0"):
            person.render_document("{missing")

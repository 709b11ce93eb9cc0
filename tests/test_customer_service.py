import pytest

from docketdesk.core.errors import NotFoundError, ValidationError
from docketdesk.schemas.master import CustomerIn
from docketdesk.services import customer_service as cs


def test_codes_are_sequential(db):
    a = cs.create_customer(db, CustomerIn(name="Acme Travels", gstin=" 29abcde1234f1z5 "))
    b = cs.create_customer(db, CustomerIn(name="Blue Lagoon Pvt Ltd"))
    assert a.customer_code == "CUST-0001"
    assert b.customer_code == "CUST-0002"
    assert a.gstin == "29ABCDE1234F1Z5"


def test_search_by_name_or_code(db):
    cs.create_customer(db, CustomerIn(name="Acme Travels"))
    cs.create_customer(db, CustomerIn(name="Blue Lagoon Pvt Ltd"))
    assert [c.name for c in cs.search_customers(db, "acme")] == ["Acme Travels"]
    assert [c.name for c in cs.search_customers(db, "cust-0002")] == ["Blue Lagoon Pvt Ltd"]
    assert cs.search_customers(db, "  ") == []


def test_update_and_delete(db):
    c = cs.create_customer(db, CustomerIn(name="Acme Travels"))
    c = cs.update_customer(db, c.id, CustomerIn(name="Acme Holidays", address="Pune, Maharashtra"))
    assert c.name == "Acme Holidays"
    assert c.customer_code == "CUST-0001"
    with pytest.raises(ValidationError):
        cs.update_customer(db, c.id, CustomerIn(name=""))
    cs.delete_customer(db, c.id)
    with pytest.raises(NotFoundError):
        cs.get_customer(db, c.id)

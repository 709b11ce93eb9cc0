from decimal import Decimal

import pytest

from docketdesk.api.v1.routes.dockets import get_extractor
from docketdesk.main import app

from conftest import auth


class FakeExtractor:
    def __init__(self, result):
        self.result = result
        self.calls = []

    def extract(self, content, mime_type, schema, prompt):
        self.calls.append((content, mime_type))
        return self.result


@pytest.fixture()
def created(client, agent_user, sample_docket):
    r = client.post("/api/v1/dockets", json=sample_docket.to_json(), headers=auth(agent_user))
    assert r.status_code == 200, r.text
    return r.json()["docket"]


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_login_and_me(client, agent_user):
    r = client.post("/api/v1/auth/login", json={"email": "Agent@Example.com", "password": "password123"})
    assert r.status_code == 200
    tokens = r.json()
    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"}).json()
    assert me["email"] == "agent@example.com"

    assert client.post("/api/v1/auth/login", json={"email": "agent@example.com", "password": "nope"}).status_code == 401
    refreshed = client.post("/api/v1/auth/refresh", json={"refreshToken": tokens["refresh_token"]})
    assert refreshed.status_code == 200
    # an access token is not a refresh token
    assert client.post("/api/v1/auth/refresh", json={"refreshToken": tokens["access_token"]}).status_code == 401


def test_requires_auth(client):
    assert client.get("/api/v1/dockets").status_code == 401


def test_create_docket_returns_summary(client, created, agent_user):
    assert created["docketNo"]
    assert created["createdBy"] == agent_user.id
    r = client.get(f"/api/v1/dockets/{created['id']}/summary", headers=auth(agent_user))
    s = r.json()
    assert Decimal(s["grandTotalGross"]) == Decimal("30000")
    assert Decimal(s["balanceDue"]) == Decimal("10000")


def test_flight_pricing_commands(client, created, agent_user):
    base = f"/api/v1/dockets/{created['id']}/flights/FL-1"
    h = auth(agent_user)

    assert client.post(f"{base}/uniform-pricing/toggle", headers=h).status_code == 200
    r = client.put(f"{base}/common-cost", json={"field": "commonGrossBilled", "value": "11,000"}, headers=h)
    details = r.json()["docket"]["itinerary"]["flights"][0]["passengerDetails"]
    assert [Decimal(d["grossBilled"]) for d in details] == [Decimal("11000")] * 2
    assert Decimal(r.json()["summary"]["perCategory"]["flights"]["grossBilled"]) == Decimal("22000")

    # ignored while uniform pricing is on
    r = client.put(f"{base}/passengers/PAX-A/cost", json={"field": "grossBilled", "value": 1}, headers=h)
    assert Decimal(r.json()["docket"]["itinerary"]["flights"][0]["passengerDetails"][0]["grossBilled"]) == Decimal("11000")

    r = client.delete(f"{base}/passengers/PAX-B", headers=h)
    assert [d["passengerId"] for d in r.json()["docket"]["itinerary"]["flights"][0]["passengerDetails"]] == ["PAX-A"]
    r = client.post(f"{base}/passengers", json={"passengerIds": ["PAX-B", "PAX-UNKNOWN"]}, headers=h)
    details = r.json()["docket"]["itinerary"]["flights"][0]["passengerDetails"]
    assert [(d["passengerId"], Decimal(d["grossBilled"])) for d in details] == [
        ("PAX-A", Decimal("11000")), ("PAX-B", Decimal("11000"))]


def test_other_users_docket_is_read_only(client, created, other_user, admin):
    r = client.get(f"/api/v1/dockets/{created['id']}", headers=auth(other_user))
    assert r.json()["readOnly"] is True
    r = client.post(f"/api/v1/dockets/{created['id']}/comments", json={"text": "hi"}, headers=auth(other_user))
    assert r.status_code == 403
    r = client.post(f"/api/v1/dockets/{created['id']}/comments", json={"text": "hi"}, headers=auth(admin))
    assert r.status_code == 200


def test_error_mapping(client, created, agent_user):
    h = auth(agent_user)
    assert client.get("/api/v1/dockets/missing", headers=h).status_code == 404
    r = client.post(f"/api/v1/dockets/{created['id']}/comments", json={"text": "   "}, headers=h)
    assert r.status_code == 400
    r = client.patch(f"/api/v1/dockets/{created['id']}/itinerary/cruises/X", json={"name": "x"}, headers=h)
    assert r.status_code == 400


def test_payment_adds_log_comment(client, created, agent_user):
    r = client.post(f"/api/v1/dockets/{created['id']}/payments",
                    json={"amount": "10000", "date": "2026-10-19", "type": "Bank Transfer"}, headers=auth(agent_user))
    body = r.json()
    assert Decimal(body["summary"]["balanceDue"]) == 0
    assert body["docket"]["comments"][0]["text"].startswith("Auto-log: Payment of ₹10,000 recorded.")


def test_delete_requires_reason_and_is_logged(client, created, agent_user, admin):
    url = f"/api/v1/dockets/{created['id']}"
    assert client.request("DELETE", url, json={"reason": " "}, headers=auth(agent_user)).status_code == 400
    assert client.request("DELETE", url, json={"reason": "duplicate"}, headers=auth(agent_user)).status_code == 200
    assert client.get(url, headers=auth(agent_user)).status_code == 404

    log = client.get("/api/v1/dockets/deleted", headers=auth(admin)).json()
    assert [(e["docketId"], e["reason"], e["deletedBy"]) for e in log] == [(created["id"], "duplicate", agent_user.email)]
    assert client.get("/api/v1/dockets/deleted", headers=auth(agent_user)).status_code == 403


def test_invoice_draft_and_finalize(client, created, agent_user):
    h = auth(agent_user)
    r = client.post("/api/v1/invoices/draft",
                    json={"docketId": created["id"], "billToPassengerId": "PAX-A", "today": "2026-10-19"}, headers=h)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["nextInvoiceNumber"] == "INV-26-1001"
    draft = body["draft"]
    assert draft["billedTo"]["name"] == "Asha Verma"
    assert draft["placeOfSupply"] == "Karnataka"
    assert draft["gstType"] == "IGST"
    assert len(draft["lineItems"]) == 2

    draft["lineItems"][1]["isGstApplicable"] = True
    draft["lineItems"][1]["gstRate"] = 18
    r = client.post("/api/v1/invoices", json={"docketId": created["id"], "draft": draft, "today": "2026-10-19"}, headers=h)
    assert r.status_code == 200, r.text
    inv = r.json()
    assert inv["invoiceNumber"] == "INV-26-1001"
    assert Decimal(inv["gstAmount"]) == Decimal("900")
    assert Decimal(inv["grandTotal"]) == Decimal("30900")
    assert inv["dueDate"] == "2026-10-19"

    fetched = client.get(f"/api/v1/invoices/{inv['invoiceNumber']}", headers=h).json()
    assert [t["label"] for t in fetched["taxLines"]] == ["IGST"]
    docket = client.get(f"/api/v1/dockets/{created['id']}", headers=h).json()["docket"]
    assert [i["invoiceNumber"] for i in docket["invoices"]] == ["INV-26-1001"]

    pdf = client.get(f"/api/v1/invoices/{inv['id']}/pdf", headers=h)
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")

    again = client.post("/api/v1/invoices", json={"docketId": created["id"], "draft": draft, "today": "2026-10-20"}, headers=h)
    assert again.json()["invoiceNumber"] == "INV-26-1002"


def test_finalize_without_billed_to_is_rejected(client, created, agent_user):
    r = client.post("/api/v1/invoices", json={"docketId": created["id"], "today": "2026-10-19"}, headers=auth(agent_user))
    assert r.status_code == 400
    r = client.post("/api/v1/invoices/draft", json={"docketId": created["id"]}, headers=auth(agent_user))
    assert r.json()["nextInvoiceNumber"].endswith("-1001")


def test_extraction_warning_leaves_docket_unchanged(client, created, agent_user):
    app.dependency_overrides[get_extractor] = lambda: FakeExtractor({"passengers": []})
    r = client.post(f"/api/v1/dockets/{created['id']}/extract/flight-ticket",
                    files={"file": ("ticket.pdf", b"%PDF-1.4", "application/pdf")}, headers=auth(agent_user))
    assert r.status_code == 200
    assert "Could not detect flight details" in r.json()["warning"]
    assert len(r.json()["docket"]["itinerary"]["flights"]) == 1


def test_extraction_appends_hotel(client, created, agent_user):
    fake = FakeExtractor({"passengers": [{"fullName": "Asha Verma"}], "hotel": {"name": "Leela", "checkIn": "2026-12-03"}})
    app.dependency_overrides[get_extractor] = lambda: fake
    r = client.post(f"/api/v1/dockets/{created['id']}/extract/hotel-voucher",
                    files={"file": ("voucher.png", b"img", "image/png")}, headers=auth(agent_user))
    docket = r.json()["docket"]
    assert [h["name"] for h in docket["itinerary"]["hotels"]] == ["Taj Fort Aguada", "Leela"]
    assert docket["files"][0]["linkedItemType"] == "hotel"
    assert fake.calls == [(b"img", "image/png")]


def test_settings_admin_only(client, agent_user, admin):
    assert client.put("/api/v1/settings/company", json={"companyState": "Goa"}, headers=auth(agent_user)).status_code == 403
    r = client.put("/api/v1/settings/company", json={"companyState": "Goa"}, headers=auth(admin))
    assert r.json()["companyState"] == "Goa"
    assert client.get("/api/v1/settings/company", headers=auth(agent_user)).json()["companyState"] == "Goa"


def test_customers_and_billing_a_customer(client, created, agent_user):
    h = auth(agent_user)
    c = client.post("/api/v1/customers", json={"name": "Acme Travels", "address": "Panaji, Goa, 403001"}, headers=h).json()
    assert c["customerCode"] == "CUST-0001"
    assert [x["id"] for x in client.get("/api/v1/customers?q=acme", headers=h).json()] == [c["id"]]

    draft = client.post("/api/v1/invoices/draft", json={"docketId": created["id"], "billToCustomerId": c["id"]}, headers=h).json()["draft"]
    assert draft["customerId"] == c["id"]
    assert draft["placeOfSupply"] == "Goa"


def test_lead_convert_and_reports(client, agent_user, admin):
    h = auth(agent_user)
    lead = client.post("/api/v1/leads", json={"name": "Rohan Mehta", "phone": "+91 98111 22233"}, headers=h).json()
    r = client.post(f"/api/v1/leads/{lead['id']}/convert", headers=h)
    assert r.status_code == 200, r.text
    pipeline = client.get("/api/v1/leads/pipeline", headers=h).json()
    assert [l["name"] for l in pipeline["final"]] == ["Rohan Mehta"]

    assert client.get("/api/v1/reports/outstanding", headers=h).json() == []
    assert client.get("/api/v1/reports/invoices?quarter=7", headers=h).status_code == 400
    report = client.get("/api/v1/reports/invoices", headers=auth(admin)).json()
    assert report["totalInvoices"] == 0


def test_posted_draft_follows_company_state_change(client, created, agent_user, admin):
    h = auth(agent_user)
    draft = client.post("/api/v1/invoices/draft",
                        json={"docketId": created["id"], "placeOfSupply": "Delhi", "today": "2026-10-19"},
                        headers=h).json()["draft"]
    assert draft["gstType"] == "CGST/SGST"
    draft["billedTo"] = {"name": "Asha Verma"}

    client.put("/api/v1/settings/company", json={"companyState": "Karnataka"}, headers=auth(admin))
    r = client.post("/api/v1/invoices/draft", json={"docketId": created["id"], "draft": draft}, headers=h)
    assert r.json()["draft"]["gstType"] == "IGST"

    inv = client.post("/api/v1/invoices", json={"docketId": created["id"], "draft": draft, "today": "2026-10-19"},
                      headers=h).json()
    assert inv["placeOfSupply"] == "Delhi"
    assert inv["gstType"] == "IGST"


def test_invoice_export_and_pax_calendar(client, created, agent_user):
    h = auth(agent_user)
    draft = client.post("/api/v1/invoices/draft",
                        json={"docketId": created["id"], "billToPassengerId": "PAX-A", "today": "2026-10-19"},
                        headers=h).json()["draft"]
    client.post("/api/v1/invoices", json={"docketId": created["id"], "draft": draft, "today": "2026-10-19"}, headers=h)

    r = client.get("/api/v1/reports/invoices/export?year=2026", headers=h)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert "attachment" in r.headers["content-disposition"]
    assert "INV-26-1001" in r.text
    assert "Filters:,Year: 2026" in r.text

    cal = client.get("/api/v1/reports/pax-calendar?year=2026&month=12", headers=h).json()
    assert [e["docketId"] for e in cal["2026-12-01"]] == [created["id"]]
    assert client.get("/api/v1/reports/pax-calendar?year=2026&month=0", headers=h).status_code == 400

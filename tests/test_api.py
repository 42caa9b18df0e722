"""HTTP surface: auth flow, ledger scenario over the API, error mapping."""
import io
from decimal import Decimal

import openpyxl
from sqlalchemy.exc import OperationalError

from duesbook.services import customers as customer_service
from duesbook.services.export import XLSX_MEDIA_TYPE


def money(value) -> Decimal:
    return Decimal(str(value))


def add_customer(client, name="Lakshmi Devi", village="Rampur", contact=None):
    response = client.post(
        "/customers", json={"name": name, "village_name": village, "contact_number": contact}
    )
    assert response.status_code == 201, response.text
    return response.json()


def dues(client, customer_id) -> Decimal:
    return money(client.get(f"/customers/{customer_id}").json()["outstanding_dues"])


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_routes_require_a_session(client):
    response = client.get("/customers")
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_register_login_session_logout(client):
    response = client.post(
        "/auth/register", json={"email": "new@shop.in", "password": "long-enough", "name": "Meena"}
    )
    assert response.status_code == 201
    assert response.json()["email"] == "new@shop.in"

    assert client.post("/auth/register", json={"email": "new@shop.in", "password": "long-enough"}).status_code == 409

    assert client.get("/auth/session").json() == {"authenticated": False, "user": None, "expires_at": None}

    response = client.post("/auth/login", json={"email": "new@shop.in", "password": "long-enough"})
    assert response.status_code == 200
    assert "duesbook_session" in response.cookies

    # Cookie-authenticated from here on
    session = client.get("/auth/session").json()
    assert session["authenticated"] is True
    assert session["user"]["name"] == "Meena"

    assert client.post("/auth/logout").status_code == 200
    assert client.get("/auth/session").json()["authenticated"] is False


def test_revoked_token_is_rejected(auth_client):
    assert auth_client.get("/auth/me").status_code == 200
    assert auth_client.post("/auth/logout").status_code == 200
    assert auth_client.get("/auth/me").status_code == 401
    assert auth_client.get("/customers").status_code == 401


def test_bad_login(client, owner):
    response = client.post("/auth/login", json={"email": "owner@shop.in", "password": "wrong-password"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Authentication failed"


def test_ledger_scenario(auth_client):
    customer = add_customer(auth_client)
    assert money(customer["outstanding_dues"]) == 0
    cid = customer["id"]

    debit = auth_client.post(
        f"/customers/{cid}/transactions", json={"type": "DEBIT", "amount": "200", "description": "wheat"}
    )
    assert debit.status_code == 201
    assert money(debit.json()["amount"]) == Decimal("200")
    assert dues(auth_client, cid) == Decimal("200")

    credit = auth_client.post(f"/customers/{cid}/transactions", json={"type": "CREDIT", "amount": 50})
    assert credit.status_code == 201
    assert credit.json()["description"] == "No description"
    assert money(credit.json()["amount"]) == Decimal("-50")
    assert dues(auth_client, cid) == Decimal("150")

    assert auth_client.delete(f"/transactions/{credit.json()['id']}").status_code == 204
    assert dues(auth_client, cid) == Decimal("200")

    detail = auth_client.get(f"/customers/{cid}").json()
    assert [t["id"] for t in detail["transactions"]] == [debit.json()["id"]]

    check = auth_client.get(f"/customers/{cid}/reconcile").json()
    assert check["consistent"] is True


def test_edit_transaction_over_api(auth_client):
    cid = add_customer(auth_client)["id"]
    txn = auth_client.post(f"/customers/{cid}/transactions", json={"type": "DEBIT", "amount": 100}).json()

    response = auth_client.patch(f"/transactions/{txn['id']}", json={"type": "CREDIT", "amount": 50})
    assert response.status_code == 200
    assert response.json()["version"] == 2
    assert dues(auth_client, cid) == Decimal("-50")

    stale = auth_client.patch(
        f"/transactions/{txn['id']}", json={"amount": 70, "expected_version": 1}
    )
    assert stale.status_code == 409
    assert stale.json()["error_code"] == "CONFLICT"


def test_validation_errors(auth_client):
    cid = add_customer(auth_client)["id"]

    zero = auth_client.post(f"/customers/{cid}/transactions", json={"type": "DEBIT", "amount": 0})
    assert zero.status_code == 422
    assert zero.json()["error_code"] == "VALIDATION_ERROR"

    bad_type = auth_client.post(f"/customers/{cid}/transactions", json={"type": "GIFT", "amount": 5})
    assert bad_type.status_code == 422

    blank = auth_client.post("/customers", json={"name": " ", "village_name": "Rampur"})
    assert blank.status_code == 422

    assert auth_client.get("/customers?sort=secret").status_code == 422


def test_not_found(auth_client):
    missing = auth_client.post("/customers/999/transactions", json={"type": "DEBIT", "amount": 5})
    assert missing.status_code == 404
    assert missing.json()["error_code"] == "NOT_FOUND"
    assert auth_client.delete("/transactions/999").status_code == 404


def test_customer_crud_and_search(auth_client):
    first = add_customer(auth_client, "Anita", "Rampur")
    add_customer(auth_client, "Bhola", "Devgarh")

    renamed = auth_client.patch(f"/customers/{first['id']}", json={"name": "Anita Sharma"})
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "Anita Sharma"

    found = auth_client.get("/customers", params={"search": "DEV"}).json()
    assert [c["name"] for c in found] == ["Bhola"]

    in_village = auth_client.get("/customers", params={"village": "rampur"}).json()
    assert [c["name"] for c in in_village] == ["Anita Sharma"]

    assert auth_client.delete(f"/customers/{first['id']}").status_code == 204
    assert auth_client.get(f"/customers/{first['id']}").status_code == 404


def test_cannot_set_dues_directly(auth_client):
    cid = add_customer(auth_client)["id"]
    response = auth_client.patch(f"/customers/{cid}", json={"outstanding_dues": "1000"})
    # Unknown keys are ignored by the schema; dues stay put
    assert response.status_code == 200
    assert dues(auth_client, cid) == 0


def test_villages_and_dashboard(auth_client):
    a = add_customer(auth_client, "Anita", "Rampur")["id"]
    add_customer(auth_client, "Bhola", "Devgarh")
    auth_client.post(f"/customers/{a}/transactions", json={"type": "DEBIT", "amount": "99.99"})

    villages = auth_client.get("/villages").json()
    assert [v["village_name"] for v in villages] == ["Devgarh", "Rampur"]
    assert money(villages[1]["total_dues"]) == Decimal("99.99")

    summary = auth_client.get("/dashboard").json()
    assert summary["total_customers"] == 2
    assert money(summary["total_dues"]) == Decimal("99.99")
    assert summary["recent_transactions"][0]["customer_name"] == "Anita"


def test_export_downloads(auth_client):
    cid = add_customer(auth_client, "Anita", "Rampur")["id"]
    auth_client.post(f"/customers/{cid}/transactions", json={"type": "CREDIT", "amount": 25})

    response = auth_client.get("/export/customers.csv")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment; filename=customers_" in response.headers["content-disposition"]
    lines = response.content.decode("utf-8-sig").splitlines()
    assert lines[0] == "Name,Village,Contact Number,Outstanding Dues"
    assert lines[1] == "Anita,Rampur,,-25.00"

    response = auth_client.get(f"/export/customers/{cid}/transactions.csv")
    lines = response.content.decode("utf-8-sig").splitlines()
    assert lines[0] == "Date,Type,Amount,Description"
    assert lines[1].endswith(",CREDIT,25.00,No description")


def test_excel_downloads(auth_client):
    cid = add_customer(auth_client, "Anita", "Rampur")["id"]
    auth_client.post(f"/customers/{cid}/transactions", json={"type": "DEBIT", "amount": "120.50"})

    response = auth_client.get("/export/customers.xlsx")
    assert response.status_code == 200
    assert response.headers["content-type"] == XLSX_MEDIA_TYPE
    assert response.headers["content-disposition"].endswith(".xlsx")
    sheet = openpyxl.load_workbook(io.BytesIO(response.content)).active
    assert [c.value for c in sheet[1]] == ["Name", "Village", "Contact Number", "Outstanding Dues"]
    assert [c.value for c in sheet[2]] == ["Anita", "Rampur", None, 120.5]

    response = auth_client.get(f"/export/customers/{cid}/transactions.xlsx")
    sheet = openpyxl.load_workbook(io.BytesIO(response.content)).active
    assert sheet.title == "Transactions"
    assert [c.value for c in sheet[2]][1:] == ["DEBIT", 120.5, "No description"]

    assert auth_client.get("/export/customers/999/transactions.xlsx").status_code == 404


def test_database_outage_maps_to_503(auth_client, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    monkeypatch.setattr(customer_service, "list_villages", broken)
    monkeypatch.setattr("duesbook.api.routes.villages.list_villages", broken)

    response = auth_client.get("/villages")
    assert response.status_code == 503
    assert response.json()["error_code"] == "BACKEND_UNAVAILABLE"

# tests/test_customers.py
from conftest import auth_header, new_id


def _add(client, business, **fields):
    body = {"name": "Dana Diner", "email": "dana@example.com", **fields}
    return client.post("/api/customers", json=body, headers=auth_header(business))


def test_create_and_list_customers(client, business, db):
    res = _add(client, business, email="Dana@Example.com", phone="555-0100", tags=[" vip ", ""])
    assert res.status_code == 201
    body = res.json()
    assert body["email"] == "dana@example.com"
    assert body["status"] == "lead"
    assert body["tags"] == ["vip"]
    assert body["business_id"] == str(business["_id"])

    _add(client, business, name="Eli Eater", email="eli@example.com", status="active")

    listed = client.get("/api/customers", headers=auth_header(business)).json()
    assert [c["name"] for c in listed] == ["Eli Eater", "Dana Diner"]
    assert db.business_customers.count_documents({"business_id": business["_id"]}) == 2


def test_duplicate_email_is_409(client, business):
    _add(client, business)
    res = _add(client, business, name="Dana Again")
    assert res.status_code == 409
    assert res.json()["detail"] == "Customer with this email already exists"


def test_same_email_under_another_business_is_fine(client, business, other_business):
    assert _add(client, business).status_code == 201
    assert _add(client, other_business).status_code == 201


def test_filters_and_search(client, business):
    _add(client, business, name="Dana Diner", email="dana@example.com", tags=["vip"], status="active")
    _add(client, business, name="Eli Eater", email="eli@example.com", phone="555-0199")
    _add(client, business, name="Fay (test)", email="fay@example.com")
    headers = auth_header(business)

    by_status = client.get("/api/customers", params={"status": "active"}, headers=headers).json()
    assert [c["name"] for c in by_status] == ["Dana Diner"]

    by_tag = client.get("/api/customers", params={"tag": "vip"}, headers=headers).json()
    assert [c["name"] for c in by_tag] == ["Dana Diner"]

    by_phone = client.get("/api/customers", params={"search": "0199"}, headers=headers).json()
    assert [c["name"] for c in by_phone] == ["Eli Eater"]

    by_name = client.get("/api/customers", params={"search": "ELI"}, headers=headers).json()
    assert [c["name"] for c in by_name] == ["Eli Eater"]

    # regex metacharacters are matched literally
    literal = client.get("/api/customers", params={"search": "(test)"}, headers=headers).json()
    assert [c["name"] for c in literal] == ["Fay (test)"]


def test_directory_is_per_business(client, business, other_business):
    created = _add(client, business).json()

    assert client.get("/api/customers", headers=auth_header(other_business)).json() == []
    res = client.get(f"/api/customers/{created['id']}", headers=auth_header(other_business))
    assert res.status_code == 404


def test_non_business_is_forbidden(client, customer, referrer):
    for user in (customer, referrer):
        res = client.get("/api/customers", headers=auth_header(user))
        assert res.status_code == 403


def test_get_update_delete(client, business, db):
    created = _add(client, business).json()
    url = f"/api/customers/{created['id']}"
    headers = auth_header(business)

    assert client.get(url, headers=headers).json()["email"] == "dana@example.com"

    res = client.patch(url, json={"status": "active", "notes": "Likes espresso"}, headers=headers)
    assert res.status_code == 200
    assert res.json()["status"] == "active"
    assert res.json()["notes"] == "Likes espresso"
    assert res.json()["name"] == "Dana Diner"

    res = client.delete(url, headers=headers)
    assert res.status_code == 200
    assert res.json() == {"success": True}
    assert db.business_customers.count_documents({}) == 0
    assert client.get(url, headers=headers).status_code == 404


def test_update_rules(client, business):
    _add(client, business, email="taken@example.com")
    created = _add(client, business).json()
    url = f"/api/customers/{created['id']}"
    headers = auth_header(business)

    assert client.patch(url, json={}, headers=headers).status_code == 400
    assert client.patch(url, json={"name": None}, headers=headers).status_code == 400

    res = client.patch(url, json={"email": "taken@example.com"}, headers=headers)
    assert res.status_code == 409
    assert res.json()["detail"] == "Another customer with this email already exists"

    assert client.patch(f"/api/customers/{new_id()}", json={"notes": "x"}, headers=headers).status_code == 404
    assert client.get("/api/customers/not-an-id", headers=headers).status_code == 400


def test_bulk_import_upserts_by_email(client, business, db):
    _add(client, business, email="dana@example.com", name="Dana Old")
    rows = [
        {"name": "Dana New", "email": "DANA@example.com"},
        {"name": "Eli Eater", "email": "eli@example.com", "tags": ["import"]},
    ]

    res = client.post("/api/customers/bulk", json=rows, headers=auth_header(business))
    assert res.status_code == 200
    assert res.json() == {"success": True, "inserted": 1, "modified": 1, "total": 2}

    dana = db.business_customers.find_one({"email": "dana@example.com"})
    assert dana["name"] == "Dana New"
    eli = db.business_customers.find_one({"email": "eli@example.com"})
    assert eli["business_id"] == business["_id"]
    assert eli["tags"] == ["import"]
    assert eli["created_at"] is not None


def test_bulk_import_rejects_bad_rows(client, business, db):
    rows = [{"name": "Dana", "email": "dana@example.com"}, {"name": "X", "email": "not-an-email"}]
    res = client.post("/api/customers/bulk", json=rows, headers=auth_header(business))
    assert res.status_code == 400
    assert db.business_customers.count_documents({}) == 0

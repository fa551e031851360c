# tests/test_reporting.py
from conftest import auth_header


def _link(client, referrer, campaign):
    headers = auth_header(referrer)
    client.post("/api/referrer/select-campaign", json={"campaign_id": str(campaign["_id"])}, headers=headers)
    res = client.post("/api/referrer/generate-link", json={"campaign_id": str(campaign["_id"])}, headers=headers)
    return res.json()["code"]


def _visit(client, customer, code):
    client.post("/api/customer/process-link", json={"code": code}, headers=auth_header(customer))


def _complete(client, customer, code):
    client.post("/api/customer/complete-referral", json={"referral_code": code}, headers=auth_header(customer))


def test_customer_campaigns_discovery_when_empty(client, customer, business, make_campaign):
    for i in range(8):
        make_campaign(business, name=f"Promo {i}")
    make_campaign(business, name="Paused", is_active=False)

    res = client.get("/api/customer/campaigns", headers=auth_header(customer))
    assert res.status_code == 200
    campaigns = res.json()["campaigns"]
    assert len(campaigns) == 6
    assert all(c["is_active"] for c in campaigns)
    assert all(c["is_shared"] is False for c in campaigns)


def test_customer_campaigns_shared_and_referred(client, customer, referrer, business, make_campaign):
    shared = make_campaign(business, name="Shared One")
    referred = make_campaign(business, name="Referred One")
    make_campaign(business, name="Untouched")

    client.post(
        "/api/customer/share-campaign",
        json={"campaign_id": str(shared["_id"]), "share_method": "sms"},
        headers=auth_header(customer),
    )
    _visit(client, customer, _link(client, referrer, referred))

    campaigns = client.get("/api/customer/campaigns", headers=auth_header(customer)).json()["campaigns"]
    by_name = {c["name"]: c for c in campaigns}
    assert set(by_name) == {"Shared One", "Referred One"}
    assert by_name["Shared One"]["is_shared"] is True
    assert by_name["Shared One"]["share_method"] == "sms"
    assert by_name["Shared One"]["business_name"] == "Acme Coffee"
    assert by_name["Referred One"]["is_shared"] is False

    referred_only = client.get("/api/customer/referred-campaigns", headers=auth_header(customer)).json()
    assert [c["name"] for c in referred_only] == ["Referred One"]


def test_referred_campaigns_empty(client, customer):
    assert client.get("/api/customer/referred-campaigns", headers=auth_header(customer)).json() == []


def test_customer_profile_statistics(client, db, customer, referrer, campaign, make_reward):
    db.users.update_one({"_id": customer["_id"]}, {"$set": {"referred_by": referrer["_id"]}})
    make_reward(customer, campaign, status="issued")
    make_reward(customer, campaign, status="redeemed")
    client.post(
        "/api/customer/share-campaign",
        json={"campaign_id": str(campaign["_id"]), "share_method": "email"},
        headers=auth_header(customer),
    )

    profile = client.get("/api/customer/profile", headers=auth_header(customer)).json()["profile"]
    assert profile["email"] == customer["email"]
    assert profile["referred_by"]["name"] == "Rita Referrer"
    assert profile["statistics"] == {"available_rewards": 2, "redeemed_rewards": 1, "total_shares": 1}


def test_referrer_profile_metrics(client, db, referrer, campaign, customer, friend):
    code = _link(client, referrer, campaign)
    _visit(client, customer, code)
    _visit(client, friend, code)
    _complete(client, customer, code)

    profile = client.get("/api/referrer/profile", headers=auth_header(referrer)).json()["profile"]
    assert profile["business_name"] == "Acme Coffee"
    assert profile["metrics"] == {
        "total_referrals": 2,
        "successful_referrals": 1,
        "conversion_rate": 50,
        "total_earnings": 5,
    }
    assert profile["statistics"] == {"available_rewards": 1, "redeemed_rewards": 0, "active_campaigns": 1}
    assert profile["earnings"] == 5


def test_business_analytics(client, business, referrer, campaign, make_campaign, customer, friend):
    make_campaign(business, name="Idle", is_active=False)
    code = _link(client, referrer, campaign)
    _visit(client, customer, code)
    _visit(client, customer, code)
    _visit(client, friend, code)
    _complete(client, customer, code)

    res = client.get("/api/analytics", headers=auth_header(business))
    assert res.status_code == 200
    body = res.json()
    assert body["summary"] == {
        "total_referrals": 1,
        "total_clicks": 3,
        "total_conversions": 1,
        "overall_conversion_rate": 33.3,
        "active_campaigns_count": 1,
        "customers_count": 2,
        "total_leads": 0,
    }
    rows = {r["name"]: r for r in body["campaigns"]}
    assert rows["Summer Promo"]["clicks"] == 3
    assert rows["Summer Promo"]["conversions"] == 1
    assert rows["Summer Promo"]["referrals"] == 1
    assert rows["Idle"]["clicks"] == 0

    kinds = sorted(a["type"] for a in body["recent_activity"])
    assert kinds == ["conversion", "referral"]


def test_analytics_is_business_only(client, customer, referrer):
    for user in (customer, referrer):
        res = client.get("/api/analytics", headers=auth_header(user))
        assert res.status_code == 403
        assert res.json()["detail"] == "Only business accounts can do this."


def test_coupons_catalog(client):
    everything = client.get("/api/coupons").json()["coupons"]
    assert len(everything) == 5

    retail = client.get("/api/coupons?category=retail").json()["coupons"]
    assert {c["code"] for c in retail} == {"FIRST20", "BOGOF2023"}

    assert len(client.get("/api/coupons?limit=2").json()["coupons"]) == 2


def test_validation_errors_are_400(client, customer):
    res = client.post("/api/customer/share-campaign", json={}, headers=auth_header(customer))
    assert res.status_code == 400
    assert isinstance(res.json()["detail"], list)


def test_unhandled_errors_are_generic_500(mongo, monkeypatch, customer):
    from fastapi.testclient import TestClient

    from refhub.main import create_app
    from refhub.routes import customer as customer_routes

    async def boom(db, user):
        raise RuntimeError("database exploded")

    monkeypatch.setattr(customer_routes, "get_customer_profile", boom)
    with TestClient(create_app(mongo), raise_server_exceptions=False) as c:
        res = c.get("/api/customer/profile", headers=auth_header(customer))
    assert res.status_code == 500
    assert res.json() == {"detail": "Internal server error"}

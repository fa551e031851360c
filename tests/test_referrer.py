# tests/test_referrer.py
from conftest import auth_header, insert_user


def test_lists_company_campaigns_with_selection_flag(client, referrer, campaign, make_campaign, business, other_business):
    make_campaign(business, name="Paused", is_active=False)
    make_campaign(other_business, name="Competitor")
    headers = auth_header(referrer)

    listed = client.get("/api/referrer/campaigns", headers=headers).json()
    assert [c["name"] for c in listed] == ["Summer Promo"]
    assert listed[0]["business_name"] == "Acme Coffee"
    assert listed[0]["is_selected"] is False

    res = client.post("/api/referrer/select-campaign", json={"campaign_id": str(campaign["_id"])}, headers=headers)
    assert res.status_code == 200
    assert res.json()["message"] == "Campaign selected successfully"

    listed = client.get("/api/referrer/campaigns", headers=headers).json()
    assert listed[0]["is_selected"] is True


def test_select_is_idempotent(client, db, referrer, campaign):
    headers = auth_header(referrer)
    body = {"campaign_id": str(campaign["_id"])}
    first = client.post("/api/referrer/select-campaign", json=body, headers=headers).json()
    again = client.post("/api/referrer/select-campaign", json=body, headers=headers).json()

    assert again["message"] == "Campaign already selected"
    assert again["id"] == first["id"]
    assert db.referrer_campaigns.count_documents({"referrer_id": referrer["_id"]}) == 1


def test_select_inactive_campaign_is_404(client, referrer, make_campaign, business):
    paused = make_campaign(business, is_active=False)
    res = client.post(
        "/api/referrer/select-campaign", json={"campaign_id": str(paused["_id"])}, headers=auth_header(referrer)
    )
    assert res.status_code == 404


def test_campaigns_fall_back_to_business_name(client, db, referrer, business, make_campaign):
    # campaign created before company_name was copied onto campaigns
    make_campaign(business, company_name=None, name="Legacy")
    listed = client.get("/api/referrer/campaigns", headers=auth_header(referrer)).json()
    assert [c["name"] for c in listed] == ["Legacy"]
    assert listed[0]["company_name"] == "Acme Coffee"


def test_referrer_without_company_sees_nothing(client, db, referrer, campaign):
    db.users.update_one({"_id": referrer["_id"]}, {"$unset": {"company": ""}})
    assert client.get("/api/referrer/campaigns", headers=auth_header(referrer)).json() == []


def test_campaign_detail_access(client, db, referrer, campaign, make_campaign, other_business):
    headers = auth_header(referrer)
    assert client.get(f"/api/referrer/campaigns/{campaign['_id']}", headers=headers).status_code == 200

    foreign = make_campaign(other_business, name="Elsewhere")
    assert client.get(f"/api/referrer/campaigns/{foreign['_id']}", headers=headers).status_code == 403

    client.post("/api/referrer/select-campaign", json={"campaign_id": str(foreign["_id"])}, headers=headers)
    detail = client.get(f"/api/referrer/campaigns/{foreign['_id']}", headers=headers)
    assert detail.status_code == 200
    assert detail.json()["is_selected"] is True


def test_generate_link(client, db, referrer, campaign):
    headers = auth_header(referrer)
    client.post("/api/referrer/select-campaign", json={"campaign_id": str(campaign["_id"])}, headers=headers)
    res = client.post(
        "/api/referrer/generate-link",
        json={"campaign_id": str(campaign["_id"]), "custom_message": "  Try this!  "},
        headers=headers,
    )
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert len(body["code"]) == 12
    assert body["referral_link"] == f"http://refhub.test/r/{body['code']}"

    link = db.referral_links.find_one({"code": body["code"]})
    assert link["referrer_id"] == referrer["_id"]
    assert link["custom_message"] == "Try this!"
    assert link["clicks"] == 0 and link["conversions"] == 0 and link["active"] is True


def test_generate_link_requires_selection(client, db, referrer, campaign):
    # same company and matched business, but the campaign was never selected
    assert referrer["business_id"] == campaign["business_id"]
    assert referrer["company"] == campaign["company_name"]

    res = client.post(
        "/api/referrer/generate-link", json={"campaign_id": str(campaign["_id"])}, headers=auth_header(referrer)
    )
    assert res.status_code == 403
    assert res.json()["detail"] == "You don't have access to this campaign"
    assert db.referral_links.count_documents({}) == 0


def test_company_name_alone_grants_no_links(client, db, make_campaign, business):
    lookalike = insert_user(
        db, email="mallory@example.com", name="Mallory", role="referrer", company="Acme Coffee", earnings=0
    )
    target = make_campaign(business, name="Winter Promo")
    res = client.post(
        "/api/referrer/generate-link", json={"campaign_id": str(target["_id"])}, headers=auth_header(lookalike)
    )
    assert res.status_code == 403
    assert db.referral_links.count_documents({}) == 0


def test_generate_link_requires_access(client, db, referrer, make_campaign, other_business):
    foreign = make_campaign(other_business, name="Elsewhere")
    res = client.post(
        "/api/referrer/generate-link", json={"campaign_id": str(foreign["_id"])}, headers=auth_header(referrer)
    )
    assert res.status_code == 403
    assert db.referral_links.count_documents({}) == 0


def test_generate_link_for_inactive_campaign_is_404(client, referrer, make_campaign, business):
    paused = make_campaign(business, is_active=False)
    res = client.post(
        "/api/referrer/generate-link", json={"campaign_id": str(paused["_id"])}, headers=auth_header(referrer)
    )
    assert res.status_code == 404


def test_customer_cannot_use_referrer_endpoints(client, customer):
    assert client.get("/api/referrer/campaigns", headers=auth_header(customer)).status_code == 403

# tests/test_leads.py
from conftest import auth_header, insert_user


def _lead(**fields):
    return {
        "business_code": "ACM-CF001",
        "referrer_code": "RIT-AB123",
        "name": "Lena Lead",
        "email": "lena@example.com",
        **fields,
    }


def test_submit_lead(client, business, referrer, campaign, db):
    res = client.post("/api/referrals/submit", json=_lead(email="Lena@Example.com", campaign_id=str(campaign["_id"])))
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["message"] == "Referral submitted successfully"

    lead = db.referral_leads.find_one()
    assert str(lead["_id"]) == body["referral_id"]
    assert lead["business_id"] == business["_id"]
    assert lead["referrer_id"] == referrer["_id"]
    assert lead["campaign_id"] == campaign["_id"]
    assert lead["email"] == "lena@example.com"
    assert lead["click_count"] == 1

    assert db.campaigns.find_one({"_id": campaign["_id"]})["leads"] == 1
    assert db.daily_stats.find_one({"business_id": business["_id"]})["leads"] == 1


def test_submit_without_campaign(client, business, referrer, db):
    assert client.post("/api/referrals/submit", json=_lead()).status_code == 200
    assert "campaign_id" not in db.referral_leads.find_one()


def test_same_person_twice_is_409(client, business, referrer, db):
    client.post("/api/referrals/submit", json=_lead())
    res = client.post("/api/referrals/submit", json=_lead(name="Lena Again"))
    assert res.status_code == 409
    assert res.json()["detail"] == "This person has already been referred"
    assert db.referral_leads.count_documents({}) == 1
    assert db.daily_stats.find_one()["leads"] == 1


def test_unknown_codes_are_404(client, business, referrer, customer):
    res = client.post("/api/referrals/submit", json=_lead(business_code="NOPE-0000"))
    assert res.status_code == 404
    assert res.json()["detail"] == "Invalid business code"

    # a referral code only identifies a business when it belongs to one
    res = client.post("/api/referrals/submit", json=_lead(business_code="RIT-AB123"))
    assert res.json()["detail"] == "Invalid business code"

    res = client.post("/api/referrals/submit", json=_lead(referrer_code="NOPE-0000"))
    assert res.status_code == 404
    assert res.json()["detail"] == "Invalid referrer code"


def test_inactive_or_foreign_campaign_is_404(client, business, other_business, referrer, make_campaign, db):
    paused = make_campaign(business, is_active=False)
    foreign = make_campaign(other_business)

    for campaign_id in (str(paused["_id"]), str(foreign["_id"]), "garbage"):
        res = client.post("/api/referrals/submit", json=_lead(campaign_id=campaign_id))
        assert res.status_code == 404
        assert res.json()["detail"] == "Invalid or inactive campaign"
    assert db.referral_leads.count_documents({}) == 0


def test_submit_validation(client, business, referrer):
    assert client.post("/api/referrals/submit", json=_lead(email="nope")).status_code == 400
    assert client.post("/api/referrals/submit", json=_lead(name="L")).status_code == 400
    assert client.post("/api/referrals/submit", json=_lead(business_code="AB")).status_code == 400


def test_track_click(client, business, referrer, db):
    client.post("/api/referrals/submit", json=_lead())
    client.post("/api/referrals/submit", json=_lead(email="max@example.com"))

    res = client.post("/api/referrals/track-click", json={"business_code": "ACM-CF001", "referrer_code": "RIT-AB123"})
    assert res.status_code == 200
    assert res.json() == {"success": True, "business_name": "Acme Coffee"}

    assert [lead["click_count"] for lead in db.referral_leads.find()] == [2, 2]
    assert db.daily_stats.find_one()["clicks"] == 1


def test_track_click_without_referrer(client, business, db):
    res = client.post("/api/referrals/track-click", json={"business_code": "ACM-CF001"})
    assert res.status_code == 200
    assert db.daily_stats.find_one({"business_id": business["_id"]})["clicks"] == 1


def test_track_click_unknown_codes(client, business, db):
    res = client.post("/api/referrals/track-click", json={"business_code": "NOPE-0000"})
    assert res.status_code == 404
    res = client.post("/api/referrals/track-click", json={"business_code": "ACM-CF001", "referrer_code": "NOPE-0000"})
    assert res.status_code == 404
    assert res.json()["detail"] == "Invalid referrer code"
    assert db.daily_stats.count_documents({}) == 0


def test_analytics_reports_leads_and_daily_counts(client, business, referrer, campaign, db):
    other = insert_user(db, email="ray@acmecoffee.com", role="referrer", referral_code="RAY-CD456")
    client.post("/api/referrals/submit", json=_lead(campaign_id=str(campaign["_id"])))
    client.post("/api/referrals/submit", json=_lead(referrer_code=other["referral_code"]))
    client.post("/api/referrals/track-click", json={"business_code": "ACM-CF001"})

    body = client.get("/api/analytics", headers=auth_header(business)).json()
    assert body["summary"]["total_leads"] == 2
    assert body["campaigns"][0]["leads"] == 1
    assert len(body["daily"]) == 1
    assert body["daily"][0]["leads"] == 2
    assert body["daily"][0]["clicks"] == 1

# tests/test_tasks.py
from conftest import auth_header, new_id


def _task(client, business, campaign, **fields):
    body = {"campaign_id": str(campaign["_id"]), "title": "Post a review", "description": "On any site", **fields}
    return client.post("/api/campaign-tasks", json=body, headers=auth_header(business))


def _submit(client, user, task_id, proof="https://reviews.test/123"):
    return client.post("/api/task-completions", json={"task_id": task_id, "proof": proof}, headers=auth_header(user))


def _review(client, business, completion_id, status):
    return client.patch(
        "/api/task-completions",
        json={"completion_id": completion_id, "status": status},
        headers=auth_header(business),
    )


# ------------------------------------------------------------------
# Tasks
# ------------------------------------------------------------------
def test_create_and_list_tasks(client, business, campaign, customer):
    res = _task(client, business, campaign, points=50, type="content", requirements=["Mention us"])
    assert res.status_code == 201
    task = res.json()
    assert task["status"] == "active"
    assert task["points"] == 50
    assert task["campaign_id"] == str(campaign["_id"])

    _task(client, business, campaign, title="Share on social", type="social")

    params = {"campaign_id": str(campaign["_id"])}
    listed = client.get("/api/campaign-tasks", params=params, headers=auth_header(customer)).json()
    assert [t["title"] for t in listed] == ["Share on social", "Post a review"]


def test_only_owner_sees_inactive_tasks(client, business, campaign, referrer):
    task = _task(client, business, campaign).json()
    _task(client, business, campaign, title="Still on")

    res = client.patch(
        "/api/campaign-tasks", json={"task_id": task["id"], "status": "inactive"}, headers=auth_header(business)
    )
    assert res.status_code == 200
    assert res.json()["status"] == "inactive"

    params = {"campaign_id": str(campaign["_id"])}
    assert len(client.get("/api/campaign-tasks", params=params, headers=auth_header(business)).json()) == 2
    others = client.get("/api/campaign-tasks", params=params, headers=auth_header(referrer)).json()
    assert [t["title"] for t in others] == ["Still on"]


def test_task_rules(client, business, other_business, campaign, customer):
    assert _task(client, other_business, campaign).status_code == 404
    assert _task(client, customer, campaign).status_code == 403
    assert _task(client, business, campaign, title="").status_code == 400
    assert _task(client, business, campaign, points=-1).status_code == 400

    res = client.get("/api/campaign-tasks", params={"campaign_id": new_id()}, headers=auth_header(customer))
    assert res.status_code == 404
    assert client.get("/api/campaign-tasks", headers=auth_header(customer)).status_code == 400


def test_delete_task(client, business, other_business, campaign, db):
    task = _task(client, business, campaign).json()

    res = client.delete("/api/campaign-tasks", params={"task_id": task["id"]}, headers=auth_header(other_business))
    assert res.status_code == 404

    res = client.delete("/api/campaign-tasks", params={"task_id": task["id"]}, headers=auth_header(business))
    assert res.status_code == 200
    assert res.json() == {"success": True}
    assert db.campaign_tasks.count_documents({}) == 0


# ------------------------------------------------------------------
# Completions
# ------------------------------------------------------------------
def test_submit_review_and_claim(client, business, campaign, customer, db):
    task = _task(client, business, campaign, points=25).json()

    res = _submit(client, customer, task["id"])
    assert res.status_code == 201
    completion = res.json()
    assert completion["status"] == "pending"
    assert completion["reward_status"] == "pending"
    assert completion["points"] == 25

    # nothing to claim before approval
    res = client.patch("/api/task-completions", json={"completion_id": completion["id"]}, headers=auth_header(customer))
    assert res.status_code == 400
    assert res.json()["detail"] == "Reward not issued or already claimed"

    res = _review(client, business, completion["id"], "approved")
    assert res.status_code == 200
    reviewed = res.json()["completion"]
    assert reviewed["status"] == "approved"
    assert reviewed["reward_status"] == "issued"
    assert reviewed["reviewed_at"] is not None

    res = client.patch(
        "/api/task-completions",
        json={"completion_id": completion["id"], "payout_method": "paypal", "payout_details": {"email": "c@x.io"}},
        headers=auth_header(customer),
    )
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["completion"]["reward_status"] == "claimed"
    assert body["completion"]["payout_method"] == "paypal"
    assert db.task_completions.find_one()["payout_details"] == {"email": "c@x.io"}

    res = client.patch("/api/task-completions", json={"completion_id": completion["id"]}, headers=auth_header(customer))
    assert res.status_code == 400


def test_rejected_submission_issues_nothing(client, business, campaign, referrer):
    task = _task(client, business, campaign).json()
    completion = _submit(client, referrer, task["id"]).json()

    reviewed = _review(client, business, completion["id"], "rejected").json()["completion"]
    assert reviewed["status"] == "rejected"
    assert reviewed["reward_status"] == "pending"

    # reviews are final
    res = _review(client, business, completion["id"], "approved")
    assert res.status_code == 400
    assert res.json()["detail"] == "Submission has already been reviewed"


def test_submission_rules(client, business, other_business, campaign, customer, friend):
    task = _task(client, business, campaign).json()

    assert _submit(client, business, task["id"]).status_code == 403
    assert _submit(client, customer, new_id()).status_code == 404
    assert _submit(client, customer, task["id"], proof="").status_code == 400

    assert _submit(client, customer, task["id"]).status_code == 201
    res = _submit(client, customer, task["id"])
    assert res.status_code == 409
    assert res.json()["detail"] == "You have already submitted this task"

    completion_id = client.get(
        "/api/task-completions", params={"user_id": str(customer["_id"])}, headers=auth_header(customer)
    ).json()[0]["id"]
    assert _review(client, other_business, completion_id, "approved").status_code == 403
    assert _review(client, customer, completion_id, "approved").status_code == 403

    _review(client, business, completion_id, "approved")
    res = client.patch("/api/task-completions", json={"completion_id": completion_id}, headers=auth_header(friend))
    assert res.status_code == 403


def test_inactive_task_takes_no_submissions(client, business, campaign, customer):
    task = _task(client, business, campaign).json()
    client.patch("/api/campaign-tasks", json={"task_id": task["id"], "status": "inactive"}, headers=auth_header(business))

    res = _submit(client, customer, task["id"])
    assert res.status_code == 400
    assert res.json()["detail"] == "Task is not active"


def test_list_completions(client, business, other_business, campaign, customer, friend):
    task = _task(client, business, campaign).json()
    _submit(client, customer, task["id"])
    _submit(client, friend, task["id"])

    by_task = client.get("/api/task-completions", params={"task_id": task["id"]}, headers=auth_header(business))
    assert by_task.status_code == 200
    assert len(by_task.json()) == 2

    res = client.get("/api/task-completions", params={"task_id": task["id"]}, headers=auth_header(other_business))
    assert res.status_code == 403

    mine = client.get(
        "/api/task-completions", params={"user_id": str(friend["_id"])}, headers=auth_header(friend)
    ).json()
    assert [c["user_id"] for c in mine] == [str(friend["_id"])]

    res = client.get("/api/task-completions", params={"user_id": str(friend["_id"])}, headers=auth_header(customer))
    assert res.status_code == 403

    assert client.get("/api/task-completions", headers=auth_header(customer)).status_code == 400

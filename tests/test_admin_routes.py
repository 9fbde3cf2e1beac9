from conftest import application_payload, auth, login, post_job, register


def test_admin_only(client, student_token, employer_token):
    for token in (student_token, employer_token):
        assert client.get("/api/admin/jobs", headers=auth(token)).status_code == 403
        assert client.get("/api/admin/analytics", headers=auth(token)).status_code == 403
    assert client.get("/api/admin/jobs").status_code in (401, 403)


def test_review_queue_and_decisions(client, admin_token, employer_token):
    first = post_job(client, employer_token, title="First Posting")
    second = post_job(client, employer_token, title="Second Posting")

    queue = client.get("/api/admin/jobs", params={"status": "pending"}, headers=auth(admin_token)).json()
    assert {j["job_id"] for j in queue} == {first["job_id"], second["job_id"]}

    r = client.put(f"/api/admin/jobs/{first['job_id']}/status", json={"status": "approved"}, headers=auth(admin_token))
    assert r.json()["status"] == "approved"
    assert r.json()["rejection_reason"] is None

    r = client.put(f"/api/admin/jobs/{second['job_id']}/status",
                   json={"status": "rejected", "message": "Please add the pay range"}, headers=auth(admin_token))
    assert r.json()["status"] == "rejected"
    assert r.json()["rejection_reason"] == "Please add the pay range"

    # Employer sees the decline message on their own posting
    mine = client.get("/api/employers/jobs", params={"status": "rejected"}, headers=auth(employer_token)).json()
    assert mine[0]["rejection_reason"] == "Please add the pay range"

    assert [j["title"] for j in client.get("/api/jobs").json()["jobs"]] == ["First Posting"]

    # Revoke approval
    client.put(f"/api/admin/jobs/{first['job_id']}/status", json={"status": "pending"}, headers=auth(admin_token))
    assert client.get("/api/jobs").json()["total"] == 0

    assert len(client.get("/api/admin/jobs", headers=auth(admin_token)).json()) == 2


def test_admin_sees_hidden_job_detail(client, admin_token, employer_token):
    job = post_job(client, employer_token)
    assert client.get(f"/api/jobs/{job['job_id']}", headers=auth(admin_token)).status_code == 200


def test_status_update_unknown_job(client, admin_token):
    r = client.put("/api/admin/jobs/9999/status", json={"status": "approved"}, headers=auth(admin_token))
    assert r.status_code == 404
    r = client.put("/api/admin/jobs/9999/status", json={"status": "archived"}, headers=auth(admin_token))
    assert r.status_code == 422


def test_analytics(client, admin_token, employer_token, student_token, approved_job):
    post_job(client, employer_token, title="Pending Posting")
    register(client, "new@startup.com", "employer", company_name="Startup")
    client.post(f"/api/jobs/{approved_job['job_id']}/apply", json=application_payload(), headers=auth(student_token))

    stats = client.get("/api/admin/analytics", headers=auth(admin_token)).json()
    assert stats["total"] == 2
    assert stats["approved"] == 1
    assert stats["pending"] == 1
    assert stats["rejected"] == 0
    assert stats["students"] == 1
    assert stats["employers"] == 2
    assert stats["unverified_employers"] == 1
    assert stats["applications"] == {"pending": 1, "reviewed": 0, "accepted": 0, "rejected": 0}


def test_employer_verification_cycle(client, admin_token, employer_user_id):
    queue = client.get("/api/admin/employers", params={"verified": False}, headers=auth(admin_token)).json()
    assert [e["user_id"] for e in queue] == [employer_user_id]
    assert queue[0]["company_name"] == "Acme Learning"
    assert queue[0]["verification_requested_at"] is not None

    r = client.put(f"/api/admin/employers/{employer_user_id}/verification", json={"verified": True},
                   headers=auth(admin_token))
    assert r.status_code == 200
    assert r.json()["verified"] is True
    assert r.json()["verification_requested_at"] is None
    assert client.get("/api/admin/employers", params={"verified": False}, headers=auth(admin_token)).json() == []
    login(client, "hr@acmelearning.com", "employer")

    r = client.put(f"/api/admin/employers/{employer_user_id}/verification", json={"verified": False},
                   headers=auth(admin_token))
    assert r.json()["verified"] is False
    assert r.json()["verification_requested_at"] is not None
    r = client.post("/api/auth/login", json={"email": "hr@acmelearning.com", "password": "password123", "role": "employer"})
    assert r.status_code == 403


def test_verification_only_applies_to_employers(client, admin_token, student_token):
    me = client.get("/api/auth/me", headers=auth(student_token)).json()
    r = client.put(f"/api/admin/employers/{me['user_id']}/verification", json={"verified": True},
                   headers=auth(admin_token))
    assert r.status_code == 404


def test_deactivate_and_reactivate(client, admin_token, student_token):
    me = client.get("/api/auth/me", headers=auth(student_token)).json()
    url = f"/api/admin/users/{me['user_id']}/active"

    assert client.put(url, json={"is_active": False}, headers=auth(admin_token)).json()["message"] == "Account deactivated"
    assert client.get("/api/auth/me", headers=auth(student_token)).status_code == 403

    assert client.put(url, json={"is_active": True}, headers=auth(admin_token)).json()["message"] == "Account reactivated"
    assert client.get("/api/auth/me", headers=auth(student_token)).status_code == 200


def test_admin_cannot_deactivate_self(client, admin_token):
    me = client.get("/api/auth/me", headers=auth(admin_token)).json()
    r = client.put(f"/api/admin/users/{me['user_id']}/active", json={"is_active": False}, headers=auth(admin_token))
    assert r.status_code == 400
    assert client.put("/api/admin/users/9999/active", json={"is_active": False},
                      headers=auth(admin_token)).status_code == 404

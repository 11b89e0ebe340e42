JOB_BODY = {
    "roleName": "Barista",
    "jobSummary": "Morning shifts at the mall branch",
    "brandLocationId": "loc-1",
    "hiringType": "Instant Hire",
    "payPerHour": 5.5,
    "hoursPerDay": 6,
    "startDate": "2030-01-01",
    "paymentTerms": "weekly",
}


def _create_job(client, headers, **overrides):
    r = client.post("/api/jobs", json={**JOB_BODY, **overrides}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]


def test_create_and_publish_job(client, auth_headers):
    headers, company_id = auth_headers("company")

    job = _create_job(client, headers)
    assert job["jobId"].startswith("JOB-")
    assert job["jobStatus"] == "draft"
    assert job["companyId"] == company_id
    assert job["companyName"] == "Acme Cafe"
    assert job["missingFields"] == []

    r = client.put(f"/api/jobs/{job['jobId']}/publish", headers=headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["success"] is True
    assert body["data"]["jobStatus"] == "published"
    assert body["data"]["publishedAt"]

    usage = client.get("/api/companies/me/usage", headers=headers).json()["data"]
    assert usage["usageStats"]["jobPostings"] == 1
    assert usage["subscriptionStatus"] == "trial"
    assert usage["trial"]["displayText"] == "14/14 days"


def test_publish_reports_missing_fields(client, auth_headers):
    headers, _ = auth_headers("company")
    job = _create_job(client, headers, hiringType="Interview First", payPerHour=None)
    assert job["missingFields"] == ["work_type"]

    r = client.put(f"/api/jobs/{job['jobId']}/publish", headers=headers)
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["errors"] == ["work_type"]


def test_only_owner_manages_job(client, auth_headers):
    owner, _ = auth_headers("company")
    rival, _ = auth_headers("company", companyName="Rival")
    seeker, _ = auth_headers("seeker")
    job = _create_job(client, owner)

    assert client.put(f"/api/jobs/{job['jobId']}/publish", headers=rival).status_code == 403
    assert client.put(f"/api/jobs/{job['jobId']}/publish", headers=seeker).status_code == 403
    assert client.post("/api/jobs", json=JOB_BODY, headers=seeker).status_code == 403
    assert client.put("/api/jobs/JOB-MISSING/publish", headers=owner).status_code == 404


def test_seeker_view_counts_and_status_changes(client, auth_headers):
    headers, _ = auth_headers("company")
    seeker, _ = auth_headers("seeker")
    job = _create_job(client, headers)

    # drafts are invisible to seekers
    assert client.get(f"/api/jobs/{job['jobId']}", headers=seeker).status_code == 403
    client.put(f"/api/jobs/{job['jobId']}/publish", headers=headers)

    r = client.get(f"/api/jobs/{job['jobId']}", headers=seeker)
    assert r.status_code == 200
    assert r.json()["data"]["viewsCount"] == 1

    r = client.put(f"/api/jobs/{job['jobId']}/status", json={"jobStatus": "paused"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["data"]["jobStatus"] == "paused"

    r = client.post(f"/api/jobs/{job['jobId']}/apply", json={}, headers=seeker)
    assert r.status_code == 400
    assert r.json()["message"] == "Cannot apply to a job that is paused"

    r = client.put(f"/api/jobs/{job['jobId']}/status", json={"jobStatus": "draft"}, headers=headers)
    assert r.status_code == 400


def test_job_ownership_rule_is_shared_by_job_and_application_endpoints(client, auth_headers):
    owner, _ = auth_headers("company")
    rival, _ = auth_headers("company", companyName="Rival")
    job = _create_job(client, owner)

    for path in ("", "/applications", "/applications/stats"):
        r = client.get(f"/api/jobs/{job['jobId']}{path}", headers=rival)
        assert r.status_code == 403, path
        assert r.json()["message"].startswith("Not authorized to")
    r = client.put(f"/api/jobs/{job['jobId']}/status", json={"jobStatus": "paused"}, headers=rival)
    assert r.json()["message"] == "Not authorized to manage this job"

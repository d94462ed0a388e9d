from __future__ import annotations

import io

from crm_app.models import Venue
from crm_app.models.importer.schema import ImportJob, ImportJobStatus, ImportKind


def _upload(client, kind: str, content: str, filename: str = "venues.csv"):
    return client.post(
        f"/importer/jobs/{kind}",
        data={"file": (io.BytesIO(content.encode("utf-8")), filename)},
        content_type="multipart/form-data",
    )


def test_health_lists_enabled_kinds(importer_app, client):
    response = client.get("/importer/health")

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["status"] == "ok"
    assert payload["enabled"] is True
    assert [kind["name"] for kind in payload["kinds"]] == ["venues", "contacts"]


def test_worker_health_reports_disabled_worker(importer_app, client):
    response = client.get("/importer/worker_health")

    assert response.status_code == 200
    assert response.get_json()["status"] == "disabled"


def test_template_download(importer_app, client):
    response = client.get("/importer/templates/contacts")

    assert response.status_code == 200
    assert response.mimetype == "text/csv"
    assert "contacts_template.csv" in response.headers["Content-Disposition"]
    lines = response.get_data(as_text=True).splitlines()
    assert lines[0] == "name,email,phone,role,isPrimary,venueName,linkedIn"
    assert len(lines) == 2


def test_template_unknown_kind(importer_app, client):
    response = client.get("/importer/templates/operators")

    assert response.status_code == 400


def test_submit_upload_runs_inline(importer_app, client, operator_factory, venue_csv):
    operator_factory("Live Nation")
    content = venue_csv(
        "Arena One,1 Main St,Austin,TX,arena,15000,lead,prospect,,Live Nation,",
        "Arena Two,2 Main St,,TX,,,,,,,",
    )

    response = _upload(client, "venues", content)

    assert response.status_code == 202, response.get_json()
    payload = response.get_json()
    assert payload["status"] == "completed"
    assert payload["mode"] == "inline"
    assert payload["total_rows"] == 2
    assert payload["success_rows"] == 1
    assert payload["error_rows"] == 1
    assert payload["source_file_name"] == "venues.csv"
    assert "1 row(s) with errors" in payload["message"]
    assert payload["errors"] == [{"row_number": 3, "field": "city", "message": "City is required"}]
    assert Venue.query.count() == 1


def test_submit_json_body(importer_app, client, venue_factory, contact_csv):
    venue_factory("The Fillmore")
    content = contact_csv("Ann Lee,ann@example.com,,,true,The Fillmore,")

    response = client.post("/importer/jobs/contacts", json={"csv_content": content, "file_name": "people.csv"})

    assert response.status_code == 202
    payload = response.get_json()
    assert payload["kind"] == "contacts"
    assert payload["status"] == "completed"
    assert payload["success_rows"] == 1


def test_submit_with_only_bad_rows_reports_failed(importer_app, client, venue_csv):
    response = _upload(client, "venues", venue_csv("Arena,1 Main St,Austin,TX,castle,,,,,,"))

    assert response.status_code == 202
    payload = response.get_json()
    assert payload["status"] == "failed"
    assert payload["errors"][0]["message"] == "Invalid venue type: castle"


def test_submit_unparseable_csv_fails_job(importer_app, client):
    response = _upload(client, "venues", 'name,address,city,state\n"Arena,1 Main St,Austin,TX\n')

    assert response.status_code == 202
    payload = response.get_json()
    assert payload["status"] == "failed"
    assert payload["errors"][0]["row_number"] is None
    assert payload["errors"][0]["field"] == "general"


def test_submit_rejections(importer_app, client, venue_csv):
    assert client.post("/importer/jobs/operators", json={"csv_content": "name\nx\n"}).status_code == 400
    assert client.post("/importer/jobs/venues", json={}).status_code == 400
    assert _upload(client, "venues", venue_csv(), filename="venues.csv").status_code == 400
    assert _upload(client, "venues", venue_csv("a,b,c,d"), filename="venues.xlsx").status_code == 400
    assert ImportJob.query.count() == 0


def test_submit_rejects_oversize_upload(importer_app, client, venue_csv):
    importer_app.config["IMPORTER_MAX_UPLOAD_MB"] = 0

    response = _upload(client, "venues", venue_csv("Arena,1 Main St,Austin,TX,,,,,,,"))

    assert response.status_code == 413
    assert ImportJob.query.count() == 0


def test_job_detail_and_errors(importer_app, client, job_factory):
    errors = [
        {"row_number": 2, "field": "email", "message": "Invalid email format", "origin": "validation"},
        {"row_number": 5, "field": "general", "message": "UNIQUE constraint failed", "origin": "write"},
    ]
    job = job_factory(
        kind=ImportKind.CONTACTS, status=ImportJobStatus.COMPLETED, total_rows=6, error_rows=2, errors=errors
    )

    detail = client.get(f"/importer/jobs/{job.id}")
    assert detail.status_code == 200
    payload = detail.get_json()
    assert payload["job_id"] == job.id
    assert payload["status"] == "completed"
    assert payload["success_rows"] == 4
    assert payload["progress_percent"] == 100.0
    assert all("origin" not in entry for entry in payload["errors"])

    error_response = client.get(f"/importer/jobs/{job.id}/errors")
    assert error_response.status_code == 200
    error_payload = error_response.get_json()
    assert error_payload["job_id"] == job.id
    assert error_payload["error_count"] == 2
    assert error_payload["errors"][1] == {"row_number": 5, "field": "general", "message": "UNIQUE constraint failed"}


def test_job_detail_not_found(importer_app, client):
    assert client.get("/importer/jobs/4242").status_code == 404
    assert client.get("/importer/jobs/4242/errors").status_code == 404


def test_jobs_list_and_stats(importer_app, client, job_factory):
    job_factory(kind=ImportKind.VENUES, status=ImportJobStatus.COMPLETED)
    job_factory(kind=ImportKind.CONTACTS, status=ImportJobStatus.FAILED, error_rows=10)

    listing = client.get("/importer/jobs?status=failed")
    assert listing.status_code == 200
    payload = listing.get_json()
    assert payload["total"] == 1
    assert payload["jobs"][0]["kind"] == "contacts"
    assert payload["filters"]["statuses"] == ["failed"]

    stats = client.get("/importer/jobs/stats")
    assert stats.status_code == 200
    stats_payload = stats.get_json()
    assert stats_payload["total"] == 2
    assert stats_payload["by_kind"] == {"venues": 1, "contacts": 1}


def test_jobs_list_invalid_filter(importer_app, client):
    response = client.get("/importer/jobs?sort=bogus")

    assert response.status_code == 400
    assert "Unsupported sort field" in response.get_json()["error"]

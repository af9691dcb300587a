# mypy: ignore-errors
"""Tests for audit trail and system job endpoints."""

from fastapi import status

from petsocial_moderation.services.audit import AuditLogWriter


def test_audit_logs_record_decisions(client, user_headers, moderator_headers, admin_headers) -> None:
    case = client.post(
        "/api/v1/moderation/reports",
        json={"content_type": "comment", "content_id": "c1"},
        headers=user_headers,
    ).json()
    client.post(
        f"/api/v1/moderation/cases/{case['id']}/decision",
        json={"action": "redact", "justification": "Phone number"},
        headers=moderator_headers,
    )

    response = client.get(
        "/api/v1/audit/logs",
        params={"target_type": "comment", "target_id": "c1"},
        headers=admin_headers,
    )

    assert response.status_code == status.HTTP_200_OK
    [entry] = response.json()
    assert entry["actor_id"] == "mod-1"
    assert entry["action"] == "moderation.redact"
    assert entry["reason"] == "Phone number"
    assert entry["metadata"]["queue_item_id"] == case["id"]


def test_audit_logs_require_admin(client, moderator_headers) -> None:
    assert client.get("/api/v1/audit/logs", headers=moderator_headers).status_code == 403
    assert client.get("/api/v1/audit/queue", headers=moderator_headers).status_code == 403


def test_audit_queue_and_replay_job(client, db_session, unavailable_log, admin_headers) -> None:
    queued = AuditLogWriter(db_session, logs=unavailable_log).write_audit(
        "mod-1", "moderation.approve", "post", "p1"
    )

    pending = client.get("/api/v1/audit/queue", headers=admin_headers).json()
    assert [entry["id"] for entry in pending] == [queued.log_id]
    assert pending[0]["attempts"] == 0

    response = client.post("/api/v1/system/jobs/audit-queue", headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"job": "audit-queue", "count": 1}

    assert client.get("/api/v1/audit/queue", headers=admin_headers).json() == []
    logs = client.get(
        "/api/v1/audit/logs", params={"actor_id": "mod-1"}, headers=admin_headers
    ).json()
    assert [entry["id"] for entry in logs] == [queued.log_id]


def test_retention_job(client, admin_headers) -> None:
    response = client.post("/api/v1/system/jobs/retention", headers=admin_headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"job": "retention", "count": 0}


def test_jobs_require_admin(client, moderator_headers) -> None:
    response = client.post("/api/v1/system/jobs/retention", headers=moderator_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_public_config(client) -> None:
    data = client.get("/api/v1/system/config").json()

    assert data["retention"]["soft_delete_retention_days"] == 90
    assert data["moderation"]["escalation_thresholds"] == {"urgent": 10, "high": 5, "medium": 2}
    assert data["audit"]["queue_max_attempts"] == 5

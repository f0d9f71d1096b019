"""
HTTP API tests: the full task lifecycle through /api/v1 and the error mapping.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

from wikiflow.orchestration.errors import StorageFailure
from wikiflow.orchestration.repository import TaskRepository

API = "/api/v1"


def _as(user) -> dict:
    """Identity header as forwarded by the auth gateway."""
    return {"X-User-Id": str(user.id)}


async def _create_task(client: AsyncClient, admin, annotator, writer_a, writer_b, deadline=None):
    deadline = deadline or datetime.now(timezone.utc) + timedelta(days=7)
    r = await client.post(
        f"{API}/tasks",
        json={
            "function_ref": f"payments/refunds/{uuid.uuid4().hex[:6]}",
            "title": "Document refund processing",
            "code_annotator_id": str(annotator.id),
            "writer1_id": str(writer_a.id),
            "writer2_id": str(writer_b.id),
            "deadline": deadline.isoformat(),
        },
        headers=_as(admin),
    )
    assert r.status_code == 201, r.text
    return r.json()


async def _submit(client: AsyncClient, task_id: str, writer, title: str) -> dict:
    r = await client.post(f"{API}/tasks/{task_id}/accept", headers=_as(writer))
    assert r.status_code == 200, r.text
    r = await client.post(
        f"{API}/tasks/{task_id}/documents",
        json={"title": title, "content": f"{title} explains the refund flow."},
        headers=_as(writer),
    )
    assert r.status_code == 201, r.text
    return r.json()


async def _vote(client: AsyncClient, document_id: str, voter, quality: int, readability: int):
    return await client.post(
        f"{API}/documents/{document_id}/votes",
        json={"document_quality_score": quality, "code_readability_score": readability},
        headers=_as(voter),
    )


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert "X-Request-ID" in r.headers


@pytest.mark.asyncio
async def test_identity_header_required(client: AsyncClient):
    r = await client.get(f"{API}/tasks")
    assert r.status_code == 401

    r = await client.get(f"{API}/tasks", headers={"X-User-Id": str(uuid.uuid4())})
    assert r.status_code == 401

    r = await client.get(f"{API}/tasks", headers={"X-User-Id": "not-a-uuid"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_full_lifecycle(client: AsyncClient, admin, annotator, writer_a, writer_b, reviewers):
    """create -> accept -> submit x2 -> vote -> completed with winner."""
    task = await _create_task(client, admin, annotator, writer_a, writer_b)
    assert task["status"] == "not_started"
    task_id = task["id"]

    d1 = await _submit(client, task_id, writer_a, "Draft A")
    r = await client.get(f"{API}/tasks/{task_id}", headers=_as(writer_b))
    detail = r.json()
    assert detail["task"]["status"] == "in_progress"
    # Writer B cannot read A's draft while writing is open
    assert detail["documents"][0]["content"] is None

    d2 = await _submit(client, task_id, writer_b, "Draft B")

    r = await client.get(f"{API}/tasks/{task_id}", headers=_as(reviewers[0]))
    detail = r.json()
    assert detail["task"]["status"] == "pending_vote"
    assert {d["id"] for d in detail["documents"]} == {d1["id"], d2["id"]}
    assert all(d["content"] for d in detail["documents"])

    for reviewer in reviewers:
        r = await _vote(client, d1["id"], reviewer, 9, 8)
        assert r.status_code == 201, r.text
    for reviewer in reviewers[:2]:
        r = await _vote(client, d2["id"], reviewer, 7, 7)
        assert r.json()["task_status"] == "pending_vote"

    r = await _vote(client, d2["id"], reviewers[2], 7, 7)
    assert r.status_code == 201
    body = r.json()
    assert body["task_status"] == "completed"
    assert body["winning_document_id"] == d1["id"]
    assert body["stats"]["total_votes"] == 3

    r = await client.get(f"{API}/documents/{d1['id']}/assessment", headers=_as(writer_a))
    assert r.json() == {
        "document_id": d1["id"],
        "avg_document_quality": 9.0,
        "avg_code_readability": 8.0,
        "total_votes": 3,
    }

    r = await client.get(f"{API}/tasks/{task_id}", headers=_as(writer_a))
    detail = r.json()
    assert detail["task"]["winning_document_id"] == d1["id"]
    winners = [a["document_id"] for a in detail["assessments"] if a["is_winner"]]
    assert winners == [d1["id"]]
    history = {h["event_type"] for h in detail["history"]}
    assert {"task.accepted", "task.status_changed", "assessment.completed"} <= history

    r = await client.get(f"{API}/notifications/me", headers=_as(writer_a))
    kinds = {n["notification_type"] for n in r.json()}
    assert {"task_assigned", "task_completed"} <= kinds


@pytest.mark.asyncio
async def test_error_mapping(client: AsyncClient, admin, annotator, writer_a, writer_b, reviewers):
    task = await _create_task(client, admin, annotator, writer_a, writer_b)
    task_id = task["id"]

    r = await client.post(f"{API}/tasks/{task_id}/accept", headers=_as(reviewers[0]))
    assert r.status_code == 403
    assert r.json()["code"] == "not_assigned"

    r = await client.post(f"{API}/tasks/{uuid.uuid4()}/accept", headers=_as(writer_a))
    assert r.status_code == 404

    d1 = await _submit(client, task_id, writer_a, "Draft A")

    r = await client.post(
        f"{API}/tasks/{task_id}/documents",
        json={"title": "Again", "content": "Second try"},
        headers=_as(writer_a),
    )
    assert r.status_code == 409
    assert r.json()["code"] == "invalid_state"

    await _submit(client, task_id, writer_b, "Draft B")

    r = await _vote(client, d1["id"], reviewers[0], 11, 5)
    assert r.status_code == 422
    assert r.json()["code"] == "invalid_score"

    r = await _vote(client, d1["id"], writer_a, 10, 10)
    assert r.status_code == 403
    assert r.json()["code"] == "self_vote"

    assert (await _vote(client, d1["id"], reviewers[0], 6, 6)).status_code == 201
    r = await _vote(client, d1["id"], reviewers[0], 6, 6)
    assert r.status_code == 409
    assert r.json()["code"] == "duplicate_vote"

    r = await client.get(f"{API}/documents/{d1['id']}/assessment", headers=_as(admin))
    assert r.json()["total_votes"] == 1


@pytest.mark.asyncio
async def test_request_validation(client: AsyncClient, admin, annotator, writer_a):
    r = await client.post(
        f"{API}/tasks",
        json={"function_ref": "", "title": "x", "code_annotator_id": str(annotator.id)},
        headers=_as(admin),
    )
    assert r.status_code == 422
    assert r.json()["code"] == "validation_error"


@pytest.mark.asyncio
async def test_overtime_and_override(
    client: AsyncClient, admin, annotator, writer_a, writer_b, reviewers, monkeypatch
):
    task = await _create_task(client, admin, annotator, writer_a, writer_b)
    task_id = task["id"]
    d1 = await _submit(client, task_id, writer_a, "Draft A")

    r = await client.post(
        f"{API}/tasks/{task_id}/override",
        json={"target_status": "pending_vote"},
        headers=_as(admin),
    )
    assert r.status_code == 409

    # Pull the deadline into the past through the repository the API uses
    original_load = TaskRepository.load_task

    async def load_overdue(self, task_id_, for_update=False):
        loaded = await original_load(self, task_id_, for_update=for_update)
        if loaded is not None and loaded.deadline is not None:
            loaded.deadline = datetime.now(timezone.utc) - timedelta(days=1)
        return loaded

    with monkeypatch.context() as m:
        m.setattr(TaskRepository, "load_task", load_overdue)
        r = await client.post(f"{API}/tasks/{task_id}/refresh-overtime", headers=_as(writer_a))
        assert r.json()["data"]["status"] == "overtime"

    r = await client.get(f"{API}/tasks?status=overtime", headers=_as(admin))
    assert [t["id"] for t in r.json()] == [task_id]
    assert r.json()[0]["is_overdue"] is True

    r = await _vote(client, d1["id"], reviewers[0], 8, 8)
    assert r.status_code == 409

    r = await client.post(
        f"{API}/tasks/{task_id}/override",
        json={"target_status": "pending_vote"},
        headers=_as(writer_a),
    )
    assert r.status_code == 403

    r = await client.post(
        f"{API}/tasks/{task_id}/override",
        json={"target_status": "pending_vote"},
        headers=_as(admin),
    )
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "pending_vote"
    assert r.json()["deadline"] is None

    r = await _vote(client, d1["id"], reviewers[0], 8, 8)
    assert r.status_code == 201


@pytest.mark.asyncio
async def test_annotations(client: AsyncClient, admin, annotator, writer_a, writer_b):
    task = await _create_task(client, admin, annotator, writer_a, writer_b)
    payload = {
        "file_paths": ["payments/refunds.py"],
        "key_methods": ["issue_refund", "reverse_charge"],
        "git_commits": ["a1b2c3d"],
        "deployment_status": "staging",
    }
    r = await client.post(
        f"{API}/tasks/{task['id']}/annotations", json=payload, headers=_as(annotator)
    )
    assert r.status_code == 201
    assert r.json()["key_methods"] == ["issue_refund", "reverse_charge"]

    r = await client.post(
        f"{API}/tasks/{task['id']}/annotations", json=payload, headers=_as(writer_b)
    )
    assert r.status_code == 403

    r = await client.get(f"{API}/tasks/{task['id']}", headers=_as(writer_a))
    assert len(r.json()["annotations"]) == 1


@pytest.mark.asyncio
async def test_list_mine(client: AsyncClient, admin, annotator, writer_a, writer_b, reviewers):
    task = await _create_task(client, admin, annotator, writer_a, writer_b)

    r = await client.get(f"{API}/tasks?mine=true", headers=_as(writer_b))
    assert [t["id"] for t in r.json()] == [task["id"]]

    r = await client.get(f"{API}/tasks?mine=true", headers=_as(reviewers[0]))
    assert r.json() == []


@pytest.mark.asyncio
async def test_storage_failure_is_503(client: AsyncClient, admin, monkeypatch):
    async def broken_load(self, task_id, for_update=False):
        raise StorageFailure("Storage read failed")

    monkeypatch.setattr(TaskRepository, "load_task", broken_load)
    r = await client.get(f"{API}/tasks/{uuid.uuid4()}", headers=_as(admin))
    assert r.status_code == 503
    assert r.json()["code"] == "storage_failure"


@pytest.mark.asyncio
async def test_offset_deadline_returned_in_utc(client: AsyncClient, admin, annotator, writer_a, writer_b):
    due = datetime.now(timezone.utc) + timedelta(days=2)
    task = await _create_task(
        client, admin, annotator, writer_a, writer_b,
        deadline=due.astimezone(timezone(timedelta(hours=8))),
    )
    stored = datetime.fromisoformat(task["deadline"].replace("Z", "+00:00"))
    assert stored.utcoffset() == timedelta(0)
    assert abs(stored - due) < timedelta(seconds=1)

    r = await client.get(f"{API}/tasks/{task['id']}", headers=_as(writer_a))
    reread = datetime.fromisoformat(r.json()["task"]["deadline"].replace("Z", "+00:00"))
    assert reread == stored
    assert r.json()["task"]["is_overdue"] is False

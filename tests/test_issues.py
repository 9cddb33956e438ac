from sqlalchemy import func, select

from tracker.models.attachment import Attachment
from tracker.models.comment import Comment


async def test_issue_keys_are_sequential(client, project, alice, create_issue):
    first = await create_issue(project, alice)
    second = await create_issue(project, alice, title="Second")
    assert first["key"] == "DEMO-1"
    assert second["key"] == "DEMO-2"
    assert first["status"] == "todo"
    assert first["priority"] == "medium"
    assert first["reporter"]["id"] == alice.id
    assert first["project"]["key"] == "DEMO"


async def test_issue_keys_not_reused_after_delete(client, project, alice, create_issue):
    await create_issue(project, alice)
    second = await create_issue(project, alice)
    response = await client.delete(f"/issues/{second['id']}", headers=alice.headers)
    assert response.status_code == 200

    third = await create_issue(project, alice)
    assert third["key"] == "DEMO-3"


async def test_keys_are_per_project(client, alice, create_project, create_issue):
    web = await create_project(alice, key="WEB")
    api = await create_project(alice, key="API")
    assert (await create_issue(web, alice))["key"] == "WEB-1"
    assert (await create_issue(api, alice))["key"] == "API-1"


async def test_non_member_cannot_create(client, project, bob):
    response = await client.post(
        f"/projects/{project['id']}/issues",
        json={"title": "x", "description": "y"},
        headers=bob.headers,
    )
    assert response.status_code == 403


async def test_create_validation(client, project, alice, bob):
    response = await client.post(
        f"/projects/{project['id']}/issues",
        json={"title": "x", "description": "y", "assignee": bob.id},
        headers=alice.headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Assignee must be a project member"

    response = await client.post(
        f"/projects/{project['id']}/issues",
        json={"title": "x", "description": "y", "priority": "whenever"},
        headers=alice.headers,
    )
    assert response.status_code == 400

    response = await client.post(
        f"/projects/{project['id']}/issues", json={"description": "no title"}, headers=alice.headers
    )
    assert response.status_code == 400


async def test_create_sanitizes_text(client, project, alice, create_issue):
    issue = await create_issue(
        project, alice, title="  <b>Broken</b> button ", tags=["ui", "<i></i>", " auth "]
    )
    assert issue["title"] == "Broken button"
    assert issue["tags"] == ["ui", "auth"]


async def test_update_permissions(client, project, alice, bob, carol, dave, join, create_issue):
    for account in (bob, carol, dave):
        await join(project, alice, account)
    issue = await create_issue(project, bob, assignee=carol.id)

    # a plain member may read but not modify
    response = await client.get(f"/issues/{issue['id']}", headers=dave.headers)
    assert response.status_code == 200
    response = await client.put(f"/issues/{issue['id']}", json={"title": "Nope"}, headers=dave.headers)
    assert response.status_code == 403

    for account, title in ((alice, "By owner"), (bob, "By reporter"), (carol, "By assignee")):
        response = await client.put(f"/issues/{issue['id']}", json={"title": title}, headers=account.headers)
        assert response.status_code == 200, account.email
        assert response.json()["data"]["title"] == title


async def test_outsider_cannot_read(client, project, alice, bob, create_issue):
    issue = await create_issue(project, alice)
    response = await client.get(f"/issues/{issue['id']}", headers=bob.headers)
    assert response.status_code == 403

    response = await client.get("/issues/unknown-id", headers=bob.headers)
    assert response.status_code == 404


async def test_partial_update_keeps_omitted_fields(client, project, alice, bob, join, create_issue):
    await join(project, alice, bob)
    issue = await create_issue(
        project, alice, assignee=bob.id, due_date="2026-12-01T00:00:00", tags=["api"]
    )

    response = await client.put(f"/issues/{issue['id']}", json={"priority": "high"}, headers=alice.headers)
    data = response.json()["data"]
    assert data["priority"] == "high"
    assert data["assignee"]["id"] == bob.id
    assert data["due_date"].startswith("2026-12-01")
    assert data["tags"] == ["api"]

    # explicit nulls clear
    response = await client.put(
        f"/issues/{issue['id']}", json={"assignee": None, "due_date": None}, headers=alice.headers
    )
    data = response.json()["data"]
    assert data["assignee"] is None
    assert data["due_date"] is None


async def test_update_rejects_bad_values(client, project, alice, bob, create_issue):
    issue = await create_issue(project, alice)
    response = await client.put(f"/issues/{issue['id']}", json={"status": "closed"}, headers=alice.headers)
    assert response.status_code == 400

    response = await client.put(f"/issues/{issue['id']}", json={"assignee": bob.id}, headers=alice.headers)
    assert response.status_code == 400


async def test_assign_by_any_member(client, project, alice, bob, carol, join, create_issue):
    await join(project, alice, bob)
    await join(project, alice, carol)
    issue = await create_issue(project, alice)

    response = await client.put(f"/issues/{issue['id']}/assign", json={"assigneeId": bob.id}, headers=carol.headers)
    assert response.status_code == 200
    assert response.json()["data"]["assignee"]["id"] == bob.id

    response = await client.put(f"/issues/{issue['id']}/assign", json={"assignee": None}, headers=carol.headers)
    assert response.status_code == 200
    assert response.json()["data"]["assignee"] is None


async def test_assign_outsider_rejected(client, project, alice, bob, create_issue):
    issue = await create_issue(project, alice)
    response = await client.put(f"/issues/{issue['id']}/assign", json={"assigneeId": bob.id}, headers=alice.headers)
    assert response.status_code == 400

    response = await client.put(f"/issues/{issue['id']}/assign", json={"assigneeId": alice.id}, headers=bob.headers)
    assert response.status_code == 403


async def test_status_update_assignee_only(client, project, alice, bob, join, create_issue):
    await join(project, alice, bob)
    issue = await create_issue(project, alice, assignee=bob.id)

    # the reporter and owner may not use the status endpoint
    response = await client.put(f"/issues/{issue['id']}/status", json={"status": "done"}, headers=alice.headers)
    assert response.status_code == 403

    response = await client.put(f"/issues/{issue['id']}/status", json={"status": "inprogress"}, headers=bob.headers)
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "inprogress"

    response = await client.put(f"/issues/{issue['id']}/status", json={"status": "later"}, headers=bob.headers)
    assert response.status_code == 400


async def test_delete_owner_or_reporter(client, project, alice, bob, carol, join, create_issue):
    await join(project, alice, bob)
    await join(project, alice, carol)
    issue = await create_issue(project, bob, assignee=carol.id)

    response = await client.delete(f"/issues/{issue['id']}", headers=carol.headers)
    assert response.status_code == 403

    response = await client.delete(f"/issues/{issue['id']}", headers=bob.headers)
    assert response.status_code == 200
    response = await client.get(f"/issues/{issue['id']}", headers=bob.headers)
    assert response.status_code == 404


async def test_delete_cascades_comments_and_attachments(client, project, alice, bob, join, create_issue,
                                                        upload, fake_storage, session_factory):
    await join(project, alice, bob)
    issue_file = (await upload(alice)).json()["data"]
    comment_file = (await upload(bob, filename="log.pdf", mime="application/pdf")).json()["data"]
    kept_file = (await upload(bob)).json()["data"]

    issue = await create_issue(project, alice, attachments=[issue_file["id"]])
    assert [a["id"] for a in issue["attachments"]] == [issue_file["id"]]
    await client.post(
        f"/issues/{issue['id']}/comments",
        json={"content": "Attached logs", "attachments": [comment_file["id"]]},
        headers=bob.headers,
    )

    response = await client.delete(f"/issues/{issue['id']}", headers=alice.headers)
    assert response.status_code == 200

    assert set(fake_storage.destroyed) == {issue_file["public_id"], comment_file["public_id"]}
    async with session_factory() as db:
        assert await db.scalar(select(func.count()).select_from(Comment)) == 0
        remaining = (await db.execute(select(Attachment.id))).scalars().all()
    assert remaining == [kept_file["id"]]


async def test_delete_aborts_when_storage_fails(client, project, alice, create_issue, upload, fake_storage):
    attachment = (await upload(alice)).json()["data"]
    issue = await create_issue(project, alice, attachments=[attachment["id"]])

    fake_storage.fail_destroy = True
    response = await client.delete(f"/issues/{issue['id']}", headers=alice.headers)
    assert response.status_code == 500

    response = await client.get(f"/issues/{issue['id']}", headers=alice.headers)
    assert response.status_code == 200


async def test_list_filters_and_pagination(client, project, alice, bob, join, create_issue):
    await join(project, alice, bob)
    for n in range(3):
        await create_issue(project, alice, title=f"Crash {n}", priority="high")
    await create_issue(project, alice, title="Typo in footer", priority="low", assignee=bob.id)

    response = await client.get(f"/projects/{project['id']}/issues?limit=2", headers=bob.headers)
    body = response.json()
    assert body["count"] == 2
    assert body["total"] == 4
    assert body["totalPages"] == 2
    assert body["currentPage"] == 1
    # newest first
    assert body["data"][0]["title"] == "Typo in footer"

    response = await client.get(f"/projects/{project['id']}/issues?priority=high", headers=bob.headers)
    assert response.json()["total"] == 3

    response = await client.get(f"/projects/{project['id']}/issues?search=footer", headers=bob.headers)
    assert [i["key"] for i in response.json()["data"]] == ["DEMO-4"]

    response = await client.get(f"/projects/{project['id']}/issues?assignee={bob.id}", headers=bob.headers)
    assert response.json()["total"] == 1


async def test_assigned_and_reported_listings(client, project, alice, bob, join, create_issue):
    await join(project, alice, bob)
    await create_issue(project, alice, assignee=bob.id)
    await create_issue(project, bob)

    response = await client.get("/issues/assigned-to-me", headers=bob.headers)
    assert response.json()["total"] == 1

    response = await client.get("/issues/reported-by-me", headers=bob.headers)
    assert response.json()["total"] == 1

    response = await client.get("/issues/reported-by-me", headers=alice.headers)
    assert [i["key"] for i in response.json()["data"]] == ["DEMO-1"]

"""End-to-end task workflow through the HTTP API."""

from tests.conftest import add_user, auth_headers, run


def create_project(client, owner, managers=(), members=()):
    resp = client.post("/projects/", json={
        "name": "Harbor Expansion",
        "managers": list(managers),
        "members": list(members),
    }, headers=auth_headers(owner))
    assert resp.status_code == 201
    return resp.json()["_id"]


def create_task(client, owner, project_id, assignees, actions=("Survey", "Report", "Sign off"), difficulty=5):
    resp = client.post("/tasks/", json={
        "project_id": project_id,
        "title": "Inspect pier 4",
        "assigned_to": list(assignees),
        "difficulty_level": difficulty,
        "actions": [{"title": title, "type": "text"} for title in actions],
    }, headers=auth_headers(owner))
    assert resp.status_code == 201, resp.text
    return resp.json()


def complete(client, user, task, action_id, data=None):
    body = {"version": task["version"]}
    if data is not None:
        body["data"] = data
    return client.post(
        f"/tasks/{task['_id']}/actions/{action_id}/complete", json=body, headers=auth_headers(user)
    )


def transition(client, user, task, name):
    return client.post(
        f"/tasks/{task['_id']}/transitions/{name}",
        json={"version": task["version"]}, headers=auth_headers(user)
    )


def test_create_task_prices_reward_from_settings(client, manager, employee):
    project_id = create_project(client, manager)
    task = create_task(client, manager, project_id, [employee.id], difficulty=5)

    assert task["status"] == "pending"
    assert task["coins_reward"] == 75
    assert task["reward_inputs"] == {
        "task_completion_base": 10,
        "complexity_multiplier": 1.5,
        "difficulty_level": 5,
        "settings_version": 0,
    }
    assert task["version"] == 1
    assert task["created_by"] == manager.id


def test_create_task_rejects_out_of_range_difficulty(client, manager):
    resp = client.post("/tasks/", json={
        "project_id": "p1", "title": "Too hard", "difficulty_level": 42,
    }, headers=auth_headers(manager))
    assert resp.status_code == 422


def test_employee_cannot_create_tasks(client, employee):
    resp = client.post("/tasks/", json={"project_id": "p1", "title": "Nope"}, headers=auth_headers(employee))
    assert resp.status_code == 403


def test_requires_bearer_token(client):
    assert client.get("/tasks/").status_code == 401
    bad = client.get("/tasks/", headers={"Authorization": "Bearer not-a-token"})
    assert bad.status_code == 401


def test_full_workflow_credits_coins_once(client, db, admin, manager, employee):
    project_id = create_project(client, manager)
    task = create_task(client, manager, project_id, [employee.id])

    # Submitting early is rejected
    assert transition(client, employee, task, "submit").status_code == 409

    task = transition(client, employee, task, "start").json()
    assert task["status"] == "in_progress"

    for action in task["actions"]:
        resp = complete(client, employee, task, action["id"], {"kind": "text", "text": "ok"})
        assert resp.status_code == 200, resp.text
        task = resp.json()
    assert all(a["completed"] and a["completed_by"] == employee.id for a in task["actions"])

    detail = client.get(f"/tasks/{task['_id']}", headers=auth_headers(employee)).json()
    assert detail["progress"] == {"completed": 3, "total": 3, "percent": 100, "all_complete": True}
    assert "submit_for_approval" in detail["controls"]

    task = transition(client, employee, task, "submit").json()
    assert task["status"] == "waiting_approval"

    # Locked while waiting
    locked = client.post(
        f"/tasks/{task['_id']}/actions/{task['actions'][0]['id']}/uncomplete",
        json={"version": task["version"]}, headers=auth_headers(employee)
    )
    assert locked.status_code == 409

    # Only admins approve
    assert transition(client, manager, task, "approve").status_code == 403

    approved = transition(client, admin, task, "approve")
    assert approved.status_code == 200
    approved_task = approved.json()
    assert approved_task["status"] == "completed"
    assert approved_task["completed_at"] is not None
    assert approved_task["coins_credited"] is True

    # A second approver holding the same version loses
    assert transition(client, admin, task, "approve").status_code == 409
    # A second approval with a fresh version hits a terminal state
    assert transition(client, admin, approved_task, "approve").status_code == 409

    stored = run(db.users.find_one({"_id": employee.id}))
    assert stored["coins"] == 75

    notes = client.get("/notifications/", headers=auth_headers(employee)).json()
    assert any(n["type"] == "task_approved" and "75 coins" in n["message"] for n in notes)

    chat = client.get(f"/projects/{project_id}/messages", headers=auth_headers(manager)).json()
    assert {m["message_type"] for m in chat} >= {"task_submission", "task_approval"}


def test_approve_from_pending_rejected(client, admin, manager, employee):
    task = create_task(client, manager, "p1", [employee.id])
    resp = transition(client, admin, task, "approve")
    assert resp.status_code == 409
    assert "pending" in resp.json()["detail"]


def test_zero_action_task_cannot_be_submitted(client, manager, employee):
    task = create_task(client, manager, "p1", [employee.id], actions=())
    detail = client.get(f"/tasks/{task['_id']}", headers=auth_headers(employee)).json()
    assert detail["progress"]["all_complete"] is False
    assert "submit_for_approval" not in detail["controls"]
    assert transition(client, employee, task, "submit").status_code == 409


def test_partial_progress_rounds_and_hides_submit(client, manager, employee):
    task = create_task(client, manager, "p1", [employee.id])
    for action in task["actions"][:2]:
        task = complete(client, employee, task, action["id"]).json()

    detail = client.get(f"/tasks/{task['_id']}", headers=auth_headers(employee)).json()
    assert detail["progress"]["percent"] == 67
    assert detail["progress"]["all_complete"] is False
    assert "submit_for_approval" not in detail["controls"]


def test_revert_reopens_actions(client, admin, manager, employee):
    task = create_task(client, manager, "p1", [employee.id], actions=("Only step",))
    task = complete(client, employee, task, task["actions"][0]["id"]).json()
    task = transition(client, employee, task, "submit").json()

    detail = client.get(f"/tasks/{task['_id']}", headers=auth_headers(employee)).json()
    assert "complete_actions" not in detail["controls"]

    task = transition(client, admin, task, "revert").json()
    assert task["status"] == "pending"
    assert task["coins_credited"] is False

    detail = client.get(f"/tasks/{task['_id']}", headers=auth_headers(employee)).json()
    assert "complete_actions" in detail["controls"]
    resp = client.post(
        f"/tasks/{task['_id']}/actions/{task['actions'][0]['id']}/uncomplete",
        json={"version": task["version"]}, headers=auth_headers(employee)
    )
    assert resp.status_code == 200
    assert resp.json()["actions"][0]["completed_by"] is None


def test_stale_version_is_rejected(client, manager, employee):
    task = create_task(client, manager, "p1", [employee.id])
    first = complete(client, employee, task, task["actions"][0]["id"])
    assert first.status_code == 200

    # Same stale version from another session
    second = complete(client, employee, task, task["actions"][1]["id"])
    assert second.status_code == 409

    current = client.get(f"/tasks/{task['_id']}", headers=auth_headers(manager)).json()["task"]
    assert [a["completed"] for a in current["actions"]] == [True, False, False]


def test_payload_kind_must_match_action_type(client, manager, employee):
    resp = client.post("/tasks/", json={
        "project_id": "p1", "title": "Upload plan",
        "assigned_to": [employee.id],
        "actions": [{"title": "Plan PDF", "type": "file_upload"}],
    }, headers=auth_headers(manager))
    task = resp.json()
    action_id = task["actions"][0]["id"]

    wrong = complete(client, employee, task, action_id, {"kind": "text", "text": "here"})
    assert wrong.status_code == 422

    ok = complete(client, employee, task, action_id, {"kind": "file_upload", "file_url": "https://cdn.workquest.io/plan.pdf"})
    assert ok.status_code == 200
    assert ok.json()["actions"][0]["data"] == {"kind": "file_upload", "file_url": "https://cdn.workquest.io/plan.pdf"}


def test_other_employee_cannot_work_on_task(client, db, manager, employee):
    outsider = add_user(db, role="employee", full_name="Otto Outsider")
    task = create_task(client, manager, "p1", [employee.id])
    assert client.get(f"/tasks/{task['_id']}", headers=auth_headers(outsider)).status_code == 403
    assert complete(client, outsider, task, task["actions"][0]["id"]).status_code == 403


def test_settings_change_does_not_reprice_existing_tasks(client, admin, manager, employee):
    task = create_task(client, manager, "p1", [employee.id], difficulty=4)
    assert task["coins_reward"] == 60

    resp = client.put("/system/settings/", json={"task_completion_base": 20}, headers=auth_headers(admin))
    assert resp.status_code == 200

    unchanged = client.get(f"/tasks/{task['_id']}", headers=auth_headers(manager)).json()["task"]
    assert unchanged["coins_reward"] == 60

    newer = create_task(client, manager, "p1", [employee.id], difficulty=4)
    assert newer["coins_reward"] == 120
    assert newer["reward_inputs"]["settings_version"] == 1


def test_difficulty_edit_reprices(client, admin, manager, employee):
    task = create_task(client, manager, "p1", [employee.id], difficulty=2)
    client.put("/system/settings/", json={"complexity_multiplier": 2.0}, headers=auth_headers(admin))

    resp = client.patch(f"/tasks/{task['_id']}", json={"version": task["version"], "title": "Renamed"},
                        headers=auth_headers(manager))
    renamed = resp.json()
    assert renamed["title"] == "Renamed"
    assert renamed["coins_reward"] == 30

    resp = client.patch(f"/tasks/{task['_id']}", json={"version": renamed["version"], "difficulty_level": 3},
                        headers=auth_headers(manager))
    repriced = resp.json()
    assert repriced["coins_reward"] == 60
    assert repriced["reward_inputs"]["complexity_multiplier"] == 2.0


def test_update_with_stale_version(client, manager, employee):
    task = create_task(client, manager, "p1", [employee.id])
    client.patch(f"/tasks/{task['_id']}", json={"version": 1, "title": "First"}, headers=auth_headers(manager))
    resp = client.patch(f"/tasks/{task['_id']}", json={"version": 1, "title": "Second"}, headers=auth_headers(manager))
    assert resp.status_code == 409


def test_apply_template_twice(client, admin, manager, employee):
    template = client.post("/action-templates/", json={
        "title": "Safety check",
        "elements": [
            {"title": "Helmet photo", "type": "file_upload"},
            {"title": "Supervisor approval", "type": "approval", "description": "Signed"},
        ],
    }, headers=auth_headers(admin)).json()

    task = create_task(client, manager, "p1", [employee.id], actions=())
    url = f"/tasks/{task['_id']}/apply-template/{template['_id']}"
    task = client.post(url, json={"version": task["version"]}, headers=auth_headers(manager)).json()
    task = client.post(url, json={"version": task["version"]}, headers=auth_headers(manager)).json()

    actions = task["actions"]
    assert len(actions) == 4
    assert len({a["id"] for a in actions}) == 4
    assert [a["title"] for a in actions] == ["Helmet photo", "Supervisor approval"] * 2
    assert actions[1]["description"] == actions[3]["description"] == "Signed"
    assert not any(a["completed"] for a in actions)

    stored = client.get(f"/action-templates/{template['_id']}", headers=auth_headers(admin)).json()
    assert len(stored["elements"]) == 2


def test_add_and_remove_actions(client, manager, employee):
    task = create_task(client, manager, "p1", [employee.id], actions=("One",))
    task = client.post(f"/tasks/{task['_id']}/actions",
                       json={"version": task["version"], "title": "Two", "type": "date"},
                       headers=auth_headers(manager)).json()
    assert [a["title"] for a in task["actions"]] == ["One", "Two"]

    resp = client.delete(f"/tasks/{task['_id']}/actions/{task['actions'][0]['id']}",
                         params={"version": task["version"]}, headers=auth_headers(manager))
    assert [a["title"] for a in resp.json()["actions"]] == ["Two"]


def test_block_is_terminal(client, manager, employee):
    task = create_task(client, manager, "p1", [employee.id])
    assert transition(client, employee, task, "block").status_code == 403
    blocked = transition(client, manager, task, "block").json()
    assert blocked["status"] == "blocked"
    assert transition(client, manager, blocked, "start").status_code == 409
    assert complete(client, employee, blocked, blocked["actions"][0]["id"]).status_code == 409


def test_list_filters_and_pagination(client, db, manager, employee):
    other = add_user(db, role="employee", full_name="Olga Other")
    for _ in range(3):
        create_task(client, manager, "p1", [employee.id])
    create_task(client, manager, "p2", [other.id])

    page = client.get("/tasks/", params={"limit": 2, "page": 1}, headers=auth_headers(manager)).json()
    assert page["total"] == 4
    assert page["total_pages"] == 2
    assert len(page["data"]) == 2

    by_project = client.get("/tasks/", params={"project_id": "p2"}, headers=auth_headers(manager)).json()
    assert by_project["total"] == 1

    mine = client.get("/tasks/", headers=auth_headers(employee)).json()
    assert mine["total"] == 3
    # Employees cannot widen the filter to other people
    theirs = client.get("/tasks/", params={"assigned_to": other.id}, headers=auth_headers(employee)).json()
    assert theirs["total"] == 3

    pending = client.get("/tasks/", params={"status": "completed"}, headers=auth_headers(manager)).json()
    assert pending["total"] == 0


def test_unknown_users_render_as_placeholder(client, manager, employee):
    task = create_task(client, manager, "p1", [employee.id, "ghost-user"])
    detail = client.get(f"/tasks/{task['_id']}", headers=auth_headers(manager)).json()
    assert detail["assignee_names"] == {employee.id: "Eva Employee", "ghost-user": "Unknown User"}
    assert detail["creator_name"] == "Mario Manager"


def test_comments_and_attachments(client, manager, employee):
    task = create_task(client, manager, "p1", [employee.id])
    resp = client.post(f"/tasks/{task['_id']}/comments", json={"text": "On my way"},
                       headers=auth_headers(employee))
    assert resp.status_code == 201
    assert resp.json()["user_id"] == employee.id

    resp = client.post(f"/tasks/{task['_id']}/attachments", json={"url": "https://cdn.workquest.io/a.jpg"},
                       headers=auth_headers(employee))
    updated = resp.json()
    assert updated["attachments"] == ["https://cdn.workquest.io/a.jpg"]
    assert [c["text"] for c in updated["comments"]] == ["On my way"]
    assert updated["version"] == 3


def test_delete_task(client, manager, employee):
    task = create_task(client, manager, "p1", [employee.id])
    assert client.delete(f"/tasks/{task['_id']}", headers=auth_headers(employee)).status_code == 403
    assert client.delete(f"/tasks/{task['_id']}", headers=auth_headers(manager)).status_code == 200
    assert client.get(f"/tasks/{task['_id']}", headers=auth_headers(manager)).status_code == 404


def approved_task(client, admin, manager, employee, difficulty=5):
    task = create_task(client, manager, "p1", [employee.id], actions=("Only step",), difficulty=difficulty)
    task = complete(client, employee, task, task["actions"][0]["id"], {"kind": "text", "text": "done"}).json()
    task = transition(client, employee, task, "submit").json()
    return transition(client, admin, task, "approve").json()


def test_completed_task_cannot_be_repriced(client, db, admin, manager, employee):
    task = approved_task(client, admin, manager, employee)
    assert task["coins_credited"] is True

    resp = client.patch(f"/tasks/{task['_id']}", json={"version": task["version"], "difficulty_level": 10},
                        headers=auth_headers(admin))
    assert resp.status_code == 409

    stored = run(db.tasks.find_one({"_id": task["_id"]}))
    assert stored["coins_reward"] == 75
    assert stored["reward_inputs"]["difficulty_level"] == 5
    assert run(db.users.find_one({"_id": employee.id}))["coins"] == 75


def test_blocked_task_cannot_be_edited(client, manager, employee):
    task = create_task(client, manager, "p1", [employee.id])
    blocked = transition(client, manager, task, "block").json()
    resp = client.patch(f"/tasks/{task['_id']}", json={"version": blocked["version"], "title": "Reopened"},
                        headers=auth_headers(manager))
    assert resp.status_code == 409


def test_update_rejects_due_date_before_start_date(client, manager, employee):
    task = create_task(client, manager, "p1", [employee.id])
    resp = client.patch(f"/tasks/{task['_id']}", json={
        "version": task["version"],
        "start_date": "2026-05-10T00:00:00Z",
        "due_date": "2026-05-01T00:00:00Z",
    }, headers=auth_headers(manager))
    assert resp.status_code == 422


def test_update_checks_dates_against_stored_values(client, manager, employee):
    task = create_task(client, manager, "p1", [employee.id])
    task = client.patch(f"/tasks/{task['_id']}", json={
        "version": task["version"], "start_date": "2026-05-10T00:00:00Z",
    }, headers=auth_headers(manager)).json()

    resp = client.patch(f"/tasks/{task['_id']}", json={
        "version": task["version"], "due_date": "2026-05-01T00:00:00Z",
    }, headers=auth_headers(manager))
    assert resp.status_code == 422

    resp = client.patch(f"/tasks/{task['_id']}", json={
        "version": task["version"], "due_date": "2026-05-20T00:00:00Z",
    }, headers=auth_headers(manager))
    assert resp.status_code == 200

from datetime import date

from model.task_model import TaskStatus
from model.usermodels import UserRole


def test_employee_cannot_create_project(client, employee):
    response = client.post("/projects", json={"name": "Side Project"}, headers=employee.headers)
    assert response.status_code == 403


def test_manager_creates_project_and_manages_it_by_default(client, manager):
    response = client.post(
        "/projects",
        json={"name": "  Mobile App  ", "priority": "high", "budget": 1500.5},
        headers=manager.headers,
    )

    assert response.status_code == 201
    project = response.json()["data"]["project"]
    assert project["name"] == "Mobile App"
    assert project["managerId"] == manager.id
    assert project["createdBy"] == manager.id
    assert project["status"] == "planning"
    assert project["priority"] == "high"
    assert project["color"] == "#3B82F6"
    assert project["manager"]["id"] == manager.id


def test_project_manager_must_be_a_reviewer(client, manager, employee):
    response = client.post(
        "/projects",
        json={"name": "Mobile App", "managerId": employee.id},
        headers=manager.headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid manager. Manager must be an admin or manager."


def test_project_validation(client, manager):
    short = client.post("/projects", json={"name": "ab"}, headers=manager.headers)
    assert short.status_code == 400
    bad_color = client.post("/projects", json={"name": "Mobile App", "color": "blue"}, headers=manager.headers)
    assert bad_color.status_code == 400


def test_project_list_carries_task_stats(client, manager, employee, project, task, make_task):
    make_task(project, manager.id, title="Ship it", status=TaskStatus.DONE)

    response = client.get("/projects", headers=manager.headers)

    assert response.status_code == 200
    projects = response.json()["data"]["projects"]
    assert len(projects) == 1
    assert projects[0]["taskStats"] == {"total": 2, "completed": 1, "completionPercentage": 50}


def test_project_visibility_for_employees(client, employee, project):
    listed = client.get("/projects", headers=employee.headers)
    assert listed.json()["data"]["pagination"]["totalItems"] == 0
    assert client.get(f"/projects/{project}", headers=employee.headers).status_code == 403


def test_project_detail_lists_tasks(client, manager, project, task):
    response = client.get(f"/projects/{project}", headers=manager.headers)

    assert response.status_code == 200
    detail = response.json()["data"]["project"]
    assert [item["id"] for item in detail["tasks"]] == [task]
    assert detail["tasks"][0]["status"] == "todo"


def test_only_owning_manager_or_admin_updates_project(client, admin, make_user, project):
    other_manager = make_user(UserRole.MANAGER)

    denied = client.put(f"/projects/{project}", json={"status": "active"}, headers=other_manager.headers)
    assert denied.status_code == 403

    allowed = client.put(f"/projects/{project}", json={"status": "active"}, headers=admin.headers)
    assert allowed.status_code == 200
    assert allowed.json()["data"]["project"]["status"] == "active"

    null_name = client.put(f"/projects/{project}", json={"name": None}, headers=admin.headers)
    assert null_name.status_code == 400


def test_only_admin_deletes_project(client, admin, manager, project, task):
    assert client.delete(f"/projects/{project}", headers=manager.headers).status_code == 403

    response = client.delete(f"/projects/{project}", headers=admin.headers)
    assert response.status_code == 200
    assert client.get(f"/projects/{project}", headers=admin.headers).status_code == 404
    assert client.get(f"/tasks/{task}", headers=admin.headers).status_code == 404


def test_task_creation_rules(client, manager, employee, make_user, project):
    inactive = make_user(UserRole.EMPLOYEE, is_active=False)

    denied = client.post("/tasks", json={"title": "Write tests", "projectId": project}, headers=employee.headers)
    assert denied.status_code == 403

    bad_assignee = client.post(
        "/tasks",
        json={"title": "Write tests", "projectId": project, "assignedTo": inactive.id},
        headers=manager.headers,
    )
    assert bad_assignee.status_code == 400
    assert bad_assignee.json()["message"] == "Invalid assignee"

    missing_project = client.post("/tasks", json={"title": "Write tests", "projectId": 999}, headers=manager.headers)
    assert missing_project.status_code == 400
    assert missing_project.json()["message"] == "Project not found"

    created = client.post(
        "/tasks",
        json={"title": "Write tests", "projectId": project, "assignedTo": employee.id, "tags": ["qa"]},
        headers=manager.headers,
    )
    assert created.status_code == 201
    body = created.json()["data"]["task"]
    assert body["assignee"]["id"] == employee.id
    assert body["tags"] == ["qa"]
    assert body["completedAt"] is None


def test_completed_at_follows_done_status(client, manager, project):
    created = client.post(
        "/tasks",
        json={"title": "Already shipped", "projectId": project, "status": "done"},
        headers=manager.headers,
    )
    task_id = created.json()["data"]["task"]["id"]
    assert created.json()["data"]["task"]["completedAt"] is not None

    reopened = client.put(f"/tasks/{task_id}", json={"status": "in-progress"}, headers=manager.headers)
    assert reopened.json()["data"]["task"]["completedAt"] is None

    finished = client.put(f"/tasks/{task_id}", json={"status": "done"}, headers=manager.headers)
    assert finished.json()["data"]["task"]["completedAt"] is not None


def test_assignee_updates_but_cannot_reassign(client, manager, employee, other_employee, task):
    moved = client.put(f"/tasks/{task}", json={"status": "in-progress"}, headers=employee.headers)
    assert moved.status_code == 200

    reassign = client.put(f"/tasks/{task}", json={"assignedTo": other_employee.id}, headers=employee.headers)
    assert reassign.status_code == 403

    by_manager = client.put(f"/tasks/{task}", json={"assignedTo": other_employee.id}, headers=manager.headers)
    assert by_manager.status_code == 200
    assert by_manager.json()["data"]["task"]["assignedTo"] == other_employee.id


def test_only_assignee_sets_actual_hours(client, manager, employee, task):
    denied = client.put(f"/tasks/{task}", json={"actualHours": 4}, headers=manager.headers)
    assert denied.status_code == 403

    allowed = client.put(f"/tasks/{task}", json={"actualHours": 4}, headers=employee.headers)
    assert allowed.status_code == 200
    assert allowed.json()["data"]["task"]["actualHours"] == 4


def test_task_time_stats_are_capped(client, employee, project, task, make_timesheet):
    make_timesheet(employee.id, task, project, day=date(2024, 1, 1), hours="8")
    make_timesheet(employee.id, task, project, day=date(2024, 1, 2), hours="5")

    listed = client.get("/tasks", headers=employee.headers)
    item = listed.json()["data"]["tasks"][0]
    assert item["timeStats"] == {"estimated": 10, "logged": 13, "progressPercentage": 100}

    detail = client.get(f"/tasks/{task}", headers=employee.headers).json()["data"]["task"]
    assert len(detail["timesheets"]) == 2


def test_task_visibility_and_filters(client, manager, employee, other_employee, project, task, make_task):
    make_task(project, manager.id, assigned_to=other_employee.id, title="Fix footer")

    own = client.get("/tasks", headers=employee.headers).json()["data"]
    assert [item["id"] for item in own["tasks"]] == [task]
    assert client.get(f"/tasks/{task}", headers=other_employee.headers).status_code == 403

    searched = client.get("/tasks", params={"search": "footer"}, headers=manager.headers).json()["data"]
    assert [item["title"] for item in searched["tasks"]] == ["Fix footer"]


def test_task_delete_is_for_reviewers(client, manager, employee, task):
    assert client.delete(f"/tasks/{task}", headers=employee.headers).status_code == 403
    assert client.delete(f"/tasks/{task}", headers=manager.headers).status_code == 200
    assert client.get(f"/tasks/{task}", headers=manager.headers).status_code == 404


def test_search_matches_wildcards_literally(client, manager, make_project, make_user):
    make_project(manager.id, name="Q3 50% rollout")
    make_project(manager.id, name="Website Redesign")
    make_project(manager.id, name="Budget 500 review")
    make_user(UserRole.EMPLOYEE, first_name="Ann_Marie")
    make_user(UserRole.EMPLOYEE, first_name="Annamarie")

    percent = client.get("/projects", params={"search": "50%"}, headers=manager.headers).json()["data"]
    assert [project["name"] for project in percent["projects"]] == ["Q3 50% rollout"]

    underscore = client.get("/projects", params={"search": "e_i"}, headers=manager.headers).json()["data"]
    assert underscore["projects"] == []

    users = client.get("/users", params={"search": "n_m"}, headers=manager.headers).json()["data"]
    assert [user["firstName"] for user in users["users"]] == ["Ann_Marie"]

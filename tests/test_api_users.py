from datetime import date

from model.timesheet_model import TimesheetStatus
from model.usermodels import UserRole


def test_employees_cannot_list_users(client, employee):
    assert client.get("/users", headers=employee.headers).status_code == 403


def test_list_users_with_filters(client, manager, employee, make_user):
    make_user(UserRole.EMPLOYEE, is_active=False, first_name="Dormant")

    everyone = client.get("/users", headers=manager.headers).json()["data"]
    assert everyone["pagination"]["totalItems"] == 3

    employees = client.get("/users", params={"role": "employee", "isActive": "true"}, headers=manager.headers)
    ids = [user["id"] for user in employees.json()["data"]["users"]]
    assert ids == [employee.id]

    searched = client.get("/users", params={"search": "dormant"}, headers=manager.headers).json()["data"]
    assert [user["firstName"] for user in searched["users"]] == ["Dormant"]
    assert "password" not in searched["users"][0]


def test_user_detail_visibility(client, manager, employee, other_employee, task):
    own = client.get(f"/users/{employee.id}", headers=employee.headers)
    assert own.status_code == 200
    user = own.json()["data"]["user"]
    assert user["fullName"].startswith("Test ")
    assert [item["id"] for item in user["assignedTasks"]] == [task]

    assert client.get(f"/users/{other_employee.id}", headers=employee.headers).status_code == 403
    assert client.get(f"/users/{employee.id}", headers=manager.headers).status_code == 200
    assert client.get("/users/9999", headers=manager.headers).status_code == 404


def test_admin_updates_user(client, admin, manager, employee):
    denied = client.put(f"/users/{employee.id}", json={"role": "manager"}, headers=manager.headers)
    assert denied.status_code == 403

    promoted = client.put(
        f"/users/{employee.id}",
        json={"role": "manager", "department": "Delivery"},
        headers=admin.headers,
    )
    assert promoted.status_code == 200
    assert promoted.json()["data"]["user"]["role"] == "manager"
    assert promoted.json()["data"]["user"]["department"] == "Delivery"

    taken = client.put(f"/users/{employee.id}", json={"email": "MANAGER2@acme.io"}, headers=admin.headers)
    assert taken.status_code == 400
    assert taken.json()["message"] == "Email already exists"


def test_deactivated_user_loses_access(client, admin, employee):
    client.put(f"/users/{employee.id}", json={"isActive": False}, headers=admin.headers)

    response = client.get("/auth/profile", headers=employee.headers)
    assert response.status_code == 401
    assert response.json()["message"] == "Account is deactivated"


def test_delete_user_rules(client, admin, employee, other_employee, task):
    assert client.delete(f"/users/{admin.id}", headers=admin.headers).status_code == 400

    referenced = client.delete(f"/users/{employee.id}", headers=admin.headers)
    assert referenced.status_code == 400

    removed = client.delete(f"/users/{other_employee.id}", headers=admin.headers)
    assert removed.status_code == 200
    assert client.get(f"/users/{other_employee.id}", headers=admin.headers).status_code == 404


def test_user_timesheets_and_stats(client, manager, employee, project, task, make_task, make_project, make_timesheet):
    second_project = make_project(manager.id, name="Data Platform")
    second_task = make_task(second_project, manager.id, assigned_to=employee.id, title="Migrate jobs")
    make_timesheet(employee.id, task, project, day=date(2024, 1, 1), hours="3", status=TimesheetStatus.APPROVED)
    make_timesheet(employee.id, task, project, day=date(2024, 1, 2), hours="2")
    make_timesheet(employee.id, second_task, second_project, day=date(2024, 1, 3), hours="4", is_billable=False)

    listed = client.get(f"/users/{employee.id}/timesheets", params={"limit": 2}, headers=manager.headers)
    assert listed.status_code == 200
    assert listed.json()["data"]["pagination"]["totalItems"] == 3
    assert [row["date"] for row in listed.json()["data"]["timesheets"]] == ["2024-01-03", "2024-01-02"]

    stats = client.get(f"/users/{employee.id}/stats", headers=employee.headers).json()["data"]
    assert stats["summary"]["totalHours"] == 9
    assert stats["summary"]["billableHours"] == 5
    assert sorted(bucket["totalHours"] for bucket in stats["projectStats"]) == [4, 5]
    assert stats["statusStats"]["approved"] == {"count": 1, "hours": 3}
    assert stats["statusStats"]["draft"] == {"count": 2, "hours": 6}

    ranged = client.get(
        f"/users/{employee.id}/stats",
        params={"startDate": "2024-01-02"},
        headers=employee.headers,
    ).json()["data"]
    assert ranged["summary"]["totalEntries"] == 2


def test_user_stats_are_private_to_the_user(client, employee, other_employee):
    assert client.get(f"/users/{other_employee.id}/stats", headers=employee.headers).status_code == 403
    assert client.get(f"/users/{other_employee.id}/timesheets", headers=employee.headers).status_code == 403


def test_admin_cannot_demote_a_project_manager(client, admin, manager, project):
    response = client.put(f"/users/{manager.id}", json={"role": "employee"}, headers=admin.headers)

    assert response.status_code == 400
    assert response.json()["message"] == "User still manages projects; assign another manager first"
    detail = client.get(f"/projects/{project}", headers=admin.headers).json()["data"]["project"]
    assert detail["manager"]["id"] == manager.id
    assert client.get(f"/users/{manager.id}", headers=admin.headers).json()["data"]["user"]["role"] == "manager"

    promoted = client.put(f"/users/{manager.id}", json={"role": "admin"}, headers=admin.headers)
    assert promoted.status_code == 200


def test_admin_cannot_deactivate_an_assignee(client, admin, manager, employee, other_employee, task):
    response = client.put(f"/users/{employee.id}", json={"isActive": False}, headers=admin.headers)

    assert response.status_code == 400
    assert response.json()["message"] == "User still has assigned tasks; reassign them before deactivating"
    assert client.get(f"/users/{employee.id}", headers=admin.headers).json()["data"]["user"]["isActive"] is True

    client.put(f"/tasks/{task}", json={"assignedTo": other_employee.id}, headers=manager.headers)
    deactivated = client.put(f"/users/{employee.id}", json={"isActive": False}, headers=admin.headers)
    assert deactivated.status_code == 200
    assert deactivated.json()["data"]["user"]["isActive"] is False

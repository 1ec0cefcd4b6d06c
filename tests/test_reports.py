import io
from datetime import date

import pytest
from openpyxl import load_workbook

from model.timesheet_model import TimesheetStatus
from Schema.common_schema import ProjectSummary, TaskSummary, UserSummary
from Schema.report_schema import ReportData, ReportFormat, ReportPeriodKind
from Schema.timesheet_schema import TimesheetResponse
from service.report_service import (
    build_report,
    daily_period,
    monthly_period,
    render_csv,
    render_excel,
    render_pdf,
    render_report,
    weekly_period,
)
from utils.exceptions import ReportRenderError, ValidationError


def sample_report():
    rows = [
        TimesheetResponse(
            id=1,
            date=date(2024, 1, 8),
            hours=3,
            is_billable=True,
            status=TimesheetStatus.APPROVED,
            user_id=1,
            task_id=5,
            project_id=7,
            description='Kickoff, "phase 1"',
            user=UserSummary(id=1, first_name="Alice", last_name="Ng", email="alice@acme.io"),
            project=ProjectSummary(id=7, name="Apollo"),
            task=TaskSummary(id=5, title="Planning"),
        ),
        TimesheetResponse(
            id=2,
            date=date(2024, 1, 10),
            hours=5,
            is_billable=False,
            status=TimesheetStatus.DRAFT,
            user_id=1,
            task_id=5,
            project_id=7,
            user=UserSummary(id=1, first_name="Alice", last_name="Ng", email="alice@acme.io"),
            project=ProjectSummary(id=7, name="Apollo"),
            task=TaskSummary(id=5, title="Planning"),
        ),
    ]
    return ReportData(
        period=ReportPeriodKind.WEEKLY,
        start_date=date(2024, 1, 8),
        end_date=date(2024, 1, 14),
        label="2024-01-08-to-2024-01-14",
        total_hours=8,
        billable_hours=3,
        non_billable_hours=5,
        total_entries=2,
        timesheets=rows,
    )


def test_weekly_period_is_the_iso_week():
    period = weekly_period(date(2024, 1, 10))
    assert period.start == date(2024, 1, 8)
    assert period.end == date(2024, 1, 14)
    assert period.filename(ReportFormat.CSV) == "weekly-report-2024-01-08-to-2024-01-14.csv"

    sunday = weekly_period(date(2024, 1, 14))
    assert sunday.start == date(2024, 1, 8)


def test_daily_and_monthly_periods():
    daily = daily_period(date(2024, 3, 1))
    assert (daily.start, daily.end) == (date(2024, 3, 1), date(2024, 3, 1))
    assert daily.filename(ReportFormat.PDF) == "daily-report-2024-03-01.pdf"

    february = monthly_period("2024-02")
    assert february.start == date(2024, 2, 1)
    assert february.end == date(2024, 2, 29)
    assert february.filename(ReportFormat.EXCEL) == "monthly-report-2024-02.xlsx"


@pytest.mark.parametrize("month", ["2024-13", "2024-00", "2024/01", "24-01", ""])
def test_monthly_period_rejects_bad_input(month):
    with pytest.raises(ValidationError):
        monthly_period(month)


def test_csv_rendering_quotes_every_field():
    lines = render_csv(sample_report()).decode("utf-8").splitlines()
    assert lines[0] == "Date,User,Project,Task,Hours,Billable,Status,Description"
    assert lines[1] == '"2024-01-08","Alice Ng","Apollo","Planning","3.00","Yes","approved","Kickoff, ""phase 1"""'
    assert lines[2] == '"2024-01-10","Alice Ng","Apollo","Planning","5.00","No","draft",""'
    assert len(lines) == 3


def test_excel_rendering_has_summary_and_bold_header():
    workbook = load_workbook(io.BytesIO(render_excel(sample_report())))
    sheet = workbook.active

    assert sheet["A1"].value == "Weekly Report"
    assert sheet["A2"].value.startswith("Generated on: ")
    assert sheet["A4"].value == "Summary"
    assert (sheet["A5"].value, sheet["B5"].value) == ("Total Hours", 8)
    assert (sheet["A8"].value, sheet["B8"].value) == ("Total Entries", 2)

    header = [cell.value for cell in sheet[10]]
    assert header == ["Date", "User", "Project", "Task", "Hours", "Billable", "Status", "Description"]
    assert sheet["A10"].font.bold
    assert sheet["B11"].value == "Alice Ng"
    assert sheet["E12"].value == 5


def test_pdf_rendering_produces_a_pdf():
    content = render_pdf(sample_report())
    assert content.startswith(b"%PDF")


def test_render_report_wraps_failures(monkeypatch):
    from service import report_service

    def explode(report):
        raise KeyError("boom")

    monkeypatch.setitem(report_service.RENDERERS, ReportFormat.CSV, explode)
    with pytest.raises(ReportRenderError):
        render_report(sample_report(), weekly_period(date(2024, 1, 8)), ReportFormat.CSV)


def test_weekly_report_scenario(db_session, employee, project, task, make_timesheet):
    make_timesheet(employee.id, task, project, day=date(2024, 1, 8), hours="3", is_billable=True)
    make_timesheet(employee.id, task, project, day=date(2024, 1, 10), hours="5", is_billable=False)
    # Outside the week
    make_timesheet(employee.id, task, project, day=date(2024, 1, 15), hours="4")

    report = build_report(db_session, employee.actor, weekly_period(date(2024, 1, 9)))

    assert report.total_hours == 8
    assert report.billable_hours == 3
    assert report.non_billable_hours == 5
    assert [bucket.date for bucket in report.daily_data] == [date(2024, 1, 8), date(2024, 1, 10)]
    assert report.project_data is None


def test_monthly_report_groups_by_project_and_user(
    db_session, manager, employee, other_employee, project, task, make_task, make_timesheet
):
    other_task = make_task(project, manager.id, assigned_to=other_employee.id, title="QA pass")
    make_timesheet(employee.id, task, project, day=date(2024, 1, 3), hours="2")
    make_timesheet(other_employee.id, other_task, project, day=date(2024, 1, 20), hours="6")

    report = build_report(db_session, manager.actor, monthly_period("2024-01"))
    assert report.total_entries == 2
    assert len(report.project_data) == 1
    assert report.project_data[0].total_hours == 8
    assert sorted(bucket.user.id for bucket in report.user_data) == sorted([employee.id, other_employee.id])

    own = build_report(db_session, employee.actor, monthly_period("2024-01"))
    assert own.total_entries == 1


def test_report_api_csv_download(client, employee, project, task, make_timesheet):
    make_timesheet(employee.id, task, project, day=date(2024, 1, 5), hours="8")

    response = client.get("/reports/daily", params={"date": "2024-01-05", "format": "csv"}, headers=employee.headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == 'attachment; filename="daily-report-2024-01-05.csv"'
    assert response.text.splitlines()[1].startswith('"2024-01-05",')


def test_report_api_json_uses_camel_case(client, employee, project, task, make_timesheet):
    make_timesheet(employee.id, task, project, day=date(2024, 1, 9), hours="3")

    response = client.get("/reports/weekly", params={"startDate": "2024-01-10"}, headers=employee.headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["startDate"] == "2024-01-08"
    assert data["endDate"] == "2024-01-14"
    assert data["totalHours"] == 3
    assert data["dailyData"][0]["date"] == "2024-01-09"


def test_report_api_excel_and_pdf(client, manager):
    excel = client.get("/reports/monthly", params={"month": "2024-01", "format": "excel"}, headers=manager.headers)
    assert excel.status_code == 200
    assert excel.headers["content-type"] == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    assert 'filename="monthly-report-2024-01.xlsx"' in excel.headers["content-disposition"]

    pdf = client.get("/reports/monthly", params={"month": "2024-01", "format": "pdf"}, headers=manager.headers)
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")


def test_report_api_rejects_bad_input(client, manager):
    assert client.get("/reports/monthly", params={"month": "2024-1"}, headers=manager.headers).status_code == 400
    assert client.get("/reports/daily", params={"date": "2024-01-05", "format": "doc"}, headers=manager.headers).status_code == 400
    assert client.get("/reports/daily", headers=manager.headers).status_code == 400


def test_report_fails_when_a_related_record_is_missing(client, manager, employee, project, make_timesheet):
    # SQLite does not enforce the foreign key, so the task can dangle
    make_timesheet(employee.id, 4242, project, day=date(2024, 1, 5))

    response = client.get("/reports/daily", params={"date": "2024-01-05", "format": "csv"}, headers=manager.headers)

    assert response.status_code == 500
    assert response.json()["success"] is False

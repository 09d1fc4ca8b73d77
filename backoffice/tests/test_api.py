"""
API endpoint tests for all routes.
Uses an in-memory SQLite board + dependency-overridden FastAPI test client.
"""
from datetime import date, timedelta

from backoffice.store import StoreError


async def _create_customer(client, **fields):
    r = await client.post("/api/customers/", json={"name": "Acme", **fields})
    assert r.status_code == 200
    return r.json()


async def _create_project(client, customer_id, **fields):
    r = await client.post("/api/projects/", json={"customerId": customer_id, "name": "Site", **fields})
    assert r.status_code == 200
    return r.json()


async def _create_task(client, project_id, **fields):
    r = await client.post("/api/tasks/", json={"projectId": project_id, "name": "Design", **fields})
    assert r.status_code == 200
    return r.json()


# ===================== HEALTH / ROOT =====================


async def test_root(client):
    r = await client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "running"


async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


async def test_reload(client):
    r = await client.post("/api/reload")
    assert r.status_code == 200
    assert r.json() == {"loadErrors": {}}


async def test_labels(client):
    r = await client.get("/api/labels/")
    assert r.status_code == 200
    data = r.json()
    assert set(data["taskStatus"]) == {"todo", "in_progress", "done"}
    assert set(data["invoiceStatus"]) == {"draft", "sent", "paid", "overdue", "cancelled"}


# ===================== CUSTOMERS =====================


async def test_customer_crud(client):
    customer = await _create_customer(client, contactPerson="Tanaka")
    assert customer["contactPerson"] == "Tanaka"
    assert "createdAt" in customer

    r = await client.put(f"/api/customers/{customer['id']}", json={"phone": "03-1234-5678"})
    assert r.status_code == 200
    assert r.json()["phone"] == "03-1234-5678"
    assert r.json()["contactPerson"] == "Tanaka"

    r = await client.get(f"/api/customers/{customer['id']}")
    assert r.status_code == 200
    assert r.json()["projects"] == []

    r = await client.delete(f"/api/customers/{customer['id']}")
    assert r.status_code == 200
    r = await client.get(f"/api/customers/{customer['id']}")
    assert r.status_code == 404


async def test_customer_list_client_only(client):
    acme = await _create_customer(client, name="Acme")
    lab = await _create_customer(client, name="自社開発")
    await _create_project(client, lab["id"], name="Tool", type="internal")
    await _create_project(client, acme["id"])

    r = await client.get("/api/customers/")
    assert {c["name"] for c in r.json()} == {"Acme", "自社開発"}

    r = await client.get("/api/customers/", params={"client_only": True})
    data = r.json()
    assert [c["name"] for c in data] == ["Acme"]
    assert data[0]["projectCount"] == 1


async def test_customer_update_rejects_null_name(client):
    customer = await _create_customer(client)

    r = await client.put(f"/api/customers/{customer['id']}", json={"name": None})
    assert r.status_code == 422

    r = await client.get(f"/api/customers/{customer['id']}")
    assert r.json()["name"] == "Acme"


async def test_customer_not_found(client):
    assert (await client.put("/api/customers/missing", json={"name": "x"})).status_code == 404
    assert (await client.delete("/api/customers/missing")).status_code == 404


# ===================== PROJECTS =====================


async def test_project_numbers_and_progress(client):
    customer = await _create_customer(client)
    project = await _create_project(client, customer["id"])
    yy = date.today().year % 100
    assert project["projectNumber"] == f"{yy:02d}-01"
    assert project["customerName"] == "Acme"
    assert project["progress"] == 0

    r = await client.get("/api/projects/next-number", params={"type": "demo"})
    assert r.json() == {"projectNumber": "Demo-001"}

    done = await _create_task(client, project["id"], status="done")
    await _create_task(client, project["id"])
    await _create_task(client, project["id"])
    assert done["status"] == "done"

    r = await client.get(f"/api/projects/{project['id']}")
    assert r.status_code == 200
    detail = r.json()
    assert detail["progress"] == 33
    assert len(detail["tasks"]) == 3
    assert detail["tasks"][-1]["status"] == "done"


async def test_project_filters(client):
    customer = await _create_customer(client)
    await _create_project(client, customer["id"], name="Untyped", status="in_progress")
    await _create_project(client, customer["id"], name="Tool", type="internal")

    r = await client.get("/api/projects/", params={"type": "client"})
    assert [p["name"] for p in r.json()] == ["Untyped"]

    r = await client.get("/api/projects/", params={"status": "in_progress"})
    assert [p["name"] for p in r.json()] == ["Untyped"]


async def test_project_requires_existing_customer(client):
    r = await client.post("/api/projects/", json={"customerId": "missing", "name": "Site"})
    assert r.status_code == 404


async def test_project_update_and_delete(client):
    customer = await _create_customer(client)
    project = await _create_project(client, customer["id"])
    await _create_task(client, project["id"])

    r = await client.put(f"/api/projects/{project['id']}", json={"status": "waiting_review", "stagingUrl": "https://stg.example.com"})
    assert r.status_code == 200
    assert r.json()["status"] == "waiting_review"
    assert r.json()["stagingUrl"] == "https://stg.example.com"

    r = await client.delete(f"/api/projects/{project['id']}")
    assert r.status_code == 200
    assert (await client.get("/api/tasks/")).json() == []


async def test_project_activities(client):
    customer = await _create_customer(client)
    project = await _create_project(client, customer["id"])

    r = await client.post(
        f"/api/projects/{project['id']}/activities",
        json={"date": "2026-05-01", "type": "meeting", "content": "Kickoff"},
    )
    assert r.status_code == 200
    activity = r.json()
    assert activity["completed"] is False
    assert activity["type"] == "meeting"

    r = await client.post(f"/api/projects/{project['id']}/activities/{activity['id']}/toggle")
    assert r.json()["completed"] is True

    r = await client.delete(f"/api/projects/{project['id']}/activities/{activity['id']}")
    assert r.status_code == 200
    r = await client.delete(f"/api/projects/{project['id']}/activities/{activity['id']}")
    assert r.status_code == 404


async def test_activity_write_failure_is_503(client, api_board, monkeypatch):
    customer = await _create_customer(client)
    project = await _create_project(client, customer["id"])
    r = await client.post(
        f"/api/projects/{project['id']}/activities",
        json={"date": "2026-05-01", "content": "Kickoff"},
    )
    activity = r.json()

    async def unreachable(entity_id, changes):
        raise StoreError("connection refused")

    monkeypatch.setattr(api_board.stores.projects, "update", unreachable)

    r = await client.post(f"/api/projects/{project['id']}/activities/{activity['id']}/toggle")
    assert r.status_code == 503
    r = await client.delete(f"/api/projects/{project['id']}/activities/{activity['id']}")
    assert r.status_code == 503
    r = await client.post(f"/api/projects/{project['id']}/activities/missing/toggle")
    assert r.status_code == 404


# ===================== TASKS =====================


async def test_task_list_sorting_and_move(client):
    customer = await _create_customer(client)
    project = await _create_project(client, customer["id"])
    low = await _create_task(client, project["id"], name="low", priority="low", dueDate="2026-06-01")
    high = await _create_task(client, project["id"], name="high", priority="high")
    assert low["taskNumber"] == f"T{date.today().year}-001"

    r = await client.get("/api/tasks/")
    assert [t["name"] for t in r.json()] == ["high", "low"]

    r = await client.get("/api/tasks/", params={"sort": "due_date"})
    assert [t["name"] for t in r.json()] == ["low", "high"]

    r = await client.post(f"/api/tasks/{high['id']}/move", json={"status": "in_progress"})
    assert r.status_code == 200
    assert r.json()["status"] == "in_progress"

    r = await client.get("/api/tasks/", params={"status": "in_progress"})
    assert [t["name"] for t in r.json()] == ["high"]


async def test_task_activities_and_delete(client):
    customer = await _create_customer(client)
    project = await _create_project(client, customer["id"])
    task = await _create_task(client, project["id"])

    r = await client.post(f"/api/tasks/{task['id']}/activities", json={"date": "2026-05-01", "content": "Call"})
    assert r.status_code == 200
    assert r.json()["type"] == "other"

    r = await client.get(f"/api/tasks/{task['id']}")
    assert len(r.json()["activities"]) == 1

    r = await client.put(f"/api/tasks/{task['id']}", json={"name": "Renamed"})
    assert r.json()["name"] == "Renamed"

    assert (await client.delete(f"/api/tasks/{task['id']}")).status_code == 200
    assert (await client.get(f"/api/tasks/{task['id']}")).status_code == 404


async def test_task_requires_existing_project(client):
    r = await client.post("/api/tasks/", json={"projectId": "missing", "name": "x"})
    assert r.status_code == 404


# ===================== INVOICES =====================


async def test_invoice_tax_defaults_and_totals(client):
    customer = await _create_customer(client)

    r = await client.post("/api/invoices/", json={
        "customerId": customer["id"], "amount": 100000, "issueDate": "2025-06-15", "status": "paid",
    })
    assert r.status_code == 200
    invoice = r.json()
    assert invoice["tax"] == 10000
    assert invoice["total"] == 110000
    assert invoice["invoiceNumber"].startswith("INV-")

    r = await client.post("/api/invoices/", json={
        "customerId": customer["id"], "amount": 5000, "tax": None, "issueDate": "2025-07-01",
    })
    assert r.json()["tax"] is None
    assert r.json()["total"] == 5000

    r = await client.get("/api/invoices/")
    assert [i["issueDate"] for i in r.json()] == ["2025-07-01", "2025-06-15"]

    r = await client.get("/api/invoices/", params={"status": "paid"})
    assert len(r.json()) == 1


async def test_invoice_summary_and_monthly_sales(client):
    customer = await _create_customer(client)
    await client.post("/api/invoices/", json={
        "customerId": customer["id"], "amount": 100000, "tax": 10000, "issueDate": "2025-06-15", "status": "paid",
    })
    await client.post("/api/invoices/", json={
        "customerId": customer["id"], "amount": 20000, "tax": 2000, "issueDate": "2025-06-20", "status": "sent",
    })

    r = await client.get("/api/invoices/summary")
    assert r.json()["paidWithTax"] == 110000
    assert r.json()["unpaidWithTax"] == 22000

    r = await client.get("/api/invoices/monthly-sales", params={"year": 2025})
    sales = r.json()
    june = sales["months"][5]
    assert (june["count"], june["amountExTax"], june["paidWithTax"], june["unpaidWithTax"]) == (2, 120000, 110000, 22000)
    assert sales["total"]["amountWithTax"] == 132000

    r = await client.get("/api/invoices/monthly-sales", params={"year": 2025, "basis": "paid"})
    assert r.json()["total"]["count"] == 0
    assert r.json()["total"]["unpaidWithTax"] is None


async def test_invoice_update_and_delete(client):
    customer = await _create_customer(client)
    invoice = (await client.post("/api/invoices/", json={
        "customerId": customer["id"], "amount": 1000, "issueDate": "2025-06-15",
    })).json()

    r = await client.put(f"/api/invoices/{invoice['id']}", json={"status": "paid", "paidDate": "2025-06-30"})
    assert r.json()["status"] == "paid"
    assert r.json()["paidDate"] == "2025-06-30"

    assert (await client.delete(f"/api/invoices/{invoice['id']}")).status_code == 200
    assert (await client.get(f"/api/invoices/{invoice['id']}")).status_code == 404


# ===================== DASHBOARD =====================


async def test_dashboard(client):
    customer = await _create_customer(client)
    soon = (date.today() + timedelta(days=3)).isoformat()
    project = await _create_project(client, customer["id"], status="in_progress", dueDate=soon)
    await client.post(
        f"/api/projects/{project['id']}/activities",
        json={"date": date.today().isoformat(), "content": "Call client"},
    )
    await client.post(
        f"/api/projects/{project['id']}/activities",
        json={"date": "2020-01-01", "content": "Old follow-up"},
    )

    r = await client.get("/api/dashboard/")
    assert r.status_code == 200
    data = r.json()
    assert data["clientCount"] == 1
    assert data["activeProjectCount"] == 1
    assert [p["name"] for p in data["upcomingDeadlines"]] == ["Site"]
    assert [a["activity"]["content"] for a in data["nextActions"]] == ["Call client"]
    assert data["nextActions"][0]["customerName"] == "Acme"

    r = await client.get("/api/dashboard/next-actions", params={"include_overdue": True})
    assert [a["activity"]["content"] for a in r.json()] == ["Old follow-up", "Call client"]


async def test_unloaded_collection_is_reported(client, api_board):
    api_board.load_errors["tasks"] = "database is locked"
    api_board.loaded.discard("tasks")

    r = await client.get("/api/tasks/")
    assert r.status_code == 503
    assert "database is locked" in r.json()["detail"]

    r = await client.get("/api/dashboard/")
    assert r.status_code == 200
    assert r.json()["loadErrors"] == {"tasks": "database is locked"}

    assert (await client.get("/api/customers/")).status_code == 200


# ===================== IMPORTS =====================


PROGRESS_CSV = (
    "案件ID,クライアント名,案件名,ステータス,見積金額（税抜）\n"
    'P-001,Beta Corp,Site Revamp,制作中,"¥500,000"\n'
)


async def test_import_progress_ledger(client):
    files = {"file": ("progress.csv", PROGRESS_CSV.encode("utf-8"), "text/csv")}
    r = await client.post("/api/imports/progress", files=files)
    assert r.status_code == 200
    assert r.json() == {"customers": 1, "projects": 1, "tasks": 0, "invoices": 1, "skipped": 0}

    r = await client.get("/api/invoices/")
    assert r.json()[0]["amount"] == 500000


async def test_import_preview_writes_nothing(client):
    files = {"file": ("progress.csv", PROGRESS_CSV.encode("utf-8"), "text/csv")}
    r = await client.post("/api/imports/progress/preview", files=files)
    assert r.status_code == 200
    assert r.json()["count"] == 1
    assert r.json()["rows"][0]["clientName"] == "Beta Corp"

    assert (await client.get("/api/customers/")).json() == []


async def test_import_rejects_unknown_kind_and_bad_encoding(client):
    files = {"file": ("x.csv", b"a,b\n", "text/csv")}
    assert (await client.post("/api/imports/payroll", files=files)).status_code == 422

    files = {"file": ("x.csv", "名前\n".encode("shift_jis"), "text/csv")}
    assert (await client.post("/api/imports/product", files=files)).status_code == 400

"""
Bug Report API Tests

Covers create defaults and validation, the assigned-to-me views, partial
update semantics (closedTimeStamp, reassignment) and delete.

Run:
    cd backend
    python -m pytest tests/test_reports.py -v
"""

import pytest


# ═══════════════════════════════════════════════════════════════════════════
# Create
# ═══════════════════════════════════════════════════════════════════════════


class TestCreateReport:

    async def test_create_applies_defaults(self, alice):
        report = await alice.create_report()
        assert report["status"] == "open"
        assert report["bountyAmount"] == 0
        assert report["severity"] == "high"
        assert report["reporterEmail"] == "a@x.com"
        assert report["assignedUser"] is None
        assert report["createdTimeStamp"]
        assert report["closedTimeStamp"] is None

    async def test_create_returns_assignee_id_unexpanded(self, alice, bob):
        report = await alice.create_report(assignedUser=bob.user_id, bountyAmount=25.5)
        assert report["assignedUser"] == bob.user_id
        assert report["bountyAmount"] == 25.5

    async def test_create_closed_stamps_closed_time(self, alice):
        report = await alice.create_report(status="closed")
        assert report["status"] == "closed"
        assert report["closedTimeStamp"] is not None

    async def test_create_missing_fields(self, alice):
        resp = await alice.post("/api/reports", json={})
        assert resp.status_code == 400
        body = resp.json()
        assert body["detail"] == "Title is required"
        assert [e["msg"] for e in body["errors"]] == [
            "Title is required",
            "Description is required",
            "Severity is required",
            "Reporter email is required",
        ]
        assert (await alice.get("/api/reports")).json() == []

    @pytest.mark.parametrize("overrides,field", [
        ({"severity": "urgent"}, "severity"),
        ({"status": "done"}, "status"),
        ({"bountyAmount": -5}, "bountyAmount"),
        ({"reporterEmail": "not-an-email"}, "reporterEmail"),
        ({"assignedUser": 4242}, "assignedUser"),
        ({"bountyAmount": "lots"}, "bountyAmount"),
    ])
    async def test_create_invalid_field(self, alice, overrides, field):
        body = {
            "title": "Crash", "description": "Crashes on save",
            "severity": "low", "reporterEmail": "qa@example.com",
        }
        body.update(overrides)
        resp = await alice.post("/api/reports", json=body)
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == field

    @pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
    async def test_create_non_finite_bounty_is_400(self, alice, literal):
        # JSON encoders refuse these values, so the body is written by hand
        raw = (
            '{"title": "Crash", "description": "Crashes on save", "severity": "low", '
            f'"reporterEmail": "qa@example.com", "bountyAmount": {literal}}}'
        )
        resp = await alice.post("/api/reports", content=raw, headers={"Content-Type": "application/json"})
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == "bountyAmount"
        assert (await alice.get("/api/reports")).json() == []

    async def test_create_requires_auth(self, api_client):
        resp = await api_client.post("/api/reports", json={"title": "x"})
        assert resp.status_code == 401


# ═══════════════════════════════════════════════════════════════════════════
# Read
# ═══════════════════════════════════════════════════════════════════════════


class TestReadReports:

    async def test_list_newest_first_with_expanded_assignee(self, alice, bob):
        first = await alice.create_report(title="First")
        second = await alice.create_report(title="Second", assignedUser=bob.user_id)

        reports = (await alice.get("/api/reports")).json()
        assert [r["id"] for r in reports] == [second["id"], first["id"]]
        assert reports[0]["assignedUser"] == {
            "id": bob.user_id, "name": "Bob Tester", "email": bob.user["email"], "role": "tester",
        }

    async def test_assigned_views_split_by_status(self, alice, bob):
        mine_open = await alice.create_report(title="Open", assignedUser=alice.user_id)
        mine_wip = await alice.create_report(title="WIP", status="in-progress", assignedUser=alice.user_id)
        mine_resolved = await alice.create_report(title="Resolved", status="resolved", assignedUser=alice.user_id)
        await alice.create_report(title="Bob's", assignedUser=bob.user_id)
        await alice.create_report(title="Nobody's")

        assigned = (await alice.get("/api/reports/assigned")).json()
        assert [r["id"] for r in assigned] == [mine_resolved["id"], mine_wip["id"], mine_open["id"]]

        open_view = (await alice.get("/api/reports/assigned/open")).json()
        assert [r["id"] for r in open_view] == [mine_wip["id"], mine_open["id"]]

        closed_view = (await alice.get("/api/reports/assigned/closed")).json()
        assert [r["id"] for r in closed_view] == [mine_resolved["id"]]

        bobs = (await bob.get("/api/reports/assigned")).json()
        assert [r["title"] for r in bobs] == ["Bob's"]

    async def test_get_by_id(self, alice):
        created = await alice.create_report()
        resp = await alice.get(f"/api/reports/{created['id']}")
        assert resp.status_code == 200
        assert resp.json()["title"] == "Login fails"

    @pytest.mark.parametrize("report_id", ["9999", "abc", "0", "-1", "1.5"])
    async def test_missing_and_malformed_ids_are_404(self, alice, report_id):
        for method in ("get", "put", "delete"):
            kwargs = {"json": {"title": "x"}} if method == "put" else {}
            resp = await getattr(alice, method)(f"/api/reports/{report_id}", **kwargs)
            assert resp.status_code == 404, (method, report_id)
            assert resp.json() == {"detail": "Bug report not found"}


# ═══════════════════════════════════════════════════════════════════════════
# Update
# ═══════════════════════════════════════════════════════════════════════════


class TestUpdateReport:

    async def test_resolve_stamps_closed_time_and_reopen_keeps_it(self, alice):
        created = await alice.create_report()

        resolved = (await alice.put(f"/api/reports/{created['id']}", json={"status": "resolved"})).json()
        assert resolved["status"] == "resolved"
        stamp = resolved["closedTimeStamp"]
        assert stamp is not None

        reopened = (await alice.put(f"/api/reports/{created['id']}", json={"status": "open"})).json()
        assert reopened["status"] == "open"
        assert reopened["closedTimeStamp"] == stamp

    async def test_partial_update_leaves_other_fields(self, alice):
        created = await alice.create_report(bountyAmount=10)
        resp = await alice.put(f"/api/reports/{created['id']}", json={"severity": "critical"})
        assert resp.status_code == 200
        updated = resp.json()
        assert updated["severity"] == "critical"
        assert updated["title"] == created["title"]
        assert updated["bountyAmount"] == 10
        assert updated["status"] == "open"

    async def test_assign_and_unassign(self, alice, bob):
        created = await alice.create_report()

        assigned = (await alice.put(f"/api/reports/{created['id']}", json={"assignedUser": bob.user_id})).json()
        assert assigned["assignedUser"]["id"] == bob.user_id
        assert assigned["assignedUser"]["name"] == "Bob Tester"

        unassigned = (await alice.put(f"/api/reports/{created['id']}", json={"assignedUser": None})).json()
        assert unassigned["assignedUser"] is None

    async def test_any_user_may_update(self, alice, bob):
        created = await alice.create_report()
        resp = await bob.put(f"/api/reports/{created['id']}", json={"title": "Renamed by Bob"})
        assert resp.status_code == 200
        assert resp.json()["title"] == "Renamed by Bob"

    async def test_non_finite_bounty_update_is_400(self, alice):
        created = await alice.create_report(bountyAmount=10)
        for literal in ("NaN", "Infinity"):
            resp = await alice.put(
                f"/api/reports/{created['id']}",
                content=f'{{"bountyAmount": {literal}}}',
                headers={"Content-Type": "application/json"},
            )
            assert resp.status_code == 400, literal
            assert resp.json()["errors"][0]["field"] == "bountyAmount"

        unchanged = (await alice.get(f"/api/reports/{created['id']}")).json()
        assert unchanged["bountyAmount"] == 10

    @pytest.mark.parametrize("body,field", [
        ({"title": "  "}, "title"),
        ({"status": "done"}, "status"),
        ({"severity": None}, "severity"),
        ({"bountyAmount": -1}, "bountyAmount"),
        ({"assignedUser": 4242}, "assignedUser"),
    ])
    async def test_invalid_update_changes_nothing(self, alice, body, field):
        created = await alice.create_report()
        resp = await alice.put(f"/api/reports/{created['id']}", json=body)
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == field

        unchanged = (await alice.get(f"/api/reports/{created['id']}")).json()
        assert unchanged["title"] == created["title"]
        assert unchanged["status"] == "open"


# ═══════════════════════════════════════════════════════════════════════════
# Delete
# ═══════════════════════════════════════════════════════════════════════════


class TestDeleteReport:

    async def test_delete(self, alice):
        created = await alice.create_report()
        resp = await alice.delete(f"/api/reports/{created['id']}")
        assert resp.status_code == 200
        assert resp.json() == {"detail": "Bug report removed"}

        assert (await alice.get(f"/api/reports/{created['id']}")).status_code == 404
        assert (await alice.delete(f"/api/reports/{created['id']}")).status_code == 404

    async def test_delete_removes_comments(self, alice):
        created = await alice.create_report()
        await alice.post("/api/comments", json={"bugReport": created["id"], "text": "Seen on staging"})

        await alice.delete(f"/api/reports/{created['id']}")
        comments = (await alice.get(f"/api/comments/bug-report/{created['id']}")).json()
        assert comments == []

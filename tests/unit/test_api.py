import pytest

from approval_flow_service.schemas.flow import REQUEST_AREA


def _headers(user_id: str) -> dict:
    return {"X-User-Id": user_id}


async def test_health(client) -> None:
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


async def test_get_flows_returns_defaults(client, org) -> None:
    response = await client.get("/flows")

    assert response.status_code == 200
    body = response.json()
    assert body["version"] == 1
    assert body["flows"]["PURCHASE"]["steps"] == [REQUEST_AREA, "Financeiro"]


async def test_put_flows_maps_errors_to_status_codes(client, org) -> None:
    flows = (await client.get("/flows")).json()["flows"]

    forbidden = await client.put("/flows", json={"flows": flows}, headers=_headers(org.hr))
    assert forbidden.status_code == 403

    flows["PURCHASE"]["steps"] = [REQUEST_AREA, "Marketing"]
    unknown = await client.put("/flows", json={"flows": flows}, headers=_headers(org.admin))
    assert unknown.status_code == 400
    assert "Marketing" in unknown.json()["detail"]

    missing_header = await client.put("/flows", json={"flows": flows})
    assert missing_header.status_code == 401


async def test_purchase_flow_over_http(client, org) -> None:
    created = await client.post(
        "/requests/purchase",
        json={"description": "Office chairs", "value": "850.00", "paymentDate": "2030-05-01"},
        headers=_headers(org.employee),
    )
    assert created.status_code == 201
    request_id = created.json()["requestId"]
    assert created.json()["totalSteps"] == 2

    steps = (await client.get(f"/approvals/PURCHASE/{request_id}/steps")).json()
    assert [s["targetAreaId"] for s in steps] == [org.area_a1, org.area_fin]

    denied = await client.post(
        f"/approvals/steps/{steps[0]['id']}/approve",
        json={},
        headers=_headers(org.b_director),
    )
    assert denied.status_code == 403

    first = await client.post(
        f"/approvals/steps/{steps[0]['id']}/approve",
        json={"comment": "fine"},
        headers=_headers(org.a1_director),
    )
    assert first.status_code == 200
    assert first.json()["nextStep"] == 2

    replay = await client.post(
        f"/approvals/steps/{steps[0]['id']}/approve",
        json={},
        headers=_headers(org.a1_director),
    )
    assert replay.status_code == 409

    short = await client.post(
        f"/approvals/steps/{steps[1]['id']}/reject",
        json={"comment": "no"},
        headers=_headers(org.fin),
    )
    assert short.status_code == 400

    rejected = await client.post(
        f"/approvals/steps/{steps[1]['id']}/reject",
        json={"comment": "Over budget"},
        headers=_headers(org.fin),
    )
    assert rejected.status_code == 200
    assert rejected.json()["requestStatus"] == "REJECTED"

    current = await client.get(f"/approvals/PURCHASE/{request_id}/current")
    assert current.json() is None

    detail = (await client.get(f"/requests/PURCHASE/{request_id}")).json()
    assert detail["status"] == "REJECTED"
    assert detail["approvalSteps"][1]["comment"] == "Over budget"


async def test_unknown_step_is_404(client, org) -> None:
    response = await client.post(
        "/approvals/steps/missing/approve",
        json={},
        headers=_headers(org.admin),
    )

    assert response.status_code == 404


async def test_permission_and_approver_queries(client, org) -> None:
    check = await client.get(
        "/approvals/permissions",
        params={"areaId": org.area_b},
        headers=_headers(org.admin),
    )
    assert check.json() == {
        "canApprove": True,
        "isDesignatedApprover": False,
        "isAdminOverride": True,
    }

    approvers = (await client.get(f"/approvals/areas/{org.area_board}/approvers")).json()
    assert approvers == [{"id": org.ceo, "name": "CEO", "roles": ["DIRECTOR", "C_LEVEL"]}]


async def test_configurable_areas(client, org) -> None:
    items = (await client.get("/flows/areas")).json()

    assert items[0]["id"] == REQUEST_AREA
    assert {i["id"] for i in items[1:]} == {"A1", "B", "Diretoria", "Financeiro", "RH", "TI"}


@pytest.mark.parametrize(
    "steps",
    [
        ["RH", "Diretoria"],
        [REQUEST_AREA],
        [REQUEST_AREA, "RH", "RH"],
    ],
)
async def test_put_flows_rule_violations_are_400(client, org, steps) -> None:
    flows = (await client.get("/flows")).json()["flows"]
    flows["RECESS"]["steps"] = steps

    response = await client.put("/flows", json={"flows": flows}, headers=_headers(org.admin))

    assert response.status_code == 400
    assert isinstance(response.json()["detail"], str)
    assert (await client.get("/flows")).json()["version"] == 1


async def test_list_requests_and_approval_context_over_http(client, org) -> None:
    created = await client.post(
        "/requests/termination",
        json={"providerId": org.provider_a1, "reason": "Contract ended early"},
        headers=_headers(org.employee),
    )
    request_id = created.json()["requestId"]

    listed = await client.get(
        "/requests/TERMINATION",
        params={"status": "PENDING", "providerId": org.provider_a1},
        headers=_headers(org.employee),
    )
    assert listed.status_code == 200
    assert [r["id"] for r in listed.json()] == [request_id]

    none_approved = await client.get(
        "/requests/TERMINATION",
        params={"status": "APPROVED"},
        headers=_headers(org.admin),
    )
    assert none_approved.json() == []

    context = await client.get(
        f"/requests/TERMINATION/{request_id}/approval-context",
        headers=_headers(org.a1_director),
    )
    assert context.status_code == 200
    body = context.json()
    assert body["canApprove"] is True
    assert body["isAdminOverride"] is False
    assert body["step"]["stepNumber"] == 1
    assert body["step"]["targetAreaId"] == org.area_a1
    assert {a["id"] for a in body["potentialApprovers"]} == {org.a1_director, org.a1_clevel}

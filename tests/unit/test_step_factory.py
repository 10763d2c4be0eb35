import pytest

from approval_flow_service.core.errors import ValidationError
from approval_flow_service.models.directory import Area
from approval_flow_service.models.enums import RequestType, StepStatus
from approval_flow_service.schemas.approval import ApprovalStepRead
from approval_flow_service.schemas.flow import DEFAULT_FLOW_STEPS, REQUEST_AREA
from approval_flow_service.services import flow_store
from approval_flow_service.services.step_factory import create_steps
from approval_flow_service.services.transitions import get_approval_steps


def _flows(**overrides):
    flows = {
        t.value: {"enabled": True, "steps": list(steps)}
        for t, steps in DEFAULT_FLOW_STEPS.items()
    }
    flows.update(overrides)
    return {"flows": flows}


async def test_steps_pin_area_ids_in_flow_order(session, org) -> None:
    steps = await create_steps(session, RequestType.TERMINATION, "req-1", org.employee, org.area_a1)
    await session.commit()

    assert [s.step_number for s in steps] == [1, 2, 3]
    assert [s.target_area_id for s in steps] == [org.area_a1, org.area_rh, org.area_board]
    assert [s.area_identifier for s in steps] == [REQUEST_AREA, "RH", "Diretoria"]
    assert all(s.status == StepStatus.PENDING and s.approver_id is None for s in steps)


async def test_missing_subject_area_leaves_step_unassigned(session, org) -> None:
    steps = await create_steps(session, RequestType.PURCHASE, "req-2", org.admin, None)

    assert steps[0].target_area_id is None
    assert steps[1].target_area_id == org.area_fin


async def test_existing_steps_survive_flow_changes(session, org) -> None:
    await create_steps(session, RequestType.RECESS, "req-3", org.employee, org.area_a1)
    await session.commit()

    await flow_store.replace_flows(
        session,
        org.admin,
        _flows(RECESS={"enabled": True, "steps": [REQUEST_AREA, "Financeiro"]}),
    )
    # renaming the area after creation must not move the pinned id
    area = await session.get(Area, org.area_rh)
    area.name = "Recursos Humanos"
    await session.commit()

    steps = await get_approval_steps(session, RequestType.RECESS, "req-3")
    assert [s.target_area_id for s in steps] == [org.area_a1, org.area_rh, org.area_board]

    newer = await create_steps(session, RequestType.RECESS, "req-4", org.employee, org.area_a1)
    assert [s.target_area_id for s in newer] == [org.area_a1, org.area_fin]


async def test_disabled_flow_refuses_new_requests(session, org) -> None:
    await flow_store.replace_flows(
        session,
        org.admin,
        _flows(PURCHASE={"enabled": False, "steps": [REQUEST_AREA, "Financeiro"]}),
    )

    with pytest.raises(ValidationError, match="disabled"):
        await create_steps(session, RequestType.PURCHASE, "req-5", org.employee, org.area_a1)


async def test_step_read_model_maps_orm_columns(session, org) -> None:
    steps = await create_steps(session, RequestType.RECESS, "req-9", org.employee, org.area_b)
    await session.commit()

    read = ApprovalStepRead.model_validate(steps[0])

    assert read.id == steps[0].id
    assert read.requestType == RequestType.RECESS
    assert read.requestId == "req-9"
    assert read.stepNumber == 1
    assert read.areaIdentifier == REQUEST_AREA
    assert read.targetAreaId == org.area_b
    assert read.status == StepStatus.PENDING
    assert read.approverId is None
    assert read.isAdminOverride is False

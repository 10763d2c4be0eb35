import pytest

from approval_flow_service.core.errors import (
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from approval_flow_service.models.enums import RequestType
from approval_flow_service.models.system_config import APPROVAL_FLOWS_KEY, SystemConfig
from approval_flow_service.schemas.flow import DEFAULT_FLOW_STEPS, REQUEST_AREA
from approval_flow_service.services import flow_store


def _flows(**overrides):
    flows = {
        t.value: {"enabled": True, "steps": list(steps)}
        for t, steps in DEFAULT_FLOW_STEPS.items()
    }
    for key, steps in overrides.items():
        flows[key] = {"enabled": True, "steps": steps}
    return {"flows": flows}


async def test_get_flows_returns_defaults_when_nothing_stored(session) -> None:
    config = await flow_store.get_flows(session)

    assert config.version == 1
    assert config.lastUpdatedBy == "system"
    assert set(config.flows) == set(RequestType)
    assert config.flows[RequestType.PURCHASE].steps == [REQUEST_AREA, "Financeiro"]
    assert all(f.enabled for f in config.flows.values())


async def test_replace_flows_bumps_version_and_persists(session, org) -> None:
    config = await flow_store.replace_flows(
        session,
        org.admin,
        _flows(PURCHASE=[REQUEST_AREA, "Financeiro", "Diretoria"]),
    )
    assert config.version == 2
    assert config.lastUpdatedBy == org.admin

    stored = await flow_store.get_flows(session)
    assert stored.version == 2
    assert stored.flows[RequestType.PURCHASE].steps == [REQUEST_AREA, "Financeiro", "Diretoria"]

    again = await flow_store.replace_flows(session, org.admin, _flows())
    assert again.version == 3


@pytest.mark.parametrize(
    "steps",
    [
        [REQUEST_AREA],
        ["RH", "Diretoria"],
        [REQUEST_AREA, "RH", "RH"],
        [REQUEST_AREA, ""],
        [REQUEST_AREA, "RH", REQUEST_AREA],
    ],
)
async def test_replace_flows_rejects_invalid_routes(session, org, steps) -> None:
    with pytest.raises(ValidationError):
        await flow_store.replace_flows(session, org.admin, _flows(RECESS=steps))

    assert (await flow_store.get_flows(session)).version == 1


async def test_replace_flows_requires_every_request_type(session, org) -> None:
    payload = _flows()
    del payload["flows"]["HIRING"]

    with pytest.raises(ValidationError, match="HIRING"):
        await flow_store.replace_flows(session, org.admin, payload)


async def test_replace_flows_rejects_unknown_area(session, org) -> None:
    with pytest.raises(ValidationError, match="Areas not found: Marketing"):
        await flow_store.replace_flows(
            session,
            org.admin,
            _flows(TERMINATION=[REQUEST_AREA, "Marketing"]),
        )


async def test_replace_flows_is_admin_only(session, org) -> None:
    with pytest.raises(PermissionDeniedError):
        await flow_store.replace_flows(session, org.hr, _flows())

    with pytest.raises(NotFoundError):
        await flow_store.replace_flows(session, "ghost", _flows())


async def test_reset_flows_restores_defaults_with_new_version(session, org) -> None:
    await flow_store.replace_flows(
        session,
        org.admin,
        _flows(RECESS=[REQUEST_AREA, "Diretoria"]),
    )

    config = await flow_store.reset_flows(session, org.admin)

    assert config.version == 3
    assert config.flows[RequestType.RECESS].steps == list(DEFAULT_FLOW_STEPS[RequestType.RECESS])


async def test_invalid_stored_value_falls_back_to_defaults(session, org) -> None:
    session.add(SystemConfig(key=APPROVAL_FLOWS_KEY, value={"flows": "garbage"}))
    await session.commit()

    config = await flow_store.get_flows(session)

    assert config.version == 1
    assert config.flows[RequestType.HIRING].steps == list(DEFAULT_FLOW_STEPS[RequestType.HIRING])


async def test_configurable_areas_lists_request_area_first(session, org) -> None:
    items = await flow_store.get_configurable_areas(session)

    assert items[0].id == REQUEST_AREA
    assert [i.name for i in items[1:]] == ["A1", "B", "Diretoria", "Financeiro", "RH", "TI"]
    rh = next(i for i in items if i.id == "RH")
    assert rh.directorId == org.hr
    assert rh.description == "Director: HR Director"

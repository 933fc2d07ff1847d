import pytest

from booking_core.db.repository import ClientRepository
from booking_core.errors import NotFoundError, ServicesNotFoundError, TenantMismatchError
from booking_core.scheduling.resolver import EntityResolver, compute_totals


def test_compute_totals_sums_services():
    services = [{"duration": 30, "price": 500.0}, {"duration": 15, "price": 200.0}]
    assert compute_totals(services) == (45, 700.0)


def test_compute_totals_package_wins():
    services = [{"duration": 30, "price": 500.0}]
    package = {"duration": 120, "final_price": 4500.0, "price": 5000.0}
    assert compute_totals(services, package) == (120, 4500.0)


def test_compute_totals_empty():
    assert compute_totals([]) == (0, 0)


async def test_resolve_aggregates_services(db, tenant):
    resolved = await EntityResolver(db).resolve(
        client_id=tenant.client["id"],
        team_member_id=tenant.member["id"],
        category_id=tenant.category["id"],
        service_ids=[tenant.haircut["id"], tenant.beard["id"]],
        business_id=tenant.business["id"],
    )

    assert resolved.client["id"] == tenant.client["id"]
    assert resolved.team_member["id"] == tenant.member["id"]
    assert resolved.category["id"] == tenant.category["id"]
    assert [service["name"] for service in resolved.services] == ["Haircut", "Beard Trim"]
    assert resolved.total_duration == 45
    assert resolved.total_price == 700.0


async def test_resolve_with_package_uses_package_totals(db, tenant):
    resolved = await EntityResolver(db).resolve(
        client_id=tenant.client["id"],
        team_member_id=tenant.member["id"],
        service_ids=[tenant.haircut["id"]],
        package_id=tenant.package["id"],
        business_id=tenant.business["id"],
    )

    assert resolved.total_duration == 120
    assert resolved.total_price == 4500.0


async def test_duplicate_service_ids_resolve_once(db, tenant):
    services = await EntityResolver(db).resolve_services(
        [tenant.beard["id"], tenant.haircut["id"], tenant.beard["id"]],
        tenant.business["id"],
    )
    assert [service["id"] for service in services] == [tenant.beard["id"], tenant.haircut["id"]]


async def test_unknown_client(db, tenant):
    with pytest.raises(NotFoundError) as exc_info:
        await EntityResolver(db).resolve_client("missing", tenant.business["id"])
    assert exc_info.value.kind == "client_not_found"


async def test_deleted_client(db, tenant):
    await ClientRepository(db).update_one(tenant.client["id"], {"is_deleted": True})

    with pytest.raises(NotFoundError):
        await EntityResolver(db).resolve_client(tenant.client["id"], tenant.business["id"])


async def test_inactive_team_member(db, tenant):
    with pytest.raises(NotFoundError) as exc_info:
        await EntityResolver(db).resolve_team_member(
            tenant.inactive_member["id"], tenant.business["id"]
        )
    assert exc_info.value.kind == "team_member_not_found"
    assert exc_info.value.status_code == 404


async def test_team_member_of_another_business(db, tenant):
    with pytest.raises(TenantMismatchError):
        await EntityResolver(db).resolve_team_member(
            tenant.foreign_member["id"], tenant.business["id"]
        )


async def test_client_of_another_business(db, tenant):
    with pytest.raises(TenantMismatchError) as exc_info:
        await EntityResolver(db).resolve(
            client_id=tenant.foreign_client["id"],
            team_member_id=tenant.member["id"],
            service_ids=[tenant.haircut["id"]],
            business_id=tenant.business["id"],
        )
    assert exc_info.value.status_code == 403


async def test_unknown_category(db, tenant):
    with pytest.raises(NotFoundError) as exc_info:
        await EntityResolver(db).resolve_category("missing", tenant.business["id"])
    assert exc_info.value.kind == "category_not_found"


async def test_unknown_package(db, tenant):
    with pytest.raises(NotFoundError) as exc_info:
        await EntityResolver(db).resolve_package("missing", tenant.business["id"])
    assert exc_info.value.kind == "package_not_found"


async def test_unknown_business(db, tenant):
    with pytest.raises(NotFoundError) as exc_info:
        await EntityResolver(db).resolve_business("missing")
    assert exc_info.value.kind == "business_not_found"


async def test_inactive_service_is_reported_missing(db, tenant):
    with pytest.raises(ServicesNotFoundError) as exc_info:
        await EntityResolver(db).resolve_services(
            [tenant.haircut["id"], tenant.inactive_service["id"]],
            tenant.business["id"],
        )
    assert exc_info.value.missing_ids == [tenant.inactive_service["id"]]
    assert exc_info.value.to_dict()["missing_service_ids"] == [tenant.inactive_service["id"]]


async def test_global_category_service_resolves_through_fallback(db, tenant):
    services = await EntityResolver(db).resolve_services(
        [tenant.haircut["id"], tenant.global_service["id"]],
        tenant.business["id"],
    )
    assert [service["name"] for service in services] == ["Haircut", "Keratin Treatment"]


async def test_deselected_global_category_is_not_searched(db, tenant):
    with pytest.raises(ServicesNotFoundError) as exc_info:
        await EntityResolver(db).resolve_services(
            [tenant.hidden_global_service["id"]],
            tenant.business["id"],
        )
    assert exc_info.value.missing_ids == [tenant.hidden_global_service["id"]]


async def test_global_services_need_a_business(db, tenant):
    with pytest.raises(ServicesNotFoundError):
        await EntityResolver(db).resolve_services([tenant.global_service["id"]])

"""
Entity Resolver

Looks up the client, team member, category, services and package named by
a booking request, and checks they are live and owned by the booking's
business.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from booking_core.db.repository import (
    BusinessRepository,
    CategoryRepository,
    ClientRepository,
    PackageRepository,
    ServiceRepository,
    TeamMemberRepository,
)
from booking_core.errors import NotFoundError, ServicesNotFoundError, TenantMismatchError

logger = logging.getLogger(__name__)


@dataclass
class ResolvedEntities:
    client: Dict[str, Any]
    team_member: Dict[str, Any]
    category: Optional[Dict[str, Any]] = None
    services: List[Dict[str, Any]] = field(default_factory=list)
    package: Optional[Dict[str, Any]] = None
    business: Optional[Dict[str, Any]] = None
    total_duration: int = 0
    total_price: float = 0.0


def compute_totals(
    services: Sequence[Dict[str, Any]],
    package: Optional[Dict[str, Any]] = None,
) -> tuple:
    """
    Duration and price of a booking.

    Service durations and prices are summed; a package replaces both sums
    with its own duration and final price.
    """
    if package is not None:
        return package["duration"], package["final_price"]
    total_duration = sum(service["duration"] for service in services)
    total_price = sum(service["price"] for service in services)
    return total_duration, total_price


class EntityResolver:
    """Resolves and validates the entities referenced by an appointment."""

    def __init__(self, db: AsyncSession):
        self.businesses = BusinessRepository(db)
        self.clients = ClientRepository(db)
        self.team_members = TeamMemberRepository(db)
        self.categories = CategoryRepository(db)
        self.services = ServiceRepository(db)
        self.packages = PackageRepository(db)

    @staticmethod
    def _check_tenant(entity: Dict[str, Any], label: str, business_id: Optional[str]) -> None:
        if business_id and entity.get("business_id") != business_id:
            raise TenantMismatchError(f"{label} does not belong to this business")

    async def resolve_business(self, business_id: str) -> Dict[str, Any]:
        business = await self.businesses.get_active(business_id)
        if not business:
            raise NotFoundError("Business profile not found or inactive", kind="business_not_found")
        return business

    async def resolve_client(
        self,
        client_id: str,
        business_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        client = await self.clients.find_one(id=client_id)
        if not client or client["is_deleted"]:
            raise NotFoundError("Client not found or inactive", kind="client_not_found")
        self._check_tenant(client, "Client", business_id)
        return client

    async def resolve_team_member(
        self,
        team_member_id: str,
        business_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        team_member = await self.team_members.find_one(id=team_member_id)
        if not team_member or not team_member["is_active"] or team_member["is_deleted"]:
            raise NotFoundError(
                "Team member not found or inactive", kind="team_member_not_found"
            )
        self._check_tenant(team_member, "Team member", business_id)
        return team_member

    async def resolve_category(
        self,
        category_id: str,
        business_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        category = await self.categories.find_one(id=category_id)
        if not category or not category["is_active"] or category["is_deleted"]:
            raise NotFoundError("Category not found or inactive", kind="category_not_found")
        self._check_tenant(category, "Category", business_id)
        return category

    async def resolve_services(
        self,
        service_ids: Sequence[str],
        business_id: Optional[str] = None,
        business: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """
        Resolve every requested service, in request order.

        Services of the business's own categories are looked up first. Ids
        left over are searched among the global categories the business has
        selected; anything still missing fails the whole request.

        Raises:
            ServicesNotFoundError: one or more ids did not resolve
            TenantMismatchError: a service belongs to another business
        """
        wanted = list(dict.fromkeys(service_ids))
        if not wanted:
            return []

        found = {
            service["id"]: service
            for service in await self.services.find_active_by_ids(wanted)
            if not service["is_global_category"]
        }
        missing = [service_id for service_id in wanted if service_id not in found]

        if missing and business_id:
            if business is None:
                business = await self.businesses.get_active(business_id)
            for service in await self._resolve_global_services(missing, business):
                found[service["id"]] = service
            missing = [service_id for service_id in wanted if service_id not in found]

        if missing:
            logger.warning(f"Unresolved services: {missing}")
            raise ServicesNotFoundError(missing)

        resolved = [found[service_id] for service_id in wanted]
        for service in resolved:
            self._check_tenant(service, "Service", business_id)
        return resolved

    async def _resolve_global_services(
        self,
        service_ids: List[str],
        business: Optional[Dict[str, Any]],
    ) -> List[Dict[str, Any]]:
        if not business:
            return []

        category_ids = [
            category["categoryId"]
            for category in business.get("selected_categories") or []
            if category.get("categoryId") and category.get("isActive", True)
        ]
        if not category_ids:
            return []

        services = await self.services.find_global_by_ids(
            service_ids, business["id"], category_ids
        )
        if services:
            logger.info(
                f"Resolved {len(services)} service(s) through global categories "
                f"of business {business['id']}"
            )
        return services

    async def resolve_package(
        self,
        package_id: str,
        business_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        package = await self.packages.find_one(id=package_id, is_active=True, is_deleted=False)
        if not package:
            raise NotFoundError("Package not found or inactive", kind="package_not_found")
        self._check_tenant(package, "Package", business_id)
        return package

    async def resolve(
        self,
        client_id: str,
        team_member_id: str,
        category_id: Optional[str] = None,
        service_ids: Sequence[str] = (),
        package_id: Optional[str] = None,
        business_id: Optional[str] = None,
    ) -> ResolvedEntities:
        """
        Resolve every entity of a booking request and aggregate its totals.

        Args:
            client_id: Client being booked
            team_member_id: Team member whose calendar is booked
            category_id: Optional category
            service_ids: Services to perform, possibly empty
            package_id: Optional package, authoritative for duration/price
            business_id: When given, every entity must belong to it

        Returns:
            ResolvedEntities with total_duration/total_price filled in

        Raises:
            NotFoundError: an entity is missing, deleted or inactive
            TenantMismatchError: an entity belongs to another business
        """
        business = await self.resolve_business(business_id) if business_id else None

        client = await self.resolve_client(client_id, business_id)
        team_member = await self.resolve_team_member(team_member_id, business_id)
        category = (
            await self.resolve_category(category_id, business_id) if category_id else None
        )
        services = await self.resolve_services(service_ids, business_id, business)
        package = (
            await self.resolve_package(package_id, business_id) if package_id else None
        )

        total_duration, total_price = compute_totals(services, package)

        return ResolvedEntities(
            client=client,
            team_member=team_member,
            category=category,
            services=services,
            package=package,
            business=business,
            total_duration=total_duration,
            total_price=total_price,
        )

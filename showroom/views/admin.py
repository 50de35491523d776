"""Admin dashboard view."""

from typing import Any, Dict, List, Optional

from loguru import logger

from ..auth.session import AdminSession
from ..catalog.analytics import summarize
from ..catalog.listings import ListingService
from ..catalog.memberships import MembershipService
from ..catalog.providers import ProviderLinkService
from ..errors import StorageError
from ..realtime.subscriber import ChangeFeedSubscriber
from ..storage.database import Database
from .base import CollectionView


class AdminDashboardView(CollectionView):
    """Vehicles, members and provider links with CRUD for administrators.

    Every mutation requires an active session. Storage failures are surfaced
    as notifications and re-raised so the caller can keep its form open; the
    view's own snapshot updates through the change feed.
    """

    def __init__(
        self,
        db: Database,
        subscriber: ChangeFeedSubscriber,
        session: AdminSession,
        listings: ListingService,
        memberships: MembershipService,
        providers: ProviderLinkService,
        on_render=None,
    ):
        super().__init__(db, subscriber, on_render)
        self.session = session
        self.listings = listings
        self.memberships = memberships
        self.providers = providers

        self.vehicles: List[Dict[str, Any]] = []
        self.members: List[Dict[str, Any]] = []
        self.provider_links: List[Dict[str, Any]] = []

    def sources(self):
        return [
            ("vehicles", self.fetch_vehicles),
            ("membership_records", self.fetch_members),
            ("provider_links", self.fetch_provider_links),
        ]

    async def mount(self):
        self.session.require()
        await super().mount()

    async def fetch_vehicles(self):
        records = await self._fetch("vehicles", "created_at", "desc")
        if records is not None:
            self.vehicles = records
            await self.rendered()

    async def fetch_members(self):
        records = await self._fetch("membership_records", "created_at", "desc")
        if records is not None:
            self.members = records
            await self.rendered()

    async def fetch_provider_links(self):
        records = await self._fetch("provider_links", "name", "asc")
        if records is not None:
            self.provider_links = records
            await self.rendered()

    def _mutate(self, action: str, func, *args):
        self.session.require()
        try:
            return func(*args)
        except StorageError as e:
            logger.error(f"Failed to {action}: {e}")
            self.notify(f"Failed to {action}: {e}")
            raise

    def save_vehicle(self, vehicle_id: Optional[int], fields: Dict[str, Any]):
        if vehicle_id is None:
            return self._mutate("add vehicle", self.listings.create_vehicle, fields)
        return self._mutate("update vehicle", self.listings.update_vehicle, vehicle_id, fields)

    def delete_vehicle(self, vehicle_id: int):
        self._mutate("delete vehicle", self.listings.delete_vehicle, vehicle_id)

    def save_member(self, member_id: Optional[int], fields: Dict[str, Any]):
        return self._mutate("save member", self.memberships.save_member, member_id, fields)

    def delete_member(self, member_id: int):
        self._mutate("delete member", self.memberships.delete_member, member_id)

    def save_provider_link(self, link_id: Optional[int], fields: Dict[str, Any]):
        return self._mutate("save provider link", self.providers.save_provider_link, link_id, fields)

    def delete_provider_link(self, link_id: int):
        self._mutate("delete provider link", self.providers.delete_provider_link, link_id)

    def analytics(self) -> Dict[str, Any]:
        return summarize(self.vehicles, self.members)

    async def logout(self):
        self.session.logout()
        await self.dispose()

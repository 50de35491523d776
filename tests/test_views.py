import asyncio

import pytest

from showroom.auth import AdminSession, SessionStore
from showroom.catalog import ListingService, MembershipService, ProviderLinkService
from showroom.errors import AuthenticationError, StorageError, SubscriptionError
from showroom.financing import compute_monthly_payment
from showroom.views import AdminDashboardView, CatalogView, VehicleDetailView


def test_catalog_mount_fetches_and_follows_changes(db, subscriber, make_vehicle, wait_until):
    listings = ListingService(db)
    providers = ProviderLinkService(db)
    listings.create_vehicle(make_vehicle())
    providers.save_provider_link(None, {"name": "Mobilis", "url": "https://www.mobilis.dz"})
    providers.save_provider_link(None, {"name": "Azra Finance", "url": "https://azra.example"})

    async def scenario():
        renders = []
        view = CatalogView(db, subscriber, hidden_provider_keywords=["azra"], on_render=renders.append)
        await view.mount()

        assert len(view.vehicles) == 1
        assert [link["name"] for link in view.provider_links] == ["Mobilis"]
        assert len(renders) == 1

        listings.create_vehicle(make_vehicle(make="Honda", model="Civic", price=2900000))
        await wait_until(lambda: len(view.vehicles) == 2)

        assert view.vehicles[0]["make"] == "Honda"
        assert view.makes() == ["Honda", "Toyota"]
        assert len(renders) == 2

        await view.dispose()
        assert subscriber.handle_count("vehicles") == 0
        assert subscriber.handle_count("provider_links") == 0

    asyncio.run(scenario())


def test_catalog_filters_current_snapshot(db, subscriber, make_vehicle):
    listings = ListingService(db)
    listings.create_vehicle(make_vehicle())
    listings.create_vehicle(make_vehicle(make="Hyundai", model="Tucson", price=4800000))
    listings.create_vehicle(make_vehicle(make="Renault", model="Clio", price=2100000))

    async def scenario():
        async with CatalogView(db, subscriber) as view:
            assert len(view.filtered()) == 3
            assert [v["model"] for v in view.filtered(min_price=3000000)] == ["Tucson", "Corolla"]
            assert [v["model"] for v in view.filtered(max_price=2500000)] == ["Clio"]
            assert [v["model"] for v in view.filtered(makes=["Toyota", "Renault"])] == ["Clio", "Corolla"]
            assert [v["model"] for v in view.filtered(query="toyta")] == ["Corolla"]

    asyncio.run(scenario())


def test_fetch_completing_after_dispose_is_discarded(db, subscriber, make_vehicle):
    listings = ListingService(db)
    listings.create_vehicle(make_vehicle())

    async def scenario():
        view = CatalogView(db, subscriber)
        await view.mount()

        original = db.list

        def list_then_close(*args):
            records = original(*args)
            view.close()
            return records

        db.list = list_then_close
        listings.create_vehicle(make_vehicle(make="Kia", model="Sportage"))
        await view.refresh()

        assert len(view.vehicles) == 1
        assert view.disposed

    asyncio.run(scenario())


def test_pending_refetch_after_dispose_is_ignored(db, subscriber, make_vehicle):
    listings = ListingService(db)
    listings.create_vehicle(make_vehicle())

    async def scenario():
        renders = []
        view = CatalogView(db, subscriber, on_render=renders.append)
        await view.mount()

        listings.create_vehicle(make_vehicle(make="Kia", model="Sportage"))
        await view.dispose()
        await asyncio.sleep(0.05)

        assert len(view.vehicles) == 1
        assert len(renders) == 1

    asyncio.run(scenario())


def test_loading_is_true_while_fetching(db, subscriber):
    async def scenario():
        view = CatalogView(db, subscriber)
        seen = []
        original = db.list

        def spy(*args):
            seen.append(view.loading)
            return original(*args)

        db.list = spy
        await view.mount()

        assert seen == [True, True]
        assert not view.loading

    asyncio.run(scenario())


def test_storage_failure_keeps_snapshot_and_notifies(db, subscriber, make_vehicle):
    ListingService(db).create_vehicle(make_vehicle())

    async def scenario():
        view = CatalogView(db, subscriber)
        await view.mount()

        def broken(*args):
            raise StorageError("connection lost")

        db.list = broken
        await view.refresh()

        assert len(view.vehicles) == 1
        assert len(view.notifications) == 2
        assert "connection lost" in view.notifications[0]

        view.dismiss_notifications()
        assert view.notifications == []

    asyncio.run(scenario())


def test_subscription_error_marks_view_stale(db, subscriber):
    async def scenario():
        view = CatalogView(db, subscriber)
        await view.mount()

        subscriber._report_error(SubscriptionError("gave up"))
        assert view.stale

        await view.refresh()
        assert not view.stale

    asyncio.run(scenario())


def test_mounting_disposed_view_fails(db, subscriber):
    async def scenario():
        view = CatalogView(db, subscriber)
        await view.dispose()
        with pytest.raises(RuntimeError):
            await view.mount()

    asyncio.run(scenario())


def test_detail_view_financing_and_live_delete(db, subscriber, make_vehicle, wait_until):
    listings = ListingService(db)
    vehicle = listings.create_vehicle(make_vehicle())

    async def scenario():
        view = VehicleDetailView(db, subscriber, vehicle["id"])
        await view.mount()

        assert view.found
        assert view.minimum_down_payment() == 640000
        quotes = view.financing()
        assert [quote.term_months for quote in quotes] == [12, 24, 36, 48, 60]
        assert quotes[2].monthly_payment == compute_monthly_payment(2560000, 5.9, 36)
        assert view.quote(1000000, 24).principal == 2200000

        listings.update_vehicle(vehicle["id"], {"price": 4000000})
        await wait_until(lambda: view.vehicle["price"] == 4000000)
        assert view.minimum_down_payment() == 800000

        listings.delete_vehicle(vehicle["id"])
        await wait_until(lambda: not view.found)
        assert view.financing() == []
        assert view.quote() is None

        await view.dispose()

    asyncio.run(scenario())


def test_detail_view_for_unknown_vehicle(db, subscriber):
    async def scenario():
        async with VehicleDetailView(db, subscriber, 404) as view:
            assert not view.found
            assert view.minimum_down_payment() is None

    asyncio.run(scenario())


def _admin_view(db, subscriber, session):
    return AdminDashboardView(
        db,
        subscriber,
        session,
        ListingService(db),
        MembershipService(db),
        ProviderLinkService(db),
    )


def test_admin_view_requires_session(db, subscriber, verifier, tmp_path):
    session = AdminSession(SessionStore(str(tmp_path / "admin.json")), verifier)
    view = _admin_view(db, subscriber, session)

    with pytest.raises(AuthenticationError):
        asyncio.run(view.mount())
    with pytest.raises(AuthenticationError):
        view.save_provider_link(None, {"name": "Mobilis", "url": "https://www.mobilis.dz"})

    assert db.count("provider_links") == 0


def test_admin_view_crud_and_analytics(db, subscriber, verifier, make_vehicle, tmp_path, wait_until):
    session = AdminSession(SessionStore(str(tmp_path / "admin.json")), verifier)

    async def scenario():
        await session.login("admin", "s3cret")
        view = _admin_view(db, subscriber, session)
        await view.mount()

        vehicle = view.save_vehicle(None, make_vehicle())
        view.save_vehicle(None, make_vehicle(make="Mercedes", model="C-Class", price=6500000))
        view.save_member(None, {"name": "Amine", "email": "a@b.dz", "phone": "0555", "membership_duration": "monthly"})
        view.save_provider_link(None, {"name": "Djezzy", "url": "https://djezzy.dz"})

        await wait_until(lambda: len(view.vehicles) == 2 and len(view.members) == 1 and len(view.provider_links) == 1)

        summary = view.analytics()
        assert summary["vehicle_count"] == 2
        assert summary["member_count"] == 1
        assert summary["average_price"] == 4850000
        assert {band["band"]: band["count"] for band in summary["price_bands"]} == {
            "under 3M": 0,
            "3M-5M": 1,
            "over 5M": 1,
        }

        view.delete_vehicle(vehicle["id"])
        await wait_until(lambda: len(view.vehicles) == 1)

        await view.logout()
        assert view.disposed
        assert not session.active
        with pytest.raises(AuthenticationError):
            view.delete_member(view.members[0]["id"])

    asyncio.run(scenario())


def test_admin_view_surfaces_storage_failures(db, subscriber, verifier, tmp_path):
    session = AdminSession(SessionStore(str(tmp_path / "admin.json")), verifier)

    async def scenario():
        await session.login("admin", "s3cret")
        async with _admin_view(db, subscriber, session) as view:
            with pytest.raises(StorageError):
                view.delete_vehicle(12345)
            assert len(view.notifications) == 1
            assert "delete vehicle" in view.notifications[0]

    asyncio.run(scenario())

from datetime import date

import pytest

from showroom.catalog import ListingService
from showroom.catalog.validation import vehicle_errors
from showroom.errors import RecordNotFound, ValidationError
from showroom.financing import FinancingTerms, compute_monthly_payment


class UnreachableDatabase:
    def get(self, *args, **kwargs):
        raise AssertionError("gateway should not be called")

    insert = update = delete = get


def test_create_derives_monthly_payment(db, make_vehicle):
    vehicle = ListingService(db).create_vehicle(make_vehicle())

    assert vehicle["monthly_payment"] == compute_monthly_payment(2560000, 5.9, 36)
    assert vehicle["monthly_payment_overridden"] is False
    assert db.count("vehicles") == 1


def test_price_edit_recomputes_payment(db, make_vehicle):
    listings = ListingService(db)
    vehicle = listings.create_vehicle(make_vehicle())

    changes = listings.update_vehicle(vehicle["id"], {"price": 4000000})
    stored = db.get("vehicles", vehicle["id"])

    assert changes["monthly_payment"] == stored["monthly_payment"]
    assert stored["monthly_payment"] == compute_monthly_payment(3200000, 5.9, 36)
    assert abs(stored["monthly_payment"] - vehicle["monthly_payment"] * 1.25) <= 2


def test_explicit_payment_overrides_until_next_price_change(db, make_vehicle):
    listings = ListingService(db)
    vehicle = listings.create_vehicle(make_vehicle(monthly_payment=50000))
    assert vehicle["monthly_payment"] == 50000
    assert vehicle["monthly_payment_overridden"] is True

    listings.update_vehicle(vehicle["id"], {"mileage": 1200})
    assert db.get("vehicles", vehicle["id"])["monthly_payment"] == 50000

    listings.update_vehicle(vehicle["id"], {"price": 3500000})
    stored = db.get("vehicles", vehicle["id"])
    assert stored["monthly_payment"] == compute_monthly_payment(2800000, 5.9, 36)
    assert stored["monthly_payment_overridden"] is False


def test_payment_only_edit_sets_override(db, make_vehicle):
    listings = ListingService(db)
    vehicle = listings.create_vehicle(make_vehicle())

    listings.update_vehicle(vehicle["id"], {"monthly_payment": 45000})
    listings.update_vehicle(vehicle["id"], {"year": 2023})

    stored = db.get("vehicles", vehicle["id"])
    assert stored["monthly_payment"] == 45000
    assert stored["monthly_payment_overridden"] is True


def test_explicit_payment_wins_over_simultaneous_price_change(db, make_vehicle):
    listings = ListingService(db)
    vehicle = listings.create_vehicle(make_vehicle())

    listings.update_vehicle(vehicle["id"], {"price": 5000000, "monthly_payment": 60000})

    stored = db.get("vehicles", vehicle["id"])
    assert stored["price"] == 5000000
    assert stored["monthly_payment"] == 60000
    assert stored["monthly_payment_overridden"] is True


def test_unchanged_price_keeps_override(db, make_vehicle):
    listings = ListingService(db)
    vehicle = listings.create_vehicle(make_vehicle(monthly_payment=45000))

    listings.update_vehicle(vehicle["id"], {"price": 3200000})

    assert db.get("vehicles", vehicle["id"])["monthly_payment"] == 45000


def test_full_record_price_edit_recomputes(db, make_vehicle):
    listings = ListingService(db)
    vehicle = listings.create_vehicle(make_vehicle())

    listings.update_vehicle(vehicle["id"], {**vehicle, "price": 4000000})

    stored = db.get("vehicles", vehicle["id"])
    assert stored["monthly_payment"] == compute_monthly_payment(3200000, 5.9, 36)
    assert stored["monthly_payment_overridden"] is False


def test_resending_unchanged_payment_is_not_an_override(db, make_vehicle):
    listings = ListingService(db)
    vehicle = listings.create_vehicle(make_vehicle())

    changes = listings.update_vehicle(
        vehicle["id"], {"mileage": 10, "monthly_payment": vehicle["monthly_payment"]}
    )

    stored = db.get("vehicles", vehicle["id"])
    assert "monthly_payment" not in changes
    assert stored["mileage"] == 10
    assert stored["monthly_payment"] == vehicle["monthly_payment"]
    assert stored["monthly_payment_overridden"] is False


def test_resending_overridden_payment_keeps_override(db, make_vehicle):
    listings = ListingService(db)
    vehicle = listings.create_vehicle(make_vehicle(monthly_payment=45000))

    listings.update_vehicle(vehicle["id"], {**vehicle, "mileage": 500})

    stored = db.get("vehicles", vehicle["id"])
    assert stored["monthly_payment"] == 45000
    assert stored["monthly_payment_overridden"] is True


def test_custom_terms_drive_listing_payment(db, make_vehicle):
    terms = FinancingTerms(down_payment_percent=30, term_months=60, annual_rate_percent=7.0)
    vehicle = ListingService(db, terms).create_vehicle(make_vehicle(price=1000000))

    assert vehicle["monthly_payment"] == compute_monthly_payment(700000, 7.0, 60)


def test_invalid_vehicle_never_reaches_gateway(make_vehicle):
    listings = ListingService(UnreachableDatabase())

    with pytest.raises(ValidationError) as excinfo:
        listings.create_vehicle(make_vehicle(price=0))

    assert set(excinfo.value.errors) == {"price"}


def test_update_missing_vehicle_raises(db):
    with pytest.raises(RecordNotFound):
        ListingService(db).update_vehicle(99, {"price": 1000000})


def test_invalid_update_leaves_record_untouched(db, make_vehicle):
    listings = ListingService(db)
    vehicle = listings.create_vehicle(make_vehicle())

    with pytest.raises(ValidationError):
        listings.update_vehicle(vehicle["id"], {"price": -5})

    assert db.get("vehicles", vehicle["id"])["price"] == 3200000


def test_delete_vehicle(db, make_vehicle):
    listings = ListingService(db)
    vehicle = listings.create_vehicle(make_vehicle())

    listings.delete_vehicle(vehicle["id"])

    assert db.count("vehicles") == 0
    with pytest.raises(RecordNotFound):
        listings.delete_vehicle(vehicle["id"])


def test_vehicle_field_errors(make_vehicle):
    today = date(2026, 6, 1)

    assert vehicle_errors(make_vehicle(), today) == {}
    assert vehicle_errors(make_vehicle(year=2027), today) == {}
    assert "year" in vehicle_errors(make_vehicle(year=2028), today)
    assert "year" in vehicle_errors(make_vehicle(year=1899), today)
    assert "make" in vehicle_errors(make_vehicle(make="  "), today)
    assert "model" in vehicle_errors(make_vehicle(model=None), today)
    assert "image" in vehicle_errors(make_vehicle(image="corolla.jpg"), today)
    assert "image" in vehicle_errors(make_vehicle(image=""), today)
    assert "mileage" in vehicle_errors(make_vehicle(mileage=-1), today)
    assert "transmission" in vehicle_errors(make_vehicle(transmission="tiptronic"), today)
    assert "fuel_type" in vehicle_errors(make_vehicle(fuel_type="steam"), today)
    assert "monthly_payment" in vehicle_errors(make_vehicle(monthly_payment=-100), today)
    assert "price" in vehicle_errors(make_vehicle(price="3200000"), today)


def test_non_text_vehicle_fields_are_field_errors(make_vehicle):
    errors = vehicle_errors(make_vehicle(image=123, make=2024, transmission=["manual"]))

    assert set(errors) == {"image", "make", "transmission"}


def test_non_text_image_rejected_on_create(db, make_vehicle):
    with pytest.raises(ValidationError) as excinfo:
        ListingService(db).create_vehicle(make_vehicle(image=123))

    assert set(excinfo.value.errors) == {"image"}
    assert db.count("vehicles") == 0

"""Field validation run before anything reaches the gateway."""

from datetime import date
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from ..errors import ValidationError
from ..financing.pricing import MembershipDuration
from ..storage.models import FuelType, Transmission

MIN_YEAR = 1900
PROVIDER_SCHEMES = ("http://", "https://")
TRANSMISSIONS = {t.value for t in Transmission}
FUEL_TYPES = {f.value for f in FuelType}
DURATIONS = {d.value for d in MembershipDuration}


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def is_valid_url(value: str) -> bool:
    """True for an absolute URL with a scheme and a host."""
    if not isinstance(value, str):
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)


def is_provider_url(value: Optional[str]) -> bool:
    """True when the URL uses the http:// or https:// scheme."""
    if not isinstance(value, str):
        return False
    return value.lower().startswith(PROVIDER_SCHEMES) and is_valid_url(value)


def vehicle_errors(fields: Dict[str, Any], today: Optional[date] = None) -> Dict[str, str]:
    """Collect field errors for a complete vehicle record."""
    today = today or date.today()
    errors: Dict[str, str] = {}

    if not _text(fields.get("make")):
        errors["make"] = "make is required"
    if not _text(fields.get("model")):
        errors["model"] = "model is required"

    year = fields.get("year")
    if not _is_int(year) or year < MIN_YEAR or year > today.year + 1:
        errors["year"] = f"year must be between {MIN_YEAR} and {today.year + 1}"

    price = fields.get("price")
    if not _is_int(price) or price <= 0:
        errors["price"] = "price must be greater than zero"

    monthly = fields.get("monthly_payment")
    if monthly is not None and (not _is_int(monthly) or monthly < 0):
        errors["monthly_payment"] = "monthly payment must not be negative"

    image = fields.get("image")
    if _blank(image):
        errors["image"] = "image URL is required"
    elif not is_valid_url(image):
        errors["image"] = "image URL is invalid"

    mileage = fields.get("mileage")
    if mileage is not None and (not _is_int(mileage) or mileage < 0):
        errors["mileage"] = "mileage must not be negative"

    transmission = fields.get("transmission")
    if transmission is not None and (not isinstance(transmission, str) or transmission not in TRANSMISSIONS):
        errors["transmission"] = "transmission must be automatic, manual or cvt"

    fuel_type = fields.get("fuel_type")
    if fuel_type is not None and (not isinstance(fuel_type, str) or fuel_type not in FUEL_TYPES):
        errors["fuel_type"] = "fuel type must be gasoline, diesel, hybrid or electric"

    return errors


def validate_vehicle(fields: Dict[str, Any], today: Optional[date] = None):
    """Raises ValidationError if the vehicle record is invalid."""
    errors = vehicle_errors(fields, today)
    if errors:
        raise ValidationError(errors)


def validate_member(fields: Dict[str, Any]):
    """Raises ValidationError if the membership record is invalid."""
    errors: Dict[str, str] = {}

    if not _text(fields.get("name")):
        errors["name"] = "name is required"

    email = fields.get("email")
    if _blank(email):
        errors["email"] = "email is required"
    elif not isinstance(email, str) or "@" not in email or email.startswith("@") or email.endswith("@"):
        errors["email"] = "email is invalid"

    if not _text(fields.get("phone")):
        errors["phone"] = "phone is required"

    duration = fields.get("membership_duration")
    if not _blank(duration) and (not isinstance(duration, str) or duration not in DURATIONS):
        errors["membership_duration"] = "duration must be monthly, quarterly or yearly"

    if errors:
        raise ValidationError(errors)


def validate_provider_link(fields: Dict[str, Any]):
    """Raises ValidationError if the provider link is invalid."""
    errors: Dict[str, str] = {}

    if not _text(fields.get("name")):
        errors["name"] = "name is required"

    url = fields.get("url")
    if _blank(url):
        errors["url"] = "URL is required"
    elif not is_provider_url(url):
        errors["url"] = "URL must start with http:// or https://"

    if errors:
        raise ValidationError(errors)

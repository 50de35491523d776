"""Database models for Showroom."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Transmission(str, Enum):
    AUTOMATIC = "automatic"
    MANUAL = "manual"
    CVT = "cvt"


class FuelType(str, Enum):
    GASOLINE = "gasoline"
    DIESEL = "diesel"
    HYBRID = "hybrid"
    ELECTRIC = "electric"


# ============================================================================
# Pydantic Models (for data transfer)
# ============================================================================


class VehicleIn(BaseModel):
    """Vehicle fields accepted from the admin console."""

    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    price: Optional[int] = None
    monthly_payment: Optional[int] = None
    image: Optional[str] = None
    mileage: Optional[int] = None
    transmission: Optional[str] = None
    fuel_type: Optional[str] = None


class MemberIn(BaseModel):
    """Membership fields accepted from the admin console."""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    membership_type: Optional[str] = None
    membership_duration: Optional[str] = None


class ProviderLinkIn(BaseModel):
    """Provider link fields accepted from the admin console."""

    name: Optional[str] = None
    url: Optional[str] = None


# ============================================================================
# SQLAlchemy Models (for database)
# ============================================================================


class Vehicle(Base):
    """Vehicle listing shown in the catalog."""

    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True)
    make = Column(String, index=True, nullable=False)
    model = Column(String, nullable=False)
    year = Column(Integer, nullable=False)
    price = Column(Integer, nullable=False)  # minor units
    monthly_payment = Column(Integer, nullable=False, default=0)
    monthly_payment_overridden = Column(Boolean, nullable=False, default=False)
    image = Column(String, nullable=False)
    mileage = Column(Integer)
    transmission = Column(String, default=Transmission.AUTOMATIC.value)
    fuel_type = Column(String, default=FuelType.GASOLINE.value)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Vehicle(id={self.id}, make='{self.make}', model='{self.model}', price={self.price})>"


class MembershipRecord(Base):
    """Dealership membership (free-text type or priced duration)."""

    __tablename__ = "membership_records"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    membership_type = Column(String)
    membership_duration = Column(String)  # monthly, quarterly, yearly
    subscription_price = Column(Integer)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<MembershipRecord(id={self.id}, name='{self.name}')>"


class ProviderLink(Base):
    """Outbound payment/telecom redirect target used by checkout."""

    __tablename__ = "provider_links"

    id = Column(Integer, primary_key=True)
    name = Column(String, index=True, nullable=False)
    url = Column(String, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<ProviderLink(id={self.id}, name='{self.name}')>"


COLLECTIONS = {
    Vehicle.__tablename__: Vehicle,
    MembershipRecord.__tablename__: MembershipRecord,
    ProviderLink.__tablename__: ProviderLink,
}

"""
SQLAlchemy ORM models.

Tables
------
* ``customers``         -- riders (identity lives elsewhere; id + name only)
* ``drivers``           -- drivers that may report positions
* ``driver_locations``  -- one live position per driver, no history
* ``rides``             -- ride snapshots produced by the ride service

Positions are plain latitude/longitude columns.  Nearest-driver queries
go through the geo index, not through the database.

Indexes
-------
* **B-Tree** on ``rides.customer_id``, ``rides.driver_id`` and
  ``rides.status`` for the per-customer / per-driver listings.
"""

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Numeric,
    String,
    func,
)

from .database import Base
from dispatch_engine.domain.enums import RideStatus, VehicleClass


class CustomerModel(Base):
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True)
    name = Column(String(120), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class DriverModel(Base):
    __tablename__ = "drivers"

    id = Column(String(36), primary_key=True)
    name = Column(String(120), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class DriverLocationModel(Base):
    __tablename__ = "driver_locations"

    driver_id = Column(String(36), ForeignKey("drivers.id"), primary_key=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    status = Column(String(40), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class RideModel(Base):
    __tablename__ = "rides"

    id = Column(String(36), primary_key=True)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False)
    driver_id = Column(String(36), ForeignKey("drivers.id"), nullable=False)
    vehicle_class = Column(Enum(VehicleClass), nullable=False)
    status = Column(Enum(RideStatus), default=RideStatus.PENDING, nullable=False)
    fare = Column(Numeric(12, 2), nullable=False)

    pickup_lat = Column(Float, nullable=False)
    pickup_lng = Column(Float, nullable=False)
    dropoff_lat = Column(Float, nullable=False)
    dropoff_lng = Column(Float, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_rides_customer", "customer_id"),
        Index("idx_rides_driver", "driver_id"),
        Index("idx_rides_status", "status"),
    )

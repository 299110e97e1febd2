"""Domain enumerations and state-transition rules."""

import enum


class RideStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# State machine: maps current status -> set of valid next statuses.
# ONGOING is optional: an accepted ride may be completed directly.
RIDE_TRANSITIONS: dict[RideStatus, set[RideStatus]] = {
    RideStatus.PENDING: {RideStatus.ACCEPTED, RideStatus.CANCELLED},
    RideStatus.ACCEPTED: {
        RideStatus.ONGOING,
        RideStatus.COMPLETED,
        RideStatus.CANCELLED,
    },
    RideStatus.ONGOING: {RideStatus.COMPLETED},
    RideStatus.COMPLETED: set(),
    RideStatus.CANCELLED: set(),
}

TERMINAL_STATUSES = frozenset({RideStatus.COMPLETED, RideStatus.CANCELLED})


class VehicleClass(str, enum.Enum):
    BIKE = "BIKE"
    CAR = "CAR"
    LUXURY = "LUXURY"


class TravelProfile(str, enum.Enum):
    DRIVING = "driving"
    WALKING = "walking"
    CYCLING = "cycling"


class RouteSource(str, enum.Enum):
    """Which path of the route resolver produced a ``RouteMetrics``."""

    PROVIDER = "PROVIDER"
    FALLBACK = "FALLBACK"
    DEFAULT = "DEFAULT"

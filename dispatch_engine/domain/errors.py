"""
Domain error taxonomy.

Every error carries the HTTP status the API layer renders it with, so a
single exception handler can translate the whole hierarchy.
"""


class DispatchError(Exception):
    status_code: int = 400

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__ or "")
        self.message = str(self)


class InvalidCoordinate(DispatchError, ValueError):
    """Latitude/longitude is NaN, infinite or out of range."""

    status_code = 422


class UnsupportedVehicleClass(DispatchError, ValueError):
    """Vehicle class is not one of BIKE, CAR, LUXURY."""

    status_code = 422


class NoDriversAvailable(DispatchError):
    """No drivers available in the requested area."""

    status_code = 409


class IllegalTransition(DispatchError):
    """Ride status change violates the state machine."""

    status_code = 409


class RideNotFound(DispatchError):
    """Ride not found."""

    status_code = 404


class DriverNotFound(DispatchError):
    """Driver not found."""

    status_code = 404


class ProviderUnavailable(DispatchError):
    """Routing provider is unavailable."""

    status_code = 503


class RouteResolutionFailed(ProviderUnavailable):
    """Route could not be resolved, not even by the fallback."""

    status_code = 502

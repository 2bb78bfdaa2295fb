"""
VEHICLE SERVICE ERRORS

Errors raised by the persistence boundary. Business-rule violations are
not wrapped: they surface as vehicles.ledger.ValidationError unchanged.
"""


class VehicleServiceError(Exception):
    """Base exception for vehicle service failures."""


class VehicleNotFoundError(VehicleServiceError):
    """Raised when the vehicle to mutate does not exist."""


class StaleVehicleError(VehicleServiceError):
    """Raised when a caller edits a vehicle from an outdated version."""

    def __init__(self, vehicle_id, expected_version, current_version):
        self.vehicle_id = vehicle_id
        self.expected_version = expected_version
        self.current_version = current_version
        super().__init__(
            f"Vehicle {vehicle_id} was modified by someone else "
            f"(expected version {expected_version}, current {current_version}). "
            "Reload and try again."
        )

    def as_dict(self):
        return {
            "error": str(self),
            "constraint": "version_current",
            "expected_version": self.expected_version,
            "current_version": self.current_version,
        }

"""Domain errors raised by the reservation workflow"""


class FoodAIError(Exception):
    """Base class for domain errors"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(FoodAIError):
    """Unknown id"""

    status_code = 404


class ValidationError(FoodAIError):
    """Bad input shape, rejected before touching storage"""

    status_code = 422


class PermissionDeniedError(FoodAIError):
    """Actor may not perform the action"""

    status_code = 403


class InvalidTransitionError(FoodAIError):
    """Status change outside the reservation lifecycle"""

    status_code = 409


class SlotUnavailableError(FoodAIError):
    """Requested slot is saturated"""

    status_code = 409

    def __init__(self, message: str, existing_reservations: int):
        super().__init__(message)
        self.existing_reservations = existing_reservations


class BackendError(FoodAIError):
    """Opaque storage failure; the only error worth retrying"""

    status_code = 503


class InsightsUnavailableError(FoodAIError):
    """AI insights endpoint failed or returned garbage"""

    status_code = 502

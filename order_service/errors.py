"""
Exception taxonomy for the order service

Business logic raises these; the API layer maps each class to an HTTP
status and a JSON body with an explicit ``error`` field.
"""


class OrderServiceError(Exception):
    """Base exception for all order service errors"""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(OrderServiceError):
    """Malformed input; raised before any persistence"""

    status_code = 400


class EmptyCartError(ValidationError):
    """Checkout attempted with no line items"""

    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


class MissingPriceError(ValidationError):
    """Custom order advanced to 'in progress' without a price"""

    def __init__(self, custom_order_id: int):
        self.custom_order_id = custom_order_id
        super().__init__(
            f"Custom order {custom_order_id} has no price; set a price before moving it to 'in progress'"
        )


class Unauthenticated(OrderServiceError):
    """Missing or expired session"""

    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class Unauthorized(OrderServiceError):
    """Session user may not act on the resource"""

    status_code = 403

    def __init__(self, message: str = "Not allowed"):
        super().__init__(message)


class NotFoundError(OrderServiceError):
    """Entity does not exist or is not visible to the caller"""

    status_code = 404

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with id={entity_id} not found")


class InvalidTransition(OrderServiceError):
    """Requested status is not reachable from the current status"""

    status_code = 409

    def __init__(self, current: str, target: str, reason: str = None):
        self.current = current
        self.target = target
        msg = f"Cannot move from '{current}' to '{target}'"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class VerificationFailed(OrderServiceError):
    """Payment gateway did not confirm the charge"""

    status_code = 402

    def __init__(self, reference: str, reason: str, gateway_status: str = None):
        self.reference = reference
        self.reason = reason
        self.gateway_status = gateway_status
        super().__init__(f"Payment verification failed for {reference}: {reason}")


class ConfigurationError(OrderServiceError):
    """Required credential or endpoint is not configured"""

    status_code = 500


class GenerationError(OrderServiceError):
    """Document rendering or upload failed"""

    status_code = 502


class NotificationError(OrderServiceError):
    """A single notification channel failed"""

    status_code = 502

    def __init__(self, channel: str, reason: str):
        self.channel = channel
        self.reason = reason
        super().__init__(f"{channel} notification failed: {reason}")


class ExternalServiceError(OrderServiceError):
    """An upstream collaborator (auth, geocoder) is unavailable"""

    status_code = 502


class StorageError(OrderServiceError):
    """Underlying persistence call failed outright"""

    status_code = 503

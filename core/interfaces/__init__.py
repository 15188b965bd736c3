# Interfaces (Abstract Contracts)
# Adapters and services implement these interfaces
from .identity import AuthenticationError, IdentityProvider
from .payments import PaymentEvent, PaymentGateway

__all__ = [
    "AuthenticationError",
    "IdentityProvider",
    "PaymentEvent",
    "PaymentGateway",
]

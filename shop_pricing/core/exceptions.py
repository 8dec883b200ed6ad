"""
Custom exceptions for the pricing service.
"""


class PricingError(Exception):
    """Base exception for the pricing service."""
    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class DiscountStructureError(PricingError):
    """The discount group forest is corrupted (cycle or runaway depth)."""
    pass


class PriceUnavailableError(PricingError):
    """No price row exists for the requested or default price tier."""
    pass


class NotFoundError(PricingError):
    """A referenced user, product, modification, order or item does not exist."""
    pass


class OrderPricingError(PricingError):
    """Pricing a line item for an order failed."""
    pass

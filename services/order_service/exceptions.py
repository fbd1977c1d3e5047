"""Checkout errors.

Raised by the orchestrator at the stage where they happen. The first group
aborts the checkout with nothing persisted; the post-commit group is logged
and absorbed, so the caller still receives the committed order.
"""


class CheckoutError(Exception):
    stage = "checkout"


# --- Pre-commit: propagate, no side effects ---

class InvalidRequest(CheckoutError):
    stage = "validate"


class ProductUnavailable(CheckoutError):
    stage = "pricing"


class UpstreamError(CheckoutError):
    stage = "pricing"


class OrderPersistenceError(CheckoutError):
    stage = "persist"


class CartChanged(OrderPersistenceError):
    """The stored cart no longer matches the snapshot that was priced."""


# --- Post-commit: absorbed ---

class PaymentDeclined(CheckoutError):
    stage = "payment"


class PaymentUnavailable(CheckoutError):
    stage = "payment"


class StatusAdvanceError(CheckoutError):
    stage = "status_advance"


# --- Order management ---

class OrderNotFound(Exception):
    pass


class InvalidStatusTransition(Exception):
    pass

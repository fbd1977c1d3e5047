from .setup import setup_observability, get_logger
from .metrics import (
    ecomm_checkout_total,
    ecomm_checkout_duration_seconds,
    ecomm_payment_outcome_total,
    ecomm_absorbed_failures_total,
)

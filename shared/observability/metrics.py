from prometheus_client import Counter, Histogram

# Business Metrics
ecomm_checkout_total = Counter(
    "ecomm_checkout_total", 
    "Total checkouts processed", 
    ["status"] # Labels: 'success', 'rejected', 'failed'
)

ecomm_checkout_duration_seconds = Histogram(
    "ecomm_checkout_duration_seconds", 
    "Checkout duration in seconds"
)

ecomm_payment_outcome_total = Counter(
    "ecomm_payment_outcome_total",
    "Payment attempts made after an order was committed",
    ["outcome"] # Labels: 'succeeded', 'declined', 'unavailable'
)

ecomm_absorbed_failures_total = Counter(
    "ecomm_absorbed_failures_total",
    "Post-commit failures that were logged but not surfaced to the caller",
    ["stage"] # Labels: 'payment', 'status_advance'
)

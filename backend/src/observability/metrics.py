"""Prometheus metrics for Letterbox.

Defines and exposes operational metrics for monitoring and alerting.
"""

from prometheus_client import Counter, Gauge

# Message creation: send | reply | forward | draft
messages_created_total = Counter(
    "letterbox_messages_created_total",
    "Total number of messages created",
    ["kind"]
)

# Lifecycle transitions on existing messages:
# draft_update | draft_send | read | trash | restore | delete
message_transitions_total = Counter(
    "letterbox_message_transitions_total",
    "Total number of message state transitions",
    ["transition"]
)

# Push delivery outcome: delivered | no_connection | dropped | failed
push_events_total = Counter(
    "letterbox_push_events_total",
    "Total push events handed to the transport",
    ["outcome"]
)

push_connections = Gauge(
    "letterbox_push_connections",
    "Number of live push connections"
)

"""
Orders services package - the order engine's service layer.

- OrderService: order lifecycle (create, accept, start, ready, complete, cancel)
- QueueService: per-café queue projection and renumbering
- WaitTimeService: queue length and wait estimate
- OrderStatsService: status counts, revenue and popular items
- OrderNotificationService: realtime fan-out to customers, staff and queue boards
"""

# Core order operations
from .order_service import OrderService

# Queue projection
from .queue_service import QueueService

# Wait-time estimation
from .wait_time_service import WaitTimeService

# Aggregates
from .stats_service import OrderStatsService

# Notification operations
from .notification_service import OrderNotificationService

__all__ = [
    "OrderService",
    "QueueService",
    "WaitTimeService",
    "OrderStatsService",
    "OrderNotificationService",
]

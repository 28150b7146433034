"""API routes package.

- status: service summary, health check and recent activity
- webhooks: Stripe webhook ingestion
- manual_test: synthetic run through the notification sinks

All routers are registered in main.py at the root path.
"""

from payment_monitor.api.routes.manual_test import router as manual_test_router
from payment_monitor.api.routes.status import router as status_router
from payment_monitor.api.routes.webhooks import router as webhooks_router

__all__ = [
    "manual_test_router",
    "status_router",
    "webhooks_router",
]

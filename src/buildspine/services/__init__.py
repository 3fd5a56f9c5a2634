"""Long-lived services of the development loop."""

from buildspine.services.base import BackgroundService, ServiceGroup

__all__ = ["BackgroundService", "ServiceGroup"]

# carebook/routers/__init__.py
from . import health
from . import schedules
from . import appointments

__all__ = ["health", "schedules", "appointments"]

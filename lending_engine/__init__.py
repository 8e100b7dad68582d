"""lending_engine — collateralized lending and liquidation accounting engine."""
from .errors import LendingError
from .services import HealthMonitor, LendingEngine

__all__ = ["LendingEngine", "HealthMonitor", "LendingError"]

__version__ = "0.1.0"

"""Service modules"""
from .engine import LendingEngine
from .monitor import HealthMonitor

__all__ = ["LendingEngine", "HealthMonitor"]

"""Collaborator protocols for the lending engine."""
from .custody import Custody
from .notifier import Notifier

__all__ = ["Custody", "Notifier"]

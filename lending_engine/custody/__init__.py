"""Custody implementations."""
from .memory import InMemoryVault

__all__ = ["InMemoryVault"]

#!/usr/bin/env python3
"""Lending engine entry point: ``python -m lending_engine.main <command>``."""
from .cli import main

if __name__ == "__main__":
    main()

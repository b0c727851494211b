# License: MIT
# Copyright © 2024 Frequenz Energy-as-a-Service GmbH

"""Utilities for testing purposes."""

from .graph_generator import GraphGenerator

__all__ = [
    "GraphGenerator",
]

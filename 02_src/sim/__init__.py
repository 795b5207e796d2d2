"""Synthetic traffic generator."""

from .sim import Sim

__all__ = ["Sim"]

"""Filters module."""

from .exclusion import ExclusionFilter, IExclusionFilter

__all__ = ["ExclusionFilter", "IExclusionFilter"]

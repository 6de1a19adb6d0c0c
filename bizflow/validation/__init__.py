"""Validation package."""

from bizflow.validation.validator import InputValidator

__all__ = ["InputValidator"]

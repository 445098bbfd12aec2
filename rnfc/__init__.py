"""Asynchronous ISO 14443-A card selection and ISO-DEP transport over a user-supplied reader."""

__version__ = "0.1.0"
__all__ = ["traits", "iso14443a", "iso_dep"]
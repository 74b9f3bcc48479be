"""Core module for the bracketeer application."""

from .types import ErrorResponse, FirestoreDocument

__all__ = ["FirestoreDocument", "ErrorResponse"]

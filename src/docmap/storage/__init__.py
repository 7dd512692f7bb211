"""Persistence for document records."""

from .records import DocumentStore, placeholder_record, to_record

__all__ = ["DocumentStore", "placeholder_record", "to_record"]

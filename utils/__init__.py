"""Helpers around the scheduling core (validation, id generation, logging, tables)."""

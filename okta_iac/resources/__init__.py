"""Managed resource types, their state records, mappers and schemas."""

"""Shared helpers for request handling, validation and access control."""

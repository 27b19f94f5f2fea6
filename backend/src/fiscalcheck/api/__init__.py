"""Boundary schemas for payloads coming from the parsing layer."""

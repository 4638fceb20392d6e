"""Conversation continuity engine."""

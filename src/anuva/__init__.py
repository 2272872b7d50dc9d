"""Anuva API: concussion recovery tracking backend."""

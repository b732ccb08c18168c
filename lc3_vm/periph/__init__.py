"""Devices attached to the machine."""

"""Archwizard - interactive archetype wizard and project generator driver."""

__version__ = "0.1.0"

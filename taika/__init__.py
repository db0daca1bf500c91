"""Taika - lesson progress engine for the Thai learning app."""

__version__ = "0.1.0"

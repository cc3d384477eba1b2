"""Gamify IAS Academy - XP, levels and spaced revisions for exam preparation."""

__version__ = "0.1.0"

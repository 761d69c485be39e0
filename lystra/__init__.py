"""Waybar now-playing module for MPRIS media players."""

__version__ = "0.2.0"

"""Workout tracker with tiers of bronze-to-diamond milestones."""

__version__ = "0.1.0"

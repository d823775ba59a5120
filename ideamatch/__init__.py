"""Idea Match Service: semantic matching and tagging for shared ideas."""

__version__ = "0.1.0"

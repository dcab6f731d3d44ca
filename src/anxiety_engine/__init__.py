"""Anxiety engine — rule-based anxiety scoring from wearable and self-report inputs."""

__version__ = "0.1.0"

"""Collect debug information about Eclipse Che / OpenShift Dev Spaces installations."""

__version__ = "0.1.0"

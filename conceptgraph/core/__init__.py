"""Core configuration, logging, and validation helpers."""

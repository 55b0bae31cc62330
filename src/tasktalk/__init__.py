"""tasktalk: voice/text driven task manager."""

__version__ = "0.1.0"

"""Sales funnel manager - deal tracking, validation and pipeline statistics."""

__version__ = "0.1.0"

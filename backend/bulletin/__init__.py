"""Article/comment board backend with audited persistence."""

__version__ = "0.1.0"

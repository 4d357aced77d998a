"""Track job applications pasted from job-board pages."""

__version__ = "0.1.0"

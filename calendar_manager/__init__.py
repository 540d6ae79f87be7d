"""Multi-account Google Calendar CLI with LLM-friendly sync exports."""

__version__ = "0.1.0"

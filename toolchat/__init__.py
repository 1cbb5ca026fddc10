"""Conversational agent that lets a language model call local or worker-process tools."""

__version__ = "0.1.0"

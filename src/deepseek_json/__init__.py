"""DeepSeek structured JSON chat client."""

__version__ = "0.1.0"

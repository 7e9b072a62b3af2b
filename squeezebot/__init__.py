"""Image optimization bot that proposes signed commits to repositories."""

__version__ = "0.1.0"

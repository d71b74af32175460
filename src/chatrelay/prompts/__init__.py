"""System prompt templates shipped with the package."""

"""Octogate - GitHub sign-in for FastAPI applications."""

__version__ = "0.1.0"

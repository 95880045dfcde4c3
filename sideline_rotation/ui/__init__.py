"""
UI package for the Sideline Rotation engine.

This package contains the Flask JSON API over the match session service.
"""
from .web_app import create_app, run_web_app

__all__ = ["create_app", "run_web_app"]

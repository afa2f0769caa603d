"""Configuration module for the Avidbase client."""
from .settings import AvidbaseConfig, load_settings

__all__ = ["AvidbaseConfig", "load_settings"]

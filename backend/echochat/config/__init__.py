"""Configuration module."""

from .settings import Settings, settings, get_default_base_url

__all__ = ['Settings', 'settings', 'get_default_base_url']

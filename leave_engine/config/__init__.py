"""
Configuration package for the leave engine.
"""

from leave_engine.config.settings import Settings, get_settings, settings

__all__ = ['Settings', 'get_settings', 'settings']

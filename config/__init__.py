"""
Config module - Default settings for the Salesforce report metadata extractor.
"""

from .settings import DEFAULT_SETTINGS, SUMMARY_FILENAME

__all__ = [
    'DEFAULT_SETTINGS',
    'SUMMARY_FILENAME',
]

"""
Build configuration loading for buildscripts projects
"""

__version__ = "0.1.0"

"""
Grok-style chat assistant API.
"""

__version__ = "1.0.0"

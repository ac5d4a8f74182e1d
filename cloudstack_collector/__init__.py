"""
CloudStack domain quota/usage collector.
"""

__version__ = "1.0.0"

"""
Bitcoin Intel API

Paid query entrypoints over the Bitcoin intelligence core, served with FastAPI.
"""

__version__ = "1.0.0"

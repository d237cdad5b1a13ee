"""
Transit Assist: cache and recommendation-refresh backend for a travel assistant.
"""

__version__ = "1.0.0"

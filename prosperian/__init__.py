"""
Prosperian backend-for-frontend: lead aggregation over the Pronto API.
"""

__version__ = "1.0.0"

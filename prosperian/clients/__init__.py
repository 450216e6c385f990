"""
HTTP clients for upstream lead-generation providers.
"""

from prosperian.clients.pronto import ProntoClient, ProntoError, ProntoTimeoutError

__all__ = [
    "ProntoClient",
    "ProntoError",
    "ProntoTimeoutError",
]

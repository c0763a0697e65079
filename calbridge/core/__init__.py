"""
Google API collaborators of the bridge
"""

from .email.google_client import GmailTransport

__all__ = [
    'GmailTransport',
]

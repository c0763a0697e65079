"""
Email transport

Main exports:
- GmailTransport: Gmail API implementation of the bridge transport
- Utility functions: See utils.py for message extraction and creation helpers
"""

from .google_client import GmailTransport, build_unread_query

__all__ = [
    'GmailTransport',
    'build_unread_query',
]

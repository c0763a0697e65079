"""
Authentication
"""
from .oauth import GmailOAuthHandler

__all__ = ['GmailOAuthHandler']

"""
Base classes for Google API clients
"""
from .google_api_client import BaseGoogleAPIClient

__all__ = ['BaseGoogleAPIClient']

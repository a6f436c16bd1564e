"""
Identity module for the clinic intake API.

This module provides:
- The IdentityProvider capability interface and its JWT / static-token implementations
- FastAPI dependencies resolving and authorizing the caller
- The caller identity endpoint
"""

"""
Authentication module for the drug order system.

This module provides:
- Username/password login issuing JWT access tokens
- Resolution of the bearer token into the current user (role and ward)
- Role-based access control dependencies
"""

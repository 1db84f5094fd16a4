"""
Authentication module for the clinic system.

This module provides authentication and authorization functionality including:
- Doctor and receptionist registration through one role-parameterized flow
- Password hashing and verification
- Opaque bearer tokens stored by hash, with lazy revocation on expiry
- Role-based access control for protected endpoints
"""

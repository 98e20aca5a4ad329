"""
Infrastructure Layer
=====================

Low-level technical concerns:
- Credential decryption
- Configuration file loading
- Database connection pools
"""

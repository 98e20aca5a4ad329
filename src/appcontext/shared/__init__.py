"""
Shared Kernel Module
====================

Generic infrastructure used by every service built on the bootstrap helper:
logging and HTTP middleware.
"""

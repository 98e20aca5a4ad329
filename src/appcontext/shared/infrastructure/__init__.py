"""
Shared Infrastructure
=====================

Logging setup and the remote syslog sink.
"""

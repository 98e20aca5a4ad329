"""
appcontext
==========

Application bootstrap helper: loads the JSON configuration file, decrypts
the stored database passwords, dials the remote syslog sink and opens the
database pools a service needs, bundled in an `ApplicationContext`.
"""

from appcontext.context import ApplicationContext, init_application_context

__version__ = "1.0.0"

__all__ = [
    "ApplicationContext",
    "init_application_context",
]

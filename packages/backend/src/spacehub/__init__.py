"""SpaceHub — identity backend for a coworking-space booking system.

Owns user accounts, password credentials, bearer tokens, and the
admin/role gates that protect the rest of the API.
"""

__version__ = "0.1.0"

"""
SecureShare

Ephemeral file transfer service: upload a file, get an opaque id, download
it with that id until it expires.
"""

__version__ = "1.0.0"

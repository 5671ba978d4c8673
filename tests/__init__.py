"""
Tests package for the SecureShare server.

This package contains test suites organized by type:
- unit/: Domain, infrastructure, application and API layer tests
- integration/: Full application tests through the Flask test client
"""

"""
Service layer for the controller backend.

Modules here hold the business rules (sessions, credentials and their
door access, the access resolver, the device relay). They raise the
errors from ``core.errors`` and never build HTTP responses themselves.
"""

"""
connectors — OAuth token handling for external services.

Provides:
  • Google OAuth2 code exchange and refresh-token grant
  • An in-memory, per-user token store
  • Token validation with refresh-before-expiry for protected routes
  • /oauth routes (callback, refresh, debug)
"""

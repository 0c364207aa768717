"""
Local persistence for the companion app.

Holds the username -> e-mail sign-in hints, the display username, app settings
and the identity backend's persisted session, all in one key-value store.
"""

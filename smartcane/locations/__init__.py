"""
Saved places and routes.

Kept on the device in the key-value store; nothing here talks to the backend.
"""

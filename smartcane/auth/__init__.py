"""
Account sign-up / sign-in for the companion app.

Design goals:
- The identity backend is injected (Supabase in production, in-memory fake in tests).
- The remote service is the source of truth; local aliases are only hints.
- Expected failures become user-facing messages, never exceptions.
"""

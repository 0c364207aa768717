"""
Obstacle logs and warnings reported by the cane.

Logs are synced from the backend's `obstacle_logs` table; logs that arrive
after the first load are read out through the injected speaker, subject to
the user's voice feedback setting. Raw sensor frames from the cane map to
spoken warnings the same way.
"""

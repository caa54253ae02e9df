"""Tasklist: a personal task-management REST backend.

Users register, log in for a signed JWT, and manage their own tasks.
Every per-user route is guarded by an ownership check: a token only
opens the paths of the user it was issued to.
"""

__version__ = "0.1.0"

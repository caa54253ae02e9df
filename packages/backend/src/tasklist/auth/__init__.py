"""Authentication.

Learn: One path in: email + password → POST /login → a 24h JWT.
The client sends it back as `Authorization: JWT <token>` and
require_path_owner checks it against the {user_id} in the URL.

- jwt.py: TokenService (issue / verify)
- password.py: bcrypt hash / verify
- dependencies.py: the FastAPI dependency guarding per-user routes
"""

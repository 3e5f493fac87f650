"""Authentication and authorization.

Learn: Users sign up or log in with email/password and receive a signed
JWT bearer token. Every protected route runs two gates in order:
1. authenticate → verify the bearer token, attach its TokenPayload
2. authorize    → require admin, or any of a set of roles

Both gates are pure functions of (headers, verified payload).
"""

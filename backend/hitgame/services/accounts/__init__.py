"""Account services: credential storage and bearer tokens.

Routes and socket handlers call into these instead of touching
password hashes or token claims directly.
"""

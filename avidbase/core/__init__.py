"""Core client logic.

Module Structure:
    - identity/     : Avidbase identity API client (tokens, login, users)
    - validators.py : Input validation (email detection, usernames, names)
"""

"""
Application core: settings, logging context, JWT/password helpers and the
FastAPI dependencies that resolve the current user and enforce roles.
"""

"""
Notekeeper.

- backend/: notes API (FastAPI), persistence, configuration, attachment storage
"""

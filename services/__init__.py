"""
services/ - External Services
=============================
Integrations with collaborators outside the database, such as object storage.
"""

"""
db/ - Database Layer
====================
Handles all PostgreSQL connections, schema initialization, and the
composable SQL fragments shared by the repositories.
This layer is the lowest in the architecture and has no dependencies on other layers.
"""

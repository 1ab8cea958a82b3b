"""
utils/ - Shared Helpers
=======================
Logging setup and the domain error taxonomy.
"""

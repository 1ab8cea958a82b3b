"""
models/ - Domain Models
=======================
Plain dataclasses returned by the repositories and rendered by the handlers.
"""

"""
handlers/ - Presentation Layer
================================
FastAPI routers. Each handler validates the request, applies the
authorization guard, delegates to the appropriate Repository, and
renders the result as JSON. No business logic lives here.
"""

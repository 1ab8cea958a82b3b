"""
security/ - Credentials and Authorization
=========================================
Password hashing, access tokens and the per-request authorization guard.
"""

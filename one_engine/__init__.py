"""
ONE Engine - multi-tenant API platform.

Request handling is split into:
- auth:     bearer token verification, principal resolution, access policies
- api:      validation, the response envelope, error boundary and routes
- services: domain services (users, projects, AI quant, forex)
- storage:  metadata storage abstraction
"""

__version__ = "0.1.0"

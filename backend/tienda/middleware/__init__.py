# Middleware package init
"""
Tienda Services: Middleware Package
=====================================

Middleware chain of every service (outermost first):

    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → Route Handler

The request ID is assigned before the access log runs so each access line
carries it; the access log sees the final status code and duration.
"""

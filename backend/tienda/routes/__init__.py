# Routes package init
"""
Tienda Services: API Routes Package
=====================================

What:  HTTP route handlers, one module per service.

Route Inventory:
    - usuarios.py:    /usuarios      (register, login, token-protected lookups)
    - productos.py:   /productos     (CRUD, category filter, image upload)
    - categorias.py:  /categorias    (CRUD, names, default seeding)
    - boletas.py:     /boletas       (create, lookups, delete by user)
    - detalle.py:     /detalle       (read-only receipt lookups)
    - health.py:      /health        (mounted on every service)
    - payload.py:     JSON / form / multipart body reader for productos and boletas

Routes stay thin: they pull data out of the request, call the matching
service singleton and let the global exception handlers shape errors.
"""

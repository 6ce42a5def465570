# Services package init
"""
Tienda Services: Services Layer
=================================

What:  Business logic between the routes (HTTP) and the Store (persistence).
How:   Stateless singletons; every method takes the request's AsyncSession,
       so one unit of work spans the whole request.

Service Inventory:
    - UsuarioService:   registration, login, user lookups
    - ProductoService:  product CRUD and image handling
    - CategoriaService: category CRUD, seeding, delete with product cleanup
    - BoletaService:    receipt normalization, purchase numbers, lookups
    - FileService:      image validation, storage and cleanup (per app)
"""

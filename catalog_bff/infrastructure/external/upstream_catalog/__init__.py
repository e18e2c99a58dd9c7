"""
Pipeline de sincronizacion one-way: catalogo upstream -> base de datos local.

Este paquete se ejecuta como job (scheduler / CLI), no como parte del
request/response del API.

Piezas:
- UpstreamSessionManager: token cacheado con refresco single-flight.
- AuthenticatedUpstreamClient: adjunta el token antes de cada llamada.
- PaginatedCatalogFetcher: bucle de paginas con techo de seguridad.
- RecordTransformer: registro upstream -> CatalogItem (+ URL de imagen).
"""

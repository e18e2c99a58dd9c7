"""
Catalog BFF: espejo del catalogo upstream y API de lectura.
"""
__version__ = "1.0.0"

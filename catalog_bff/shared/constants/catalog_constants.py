"""
Constantes del catalogo: canales de oferta, roles y tipos de precio.
"""
from enum import Enum


class UserRole(str, Enum):
    """Roles de usuario del lado lectura."""
    CLIENTE = "cliente"
    COMERCIAL = "comercial"
    TRABAJADOR = "trabajador"


class PriceType(str, Enum):
    """Tarifa asignada a un usuario."""
    BASE = "base"
    PRICE2 = "price2"
    PRICE3 = "price3"


class SyncState(str, Enum):
    """Estados del coordinador de sincronizacion."""
    IDLE = "idle"
    RUNNING = "running"


class SyncStatus(str, Enum):
    """Resultado de un disparo del coordinador."""
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED_EMPTY = "skipped_empty"
    SKIPPED_OVERLAP = "skipped_overlap"


# Canal de oferta -> campo upstream. Un canal esta activo si `value == -1`.
PROMOTION_CHANNELS = (
    ("nuevo_espacio", "_OfertaNuevoEspacio"),
    ("euro_planta", "_OfertaEuroPlanta"),
    ("cortijo", "_OfertaCortijo"),
    ("finca", "_OfertaFinca"),
    ("arroyo", "_OfertaArroyo"),
    ("gamera", "_OfertaGamera"),
    ("garden", "_OfertaGarden"),
    ("marbella", "_OfertaMarbella"),
    ("estacion", "_OfertaEstacion"),
)

PROMOTION_FLAG_NAMES = tuple(name for name, _ in PROMOTION_CHANNELS)

# Centinela upstream para "activo"
UPSTREAM_ACTIVE_SENTINEL = -1

# Buckets de imagen por rango de codigo (inclusive)
IMAGE_TIER_LOW_MAX = 130000
IMAGE_TIER_MID_MAX = 170000
IMAGE_TIER_HIGH_MAX = 300000

# Valores por defecto del pipeline
DEFAULT_PAGE_SIZE = 100
DEFAULT_MAX_PAGES = 25
DEFAULT_TOKEN_TTL_S = 3600
DEFAULT_TOKEN_SAFETY_MARGIN_S = 60

from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class SourceType(str, enum.Enum):
    """Kind of historical geographic artifact"""
    MAP_OVERLAY = "map_overlay"
    VECTOR_FEATURES = "vector_features"
    MODEL_3D = "3d_model"
    REFERENCE_DATA = "reference_data"


class Era(str, enum.Enum):
    """Coarse historical classification, independent of stage"""
    ROMAN = "roman"
    MEDIEVAL = "medieval"
    INDUSTRIAL = "industrial"
    VICTORIAN = "victorian"
    MODERN = "modern"


# Canonical display order for era breakdowns (not alphabetical)
ERA_ORDER = [era.value for era in Era]


class TileType(str, enum.Enum):
    """Tile endpoint protocol"""
    XYZ = "xyz"
    WMS = "wms"

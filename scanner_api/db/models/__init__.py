"""
ORM models for users, master data, Toyota orders, skid build, shipment load,
site settings and Toyota API configuration.

Importing this package ensures model classes are registered with the Base
metadata for Alembic and runtime usage.
"""

from .security import (  # noqa: F401
    User,
    UserSession,
)
from .master_data import (  # noqa: F401
    Office,
    Warehouse,
)
from .orders import (  # noqa: F401
    Order,
    OrderStatus,
    OrderUpload,
    PlannedItem,
)
from .skid_build import (  # noqa: F401
    SkidBuildException,
    SkidBuildSession,
    SkidScan,
)
from .shipment_load import (  # noqa: F401
    ShipmentLoadException,
    ShipmentLoadSession,
)
from .settings import (  # noqa: F401
    DockMonitorSetting,
    InternalKanbanExclusion,
    InternalKanbanSetting,
    SiteSettings,
)
from .toyota import ToyotaApiConfig  # noqa: F401

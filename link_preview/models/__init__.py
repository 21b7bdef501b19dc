from link_preview.models.base import Base
from link_preview.models.icon import IconRecord

__all__ = ["Base", "IconRecord"]

#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from app.data.models.item import ItemModel

__all__ = ["ItemModel"]

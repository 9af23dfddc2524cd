#app/data/models/item.py
from sqlalchemy import Column, String, JSON

from app.data.database import Base


class ItemModel(Base):
    """
    Jedna tabela na wszystkie encje (single-table design).
    pk/sk to klucz zlozony, reszta atrybutow w kolumnie data.
    """
    __tablename__ = "items"

    pk = Column(String(255), primary_key=True)
    sk = Column(String(255), primary_key=True)

    data = Column(JSON, nullable=False)

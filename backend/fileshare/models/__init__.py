"""Import all models so SQLAlchemy metadata knows about them."""
from fileshare.models.base import Base
from fileshare.models.file_record import StoredFile

__all__ = ["Base", "StoredFile"]

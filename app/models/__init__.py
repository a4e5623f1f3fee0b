from .base import Base, CreatedUUIDModel  # noqa: F401

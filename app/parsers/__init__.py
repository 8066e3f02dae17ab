# Import all layouts to trigger registration with the registry.
from app.parsers import layouts  # noqa: F401

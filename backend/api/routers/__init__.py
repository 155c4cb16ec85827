"""API Routers package."""
from . import auth, setup, employees, attendances, views, imports

__all__ = ['auth', 'setup', 'employees', 'attendances', 'views', 'imports']

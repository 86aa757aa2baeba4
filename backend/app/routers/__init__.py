# API Routers
from app.routers import action, security

__all__ = ['action', 'security']

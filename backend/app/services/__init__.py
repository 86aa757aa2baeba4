# Services
from app.services.secret_store import SiteSecretStore
from app.services.user_service import UserService

__all__ = [
    'SiteSecretStore', 'UserService'
]

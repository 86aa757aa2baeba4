# Models
from app.models.user import User
from app.models.datalist import Datalist

__all__ = [
    'User', 'Datalist'
]

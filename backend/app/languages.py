"""
站点文案
在框架内置文案之上追加内置动作使用的文案
"""
from core.actions.messages import MessageCatalog

APP_MESSAGES = {
    "login:ok": "You have been logged in.",
    "login:error": "We could not log you in. Please check your username and password.",
    "login:missing": "Please enter your username and password.",
    "logout:ok": "You have been logged out.",
    "register:ok": "Your account %s has been created.",
    "register:error": "Could not create the account: %s",
    "admin:site:secret_regenerated": "The site secret has been regenerated. All outstanding action tokens are now invalid.",
}

catalog = MessageCatalog(APP_MESSAGES)


def echo(key: str, *args) -> str:
    """按键取文案"""
    return catalog.translate(key, *args)

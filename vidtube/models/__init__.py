from .db_server_setting import ServerSetting
from .subscription_models import DBSubscription
from .user_models import DBUser

__all__ = ["DBSubscription", "DBUser", "ServerSetting"]

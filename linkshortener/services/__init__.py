from linkshortener.services.quota_guard import QuotaGuard
from linkshortener.services.link_service import LinkService
from linkshortener.services.helpers import handle_data_store_error

__all__ = ['QuotaGuard', 'LinkService', 'handle_data_store_error']

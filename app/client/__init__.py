from app.client.api_client import ApiError, HotelApiClient, SessionExpired
from app.client.permissions import PermissionMirror
from app.client.token_store import TokenStore

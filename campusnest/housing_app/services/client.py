"""
Single entry point to the backend services, shaped like a hosted-backend SDK:

    client = get_client()
    client.auth.sign_in_with_password(email, password)
    rows = client.table("properties").select().eq("is_verified", True).execute()
    client.storage.upload("avatars", "1/me.png", data)
    with client.channel("properties-changes").on("postgres_changes", {...}, cb):
        ...
    client.rpc("get_setting", {"setting_key": "GOOGLE_AI_API_KEY"})
"""

import logging

from django.db import DatabaseError

from .auth import AuthClient
from .errors import DataError
from .realtime import hub as default_hub
from .storage import StorageClient
from .tables import TableQuery, get_model

logger = logging.getLogger(__name__)


def _get_setting(setting_key: str):
    SystemSetting = get_model("system_settings")
    row = SystemSetting.objects.filter(key=setting_key).first()
    return row.value if row else None


def _set_setting(setting_key: str, setting_value: str):
    SystemSetting = get_model("system_settings")
    SystemSetting.objects.update_or_create(key=setting_key, defaults={"value": setting_value or ""})
    return True


RPC_FUNCTIONS = {
    "get_setting": _get_setting,
    "set_setting": _set_setting,
}


class BackendClient:
    def __init__(self, hub=None, storage=None):
        self.auth = AuthClient()
        self.storage = StorageClient(storage)
        self._hub = hub or default_hub
        self._channels = []

    def table(self, name: str) -> TableQuery:
        return TableQuery(name)

    # ---- realtime ----
    def channel(self, name: str):
        ch = self._hub.channel(name)
        ch.owner = self
        self._channels.append(ch)
        return ch

    def remove_channel(self, channel) -> str:
        if channel in self._channels:
            self._channels.remove(channel)
        return self._hub.remove_channel(channel)

    def remove_all_channels(self):
        for ch in list(self._channels):
            self.remove_channel(ch)

    def get_channels(self) -> list:
        return list(self._channels)

    # ---- rpc ----
    def rpc(self, fn: str, params: dict | None = None):
        func = RPC_FUNCTIONS.get(fn)
        if func is None:
            raise DataError(f"Could not find the function {fn}", code="not_found")
        try:
            return func(**(params or {}))
        except TypeError as exc:
            raise DataError(str(exc), code="bad_request") from exc
        except DatabaseError as exc:
            logger.exception("rpc %s failed", fn)
            raise DataError(str(exc), code="database_error") from exc


_client = None


def get_client() -> BackendClient:
    """Process-wide client, created on first use."""
    global _client
    if _client is None:
        _client = BackendClient()
    return _client

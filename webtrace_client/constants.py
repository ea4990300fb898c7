from __future__ import annotations

import logging

LOGGER = logging.getLogger("webtrace_client.http")
APP_VERSION = "0.1.0"

DEVICE_ID_HEADER = "X-Device-Id"
REQUESTED_WITH_HEADER = "X-Requested-With"
REQUESTED_WITH_VALUE = "XMLHttpRequest"
ACCEPT_VALUE = "application/json, text/plain, */*"
DEFAULT_CONTENT_TYPE = "application/json"

DEVICE_ID_KEY = "wta_device_id"
ACCESS_TOKEN_KEY = "wta_access_token"
REDIRECT_TARGET_KEY = "redirect_target"

# Both success codes are emitted by the server: 200 by the legacy session
# endpoints, 1000 by /api/auth/*.
SUCCESS_CODES = frozenset({200, 1000})

DEFAULT_BASE_URL = "http://localhost:17001"
LOGIN_ENDPOINT = "/api/auth/login"
LOGOUT_ENDPOINT = "/api/auth/logout"
REFRESH_ENDPOINT = "/api/auth/refresh"
DEVICES_ENDPOINT = "/api/auth/devices"
KICK_ENDPOINT = "/api/auth/kick"
LOGIN_PATH = "/login"

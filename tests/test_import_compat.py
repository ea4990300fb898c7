import client


EXPECTED_CLIENT_EXPORTS = (
    "APP_VERSION",
    "ApiClient",
    "ApiEnvelope",
    "ApiRequest",
    "ClientSettings",
    "FileStorage",
    "IdentityStore",
    "MemoryStorage",
    "Outcome",
    "PipelineError",
    "RefreshCoordinator",
    "RefreshFailure",
    "RefreshState",
    "RequestContext",
    "SendFailure",
    "SessionRecoveryHook",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ServerError",
    "RequestTimeout",
    "NetworkUnavailable",
    "OtherClientError",
    "classify_response",
    "consume_redirect_target",
    "create_client",
    "decorate_request",
    "load_env",
    "load_settings",
    "setup_logging",
    "validate_env",
)


def test_client_export_surface() -> None:
    missing = [name for name in EXPECTED_CLIENT_EXPORTS if not hasattr(client, name)]
    assert missing == []

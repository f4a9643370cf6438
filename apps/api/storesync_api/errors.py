"""Error taxonomy for tenant resolution, push verification and upstream calls.

Each error carries the Problem Details fields used when it crosses the HTTP
boundary. Callers decide whether to surface it (bulk ingestion, OAuth,
webhook registration) or log and drop it (push notifications).
"""

from typing import Optional


class StoreSyncError(Exception):
    """Base class for domain errors."""

    error_code: str = "STORESYNC_ERROR"
    title: str = "Store Sync Error"
    status_code: int = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    @property
    def error_type(self) -> str:
        return f"https://storesync.dev/problems/{self.error_code.lower().replace('_', '-')}"


class TenantNotFoundError(StoreSyncError):
    """No tenant exists for the given shop domain."""

    error_code = "TENANT_NOT_FOUND"
    title = "Store Not Found"
    status_code = 404

    def __init__(self, shop_domain: str):
        super().__init__(
            f"No tenant found for shop: {shop_domain}. Please connect this store via OAuth first."
        )
        self.shop_domain = shop_domain


class CredentialMissingError(StoreSyncError):
    """Tenant exists but has no usable access credential.

    Remediation differs from TenantNotFoundError: reconnect, not create.
    """

    error_code = "CREDENTIAL_MISSING"
    title = "Store Credential Missing"
    status_code = 409

    def __init__(self, shop_domain: str):
        super().__init__(
            f"No access token found for shop: {shop_domain}. Please reconnect this store via OAuth."
        )
        self.shop_domain = shop_domain


class UnauthorizedError(StoreSyncError):
    """Push notification signature verification failed."""

    error_code = "WEBHOOK_SIGNATURE_INVALID"
    title = "Webhook signature verification failed"
    status_code = 401


class UpstreamFailureError(StoreSyncError):
    """Call to the external commerce API failed."""

    error_code = "UPSTREAM_FAILURE"
    title = "Upstream API Failure"
    status_code = 502

    def __init__(self, detail: str, upstream_status: Optional[int] = None):
        super().__init__(detail)
        self.upstream_status = upstream_status

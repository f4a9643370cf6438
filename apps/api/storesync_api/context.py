"""Request context management for observability.

Context variables for request tracking across async boundaries.
"""

from contextvars import ContextVar

# Request ID - unique per HTTP request
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Tenant ID - tenant resolved for the current request
tenant_id_var: ContextVar[str] = ContextVar("tenant_id", default="")

# Shop domain - external store the current request is about
shop_domain_var: ContextVar[str] = ContextVar("shop_domain", default="")

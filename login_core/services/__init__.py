# =============================================================================
# login_core/services/__init__.py
# Service Layer for the Login Core
# =============================================================================
"""
Service layer: the result container shared by every flow plus the
account policy service.

AccountService lives in `login_core.services.account_service` and is wired
by `login_core.bootstrap.build_services`:

    from login_core.bootstrap import build_services, start

    services = build_services(load_settings())
    await start(services)
    result = await services.accounts.register("Ada", "Lovelace", "ada@x.com", "secret1", "secret1")
"""

from .base_service import BaseService, ServiceResult

__all__ = [
    "BaseService",
    "ServiceResult",
]

from typing import Optional


class PortalReportsError(Exception):
    """Base class for errors raised by the report layer."""


class UnknownReportError(PortalReportsError):
    def __init__(self, report: str) -> None:
        super().__init__(f"Unknown report type: {report}")
        self.report = report


class MalformedResponseError(PortalReportsError):
    """Upstream answered with a body no extractor can turn into records."""


class TokenProviderError(PortalReportsError):
    def __init__(self, tenant: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"No portal token available for tenant {tenant}")
        self.tenant = tenant


class UpstreamFetchError(PortalReportsError):
    """Raised once every fetch attempt has failed.

    ``detail`` carries the most specific message available (the upstream
    error payload when there is one) and the last failure is chained as
    ``__cause__``.
    """

    def __init__(self, report: str, tenant: str, detail: str, attempts: int) -> None:
        super().__init__(f"{report} fetch for {tenant} failed after {attempts} attempt(s): {detail}")
        self.report = report
        self.tenant = tenant
        self.detail = detail
        self.attempts = attempts

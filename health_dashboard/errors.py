"""
Error taxonomy for the dashboard backend.

Every error raised by the services carries the HTTP status it maps to, so the
handler registered in main.py can turn it into a JSON body without knowing
which service raised it.
"""


class HealthDashboardError(Exception):
    status_code = 500
    needs_auth = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.needs_auth:
            body["needsAuth"] = True
        return body


class NotAuthenticatedError(HealthDashboardError):
    """No token stored for the provider; raised before any network call."""
    status_code = 401
    needs_auth = True


class AuthorizationExpiredError(HealthDashboardError):
    """Provider rejected the stored token; the OAuth flow must be re-run."""
    status_code = 401
    needs_auth = True


class UpstreamError(HealthDashboardError):
    status_code = 500


class OAuthError(UpstreamError):
    """Token endpoint refused a code exchange or refresh."""


class ConfigurationError(HealthDashboardError):
    status_code = 500


class UnknownResourceError(HealthDashboardError):
    status_code = 404

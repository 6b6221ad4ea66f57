"""Errors raised while provisioning. All of them are fatal to a run."""


class ProvisioningError(Exception):
    """ base class for every error the provisioning tool reports """


class ConfigurationError(ProvisioningError):
    """ raised when a required input is missing or invalid, before any AWS call """


class ProviderError(ProvisioningError):
    """ raised when an AWS call fails for a reason other than "not found" """
    def __init__(self, kind: str, key: str, cause: Exception):
        self.kind = kind
        self.key = key
        self.cause = cause
        super().__init__(f"{kind} {key!r}: {cause}")

    @property
    def code(self) -> str:
        response = getattr(self.cause, "response", None) or {}
        return response.get("Error", {}).get("Code", "")


class DependencyUnavailableError(ProvisioningError):
    """ raised when a prerequisite resource could not be resolved """
    def __init__(self, kind: str, key: str, reason: str):
        self.kind = kind
        self.key = key
        self.reason = reason
        super().__init__(f"{kind} {key!r}: {reason}")

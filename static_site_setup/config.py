"""Operator inputs for the two provisioning runs."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .exceptions import ConfigurationError

DEFAULT_USER_NAME = "site-infra-user"


@dataclass(frozen=True)
class WebsiteConfig:
    bucket_name: str
    domain_name: str
    region: str
    create_hosted_zone: bool = True
    sample_content: bool = True

    @property
    def app_bucket_name(self) -> str:
        return f"{self.bucket_name}.app"

    @property
    def app_subdomain(self) -> str:
        return f"app.{self.domain_name}"

    @property
    def www_domain(self) -> str:
        return f"www.{self.domain_name}"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "WebsiteConfig":
        """Build a config from environment variables; non-None overrides win."""
        environ = os.environ if environ is None else environ
        values = {
            "bucket_name": environ.get("S3_BUCKET_NAME", ""),
            "domain_name": environ.get("WEBSITE_DOMAIN_NAME", ""),
            "region": environ.get("AWS_REGION") or environ.get("AWS_DEFAULT_REGION", ""),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def validate(self) -> "WebsiteConfig":
        required = [
            ("bucket_name", "S3_BUCKET_NAME", "my-website-bucket"),
            ("domain_name", "WEBSITE_DOMAIN_NAME", "example.com"),
            ("region", "AWS_REGION", "us-east-1"),
        ]
        missing = [
            f"{field} is required (export {envvar}={example})"
            for field, envvar, example in required
            if not (getattr(self, field) or "").strip()
        ]
        if missing:
            raise ConfigurationError("; ".join(missing))
        if self.domain_name.endswith(".") or self.domain_name.startswith("."):
            raise ConfigurationError(f"domain_name must not start or end with a dot: {self.domain_name!r}")
        return self


@dataclass(frozen=True)
class InfraUserConfig:
    region: str
    user_name: str = DEFAULT_USER_NAME
    policy_name: Optional[str] = None

    @property
    def resolved_policy_name(self) -> str:
        return self.policy_name or f"{self.user_name}-policy"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "InfraUserConfig":
        environ = os.environ if environ is None else environ
        values = {"region": environ.get("AWS_REGION") or environ.get("AWS_DEFAULT_REGION", "")}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def validate(self) -> "InfraUserConfig":
        if not (self.region or "").strip():
            raise ConfigurationError("region is required (export AWS_REGION=us-east-1)")
        if not (self.user_name or "").strip():
            raise ConfigurationError("user_name must not be empty")
        return self

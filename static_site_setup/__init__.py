"""Idempotent provisioning of an S3 + CloudFront static website stack."""

from .config import InfraUserConfig, WebsiteConfig
from .exceptions import ConfigurationError, DependencyUnavailableError, ProviderError, ProvisioningError
from .plans import build_infra_user_plan, build_website_plan
from .provider import AwsProvider
from .resources import Ref, ResourceDescriptor, ResourceHandle, ResourceKind, ResourceState
from .sequencer import ProvisioningContext, Sequencer, format_manifest

__version__ = "0.1.0"

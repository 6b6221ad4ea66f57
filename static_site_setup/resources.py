"""Resource descriptors, dependency references and resolved handles."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ResourceKind(str, Enum):
    BUCKET = "bucket"
    WEBSITE_CONFIGURATION = "website-configuration"
    BUCKET_POLICY = "bucket-policy"
    ACCOUNT_PUBLIC_ACCESS_BLOCK = "account-public-access-block"
    POLICY = "policy"
    USER = "user"
    POLICY_ATTACHMENT = "policy-attachment"
    CERTIFICATE = "certificate"
    DISTRIBUTION = "distribution"
    HOSTED_ZONE = "hosted-zone"
    DNS_RECORD = "dns-record"
    OBJECT = "object"

    def __str__(self) -> str:
        return self.value


class ResourceState(str, Enum):
    EXISTS = "exists"
    ABSENT = "absent"
    CREATED = "created"


@dataclass(frozen=True)
class Ref:
    """Points at the output of another descriptor in the same plan.

    Resolves to the referenced handle's identifier, or to one of its
    attributes when ``attribute`` is set.
    """
    name: str
    attribute: Optional[str] = None


@dataclass(frozen=True)
class ResourceDescriptor:
    """One resource to ensure exists.

    ``key`` is the natural key AWS is queried by (bucket name, user name,
    domain name, ...). ``depends_on`` maps a provider parameter to a Ref that
    is resolved from earlier handles when the descriptor is ensured.
    """
    name: str
    kind: ResourceKind
    key: str
    params: Dict[str, Any] = field(default_factory=dict)
    depends_on: Dict[str, Ref] = field(default_factory=dict)


@dataclass(frozen=True)
class ResourceHandle:
    kind: ResourceKind
    key: str
    identifier: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    # whether this run found or created the resource; not part of identity
    state: ResourceState = field(default=ResourceState.EXISTS, compare=False)

    @property
    def created(self) -> bool:
        return self.state is ResourceState.CREATED

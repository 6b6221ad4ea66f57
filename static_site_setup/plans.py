"""The fixed, dependency-ordered resource plans the tool runs."""

from typing import List

from . import documents
from .config import InfraUserConfig, WebsiteConfig
from .resources import Ref, ResourceDescriptor, ResourceKind


def bucket_steps(prefix: str, bucket_name: str) -> List[ResourceDescriptor]:
    """A bucket and the website hosting pieces layered onto it.

    Website hosting and the public-read policy are separate steps so a run
    that fails between them picks up where it stopped.
    """
    bucket = f"{prefix}-bucket"
    return [
        ResourceDescriptor(bucket, ResourceKind.BUCKET, bucket_name),
        ResourceDescriptor(
            f"{prefix}-website",
            ResourceKind.WEBSITE_CONFIGURATION,
            bucket_name,
            depends_on={"bucket": Ref(bucket)},
        ),
        ResourceDescriptor(
            f"{prefix}-bucket-policy",
            ResourceKind.BUCKET_POLICY,
            bucket_name,
            depends_on={"bucket": Ref(bucket)},
        ),
    ]


def build_website_plan(config: WebsiteConfig) -> List[ResourceDescriptor]:
    """Buckets, then the certificate, then distributions, then DNS.

    Each distribution fronts its bucket's website endpoint and uses the
    shared certificate; each alias record points at a distribution.
    """
    config.validate()

    plan = bucket_steps("site", config.bucket_name) + bucket_steps("app", config.app_bucket_name)
    plan += [
        ResourceDescriptor(
            "certificate",
            ResourceKind.CERTIFICATE,
            config.domain_name,
            params={"alternative_names": [config.www_domain, config.app_subdomain]},
        ),
        ResourceDescriptor(
            "site-distribution",
            ResourceKind.DISTRIBUTION,
            config.domain_name,
            params={"aliases": [config.domain_name, config.www_domain]},
            depends_on={
                "origin_domain": Ref("site-website", "website_endpoint"),
                "certificate_arn": Ref("certificate"),
            },
        ),
        ResourceDescriptor(
            "app-distribution",
            ResourceKind.DISTRIBUTION,
            config.app_subdomain,
            params={"aliases": [config.app_subdomain]},
            depends_on={
                "origin_domain": Ref("app-website", "website_endpoint"),
                "certificate_arn": Ref("certificate"),
            },
        ),
        ResourceDescriptor(
            "hosted-zone",
            ResourceKind.HOSTED_ZONE,
            config.domain_name,
            params={"allow_create": config.create_hosted_zone},
        ),
    ]

    records = [
        ("apex-record", config.domain_name, "site-distribution"),
        ("www-record", config.www_domain, "site-distribution"),
        ("app-record", config.app_subdomain, "app-distribution"),
    ]
    for name, record_name, distribution in records:
        plan.append(ResourceDescriptor(
            name,
            ResourceKind.DNS_RECORD,
            record_name,
            depends_on={
                "zone_id": Ref("hosted-zone"),
                "target": Ref(distribution, "domain_name"),
            },
        ))

    if config.sample_content:
        plan.append(ResourceDescriptor(
            "index-page",
            ResourceKind.OBJECT,
            documents.INDEX_DOCUMENT,
            params={"body": documents.index_page(config.domain_name), "content_type": "text/html"},
            depends_on={"bucket": Ref("site-bucket")},
        ))
        plan.append(ResourceDescriptor(
            "error-page",
            ResourceKind.OBJECT,
            documents.ERROR_DOCUMENT,
            params={"body": documents.error_page(), "content_type": "text/html"},
            depends_on={"bucket": Ref("site-bucket")},
        ))

    return plan


def build_infra_user_plan(config: InfraUserConfig) -> List[ResourceDescriptor]:
    config.validate()
    policy_name = config.resolved_policy_name

    return [
        # the account-wide block would override any public bucket policy
        ResourceDescriptor(
            "account-public-access-block",
            ResourceKind.ACCOUNT_PUBLIC_ACCESS_BLOCK,
            "account",
        ),
        ResourceDescriptor(
            "policy",
            ResourceKind.POLICY,
            policy_name,
            params={
                "document": documents.infra_user_policy(),
                "description": f"Policy for {config.user_name} to manage S3 website hosting infrastructure",
            },
        ),
        ResourceDescriptor("user", ResourceKind.USER, config.user_name),
        ResourceDescriptor(
            "policy-attachment",
            ResourceKind.POLICY_ATTACHMENT,
            f"{config.user_name}/{policy_name}",
            depends_on={
                "user_name": Ref("user", "user_name"),
                "policy_arn": Ref("policy"),
            },
        ),
    ]


def describe_plan(plan: List[ResourceDescriptor]) -> str:
    lines = []
    for i, descriptor in enumerate(plan, start=1):
        line = f"{i}. {descriptor.kind} {descriptor.key} ({descriptor.name})"
        if descriptor.depends_on:
            deps = ", ".join(sorted({ref.name for ref in descriptor.depends_on.values()}))
            line += f" <- {deps}"
        lines.append(line)
    return "\n".join(lines)

"""Command line entry point: provision the website stack or its IAM user."""

import argparse
import dataclasses
import sys

import boto3
from botocore.exceptions import BotoCoreError

from .config import DEFAULT_USER_NAME, InfraUserConfig, WebsiteConfig
from .exceptions import ConfigurationError, ProvisioningError
from .plans import build_infra_user_plan, build_website_plan, describe_plan
from .provider import AwsProvider
from .sequencer import ProvisioningContext, Sequencer, format_manifest, validate_plan


def make_session(profile: str = None, region: str = None):
    try:
        return boto3.Session(profile_name=profile, region_name=region or None)
    except BotoCoreError as e:
        raise ConfigurationError(f"could not create AWS session: {e}") from e


def with_session_region(config, session):
    """Fall back to the region configured for the AWS profile."""
    if not config.region and session.region_name:
        return dataclasses.replace(config, region=session.region_name)
    return config


def provision(session, region: str, plan) -> ProvisioningContext:
    validate_plan(plan)
    provider = AwsProvider(session, region)
    identity = provider.caller_identity()
    print(f"Running as: {identity['Arn']}")
    return Sequencer(provider).run(plan)


def print_website_next_steps(config: WebsiteConfig, context: ProvisioningContext):
    print("\nNext steps:")
    if context["certificate"].created:
        print("  - Validate the certificate by adding the DNS records shown in the ACM console (us-east-1).")
    zone = context["hosted-zone"]
    if zone.created:
        print("  - Point your domain registrar at the new hosted zone's nameservers:")
        for ns in zone.attributes.get("name_servers", []):
            print(f"      {ns}")
    print("  - Wait for the CloudFront distributions to deploy (15-20 minutes).")
    print(f"  - Upload your website files to s3://{config.bucket_name}/ and the app to s3://{config.app_bucket_name}/")
    print(f"\nSite URL: https://{config.domain_name}")
    print(f"App URL:  https://{config.app_subdomain}")


def print_infra_user_next_steps(config: InfraUserConfig, context: ProvisioningContext):
    block = context["account-public-access-block"]
    blocking = [flag for flag in ("BlockPublicPolicy", "RestrictPublicBuckets") if block.attributes.get(flag)]
    if blocking:
        print(f"\nWarning: the account public access block has {', '.join(blocking)} enabled.")
        print("  Public bucket policies will be rejected or ignored until it is relaxed in the S3 console.")

    user = context["user"].attributes
    access_keys = user.get("access_key_ids", [])
    if access_keys:
        last_used = user.get("access_keys_last_used", {})
        print(f"\nExisting access key(s) for {config.user_name}:")
        for key_id in access_keys:
            print(f"  - {key_id} (Last used: {last_used.get(key_id) or 'Never used'})")
        return
    print(f"\nNo access keys found for {config.user_name}. To create one:")
    print(f"  1. Open the IAM console and go to Users > {config.user_name} > Security credentials")
    print("  2. Click 'Create access key' and choose 'Command Line Interface (CLI)'")
    print("  3. Store the key and secret securely and configure them for the website setup")


def run_website(args):
    session = make_session(args.profile, args.region)
    config = WebsiteConfig.from_env(
        bucket_name=args.bucket,
        domain_name=args.domain,
        region=args.region,
        create_hosted_zone=not args.no_create_zone,
        sample_content=not args.no_sample_content,
    )
    config = with_session_region(config, session)
    plan = build_website_plan(config)

    if args.plan:
        print(describe_plan(plan))
        return

    print("Setting up S3 static website infrastructure...")
    print(f"Region: {config.region}")
    print(f"Bucket: {config.bucket_name}")
    print(f"App Bucket: {config.app_bucket_name}")
    print(f"Domain: {config.domain_name}\n")

    context = provision(session, config.region, plan)
    print("\nSetup completed successfully!\n")
    print(format_manifest(context))
    print_website_next_steps(config, context)


def run_infra_user(args):
    session = make_session(args.profile, args.region)
    config = InfraUserConfig.from_env(region=args.region, user_name=args.user_name, policy_name=args.policy_name)
    config = with_session_region(config, session)
    plan = build_infra_user_plan(config)

    if args.plan:
        print(describe_plan(plan))
        return

    print(f"Using AWS region: {config.region}")
    context = provision(session, config.region, plan)
    print("\nAccount setup completed successfully!\n")
    print(format_manifest(context))
    print_infra_user_next_steps(config, context)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="static-site-setup",
        description="Idempotently provision an S3 static website stack on AWS: IAM user and policy, S3 website buckets, an ACM certificate, CloudFront distributions and Route 53 DNS records.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""examples:
  %(prog)s infra-user --region us-east-1
      Create the IAM policy and user that the website setup runs as.

  %(prog)s website --bucket my-site --domain example.com
      Create the site and app buckets, the certificate, both distributions,
      the hosted zone and the alias records for example.com.

  %(prog)s website --plan
      Print the resources that would be ensured, in order, without calling AWS.

idempotence:
  Every resource is looked up by its natural key first and only created when
  it is missing. Existing resources are never modified or deleted, so the
  command can be re-run after fixing whatever made a previous run fail.""",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--region",
        help="AWS region for the buckets (default: $AWS_REGION, then the profile's configured region). The certificate is always requested in us-east-1.",
    )
    common.add_argument("--profile", help="Named AWS profile to use instead of the default credential chain.")
    common.add_argument("--plan", action="store_true", help="Print the ordered plan and exit without calling AWS.")

    website = subparsers.add_parser("website", parents=[common], help="Provision buckets, certificate, distributions and DNS.")
    website.add_argument("--bucket", help="Site bucket name (default: $S3_BUCKET_NAME). The app bucket is named <bucket>.app.")
    website.add_argument("--domain", help="Website domain (default: $WEBSITE_DOMAIN_NAME). The app is served at app.<domain>.")
    website.add_argument(
        "--no-create-zone", action="store_true",
        help="Fail instead of creating a Route 53 hosted zone when none exists for the domain.",
    )
    website.add_argument(
        "--no-sample-content", action="store_true",
        help="Do not upload the sample index.html and error.html pages.",
    )
    website.set_defaults(func=run_website)

    infra_user = subparsers.add_parser("infra-user", parents=[common], help="Provision the IAM policy and user for the website setup.")
    infra_user.add_argument("--user-name", default=DEFAULT_USER_NAME, help=f"IAM user name (default: {DEFAULT_USER_NAME}).")
    infra_user.add_argument("--policy-name", help="IAM policy name (default: <user-name>-policy).")
    infra_user.set_defaults(func=run_infra_user)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        args.func(args)
    except ProvisioningError as e:
        sys.exit(f"Error: {type(e).__name__}: {e}")


if __name__ == "__main__":
    main()

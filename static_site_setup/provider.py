"""boto3-backed describe/create pairs, one per resource kind."""

import json
import uuid
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from . import documents
from .exceptions import DependencyUnavailableError, ProviderError
from .resources import ResourceKind

# ACM certificates attached to CloudFront must live in us-east-1
CERTIFICATE_REGION = "us-east-1"

NOT_FOUND_CODES = {
    "404",
    "NotFound",
    "NoSuchBucket",
    "NoSuchKey",
    "NoSuchEntity",
    "NoSuchHostedZone",
    "NoSuchWebsiteConfiguration",
    "NoSuchBucketPolicy",
    "NoSuchPublicAccessBlockConfiguration",
}


def error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


def is_not_found(error: ClientError) -> bool:
    return error_code(error) in NOT_FOUND_CODES


def website_endpoint(bucket_name: str, region: str) -> str:
    return f"{bucket_name}.s3-website-{region}.amazonaws.com"


def fqdn(name: str) -> str:
    return name if name.endswith(".") else f"{name}."


def same_name(a: str, b: str) -> bool:
    return a.rstrip(".").lower() == b.rstrip(".").lower()


class AwsProvider:
    """Looks up and creates resources through a single boto3 session.

    ``describe`` returns None when the resource does not exist. Any other
    AWS failure in either call surfaces as ProviderError.
    """

    def __init__(self, session, region: str):
        self.session = session
        self.region = region
        self._clients = {}
        self._account_id = None

    def client(self, service: str, region: str = None):
        region = region or self.region
        if (service, region) not in self._clients:
            self._clients[(service, region)] = self.session.client(service, region_name=region)
        return self._clients[(service, region)]

    def caller_identity(self) -> dict:
        try:
            return self.client("sts").get_caller_identity()
        except (ClientError, BotoCoreError) as e:
            raise ProviderError("identity", "caller", e) from e

    @property
    def account_id(self) -> str:
        if self._account_id is None:
            self._account_id = self.client("sts").get_caller_identity()["Account"]
        return self._account_id

    def describe(self, kind: ResourceKind, key: str, params: dict) -> Optional[dict]:
        return self._call("describe", kind, key, params)

    def create(self, kind: ResourceKind, key: str, params: dict) -> dict:
        return self._call("create", kind, key, params)

    def _call(self, action: str, kind: ResourceKind, key: str, params: dict):
        kind = ResourceKind(kind)
        handler = getattr(self, f"_{action}_{kind.value.replace('-', '_')}")
        try:
            return handler(key, params)
        except (ClientError, BotoCoreError) as e:
            raise ProviderError(kind.value, key, e) from e

    # S3 buckets

    def _describe_bucket(self, bucket_name: str, params: dict) -> Optional[dict]:
        s3 = self.client("s3")
        try:
            s3.head_bucket(Bucket=bucket_name)
        except ClientError as e:
            if is_not_found(e):
                return None
            raise
        return self._bucket_result(bucket_name, self._bucket_region(s3, bucket_name))

    def _create_bucket(self, bucket_name: str, params: dict) -> dict:
        s3 = self.client("s3")
        create_params = {"Bucket": bucket_name}
        if self.region != "us-east-1":
            create_params["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        s3.create_bucket(**create_params)
        return self._bucket_result(bucket_name, self.region)

    def _bucket_region(self, s3, bucket_name: str) -> str:
        location = s3.get_bucket_location(Bucket=bucket_name).get("LocationConstraint")
        return location or "us-east-1"

    def _bucket_result(self, bucket_name: str, region: str) -> dict:
        return {
            "identifier": bucket_name,
            "attributes": {"region": region, "website_endpoint": website_endpoint(bucket_name, region)},
        }

    def _describe_website_configuration(self, bucket_name: str, params: dict) -> Optional[dict]:
        s3 = self.client("s3")
        try:
            s3.get_bucket_website(Bucket=bucket_name)
        except ClientError as e:
            if is_not_found(e):
                return None
            raise
        return self._website_result(bucket_name, self._bucket_region(s3, bucket_name))

    def _create_website_configuration(self, bucket_name: str, params: dict) -> dict:
        s3 = self.client("s3")
        s3.put_bucket_website(
            Bucket=bucket_name,
            WebsiteConfiguration={
                "IndexDocument": {"Suffix": documents.INDEX_DOCUMENT},
                "ErrorDocument": {"Key": documents.ERROR_DOCUMENT},
            },
        )
        return self._website_result(bucket_name, self._bucket_region(s3, bucket_name))

    def _website_result(self, bucket_name: str, region: str) -> dict:
        endpoint = website_endpoint(bucket_name, region)
        return {"identifier": endpoint, "attributes": {"website_endpoint": endpoint}}

    def _describe_bucket_policy(self, bucket_name: str, params: dict) -> Optional[dict]:
        try:
            self.client("s3").get_bucket_policy(Bucket=bucket_name)
        except ClientError as e:
            if is_not_found(e):
                return None
            raise
        return self._bucket_policy_result(bucket_name)

    def _create_bucket_policy(self, bucket_name: str, params: dict) -> dict:
        s3 = self.client("s3")
        # keep ACLs blocked but allow a public bucket policy; content is served through the policy only
        s3.put_public_access_block(
            Bucket=bucket_name,
            PublicAccessBlockConfiguration={
                "BlockPublicAcls": True,
                "IgnorePublicAcls": True,
                "BlockPublicPolicy": False,
                "RestrictPublicBuckets": False,
            },
        )
        s3.put_bucket_policy(Bucket=bucket_name, Policy=json.dumps(documents.public_read_policy(bucket_name)))
        return self._bucket_policy_result(bucket_name)

    def _bucket_policy_result(self, bucket_name: str) -> dict:
        return {"identifier": f"arn:aws:s3:::{bucket_name}", "attributes": {"bucket": bucket_name}}

    def _describe_account_public_access_block(self, key: str, params: dict) -> Optional[dict]:
        s3control = self.client("s3control")
        try:
            r = s3control.get_public_access_block(AccountId=self.account_id)
        except ClientError as e:
            if is_not_found(e):
                return None
            raise
        return self._account_block_result(r["PublicAccessBlockConfiguration"])

    def _create_account_public_access_block(self, key: str, params: dict) -> dict:
        configuration = {
            "BlockPublicAcls": False,
            "IgnorePublicAcls": False,
            "BlockPublicPolicy": False,
            "RestrictPublicBuckets": False,
        }
        self.client("s3control").put_public_access_block(
            AccountId=self.account_id,
            PublicAccessBlockConfiguration=configuration,
        )
        return self._account_block_result(configuration)

    def _account_block_result(self, configuration: dict) -> dict:
        flags = ["BlockPublicAcls", "IgnorePublicAcls", "BlockPublicPolicy", "RestrictPublicBuckets"]
        return {
            "identifier": self.account_id,
            "attributes": {flag: bool(configuration.get(flag, False)) for flag in flags},
        }

    # IAM

    def _policy_arn(self, policy_name: str) -> str:
        return f"arn:aws:iam::{self.account_id}:policy/{policy_name}"

    def _describe_policy(self, policy_name: str, params: dict) -> Optional[dict]:
        iam = self.client("iam")
        try:
            r = iam.get_policy(PolicyArn=self._policy_arn(policy_name))
        except ClientError as e:
            if is_not_found(e):
                return None
            raise
        return {"identifier": r["Policy"]["Arn"], "attributes": {"policy_name": policy_name}}

    def _create_policy(self, policy_name: str, params: dict) -> dict:
        iam = self.client("iam")
        document = params.get("document") or documents.infra_user_policy()
        r = iam.create_policy(
            PolicyName=policy_name,
            PolicyDocument=json.dumps(document),
            Description=params.get("description", ""),
        )
        return {"identifier": r["Policy"]["Arn"], "attributes": {"policy_name": policy_name}}

    def _describe_user(self, user_name: str, params: dict) -> Optional[dict]:
        iam = self.client("iam")
        try:
            r = iam.get_user(UserName=user_name)
        except ClientError as e:
            if is_not_found(e):
                return None
            raise
        return self._user_result(iam, r["User"])

    def _create_user(self, user_name: str, params: dict) -> dict:
        iam = self.client("iam")
        r = iam.create_user(UserName=user_name, Tags=[{"Key": "CreatedBy", "Value": "static-site-setup"}])
        return self._user_result(iam, r["User"])

    def _user_result(self, iam, user: dict) -> dict:
        user_name = user["UserName"]
        keys = iam.list_access_keys(UserName=user_name)["AccessKeyMetadata"]
        last_used = {}
        for k in keys:
            r = iam.get_access_key_last_used(AccessKeyId=k["AccessKeyId"])
            used = r.get("AccessKeyLastUsed", {}).get("LastUsedDate")
            last_used[k["AccessKeyId"]] = used.isoformat() if used else None
        return {
            "identifier": user["Arn"],
            "attributes": {
                "user_name": user_name,
                "access_key_ids": [k["AccessKeyId"] for k in keys],
                "access_keys_last_used": last_used,
            },
        }

    def _describe_policy_attachment(self, key: str, params: dict) -> Optional[dict]:
        iam = self.client("iam")
        paginator = iam.get_paginator("list_attached_user_policies")
        for page in paginator.paginate(UserName=params["user_name"]):
            for policy in page["AttachedPolicies"]:
                if policy["PolicyArn"] == params["policy_arn"]:
                    return self._attachment_result(params)
        return None

    def _create_policy_attachment(self, key: str, params: dict) -> dict:
        self.client("iam").attach_user_policy(UserName=params["user_name"], PolicyArn=params["policy_arn"])
        return self._attachment_result(params)

    def _attachment_result(self, params: dict) -> dict:
        return {"identifier": params["policy_arn"], "attributes": {"user_name": params["user_name"]}}

    # ACM

    def _describe_certificate(self, domain_name: str, params: dict) -> Optional[dict]:
        acm = self.client("acm", CERTIFICATE_REGION)
        paginator = acm.get_paginator("list_certificates")
        for page in paginator.paginate():
            for summary in page["CertificateSummaryList"]:
                if summary["DomainName"] == domain_name:
                    return {"identifier": summary["CertificateArn"], "attributes": {"domain_name": domain_name}}
        return None

    def _create_certificate(self, domain_name: str, params: dict) -> dict:
        acm = self.client("acm", CERTIFICATE_REGION)
        request = {"DomainName": domain_name, "ValidationMethod": "DNS"}
        if params.get("alternative_names"):
            request["SubjectAlternativeNames"] = list(params["alternative_names"])
        r = acm.request_certificate(**request)
        return {"identifier": r["CertificateArn"], "attributes": {"domain_name": domain_name}}

    # CloudFront

    def _describe_distribution(self, alias: str, params: dict) -> Optional[dict]:
        cf = self.client("cloudfront")
        comment = documents.distribution_comment(alias)
        paginator = cf.get_paginator("list_distributions")
        for page in paginator.paginate():
            for item in page["DistributionList"].get("Items", []):
                if item.get("Comment") == comment:
                    return self._distribution_result(item)
        return None

    def _create_distribution(self, alias: str, params: dict) -> dict:
        cf = self.client("cloudfront")
        config = documents.distribution_config(
            aliases=params.get("aliases") or [alias],
            origin_domain=params["origin_domain"],
            certificate_arn=params["certificate_arn"],
        )
        r = cf.create_distribution(DistributionConfig=config)
        return self._distribution_result(r["Distribution"])

    def _distribution_result(self, distribution: dict) -> dict:
        return {
            "identifier": distribution["Id"],
            "attributes": {"domain_name": distribution["DomainName"], "arn": distribution["ARN"]},
        }

    # Route 53

    def _describe_hosted_zone(self, domain_name: str, params: dict) -> Optional[dict]:
        route53 = self.client("route53")
        request = {"DNSName": domain_name}
        while True:
            r = route53.list_hosted_zones_by_name(**request)
            zones = r["HostedZones"]
            for zone in zones:
                # private zones for the same name serve VPCs, not the public site
                if not same_name(zone["Name"], domain_name) or zone.get("Config", {}).get("PrivateZone"):
                    continue
                zone_id = zone["Id"].split("/")[-1]
                details = route53.get_hosted_zone(Id=zone_id)
                name_servers = details.get("DelegationSet", {}).get("NameServers", [])
                return {"identifier": zone_id, "attributes": {"name_servers": name_servers}}
            # zones come back sorted by name, so stop once the last one no longer matches
            if not r.get("IsTruncated") or not zones or not same_name(zones[-1]["Name"], domain_name):
                return None
            request = {"DNSName": r["NextDNSName"], "HostedZoneId": r["NextHostedZoneId"]}

    def _create_hosted_zone(self, domain_name: str, params: dict) -> dict:
        if not params.get("allow_create", True):
            raise DependencyUnavailableError(
                ResourceKind.HOSTED_ZONE.value, domain_name, "no hosted zone found and zone creation is disabled"
            )
        r = self.client("route53").create_hosted_zone(
            Name=domain_name,
            CallerReference=f"{domain_name}-{uuid.uuid4()}",
            HostedZoneConfig={"Comment": "Auto-created for static website", "PrivateZone": False},
        )
        zone_id = r["HostedZone"]["Id"].split("/")[-1]
        name_servers = r.get("DelegationSet", {}).get("NameServers", [])
        return {"identifier": zone_id, "attributes": {"name_servers": name_servers}}

    def _describe_dns_record(self, record_name: str, params: dict) -> Optional[dict]:
        route53 = self.client("route53")
        r = route53.list_resource_record_sets(
            HostedZoneId=params["zone_id"],
            StartRecordName=fqdn(record_name),
            StartRecordType="A",
        )
        for record in r["ResourceRecordSets"]:
            if record["Type"] != "A" or not same_name(record["Name"], record_name):
                continue
            alias = record.get("AliasTarget")
            if alias:
                target = alias["DNSName"]
            else:
                target = ",".join(v["Value"] for v in record.get("ResourceRecords", []))
            return self._record_result(record_name, target)
        return None

    def _create_dns_record(self, record_name: str, params: dict) -> dict:
        self.client("route53").change_resource_record_sets(
            HostedZoneId=params["zone_id"],
            ChangeBatch=documents.alias_record_change(fqdn(record_name), params["target"]),
        )
        return self._record_result(record_name, params["target"])

    def _record_result(self, record_name: str, target: str) -> dict:
        return {
            "identifier": record_name.rstrip("."),
            "attributes": {"record_type": "A", "target": target.rstrip(".").lower()},
        }

    # S3 objects

    def _describe_object(self, object_key: str, params: dict) -> Optional[dict]:
        try:
            self.client("s3").head_object(Bucket=params["bucket"], Key=object_key)
        except ClientError as e:
            if is_not_found(e):
                return None
            raise
        return self._object_result(params["bucket"], object_key)

    def _create_object(self, object_key: str, params: dict) -> dict:
        self.client("s3").put_object(
            Bucket=params["bucket"],
            Key=object_key,
            Body=params["body"].encode("utf-8"),
            ContentType=params.get("content_type", "text/html"),
        )
        return self._object_result(params["bucket"], object_key)

    def _object_result(self, bucket_name: str, object_key: str) -> dict:
        return {"identifier": f"s3://{bucket_name}/{object_key}", "attributes": {"bucket": bucket_name}}

"""Static payloads sent to AWS: policies, distribution configs, sample pages."""

import uuid
from typing import List

# CloudFront's fixed hosted zone ID, used as the alias target zone
CLOUDFRONT_HOSTED_ZONE_ID = "Z2FDTNDATAQYW2"

INDEX_DOCUMENT = "index.html"
ERROR_DOCUMENT = "error.html"


def infra_user_policy() -> dict:
    """Permissions the infrastructure user needs to run the website setup."""
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Sid": "S3WebsiteHostingPermissions",
                "Effect": "Allow",
                "Action": [
                    "s3:CreateBucket",
                    "s3:DeleteBucket",
                    "s3:GetBucketLocation",
                    "s3:GetBucketWebsite",
                    "s3:PutBucketWebsite",
                    "s3:DeleteBucketWebsite",
                    "s3:GetBucketPolicy",
                    "s3:PutBucketPolicy",
                    "s3:DeleteBucketPolicy",
                    "s3:GetBucketPublicAccessBlock",
                    "s3:PutBucketPublicAccessBlock",
                    "s3:GetBucketAcl",
                    "s3:PutBucketAcl",
                    "s3:ListBucket",
                    "s3:GetObject",
                    "s3:PutObject",
                    "s3:DeleteObject",
                    "s3:GetObjectAcl",
                    "s3:PutObjectAcl",
                ],
                "Resource": ["arn:aws:s3:::*", "arn:aws:s3:::*/*"],
            },
            {
                "Sid": "CloudFrontPermissions",
                "Effect": "Allow",
                "Action": [
                    "cloudfront:CreateDistribution",
                    "cloudfront:GetDistribution",
                    "cloudfront:GetDistributionConfig",
                    "cloudfront:UpdateDistribution",
                    "cloudfront:ListDistributions",
                    "cloudfront:CreateInvalidation",
                    "cloudfront:GetInvalidation",
                    "cloudfront:ListInvalidations",
                ],
                "Resource": "*",
            },
            {
                "Sid": "CertificateManagerPermissions",
                "Effect": "Allow",
                "Action": [
                    "acm:RequestCertificate",
                    "acm:DescribeCertificate",
                    "acm:ListCertificates",
                    "acm:GetCertificate",
                ],
                "Resource": "*",
            },
            {
                "Sid": "Route53Permissions",
                "Effect": "Allow",
                "Action": [
                    "route53:GetHostedZone",
                    "route53:ListHostedZones",
                    "route53:ListHostedZonesByName",
                    "route53:ChangeResourceRecordSets",
                    "route53:GetChange",
                    "route53:ListResourceRecordSets",
                    "route53:CreateHostedZone",
                ],
                "Resource": "*",
            },
            {
                "Sid": "CallerIdentity",
                "Effect": "Allow",
                "Action": ["sts:GetCallerIdentity"],
                "Resource": "*",
            },
        ],
    }


def public_read_policy(bucket_name: str) -> dict:
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Sid": "PublicReadGetObject",
                "Effect": "Allow",
                "Principal": "*",
                "Action": "s3:GetObject",
                "Resource": f"arn:aws:s3:::{bucket_name}/*",
            }
        ],
    }


def distribution_comment(alias: str) -> str:
    return f"CloudFront distribution for {alias}"


def distribution_config(aliases: List[str], origin_domain: str, certificate_arn: str) -> dict:
    """CloudFront config fronting an S3 website endpoint with a custom domain.

    The website endpoint only speaks HTTP, so the origin is a custom origin
    rather than an S3 origin.
    """
    origin_id = f"S3-{origin_domain}"
    return {
        "CallerReference": str(uuid.uuid4()),
        "Comment": distribution_comment(aliases[0]),
        "Enabled": True,
        "Aliases": {"Quantity": len(aliases), "Items": list(aliases)},
        "DefaultRootObject": INDEX_DOCUMENT,
        "Origins": {
            "Quantity": 1,
            "Items": [
                {
                    "Id": origin_id,
                    "DomainName": origin_domain,
                    "CustomOriginConfig": {
                        "HTTPPort": 80,
                        "HTTPSPort": 443,
                        "OriginProtocolPolicy": "http-only",
                    },
                }
            ],
        },
        "DefaultCacheBehavior": {
            "TargetOriginId": origin_id,
            "ViewerProtocolPolicy": "redirect-to-https",
            "TrustedSigners": {"Enabled": False, "Quantity": 0},
            "ForwardedValues": {
                "QueryString": False,
                "Cookies": {"Forward": "none"},
            },
            "MinTTL": 0,
            "Compress": True,
        },
        "ViewerCertificate": {
            "ACMCertificateArn": certificate_arn,
            "SSLSupportMethod": "sni-only",
            "MinimumProtocolVersion": "TLSv1.2_2021",
        },
    }


def alias_record_change(record_name: str, target_domain: str) -> dict:
    return {
        "Changes": [
            {
                "Action": "CREATE",
                "ResourceRecordSet": {
                    "Name": record_name,
                    "Type": "A",
                    "AliasTarget": {
                        "HostedZoneId": CLOUDFRONT_HOSTED_ZONE_ID,
                        "DNSName": target_domain,
                        "EvaluateTargetHealth": False,
                    },
                },
            }
        ]
    }


def index_page(domain_name: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
    <title>Welcome to {domain_name}</title>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 40px; }}
        h1 {{ color: #333; }}
    </style>
</head>
<body>
    <h1>Welcome to {domain_name}</h1>
    <p>Your S3 static website is now live!</p>
    <p>This is a sample page. Replace this content with your own.</p>
</body>
</html>
"""


def error_page() -> str:
    return """<!DOCTYPE html>
<html>
<head>
    <title>Page Not Found</title>
    <style>
        body { font-family: Arial, sans-serif; margin: 40px; }
        h1 { color: #d32f2f; }
    </style>
</head>
<body>
    <h1>404 - Page Not Found</h1>
    <p>The page you're looking for doesn't exist.</p>
</body>
</html>
"""

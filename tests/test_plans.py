from static_site_setup.config import InfraUserConfig, WebsiteConfig
from static_site_setup.exceptions import ConfigurationError
from static_site_setup.plans import build_infra_user_plan, build_website_plan, describe_plan
from static_site_setup.resources import Ref, ResourceKind
from static_site_setup.sequencer import validate_plan
import unittest


class TestWebsitePlan(unittest.TestCase):
    def setUp(self):
        self.config = WebsiteConfig(bucket_name="site-a", domain_name="example.com", region="us-east-1")
        self.plan = build_website_plan(self.config)
        self.by_name = {d.name: d for d in self.plan}

    def test_order(self):
        kinds = [d.kind for d in self.plan]
        expected = [
            ResourceKind.BUCKET,
            ResourceKind.WEBSITE_CONFIGURATION,
            ResourceKind.BUCKET_POLICY,
            ResourceKind.BUCKET,
            ResourceKind.WEBSITE_CONFIGURATION,
            ResourceKind.BUCKET_POLICY,
            ResourceKind.CERTIFICATE,
            ResourceKind.DISTRIBUTION,
            ResourceKind.DISTRIBUTION,
            ResourceKind.HOSTED_ZONE,
            ResourceKind.DNS_RECORD,
            ResourceKind.DNS_RECORD,
            ResourceKind.DNS_RECORD,
            ResourceKind.OBJECT,
            ResourceKind.OBJECT,
        ]
        self.assertEqual(expected, kinds)

    def test_plan_is_valid(self):
        validate_plan(self.plan)

    def test_keys(self):
        sub_tests = [
            ("site-bucket", "site-a"),
            ("site-website", "site-a"),
            ("site-bucket-policy", "site-a"),
            ("app-bucket", "site-a.app"),
            ("app-website", "site-a.app"),
            ("app-bucket-policy", "site-a.app"),
            ("certificate", "example.com"),
            ("site-distribution", "example.com"),
            ("app-distribution", "app.example.com"),
            ("apex-record", "example.com"),
            ("www-record", "www.example.com"),
            ("app-record", "app.example.com"),
        ]
        for name, key in sub_tests:
            with self.subTest(name=name):
                self.assertEqual(key, self.by_name[name].key)

    def test_certificate_covers_all_names(self):
        names = self.by_name["certificate"].params["alternative_names"]
        self.assertEqual(["www.example.com", "app.example.com"], names)

    def test_distribution_dependencies(self):
        site = self.by_name["site-distribution"]
        app = self.by_name["app-distribution"]

        self.assertEqual(Ref("site-website", "website_endpoint"), site.depends_on["origin_domain"])
        self.assertEqual(Ref("app-website", "website_endpoint"), app.depends_on["origin_domain"])
        self.assertEqual(Ref("certificate"), site.depends_on["certificate_arn"])
        self.assertEqual(["example.com", "www.example.com"], site.params["aliases"])

    def test_hosting_steps_follow_their_bucket(self):
        for prefix in ["site", "app"]:
            for step in ["website", "bucket-policy"]:
                with self.subTest(step=f"{prefix}-{step}"):
                    descriptor = self.by_name[f"{prefix}-{step}"]
                    self.assertEqual(self.by_name[f"{prefix}-bucket"].key, descriptor.key)
                    self.assertEqual(Ref(f"{prefix}-bucket"), descriptor.depends_on["bucket"])

    def test_records_point_at_distributions(self):
        self.assertEqual(Ref("site-distribution", "domain_name"), self.by_name["www-record"].depends_on["target"])
        self.assertEqual(Ref("app-distribution", "domain_name"), self.by_name["app-record"].depends_on["target"])
        self.assertEqual(Ref("hosted-zone"), self.by_name["apex-record"].depends_on["zone_id"])

    def test_without_sample_content(self):
        config = WebsiteConfig(bucket_name="site-a", domain_name="example.com", region="us-east-1", sample_content=False)
        plan = build_website_plan(config)
        self.assertNotIn(ResourceKind.OBJECT, [d.kind for d in plan])

    def test_zone_creation_flag(self):
        config = WebsiteConfig(bucket_name="site-a", domain_name="example.com", region="us-east-1", create_hosted_zone=False)
        zone = {d.name: d for d in build_website_plan(config)}["hosted-zone"]
        self.assertFalse(zone.params["allow_create"])

    def test_invalid_config(self):
        with self.assertRaises(ConfigurationError):
            build_website_plan(WebsiteConfig(bucket_name="", domain_name="example.com", region="us-east-1"))

    def test_describe_plan(self):
        lines = describe_plan(self.plan).splitlines()

        self.assertEqual(len(self.plan), len(lines))
        self.assertEqual("1. bucket site-a (site-bucket)", lines[0])
        self.assertEqual("2. website-configuration site-a (site-website) <- site-bucket", lines[1])
        self.assertEqual("8. distribution example.com (site-distribution) <- certificate, site-website", lines[7])


class TestInfraUserPlan(unittest.TestCase):
    def test_plan(self):
        plan = build_infra_user_plan(InfraUserConfig(region="us-east-1", user_name="deployer"))

        self.assertEqual(
            [
                ResourceKind.ACCOUNT_PUBLIC_ACCESS_BLOCK,
                ResourceKind.POLICY,
                ResourceKind.USER,
                ResourceKind.POLICY_ATTACHMENT,
            ],
            [d.kind for d in plan],
        )
        self.assertEqual("deployer-policy", plan[1].key)
        self.assertEqual("deployer/deployer-policy", plan[3].key)
        self.assertEqual(Ref("policy"), plan[3].depends_on["policy_arn"])
        validate_plan(plan)

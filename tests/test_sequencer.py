from static_site_setup.config import WebsiteConfig
from static_site_setup.exceptions import ConfigurationError, DependencyUnavailableError, ProviderError
from static_site_setup.plans import build_website_plan
from static_site_setup.resources import Ref, ResourceDescriptor, ResourceKind, ResourceState
from static_site_setup.sequencer import ProvisioningContext, Sequencer, format_manifest
import unittest


class RecordingProvider:
    """ in-memory provider that records every call and remembers what it created """
    def __init__(self, existing=None, fail_on=None):
        self.resources = dict(existing or {})
        self.fail_on = set(fail_on or [])
        self.calls = []

    def describe(self, kind, key, params):
        self.calls.append(("describe", kind, key, dict(params)))
        if ("describe", kind) in self.fail_on:
            raise ProviderError(kind.value, key, Exception("AccessDenied"))
        return self.resources.get((kind, key))

    def create(self, kind, key, params):
        self.calls.append(("create", kind, key, dict(params)))
        if ("create", kind) in self.fail_on:
            raise ProviderError(kind.value, key, Exception("LimitExceeded"))
        result = {"identifier": f"{kind.value}-{key}", "attributes": {"domain_name": f"{key}.cdn.test"}}
        if kind is ResourceKind.BUCKET:
            result = {"identifier": key, "attributes": {"website_endpoint": f"{key}.s3-website-us-east-1.amazonaws.com"}}
        self.resources[(kind, key)] = result
        return result

    @property
    def create_calls(self):
        return [c for c in self.calls if c[0] == "create"]


def silent(*args, **kwargs):
    pass


def end_to_end_plan():
    return [
        ResourceDescriptor("bucket", ResourceKind.BUCKET, "site-a"),
        ResourceDescriptor("certificate", ResourceKind.CERTIFICATE, "example.com"),
        ResourceDescriptor(
            "distribution",
            ResourceKind.DISTRIBUTION,
            "example.com",
            depends_on={"origin_bucket": Ref("bucket"), "certificate_arn": Ref("certificate")},
        ),
        ResourceDescriptor(
            "dns-record",
            ResourceKind.DNS_RECORD,
            "example.com",
            depends_on={"distribution_id": Ref("distribution")},
        ),
    ]


class TestSequencerEnsure(unittest.TestCase):
    def setUp(self):
        self.kinds = list(ResourceKind)

    def test_existing_resource_is_not_created(self):
        for kind in self.kinds:
            with self.subTest(kind=kind.value):
                existing = {(kind, "thing"): {"identifier": "existing-id", "attributes": {"a": 1}}}
                provider = RecordingProvider(existing=existing)
                sequencer = Sequencer(provider, echo=silent)

                handle = sequencer.ensure(ResourceDescriptor("r", kind, "thing"), ProvisioningContext())

                self.assertEqual([], provider.create_calls)
                self.assertEqual("existing-id", handle.identifier)
                self.assertEqual(ResourceState.EXISTS, handle.state)

    def test_ensure_twice_returns_same_handle(self):
        for kind in self.kinds:
            with self.subTest(kind=kind.value):
                provider = RecordingProvider()
                sequencer = Sequencer(provider, echo=silent)
                descriptor = ResourceDescriptor("r", kind, "thing")

                first = sequencer.ensure(descriptor, ProvisioningContext())
                second = sequencer.ensure(descriptor, ProvisioningContext())

                self.assertEqual(first, second)
                self.assertTrue(first.created)
                self.assertFalse(second.created)
                self.assertEqual(1, len(provider.create_calls))

    def test_absent_bucket_is_created_with_requested_name(self):
        provider = RecordingProvider()
        sequencer = Sequencer(provider, echo=silent)

        handle = sequencer.ensure(ResourceDescriptor("bucket", ResourceKind.BUCKET, "site-a"), ProvisioningContext())

        self.assertEqual("site-a", handle.key)
        self.assertEqual("site-a", handle.identifier)
        self.assertEqual(ResourceState.CREATED, handle.state)
        self.assertEqual(["describe", "create"], [c[0] for c in provider.calls])

    def test_handle_is_recorded_in_context(self):
        provider = RecordingProvider()
        context = ProvisioningContext()

        Sequencer(provider, echo=silent).ensure(ResourceDescriptor("bucket", ResourceKind.BUCKET, "site-a"), context)

        self.assertIn("bucket", context)
        self.assertEqual("site-a", context["bucket"].identifier)

    def test_describe_failure_is_not_treated_as_absent(self):
        provider = RecordingProvider(fail_on=[("describe", ResourceKind.USER)])
        sequencer = Sequencer(provider, echo=silent)

        with self.assertRaises(ProviderError):
            sequencer.ensure(ResourceDescriptor("user", ResourceKind.USER, "deployer"), ProvisioningContext())

        self.assertEqual([], provider.create_calls)

    def test_missing_attribute_raises_dependency_unavailable(self):
        provider = RecordingProvider()
        context = ProvisioningContext()
        sequencer = Sequencer(provider, echo=silent)
        sequencer.ensure(ResourceDescriptor("zone", ResourceKind.HOSTED_ZONE, "example.com"), context)

        record = ResourceDescriptor(
            "record", ResourceKind.DNS_RECORD, "example.com", depends_on={"zone_id": Ref("zone", "no_such_attribute")}
        )
        with self.assertRaises(DependencyUnavailableError) as cm:
            sequencer.ensure(record, context)

        self.assertEqual("dns-record", cm.exception.kind)
        self.assertNotIsInstance(cm.exception.kind, ResourceKind)
        self.assertEqual("example.com", cm.exception.key)

    def test_unprovisioned_prerequisite_raises_dependency_unavailable(self):
        sequencer = Sequencer(RecordingProvider(), echo=silent)
        record = ResourceDescriptor("record", ResourceKind.DNS_RECORD, "example.com", depends_on={"zone_id": Ref("zone")})

        with self.assertRaises(DependencyUnavailableError):
            sequencer.ensure(record, ProvisioningContext())


class TestSequencerRun(unittest.TestCase):
    def test_end_to_end_create_order(self):
        provider = RecordingProvider()

        context = Sequencer(provider, echo=silent).run(end_to_end_plan())

        creates = provider.create_calls
        self.assertEqual(
            [ResourceKind.BUCKET, ResourceKind.CERTIFICATE, ResourceKind.DISTRIBUTION, ResourceKind.DNS_RECORD],
            [c[1] for c in creates],
        )

        sub_tests = [
            {
                "msg": "distribution receives the bucket identifier",
                "expected": "site-a",
                "actual": creates[2][3]["origin_bucket"]
            },
            {
                "msg": "distribution receives the certificate identifier",
                "expected": "certificate-example.com",
                "actual": creates[2][3]["certificate_arn"]
            },
            {
                "msg": "dns record receives the distribution identifier",
                "expected": "distribution-example.com",
                "actual": creates[3][3]["distribution_id"]
            },
            {
                "msg": "every descriptor has a handle",
                "expected": 4,
                "actual": len(context)
            }
        ]

        for i in sub_tests:
            with self.subTest(msg=i["msg"]):
                self.assertEqual(i["expected"], i["actual"])

    def test_certificate_failure_stops_before_distribution(self):
        provider = RecordingProvider(fail_on=[("create", ResourceKind.CERTIFICATE)])

        with self.assertRaises(ProviderError) as cm:
            Sequencer(provider, echo=silent).run(end_to_end_plan())

        self.assertEqual("certificate", cm.exception.kind)
        touched = {c[1] for c in provider.calls}
        self.assertNotIn(ResourceKind.DISTRIBUTION, touched)
        self.assertNotIn(ResourceKind.DNS_RECORD, touched)
        # the bucket created before the failure stays provisioned
        self.assertIn((ResourceKind.BUCKET, "site-a"), provider.resources)

    def test_missing_domain_name_fails_before_any_call(self):
        provider = RecordingProvider()

        with self.assertRaises(ConfigurationError):
            plan = build_website_plan(WebsiteConfig(bucket_name="site-a", domain_name="", region="us-east-1"))
            Sequencer(provider, echo=silent).run(plan)

        self.assertEqual([], provider.calls)

    def test_empty_key_fails_before_any_call(self):
        provider = RecordingProvider()
        plan = [
            ResourceDescriptor("bucket", ResourceKind.BUCKET, "site-a"),
            ResourceDescriptor("certificate", ResourceKind.CERTIFICATE, ""),
        ]

        with self.assertRaises(ConfigurationError):
            Sequencer(provider, echo=silent).run(plan)

        self.assertEqual([], provider.calls)

    def test_forward_reference_is_rejected(self):
        provider = RecordingProvider()
        plan = list(reversed(end_to_end_plan()))

        with self.assertRaises(ConfigurationError):
            Sequencer(provider, echo=silent).run(plan)

        self.assertEqual([], provider.calls)

    def test_duplicate_names_are_rejected(self):
        plan = [
            ResourceDescriptor("bucket", ResourceKind.BUCKET, "site-a"),
            ResourceDescriptor("bucket", ResourceKind.BUCKET, "site-b"),
        ]

        with self.assertRaises(ConfigurationError):
            Sequencer(RecordingProvider(), echo=silent).run(plan)

    def test_second_run_creates_nothing(self):
        provider = RecordingProvider()
        sequencer = Sequencer(provider, echo=silent)

        first = sequencer.run(end_to_end_plan())
        creates_after_first = len(provider.create_calls)
        second = sequencer.run(end_to_end_plan())

        self.assertEqual(creates_after_first, len(provider.create_calls))
        self.assertEqual([h for _, h in first], [h for _, h in second])


class TestManifest(unittest.TestCase):
    def test_format_manifest(self):
        provider = RecordingProvider(existing={
            (ResourceKind.BUCKET, "site-a"): {"identifier": "site-a", "attributes": {"website_endpoint": "x"}}
        })
        context = Sequencer(provider, echo=silent).run(end_to_end_plan())

        manifest = format_manifest(context).splitlines()

        self.assertEqual("Resources:", manifest[0])
        self.assertEqual("- bucket bucket: site-a (existing)", manifest[1])
        self.assertEqual("- certificate certificate: certificate-example.com (created)", manifest[2])
        self.assertEqual(5, len(manifest))

"""Tests for helpers.py module."""

from fluxops import helpers
from fluxops.models import ReleaseContext


def _ctx(chart_name="spring-boot-base", release_name="orders", values=None, **kwargs):
    return ReleaseContext(
        chart_name=chart_name,
        release_name=release_name,
        chart_version=kwargs.pop("chart_version", "0.1.0"),
        values=values or {},
        **kwargs,
    )


class TestTruncName:
    """Tests for DNS label truncation."""

    def test_short_name_unchanged(self):
        assert helpers.trunc_name("orders") == "orders"

    def test_long_name_truncated_to_63(self):
        result = helpers.trunc_name("a" * 80)
        assert result == "a" * 63
        assert len(result) == 63

    def test_trailing_hyphens_stripped_after_truncation(self):
        result = helpers.trunc_name("a" * 61 + "--bbbb")
        assert result == "a" * 61
        assert not result.endswith("-")

    def test_trailing_hyphen_on_short_name_stripped(self):
        assert helpers.trunc_name("orders-") == "orders"


class TestName:
    """Tests for the chart name helper."""

    def test_name_defaults_to_chart_name(self):
        assert helpers.name(_ctx()) == "spring-boot-base"

    def test_name_override(self):
        assert helpers.name(_ctx(values={"nameOverride": "api"})) == "api"

    def test_long_chart_name_truncated(self):
        ctx = _ctx(chart_name="c" * 70)
        assert helpers.name(ctx) == "c" * 63


class TestFullname:
    """Tests for the fully qualified name helper."""

    def test_release_and_chart_joined(self):
        assert helpers.fullname(_ctx()) == "orders-spring-boot-base"

    def test_release_containing_chart_name_used_as_is(self):
        ctx = _ctx(release_name="prod-spring-boot-base-v2")
        assert helpers.fullname(ctx) == "prod-spring-boot-base-v2"

    def test_fullname_override_wins(self):
        ctx = _ctx(values={"fullnameOverride": "custom", "nameOverride": "api"})
        assert helpers.fullname(ctx) == "custom"

    def test_fullname_override_truncated(self):
        ctx = _ctx(values={"fullnameOverride": "x" * 62 + "-y"})
        assert helpers.fullname(ctx) == "x" * 62

    def test_name_override_used_in_join(self):
        ctx = _ctx(values={"nameOverride": "api"})
        assert helpers.fullname(ctx) == "orders-api"

    def test_name_override_contained_in_release(self):
        ctx = _ctx(release_name="orders-api", values={"nameOverride": "api"})
        assert helpers.fullname(ctx) == "orders-api"

    def test_joined_name_truncated(self):
        ctx = _ctx(release_name="r" * 60)
        result = helpers.fullname(ctx)
        assert len(result) <= 63
        assert result.startswith("r" * 60)
        assert not result.endswith("-")


class TestChartLabel:
    """Tests for the chart label helper."""

    def test_chart_label(self):
        assert helpers.chart(_ctx()) == "spring-boot-base-0.1.0"

    def test_plus_replaced(self):
        assert helpers.chart(_ctx(chart_version="1.0.0+build.5")) == "spring-boot-base-1.0.0_build.5"


class TestLabels:
    """Tests for the common labels helper."""

    FIXED_KEYS = {
        "helm.sh/chart",
        "app.kubernetes.io/name",
        "app.kubernetes.io/instance",
        "app.kubernetes.io/version",
        "app.kubernetes.io/managed-by",
    }

    def test_fixed_keys_always_present(self):
        result = helpers.labels(_ctx())
        assert set(result) == self.FIXED_KEYS

    def test_values(self):
        result = helpers.labels(_ctx(app_version="1.4.2"))
        assert result["app.kubernetes.io/name"] == "spring-boot-base"
        assert result["app.kubernetes.io/instance"] == "orders"
        assert result["app.kubernetes.io/version"] == "1.4.2"
        assert result["app.kubernetes.io/managed-by"] == "Helm"

    def test_version_falls_back_to_chart_version(self):
        assert helpers.labels(_ctx())["app.kubernetes.io/version"] == "0.1.0"

    def test_registry_labels_when_packages_enabled(self, release_context):
        result = helpers.labels(release_context)
        assert self.FIXED_KEYS <= set(result)
        assert result["github.com/packages-integration"] == "true"
        assert result["github.com/registry"] == "ghcr.io"
        assert result["github.com/organization"] == "acme"

    def test_no_registry_labels_when_disabled(self):
        ctx = _ctx(values={"githubPackages": {"enabled": False}, "image": {"repository": "acme/orders"}})
        result = helpers.labels(ctx)
        assert not any(key.startswith("github.com/") for key in result)

    def test_explicit_organization(self):
        ctx = _ctx(values={"githubPackages": {"enabled": True, "organization": "platform"}})
        assert helpers.labels(ctx)["github.com/organization"] == "platform"

    def test_selector_labels_subset(self):
        ctx = _ctx()
        selector = helpers.selector_labels(ctx)
        assert selector.items() <= helpers.labels(ctx).items()


class TestServiceAccountName:
    """Tests for the service account helper."""

    def test_default_when_not_created(self):
        assert helpers.service_account_name(_ctx()) == "default"

    def test_fullname_when_created(self):
        ctx = _ctx(values={"serviceAccount": {"create": True}})
        assert helpers.service_account_name(ctx) == "orders-spring-boot-base"

    def test_explicit_name(self):
        ctx = _ctx(values={"serviceAccount": {"create": True, "name": "runner"}})
        assert helpers.service_account_name(ctx) == "runner"


class TestImage:
    """Tests for image reference formatting."""

    def test_format_image(self):
        assert helpers.format_image("ghcr.io", "org/svc", "v1") == "ghcr.io/org/svc:v1"

    def test_format_image_fallback_tag(self):
        assert helpers.format_image("ghcr.io", "org/svc", fallback_tag="1.0.0") == "ghcr.io/org/svc:1.0.0"

    def test_format_image_without_registry(self):
        assert helpers.format_image("", "org/svc", "v1") == "org/svc:v1"

    def test_image_from_values(self, release_context):
        assert helpers.image(release_context) == "ghcr.io/acme/orders:v1"

    def test_image_tag_falls_back_to_app_version(self):
        ctx = _ctx(app_version="1.4.2", values={"image": {"repository": "acme/orders", "tag": ""}})
        assert helpers.image(ctx) == "ghcr.io/acme/orders:1.4.2"

    def test_image_ref_parts(self, release_context):
        ref = helpers.image_ref(release_context)
        assert ref.registry == "ghcr.io"
        assert ref.repository == "acme/orders"
        assert ref.tag == "v1"


class TestLookup:
    """Tests for dotted value lookup."""

    def test_nested_value(self):
        assert helpers.lookup({"a": {"b": 1}}, "a.b") == 1

    def test_missing_returns_default(self):
        assert helpers.lookup({"a": {}}, "a.b", "x") == "x"

    def test_none_returns_default(self):
        assert helpers.lookup({"a": None}, "a", "x") == "x"

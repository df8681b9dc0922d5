"""Unit tests for TenantContext and BuildInfo."""

import pytest

from promexport.domain.models import BuildInfo, TenantContext


class TestTenantContext:
    """Tests for TenantContext."""

    def test_str_is_tenant_id(self) -> None:
        assert str(TenantContext("acme")) == "acme"

    @pytest.mark.parametrize("tenant_id", ["", "   "])
    def test_blank_tenant_rejected(self, tenant_id: str) -> None:
        with pytest.raises(ValueError, match="tenant_id"):
            TenantContext(tenant_id)


class TestBuildInfo:
    """Tests for BuildInfo and its environment fallback."""

    def test_labels_stringified(self) -> None:
        info = BuildInfo(labels={"version": 2})  # type: ignore[dict-item]

        assert info.labels == {"version": "2"}

    def test_from_environment_reads_autometrics_vars(self) -> None:
        info = BuildInfo.from_environment(
            environ={
                "AUTOMETRICS_VERSION": "1.2.3",
                "AUTOMETRICS_COMMIT": "abc123",
                "AUTOMETRICS_BRANCH": "main",
                "UNRELATED": "x",
            }
        )

        assert info.labels == {"version": "1.2.3", "commit": "abc123", "branch": "main"}

    def test_explicit_keys_override_environment(self) -> None:
        info = BuildInfo.from_environment(
            overrides={"version": "9.9.9"},
            environ={"AUTOMETRICS_VERSION": "1.2.3"},
        )

        assert info.labels == {"version": "9.9.9"}

    def test_empty_environment_values_skipped(self) -> None:
        info = BuildInfo.from_environment(environ={"AUTOMETRICS_VERSION": ""})

        assert info.labels == {}

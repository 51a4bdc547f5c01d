"""Tests for tenant identifier validation."""

import pytest

from vesseltrack.errors import MissingTenantError
from vesseltrack.tenancy import TenantId, require_tenant


class TestRequireTenant:
    """Test require_tenant()."""

    def test_valid_identifier_is_trimmed(self):
        tenant = require_tenant("  acme-shipping ")
        assert tenant == TenantId("acme-shipping")
        assert str(tenant) == "acme-shipping"

    def test_tenant_id_passes_through(self):
        tenant = TenantId("acme")
        assert require_tenant(tenant) is tenant

    @pytest.mark.parametrize("value", [None, "", "   ", "\t\n"])
    def test_missing_or_blank_is_rejected(self, value):
        with pytest.raises(MissingTenantError):
            require_tenant(value)

    @pytest.mark.parametrize("value", [42, ["acme"], {"id": "acme"}])
    def test_non_string_is_rejected(self, value):
        with pytest.raises(MissingTenantError):
            require_tenant(value)

    def test_direct_construction_validates(self):
        with pytest.raises(MissingTenantError):
            TenantId(" ")

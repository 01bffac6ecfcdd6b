"""
backend/test_authz.py

Capability table checks for the two CMS roles.

Run:
    pytest backend/test_authz.py -v
"""

import pytest

from backend.authz import Capability, has_capability


@pytest.mark.parametrize("capability", list(Capability))
def test_admin_has_every_capability(capability):
    assert has_capability("admin", capability) is True
    assert has_capability("ADMIN", capability) is True


@pytest.mark.parametrize("capability", [
    Capability.PROJECT_MANAGE,
    Capability.BRAND_MANAGE,
    Capability.CONTACT_MANAGE,
])
def test_user_cannot_manage_content(capability):
    assert has_capability("user", capability) is False


def test_user_can_read_nda_and_contact():
    assert has_capability("user", Capability.NDA_VIEW) is True
    assert has_capability("user", Capability.CONTACT_VIEW) is True


@pytest.mark.parametrize("role", ["", None, "owner", "anonymous"])
def test_unknown_roles_have_nothing(role):
    assert not any(has_capability(role, cap) for cap in Capability)

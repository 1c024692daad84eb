"""
Unit tests for the ANY / ALL permission policy decision.
"""
from rbac_admin.services.permission_resolver import Policy, is_authorized, missing_permissions


class TestAnyPolicy:

    def test_passes_when_one_required_permission_is_held(self):
        assert is_authorized(["view_user", "view_any_user"], {"view_user"}, Policy.ANY) is True

    def test_fails_when_none_is_held(self):
        assert is_authorized(["view_user", "view_any_user"], {"update_user"}, Policy.ANY) is False

    def test_empty_requirement_never_passes(self):
        assert is_authorized([], {"view_user"}, Policy.ANY) is False

    def test_is_the_default(self):
        assert is_authorized(["a", "b"], {"b"}) is True


class TestAllPolicy:

    def test_passes_only_when_every_permission_is_held(self):
        assert is_authorized(["create_user", "view_user"], {"create_user", "view_user", "x"}, Policy.ALL) is True
        assert is_authorized(["create_user", "view_user"], {"create_user"}, Policy.ALL) is False

    def test_empty_requirement_always_passes(self):
        assert is_authorized([], set(), Policy.ALL) is True


def test_missing_permissions_keeps_required_order():
    assert missing_permissions(["c", "a", "b"], {"a"}) == ["c", "b"]

"""Tests for the identity contract."""

import pytest

from printshop.errors import AdminRequiredError
from printshop.identity import ROLE_ADMIN, StaticIdentity, TokenIdentity, User, require_admin


class TestStaticIdentity:
    def test_admin(self):
        user = User(id="u1", email="admin@example.com", name="Admin", role=ROLE_ADMIN)
        assert StaticIdentity(user).is_admin()

    def test_regular_user(self):
        user = User(id="u2", email="musteri@example.com", name="Müşteri")
        assert not StaticIdentity(user).is_admin()

    def test_anonymous(self):
        assert not StaticIdentity().is_admin()


class TestTokenIdentity:
    @pytest.mark.parametrize(
        "presented,configured,expected",
        [
            ("secret", "secret", True),
            ("wrong", "secret", False),
            (None, "secret", False),
            ("", "", False),
            ("anything", "", False),
        ],
    )
    def test_is_admin(self, presented, configured, expected):
        assert TokenIdentity(presented, configured).is_admin() is expected


class TestRequireAdmin:
    def test_allows_admin(self):
        require_admin(TokenIdentity("secret", "secret"))

    def test_rejects_non_admin(self):
        with pytest.raises(AdminRequiredError):
            require_admin(StaticIdentity())

import pytest

from zipweather.auth.identity import IdentityStore, validate_registration

PASSWORD = "hunter2hunter"


@pytest.fixture
def identity(clock):
    return IdentityStore(access_token_ttl_seconds=3600, refresh_token_ttl_seconds=7200, time_func=clock)


class TestRegistration:
    def test_register_new_user(self, identity):
        assert identity.register("user@example.com", PASSWORD) == []

    def test_duplicate_email_is_rejected_case_insensitively(self, identity):
        identity.register("user@example.com", PASSWORD)

        errors = identity.register("USER@example.com", PASSWORD)

        assert errors == ["Username 'USER@example.com' is already taken."]

    def test_password_rules(self):
        assert validate_registration("user@example.com", "short1") == [
            "Passwords must be at least 8 characters."
        ]
        assert validate_registration("user@example.com", "longenough") == [
            "Passwords must have at least one digit ('0'-'9')."
        ]

    @pytest.mark.parametrize("email", ["userexample.com", "@example.com", "user@"])
    def test_invalid_email(self, email):
        assert validate_registration(email, PASSWORD) == [f"Email '{email}' is invalid."]

    def test_missing_email(self):
        assert validate_registration("  ", PASSWORD) == ["Email is required."]


class TestLogin:
    def test_login_issues_bearer_token(self, identity):
        identity.register("user@example.com", PASSWORD)

        token = identity.login("user@example.com", PASSWORD)

        assert token.token_type == "Bearer"
        assert token.expires_in == 3600
        assert token.refresh_token
        assert identity.authenticate(token.access_token) == "user@example.com"

    def test_wrong_password(self, identity):
        identity.register("user@example.com", PASSWORD)

        assert identity.login("user@example.com", "wrong-password-1") is None

    def test_unknown_user(self, identity):
        assert identity.login("nobody@example.com", PASSWORD) is None

    def test_unknown_access_token(self, identity):
        assert identity.authenticate("not-a-token") is None

    def test_access_token_expires(self, identity, clock):
        identity.register("user@example.com", PASSWORD)
        token = identity.login("user@example.com", PASSWORD)

        clock.advance(3600)

        assert identity.authenticate(token.access_token) is None


class TestRefresh:
    def test_refresh_rotates_tokens(self, identity):
        identity.register("user@example.com", PASSWORD)
        original = identity.login("user@example.com", PASSWORD)

        refreshed = identity.refresh(original.refresh_token)

        assert refreshed.access_token != original.access_token
        assert refreshed.refresh_token != original.refresh_token
        assert identity.authenticate(refreshed.access_token) == "user@example.com"

    def test_refresh_token_is_single_use(self, identity):
        identity.register("user@example.com", PASSWORD)
        original = identity.login("user@example.com", PASSWORD)

        identity.refresh(original.refresh_token)

        assert identity.refresh(original.refresh_token) is None

    def test_expired_refresh_token(self, identity, clock):
        identity.register("user@example.com", PASSWORD)
        original = identity.login("user@example.com", PASSWORD)

        clock.advance(7200)

        assert identity.refresh(original.refresh_token) is None

    def test_prune_expired_tokens(self, identity, clock):
        identity.register("user@example.com", PASSWORD)
        identity.login("user@example.com", PASSWORD)

        clock.advance(3600)
        assert identity.prune_expired_tokens() == 1

        clock.advance(3600)
        assert identity.prune_expired_tokens() == 1
        assert identity.prune_expired_tokens() == 0

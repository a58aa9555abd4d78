"""Unit tests for authentication utilities"""
import pytest

from stepledger.exceptions import AuthenticationError, AuthorizationError
from stepledger.utils.auth import AuthSession, ensure_owner, require_auth


class TestRequireAuth:
    """Test suite for require_auth"""

    def test_signed_in(self):
        assert require_auth(AuthSession("user-123")) == "user-123"

    def test_signed_out(self):
        with pytest.raises(AuthenticationError):
            require_auth(AuthSession())

    def test_sign_in_and_out(self):
        session = AuthSession()
        session.sign_in("user-123")
        assert require_auth(session) == "user-123"

        session.sign_out()
        with pytest.raises(AuthenticationError):
            require_auth(session)


class TestEnsureOwner:
    """Test suite for ensure_owner"""

    def test_owner_passes(self):
        assert ensure_owner(AuthSession("user-123"), "user-123", "steps") == "user-123"

    def test_int_id_matches_string(self):
        assert ensure_owner(AuthSession("12345"), 12345, "steps") == "12345"

    def test_padded_id_rejected(self):
        """Test an ID that would build a different storage key is not the owner"""
        with pytest.raises(AuthorizationError):
            ensure_owner(AuthSession("user-123"), " user-123", "steps")
        with pytest.raises(AuthorizationError):
            ensure_owner(AuthSession(" user-123 "), "user-123", "steps")

    def test_other_user_rejected(self):
        with pytest.raises(AuthorizationError) as exc_info:
            ensure_owner(AuthSession("user-123"), "user-456", "streak protection", operation="use_protection")

        assert exc_info.value.message == "Unauthorized access to streak protection data"
        assert exc_info.value.resource == "streak protection"
        assert exc_info.value.operation == "use_protection"

    def test_missing_target_rejected(self):
        with pytest.raises(AuthorizationError):
            ensure_owner(AuthSession("user-123"), None, "steps")

    def test_signed_out_is_authentication_error(self):
        with pytest.raises(AuthenticationError):
            ensure_owner(AuthSession(), "user-123", "steps")

"""
Unit tests for password hashing, the password policy and JWT helpers.
"""

from datetime import timedelta

import pytest

from barberbook.core.security import (
    create_access_token,
    create_user_token,
    decode_access_token,
    get_user_from_token,
    hash_password,
    is_strong_password,
    password_problems,
    verify_password,
)


@pytest.mark.unit
@pytest.mark.security
class TestPasswordHashing:
    def test_hash_is_not_plaintext_and_verifies(self):
        hashed = hash_password("S3cret!pass")
        assert hashed != "S3cret!pass"
        assert verify_password("S3cret!pass", hashed)

    def test_wrong_password_does_not_verify(self):
        hashed = hash_password("S3cret!pass")
        assert not verify_password("other", hashed)

    def test_missing_hash_never_verifies(self):
        """Guest clients have no password hash and cannot sign in."""
        assert not verify_password("anything", None)
        assert not verify_password("anything", "not-a-bcrypt-hash")

    def test_empty_password_never_verifies(self):
        assert not verify_password("", hash_password("S3cret!pass"))


@pytest.mark.unit
@pytest.mark.security
class TestPasswordPolicy:
    @pytest.mark.parametrize(
        "password",
        ["Password1!", "Abcdefg1#", "Z9!zzzzz"],
    )
    def test_strong_passwords(self, password):
        assert is_strong_password(password)

    @pytest.mark.parametrize(
        "password",
        [
            "",
            "Sh0rt!",  # too short
            "password1!",  # no uppercase
            "PASSWORD1!",  # no lowercase
            "Password!!",  # no digit
            "Password12",  # no special character
        ],
    )
    def test_weak_passwords(self, password):
        assert not is_strong_password(password)


@pytest.mark.unit
@pytest.mark.auth
class TestJwt:
    def test_user_token_carries_identity_and_role(self):
        token = create_user_token(42, "jane@example.com", "WORKER")
        data = get_user_from_token(token)
        assert data == {"user_id": 42, "email": "jane@example.com", "role": "WORKER"}

    def test_tampered_token_is_rejected(self):
        token = create_user_token(1, "a@example.com", "CLIENT")
        assert decode_access_token(token + "x") is None
        assert get_user_from_token("not-a-token") is None

    def test_token_without_subject_is_rejected(self):
        token = create_access_token({"email": "a@example.com"})
        assert decode_access_token(token) is not None
        assert get_user_from_token(token) is None

    def test_expired_token_is_rejected(self):
        token = create_access_token({"sub": "1"}, expires_delta=timedelta(seconds=-1))
        assert decode_access_token(token) is None


@pytest.mark.unit
@pytest.mark.security
class TestPasswordProblems:
    def test_lists_each_missing_rule(self):
        assert password_problems("abc") == [
            "at least 8 characters",
            "an uppercase letter",
            "a number",
            "a special character",
        ]

    def test_none_is_treated_as_empty(self):
        assert "at least 8 characters" in password_problems(None)

    def test_strong_password_has_no_problems(self):
        assert password_problems("Password1!") == []

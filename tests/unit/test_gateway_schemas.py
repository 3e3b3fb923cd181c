"""Registration request validation."""

import pytest
from pydantic import ValidationError

from src.dn_gateway.user.schemas import RegisterRequest


class TestRegisterRequest:
    def test_valid_input(self) -> None:
        req = RegisterRequest(email="somchai@example.com", display_name="สมชาย", password="Pass1word")
        assert req.display_name == "สมชาย"

    @pytest.mark.parametrize("password", ["short1A", "allletters", "12345678"])
    def test_weak_passwords(self, password: str) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(email="a@example.com", display_name="A", password=password)

    def test_invalid_email(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(email="not-an-email", display_name="A", password="Pass1word")

    def test_empty_display_name(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(email="a@example.com", display_name="", password="Pass1word")

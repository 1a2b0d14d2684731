from datetime import timedelta

import jwt
import pytest
from canteen_reservation.models import new_id
from canteen_reservation.utils.auth import TokenError, create_access_token, decode_access_token


def test_round_trip_returns_canonical_student_id() -> None:
    student_id = new_id()
    token = create_access_token(student_id=student_id.upper(), secret="s3cret")
    assert decode_access_token(token, secret="s3cret", algorithms=["HS256"]) == student_id


def test_expired_token_is_rejected() -> None:
    token = create_access_token(student_id=new_id(), secret="s3cret", expires_delta=timedelta(seconds=-1))
    with pytest.raises(TokenError):
        decode_access_token(token, secret="s3cret", algorithms=["HS256"])


def test_token_without_expiry_is_rejected() -> None:
    token = jwt.encode({"sub": new_id()}, "s3cret", algorithm="HS256")
    with pytest.raises(TokenError):
        decode_access_token(token, secret="s3cret", algorithms=["HS256"])


def test_non_uuid_subject_is_rejected() -> None:
    token = create_access_token(student_id="7", secret="s3cret")
    with pytest.raises(TokenError):
        decode_access_token(token, secret="s3cret", algorithms=["HS256"])

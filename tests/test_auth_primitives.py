import re
import uuid
from datetime import timedelta

import pytest
from jose import jwt

from ideas_api.core import (
    create_access_token,
    decode_access_token,
    generate_code,
    generate_refresh_token,
    hash_code,
    verify_code,
)
from ideas_api.core.errors import ExpiredError, InvalidCredentialsError

from conftest import START


def test_generate_code_is_six_digits():
    codes = {generate_code() for _ in range(200)}
    assert all(re.fullmatch(r"[0-9]{6}", c) for c in codes)
    assert len(codes) > 1


def test_hash_and_verify_code():
    hashed = hash_code("123456", cost=4)
    assert hashed != "123456"
    assert verify_code("123456", hashed)
    assert not verify_code("654321", hashed)


def test_verify_code_with_malformed_hash_is_false():
    assert verify_code("123456", "not-a-bcrypt-hash") is False


def test_refresh_tokens_are_long_and_unique():
    tokens = {generate_refresh_token() for _ in range(50)}
    assert len(tokens) == 50
    assert all(len(t) >= 43 and re.fullmatch(r"[A-Za-z0-9_\-]+", t) for t in tokens)


def test_access_token_shape(settings):
    user_id = str(uuid.uuid4())
    token = create_access_token(user_id, START, settings)

    header = jwt.get_unverified_header(token)
    assert header["alg"] == "HS256"
    assert header["typ"] == "JWT"

    claims = jwt.get_unverified_claims(token)
    assert claims["user_id"] == user_id
    assert claims["iat"] == int(START.timestamp())
    assert claims["exp"] == int(START.timestamp()) + settings.access_ttl_seconds


def test_decode_access_token_round_trip(settings):
    user_id = str(uuid.uuid4())
    token = create_access_token(user_id, START, settings)
    claims = decode_access_token(token, START + timedelta(seconds=1), settings)
    assert claims.user_id == user_id
    assert claims.issued_at == START
    assert claims.expires_at == START + settings.access_ttl


def test_access_token_expires_at_exp(settings):
    token = create_access_token(str(uuid.uuid4()), START, settings)
    with pytest.raises(ExpiredError):
        decode_access_token(token, START + settings.access_ttl, settings)


def test_access_token_with_wrong_secret_is_rejected(settings):
    other = settings.model_copy(update={"jwt_secret": "another-secret"})
    token = create_access_token(str(uuid.uuid4()), START, other)
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token, START, settings)


def test_tampered_access_token_is_rejected(settings):
    token = create_access_token(str(uuid.uuid4()), START, settings)
    header, payload, signature = token.split(".")
    forged = jwt.encode({"user_id": str(uuid.uuid4()), "iat": 0, "exp": 2**40}, "guess", algorithm="HS256")
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(f"{header}.{forged.split('.')[1]}.{signature}", START, settings)


def test_access_token_without_user_id_is_rejected(settings):
    iat = int(START.timestamp())
    token = jwt.encode({"iat": iat, "exp": iat + 60}, settings.jwt_secret, algorithm="HS256")
    with pytest.raises(InvalidCredentialsError):
        decode_access_token(token, START, settings)


def test_tokens_minted_in_the_same_second_differ(settings):
    user_id = str(uuid.uuid4())
    assert create_access_token(user_id, START, settings) != create_access_token(user_id, START, settings)

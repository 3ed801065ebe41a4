"""Unit tests for WerkzeugPasswordHasher."""

from __future__ import annotations

import pytest

from authcore.infra.security.werkzeug_password_hasher import WerkzeugPasswordHasher
from authcore.services._shared.errors import HashingError


def test_hash_is_salted_and_verifiable(hasher):
    h1 = hasher.hash("correct horse")
    h2 = hasher.hash("correct horse")

    assert h1 != h2  # fresh salt per call
    assert "correct horse" not in h1
    assert h1.startswith("pbkdf2:sha256:1000$")
    assert hasher.verify("correct horse", h1) is True
    assert hasher.verify("wrong horse", h1) is False


@pytest.mark.parametrize("stored", ["", "not-a-hash", "bogus$salt$value"])
def test_verify_treats_unusable_hash_as_mismatch(hasher, stored):
    assert hasher.verify("anything", stored) is False


def test_hash_failure_raises_hashing_error_without_password():
    hasher = WerkzeugPasswordHasher(method="no-such-method")
    with pytest.raises(HashingError) as excinfo:
        hasher.hash("s3cret-value")
    assert "s3cret-value" not in str(excinfo.value)


def test_dummy_verify_computes_one_hash(hasher):
    local = WerkzeugPasswordHasher(method=hasher.method)
    assert local.dummy_verify("whatever") is None
    first = local._dummy_hash
    local.dummy_verify("again")
    assert first is not None
    assert local._dummy_hash == first


def test_work_factor_change_keeps_old_hashes_valid():
    old = WerkzeugPasswordHasher(method="pbkdf2:sha256:1000").hash("pw-123456")
    newer = WerkzeugPasswordHasher(method="pbkdf2:sha256:2000")
    assert newer.verify("pw-123456", old) is True

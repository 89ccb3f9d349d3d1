import hashlib

import pytest

from tunnel_api.errors import OwnershipDenied, OwnershipMissing
from tunnel_api.registry.ownership import OwnershipGuard, hash_secret


def test_hash_secret_is_hex_sha512():
    expected = hashlib.sha512(b"hunter2").hexdigest()
    assert hash_secret("hunter2") == expected
    assert len(hash_secret("")) == 128


@pytest.mark.asyncio
async def test_authorize_matches_registered_secret():
    guard = OwnershipGuard()
    await guard.register("t1", "right")
    await guard.authorize("t1", "right")
    with pytest.raises(OwnershipDenied):
        await guard.authorize("t1", "wrong")
    assert await guard.has_record("t1") is True


@pytest.mark.asyncio
async def test_authorize_without_record_is_missing():
    guard = OwnershipGuard()
    with pytest.raises(OwnershipMissing):
        await guard.authorize("t1", "anything")


@pytest.mark.asyncio
async def test_revoke_is_idempotent():
    guard = OwnershipGuard()
    await guard.register("t1", "secret")
    assert await guard.revoke("t1") is True
    assert await guard.revoke("t1") is False
    with pytest.raises(OwnershipMissing):
        await guard.authorize("t1", "secret")

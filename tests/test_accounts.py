"""Account service checks that do not depend on request validation."""

import pytest

from storeratings.errors import ValidationError
from storeratings.services import accounts
from storeratings.stores.postgres import get_session

from conftest import PASSWORD, create_account


@pytest.mark.asyncio
async def test_name_length_is_checked_after_trimming(db):
    with pytest.raises(ValidationError) as exc_info:
        await create_account("Bob" + " " * 20, "bob.padded@example.com")
    assert exc_info.value.field == "name"

    user = await create_account("   Properly Long Account Name   ", "padded@example.com")
    assert user.name == "Properly Long Account Name"


@pytest.mark.asyncio
async def test_profile_name_is_trimmed_before_length_check(rater):
    async with get_session() as session:
        with pytest.raises(ValidationError):
            await accounts.update_profile(session, user_id=rater.id, name=" " * 25)

    async with get_session() as session:
        user = await accounts.update_profile(session, user_id=rater.id, name="  Renamed Rating User Alice ")
    assert user.name == "Renamed Rating User Alice"

    async with get_session() as session:
        result = await accounts.authenticate(session, email=rater.email, password=PASSWORD)
    assert result.user.name == "Renamed Rating User Alice"

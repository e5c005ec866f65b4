"""Tests for sign-in state transitions and identity listeners."""

import json

from clinic_copilot.schemas.user_schemas import VerifiedIdentity


async def test_sign_in_creates_record_and_sets_session(container, identity):
    record = await container.auth.sign_in(identity)

    assert container.session.current_user_id == record.id
    assert container.auth.user.email == "a@x.com"
    assert container.auth.is_signed_in
    assert container.health_data.user_id == record.id


async def test_sign_in_existing_user_reuses_record(container, identity):
    first = await container.auth.sign_in(identity)
    await container.auth.logout()

    second = await container.auth.sign_in(VerifiedIdentity(email="a@x.com", name="Someone Else"))

    assert second.id == first.id
    assert second.name == "Ada Lovelace"
    assert second.last_login >= first.last_login
    users = json.loads(await container.record_store.export_all())["users"]
    assert list(users) == [first.id]


async def test_sign_in_loads_health_data(container, identity):
    await container.auth.sign_in(identity)
    await container.health_data.add_sleep_entry(7)
    await container.auth.logout()

    await container.auth.sign_in(identity)

    assert container.health_data.health_data.sleep_entries[0].hours_slept == 7


async def test_logout_keeps_record_and_resets_snapshot(container, identity):
    record = await container.auth.sign_in(identity)
    await container.health_data.add_mood_entry(2)

    await container.auth.logout()

    assert container.auth.user is None
    assert container.session.current_user_id is None
    assert container.health_data.health_data.mood_entries == []
    assert (await container.record_store.get_user(record.id)).health_data.mood_entries[0].mood == 2


async def test_listeners_are_notified(container, identity):
    seen = []

    async def listener(user):
        seen.append(user.email if user else None)

    container.auth.subscribe(listener)
    await container.auth.sign_in(identity)
    await container.auth.logout()

    assert seen == ["a@x.com", None]


async def test_restore_clears_dangling_session(container, identity):
    record = await container.auth.sign_in(identity)
    container.session.set("user_gone")

    assert await container.auth.restore() is None
    assert container.session.current_user_id is None
    assert container.auth.user is None

    container.session.set(record.id)
    restored = await container.auth.restore()
    assert restored.id == record.id
    assert container.health_data.user_id == record.id


async def test_deleting_current_user_signs_out(container, identity):
    record = await container.auth.sign_in(identity)

    await container.record_store.delete_user(record.id)
    await container.auth.restore()

    assert container.auth.user is None
    assert container.health_data.user is None

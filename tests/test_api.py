"""HTTP-level tests for the API routes."""

import asyncio
import json

import openai
import httpx

from clinic_copilot.schemas.health_record import utc_today

API = "/api/v1"


async def sign_in(client):
    response = await client.post(f"{API}/auth/sign-in")
    assert response.status_code == 200
    return response.json()["user"]


async def test_root_and_liveness(client):
    assert (await client.get("/")).json()["message"] == "Clinic Copilot Backend API"
    assert (await client.get("/health")).json() == {"status": "ok"}


async def test_unknown_route_is_json_404(client):
    response = await client.get("/api/v1/nope")

    assert response.status_code == 404
    assert response.json() == {"error": "Route not found", "path": "/api/v1/nope"}


async def test_auth_flow(client):
    assert (await client.get(f"{API}/auth/me")).json() == {"signedIn": False, "user": None}

    user = await sign_in(client)
    assert user["email"] == "a@x.com"
    assert user["id"].startswith("user_a_x_com_")

    me = (await client.get(f"{API}/auth/me")).json()
    assert me["signedIn"] is True
    assert me["user"]["id"] == user["id"]

    assert (await client.post(f"{API}/auth/logout")).json()["signedIn"] is False
    assert (await client.get(f"{API}/auth/me")).json()["signedIn"] is False


async def test_health_data_defaults_when_signed_out(client):
    body = (await client.get(f"{API}/health-data")).json()

    assert body["signedIn"] is False
    assert body["healthData"]["heartRate"] == 72
    assert body["healthData"]["restingHeartRate"] == 58
    assert body["healthData"]["moodScore"] == 0


async def test_signed_out_writes_are_accepted_and_ignored(client):
    response = await client.post(f"{API}/health-data/sleep", json={"hoursSlept": 8})

    assert response.status_code == 200
    assert response.json()["signedIn"] is False
    assert response.json()["healthData"]["sleepEntries"] == []


async def test_log_mood_and_sleep(client):
    await sign_in(client)

    mood = (await client.post(f"{API}/health-data/mood", json={"mood": 2, "journalEntry": "great day"})).json()
    assert mood["healthData"]["moodEntries"][0]["emoji"] == "😄"
    assert mood["healthData"]["moodEntries"][0]["journalEntries"] == ["great day"]
    assert mood["healthData"]["moodScore"] == 4

    sleep = (await client.post(f"{API}/health-data/sleep", json={"hoursSlept": 7.5})).json()
    assert sleep["healthData"]["sleepEntries"][0]["hoursSlept"] == 7.5


async def test_invalid_entries_are_422(client):
    await sign_in(client)

    response = await client.post(f"{API}/health-data/mood", json={"mood": 5})
    assert response.status_code == 422
    assert "Mood must be one of" in response.json()["error"]

    response = await client.post(f"{API}/health-data/sleep", json={"hoursSlept": 25})
    assert response.status_code == 422

    response = await client.post(f"{API}/health-data/sleep", json={})
    assert response.status_code == 422
    assert response.json()["detail"][0]["loc"] == ["body", "hoursSlept"]


async def test_mood_average(client):
    await sign_in(client)
    for mood in (1, 1, 2):
        await client.post(f"{API}/health-data/mood", json={"mood": mood})

    body = (await client.get(f"{API}/health-data/mood/average")).json()
    assert body == {"date": utc_today().isoformat(), "average": 1}

    other = (await client.get(f"{API}/health-data/mood/average", params={"date": "2001-01-01"})).json()
    assert other["average"] == 0


async def test_heart_rate_endpoints(client):
    await sign_in(client)

    body = (await client.put(
        f"{API}/health-data/heart-rate/metrics",
        json={"currentHR": 90, "restingHR": 61, "hrv": 47.5},
    )).json()
    assert body["healthData"]["heartRate"] == 90
    assert body["healthData"]["restingHeartRate"] == 61

    body = (await client.post(
        f"{API}/health-data/heart-rate",
        json={"restingHR": 59, "hrv": 44, "caloriesBurned": 2000},
    )).json()
    assert body["healthData"]["heartRateEntries"][0]["restingHR"] == 59
    assert body["healthData"]["heartRateEntries"][0]["kind"] == "heart_rate"


async def test_patch_health_data_and_refresh(client, container):
    await sign_in(client)

    body = (await client.patch(f"{API}/health-data", json={"caloriesBurned": 2500})).json()
    assert body["healthData"]["caloriesBurned"] == 2500

    # drift the in-memory copy, then reload from storage
    container.health_data.health_data = container.health_data.health_data.model_copy(
        update={"calories_burned": 1}
    )
    assert (await client.get(f"{API}/health-data")).json()["healthData"]["caloriesBurned"] == 1
    refreshed = (await client.get(f"{API}/health-data", params={"refresh": "true"})).json()
    assert refreshed["healthData"]["caloriesBurned"] == 2500


async def test_medication_crud(client):
    await sign_in(client)

    body = (await client.post(
        f"{API}/health-data/medications",
        json={"name": "Aspirin", "dosage": "81mg", "frequency": "daily", "timesTaken": ["08:00"]},
    )).json()
    med = body["healthData"]["medications"][0]
    assert med["color"] == "bg-blue-500"

    body = (await client.patch(f"{API}/health-data/medications/{med['id']}", json={"dosage": "100mg"})).json()
    assert body["healthData"]["medications"][0]["dosage"] == "100mg"

    missing = await client.patch(f"{API}/health-data/medications/nope", json={"dosage": "1mg"})
    assert missing.status_code == 404
    assert missing.json() == {"error": "Medication not found"}

    body = (await client.delete(f"{API}/health-data/medications/{med['id']}")).json()
    assert body["healthData"]["medications"] == []


async def test_chat_summaries_endpoint(client):
    await sign_in(client)

    body = (await client.post(
        f"{API}/health-data/chat-summaries",
        json={"summary": "Talked about sleep", "keyFindings": ["tired"], "recommendations": ["rest"]},
    )).json()

    assert body["healthData"]["chatHistory"][0]["summary"] == "Talked about sleep"


async def test_history(client):
    await sign_in(client)
    await client.post(f"{API}/health-data/mood", json={"mood": 1})
    await client.post(f"{API}/health-data/sleep", json={"hoursSlept": 8})

    days = (await client.get(f"{API}/health-data/history")).json()

    assert len(days) == 1
    assert days[0]["date"] == utc_today().isoformat()
    assert [e["kind"] for e in days[0]["entries"]] == ["mood", "sleep"]
    assert list(days[0]["moodsByEmoji"]) == ["😊"]
    assert "Sleep: 8 hours." in days[0]["prompt"]


async def test_user_profile_update_and_delete(client):
    user = await sign_in(client)

    assert (await client.get(f"{API}/user/me")).json()["id"] == user["id"]

    updated = (await client.patch(
        f"{API}/user/me",
        json={"name": "Ada L.", "preferences": {"theme": "dark"}},
    )).json()
    assert updated["name"] == "Ada L."
    assert updated["preferences"] == {"theme": "dark", "notifications": True, "privacyLevel": "private"}
    assert (await client.get(f"{API}/auth/me")).json()["user"]["name"] == "Ada L."

    deleted = await client.delete(f"{API}/user/me")
    assert deleted.json()["signedIn"] is False
    assert (await client.get(f"{API}/user/me")).status_code == 401


async def test_user_routes_require_sign_in(client):
    response = await client.get(f"{API}/user/me")

    assert response.status_code == 401
    assert response.json() == {"error": "User not authenticated"}


async def test_backup_export_import_clear(client, container):
    await sign_in(client)
    await client.post(f"{API}/health-data/sleep", json={"hoursSlept": 6})

    exported = await client.get(f"{API}/backup/export")
    assert exported.headers["content-disposition"].startswith("attachment")
    blob = exported.text
    assert json.loads(blob)["version"] == 2

    cleared = await client.delete(f"{API}/backup")
    assert cleared.json() == {"success": True}
    assert (await client.get(f"{API}/auth/me")).json()["signedIn"] is False

    text_plain = {"Content-Type": "text/plain"}
    signed_out = await client.post(f"{API}/backup/import", content=blob, headers=text_plain)
    assert signed_out.status_code == 401

    await sign_in(client)
    bad = await client.post(f"{API}/backup/import", content="nope", headers=text_plain)
    assert bad.json() == {"success": False, "userCount": 0}

    restored = await client.post(f"{API}/backup/import", content=blob, headers=text_plain)
    assert restored.json() == {"success": True, "userCount": 1}
    assert await container.record_store.export_all() == blob
    # the record created by the second sign-in is not in the backup
    assert (await client.get(f"{API}/auth/me")).json()["signedIn"] is False


async def test_chat_requires_sign_in(client):
    response = await client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})

    assert response.status_code == 401


async def test_chat_uses_snapshot_when_health_data_omitted(client, llm_client):
    await sign_in(client)
    await client.post(f"{API}/health-data/sleep", json={"hoursSlept": 5})

    response = await client.post(
        "/api/chat",
        json={"messages": [{"role": "user", "content": "hi"}], "isFirstMessage": True},
    )

    assert response.json() == {"response": "Hello there!"}
    system = llm_client.chat.completions.create.await_args.kwargs["messages"][0]["content"]
    assert "Recent Sleep Hours: 5 hours" in system


async def test_chat_quota_error_is_402(client, llm_client):
    await sign_in(client)
    llm_client.chat.completions.create.side_effect = openai.APIStatusError(
        "no credits",
        response=httpx.Response(402, request=httpx.Request("POST", "https://openrouter.ai/api/v1")),
        body=None,
    )

    response = await client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})

    assert response.status_code == 402
    assert "Insufficient API credits" in response.json()["error"]


async def test_chat_without_api_key_is_500(client, container):
    await sign_in(client)
    container.assistant.api_key = None

    response = await client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})

    assert response.status_code == 500
    assert response.json()["error"].startswith("OpenRouter API key not configured")


async def test_duplicate_chat_request_is_409(client, llm_client, make_completion):
    await sign_in(client)
    release = asyncio.Event()

    async def slow_reply(**kwargs):
        await release.wait()
        return make_completion("done")

    llm_client.chat.completions.create.side_effect = slow_reply
    payload = {"messages": [{"role": "user", "content": "hi"}]}

    first = asyncio.create_task(client.post("/api/chat", json=payload))
    await asyncio.sleep(0.05)
    second = await client.post("/api/chat", json=payload)
    release.set()

    assert second.status_code == 409
    assert (await first).json() == {"response": "done"}


async def test_chat_summary_route(client, llm_client, make_completion):
    await sign_in(client)
    llm_client.chat.completions.create.return_value = make_completion("not json")

    response = await client.post("/api/chat-summary", json={"conversation": "Patient: hi"})

    assert response.json()["summary"] == "Chat session completed with health discussion"
    assert response.json()["keyFindings"] == ["Health metrics reviewed", "Patient concerns addressed"]


async def test_finish_chat_saves_summary(client, llm_client, make_completion):
    await sign_in(client)
    llm_client.chat.completions.create.return_value = make_completion(
        '{"summary": "Headache chat", "keyFindings": ["headache"], "recommendations": ["hydrate"]}'
    )
    transcript = [
        {"content": "Hello! How can I help?", "isUser": False},
        {"content": "I have a headache", "isUser": True},
        {"content": "Drink some water.", "isUser": False},
    ]

    body = (await client.post("/api/v1/chat/finish", json={"messages": transcript})).json()

    assert body["saved"] is True
    assert body["summary"]["summary"] == "Headache chat"
    sent = llm_client.chat.completions.create.await_args.kwargs["messages"][1]["content"]
    assert "Patient: I have a headache\nAI: Drink some water." in sent
    history = (await client.get(f"{API}/health-data")).json()["healthData"]["chatHistory"]
    assert history[0]["summary"] == "Headache chat"


async def test_finish_chat_without_exchange_is_not_saved(client, llm_client):
    await sign_in(client)

    body = (await client.post(
        "/api/v1/chat/finish",
        json={"messages": [{"content": "Hello!", "isUser": False}, {"content": "hi", "isUser": True}]},
    )).json()

    assert body == {"saved": False, "summary": None}
    llm_client.chat.completions.create.assert_not_awaited()


async def test_requests_without_token_are_refused(client, anonymous_client, container):
    await sign_in(client)
    await client.post(f"{API}/health-data/mood", json={"mood": 1, "journalEntry": "private"})

    for method, path in [
        ("GET", f"{API}/health-data"),
        ("POST", f"{API}/health-data/sleep"),
        ("GET", f"{API}/user/me"),
        ("GET", f"{API}/auth/me"),
        ("GET", f"{API}/backup/export"),
        ("DELETE", f"{API}/backup"),
        ("POST", "/api/chat"),
    ]:
        response = await anonymous_client.request(method, path, json={"hoursSlept": 8})
        assert response.status_code == 401, path
        assert "private" not in response.text

    moods = (await client.get(f"{API}/health-data")).json()["healthData"]["moodEntries"]
    assert moods[0]["journalEntries"] == ["private"]
    assert container.health_data.health_data.sleep_entries == []


async def test_token_for_another_user_is_refused(client, other_client):
    await sign_in(client)

    assert (await other_client.get(f"{API}/health-data")).status_code == 401
    assert (await other_client.patch(f"{API}/user/me", json={"name": "Mallory"})).status_code == 401
    assert (await other_client.get(f"{API}/backup/export")).status_code == 401
    assert (await other_client.post(f"{API}/auth/logout")).status_code == 401

    assert (await client.get(f"{API}/auth/me")).json()["user"]["name"] == "Ada Lovelace"


async def test_backup_requires_someone_signed_in(client):
    assert (await client.get(f"{API}/backup/export")).status_code == 401
    assert (await client.delete(f"{API}/backup")).status_code == 401


async def test_public_routes_need_no_token(anonymous_client):
    assert (await anonymous_client.get("/health")).status_code == 200
    assert (await anonymous_client.post(f"{API}/auth/sign-in")).status_code == 401


async def test_null_name_is_rejected(client):
    await sign_in(client)

    response = await client.patch(f"{API}/user/me", json={"name": None})

    assert response.status_code == 422
    assert (await client.get(f"{API}/user/me")).json()["name"] == "Ada Lovelace"


async def test_null_picture_clears_it(client):
    await sign_in(client)

    response = await client.patch(f"{API}/user/me", json={"picture": None})

    assert response.status_code == 200
    assert response.json()["picture"] is None

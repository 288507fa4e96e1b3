"""
End-to-end API tests for the wizard, module and report endpoints.

Tests the full HTTP stack: request → schema validation → business-rule validation
→ scoring / calculators → session cache → HTTP response.

Redis is the dict-backed FakeRedis and the leads table is patched out (see
conftest.py), so no docker services are needed:
    pytest finanznavigator/tests/test_api.py -v
"""
from __future__ import annotations

import pytest
from httpx import AsyncClient

from finanznavigator.cache import make_session_key
from finanznavigator.profile.service import finish_intake
from finanznavigator.tests.demo_profiles import DEMO_PROFILES, build_profile

_LEAD = {"name": "Anna Muster", "email": "anna@example.com", "phone": "", "consent": True}


async def _create(client: AsyncClient) -> str:
    response = await client.post("/api/profile")
    assert response.status_code == 201, response.text
    return response.json()["meta"]["session_id"]


async def _fill(client: AsyncClient, session_id: str, name: str) -> None:
    for section, updates in DEMO_PROFILES[name]["sections"].items():
        response = await client.patch(f"/api/profile/{session_id}/{section}", json=updates)
        assert response.status_code == 200, f"{section}: {response.text}"


async def _finished(client: AsyncClient, name: str = "anna") -> str:
    session_id = await _create(client)
    await _fill(client, session_id, name)
    response = await client.post(f"/api/profile/{session_id}/complete")
    assert response.status_code == 200, response.text
    return session_id


# ---------------------------------------------------------------------------
# Test Group 1: Health and profile lifecycle
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_create_profile_caches_without_persisting(client, fake_redis, store_mocks) -> None:
    session_id = await _create(client)
    assert make_session_key(session_id) in fake_redis.store
    assert fake_redis.ttls[make_session_key(session_id)] == 86400
    store_mocks["upsert_lead"].assert_not_awaited()


@pytest.mark.asyncio
async def test_get_profile(client: AsyncClient) -> None:
    session_id = await _create(client)
    response = await client.get(f"/api/profile/{session_id}")
    assert response.status_code == 200
    assert response.json()["meta"]["is_finished"] is False


@pytest.mark.asyncio
async def test_patch_section_merges(client: AsyncClient) -> None:
    session_id = await _create(client)
    await client.patch(f"/api/profile/{session_id}/basic", json={"age": 42})
    response = await client.patch(f"/api/profile/{session_id}/basic", json={"household_type": "family"})
    body = response.json()
    assert body["basic"]["age"] == 42
    assert body["basic"]["household_type"] == "family"


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["anna", "markus", "lena"])
async def test_complete_demo_profiles(client: AsyncClient, store_mocks, name: str) -> None:
    expected = DEMO_PROFILES[name]["expected"]
    session_id = await _create(client)
    await _fill(client, session_id, name)

    response = await client.post(f"/api/profile/{session_id}/complete")
    assert response.status_code == 200, response.text
    body = response.json()

    assert body["meta"]["is_finished"] is True
    for domain in ("liquidity", "wealth", "protection", "retirement", "debt", "overall"):
        assert body["scores"][domain] == expected[domain], (
            f"{name}: {domain} expected {expected[domain]}, got {body['scores'][domain]}"
        )
    assert body["recommended_modules"] == expected["recommended_modules"]
    store_mocks["upsert_lead"].assert_awaited()


@pytest.mark.asyncio
async def test_patch_after_finish_rescores(client: AsyncClient) -> None:
    session_id = await _finished(client, "anna")
    response = await client.patch(
        f"/api/profile/{session_id}/protection", json={"private_pension": "yes"}
    )
    assert response.json()["scores"]["retirement"] == 80


@pytest.mark.asyncio
async def test_cashflow_edit_after_finish_rescores_wealth(client: AsyncClient) -> None:
    session_id = await _finished(client, "anna")
    response = await client.patch(
        f"/api/profile/{session_id}/cashflow", json={"net_income_monthly": 1000}
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["cashflow"]["free_cash_monthly"] == pytest.approx(-500)
    assert body["scores"]["wealth"] == 20


@pytest.mark.asyncio
async def test_free_cash_patch_is_rejected(client: AsyncClient) -> None:
    session_id = await _create(client)
    response = await client.patch(
        f"/api/profile/{session_id}/cashflow", json={"free_cash_monthly": 500}
    )
    assert response.status_code == 422
    assert response.json()["error"]["details"][0]["field"] == "cashflow.free_cash_monthly"


@pytest.mark.asyncio
async def test_reset_issues_new_session(client: AsyncClient, fake_redis) -> None:
    session_id = await _finished(client)
    response = await client.post(f"/api/profile/{session_id}/reset")
    assert response.status_code == 201
    new_id = response.json()["meta"]["session_id"]
    assert new_id != session_id
    assert make_session_key(session_id) not in fake_redis.store
    assert make_session_key(new_id) in fake_redis.store


@pytest.mark.asyncio
async def test_session_restored_from_leads_table(client, fake_redis, store_mocks) -> None:
    profile = finish_intake(build_profile("markus"))
    store_mocks["get_lead_profile"].return_value = profile

    response = await client.get(f"/api/profile/{profile.meta.session_id}")
    assert response.status_code == 200
    assert response.json()["scores"]["overall"] == 87
    assert make_session_key(profile.meta.session_id) in fake_redis.store


# ---------------------------------------------------------------------------
# Test Group 2: Error envelope
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_unknown_session_is_404(client: AsyncClient) -> None:
    response = await client.get("/api/profile/does-not-exist")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_wrong_method_is_405_envelope(client: AsyncClient) -> None:
    response = await client.delete("/api/profile")
    assert response.status_code == 405
    assert response.json() == {
        "error": {"code": "METHOD_NOT_ALLOWED", "message": "Method Not Allowed", "details": []}
    }


@pytest.mark.asyncio
async def test_locked_report_envelope_has_no_details(client: AsyncClient) -> None:
    session_id = await _finished(client)
    error = (await client.get(f"/api/report/{session_id}")).json()["error"]
    assert error["code"] == "FORBIDDEN"
    assert error["message"]
    assert error["details"] == []


@pytest.mark.asyncio
async def test_unknown_section_is_404(client: AsyncClient) -> None:
    session_id = await _create(client)
    response = await client.patch(f"/api/profile/{session_id}/scores", json={"overall": 100})
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_patch_invalid_value_is_422_with_section_prefix(client: AsyncClient) -> None:
    session_id = await _create(client)
    response = await client.patch(f"/api/profile/{session_id}/basic", json={"age": -5})
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"][0]["field"] == "basic.age"


@pytest.mark.asyncio
async def test_complete_empty_intake_lists_all_violations(client: AsyncClient) -> None:
    session_id = await _create(client)
    response = await client.post(f"/api/profile/{session_id}/complete")
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["message"] == "Intake validation failed"
    assert len(error["details"]) == 3


@pytest.mark.asyncio
async def test_invalid_lead_is_422(client: AsyncClient, store_mocks) -> None:
    session_id = await _finished(client)
    store_mocks["upsert_lead"].reset_mock()
    response = await client.put(
        f"/api/profile/{session_id}/lead",
        json={"name": "", "email": "nope", "consent": False},
    )
    assert response.status_code == 422
    fields = {d["field"] for d in response.json()["error"]["details"]}
    assert fields == {"name", "email", "consent"}
    store_mocks["upsert_lead"].assert_not_awaited()


@pytest.mark.asyncio
async def test_unknown_module_is_422(client: AsyncClient) -> None:
    session_id = await _create(client)
    response = await client.get(f"/api/modules/insurance/{session_id}/defaults")
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


# ---------------------------------------------------------------------------
# Test Group 3: Modules
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_module_defaults_prefilled(client: AsyncClient) -> None:
    session_id = await _finished(client, "anna")
    response = await client.get(f"/api/modules/pension/{session_id}/defaults")
    assert response.status_code == 200
    body = response.json()
    assert body["age"] == 35
    assert body["desired_pension_monthly"] == 2100


@pytest.mark.asyncio
async def test_run_pension_module(client: AsyncClient) -> None:
    session_id = await _finished(client, "anna")
    response = await client.post(
        f"/api/modules/pension/{session_id}",
        json={"age": 35, "net_income_monthly": 3000, "desired_pension_monthly": 2100},
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["result"]["assessment"] == "yellow"
    assert body["scores"]["retirement"] == 60
    assert body["scores"]["overall"] == 61
    assert body["recommended_modules"] == ["pension", "risk"]

    stored = (await client.get(f"/api/profile/{session_id}")).json()
    assert stored["module_results"]["pension"]["gap_monthly"] == pytest.approx(300)


@pytest.mark.asyncio
async def test_run_module_business_rule_violation(client: AsyncClient) -> None:
    session_id = await _finished(client)
    response = await client.post(
        f"/api/modules/financing/{session_id}", json={"term_years": 40}
    )
    assert response.status_code == 422
    assert response.json()["error"]["details"][0]["field"] == "term_years"


@pytest.mark.asyncio
async def test_run_module_structural_violation(client: AsyncClient) -> None:
    session_id = await _finished(client)
    response = await client.post(f"/api/modules/risk/{session_id}", json={"shock_months": 4})
    assert response.status_code == 422
    assert response.json()["error"]["details"][0]["field"] == "shock_months"


# ---------------------------------------------------------------------------
# Test Group 4: Lead capture, report and PDF export
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_report_locked_before_lead(client: AsyncClient) -> None:
    session_id = await _finished(client)
    response = await client.get(f"/api/report/{session_id}")
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"
    assert (await client.get(f"/api/export/{session_id}")).status_code == 403


@pytest.mark.asyncio
async def test_lead_unlocks_report(client: AsyncClient, store_mocks) -> None:
    session_id = await _finished(client, "anna")
    store_mocks["upsert_lead"].reset_mock()

    response = await client.put(f"/api/profile/{session_id}/lead", json=_LEAD)
    assert response.status_code == 200, response.text
    assert response.json()["lead"]["email"] == "anna@example.com"
    store_mocks["upsert_lead"].assert_awaited_once()

    report = await client.get(f"/api/report/{session_id}")
    assert report.status_code == 200
    body = report.json()
    assert body["scores"]["overall"] == 51
    assert [a["id"] for a in body["action_areas"]] == ["retirement", "liquidity", "protection"]
    assert [r["module"] for r in body["recommendations"]] == ["pension", "risk"]


@pytest.mark.asyncio
async def test_export_pdf(client: AsyncClient) -> None:
    session_id = await _finished(client, "markus")
    await client.post(
        f"/api/modules/financing/{session_id}",
        json={"purchase_price": 300000, "equity": 60000, "net_income_monthly": 5000},
    )
    await client.put(f"/api/profile/{session_id}/lead", json=_LEAD)

    response = await client.get(f"/api/export/{session_id}")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert f"finanznavigator_report_{session_id[:8]}.pdf" in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")

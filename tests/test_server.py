"""Tests for the FastAPI server."""

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

import eduia_session.server as srv
from eduia_session.orchestrator import OrchestratorState
from eduia_session.result import GenerationResult
from eduia_session.server import app


@pytest.fixture(autouse=True)
def install_context(app_context):
    """Serve the test context instead of the on-disk one."""
    srv._context = app_context
    yield
    srv._context = None


async def _get(path, **params):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get(path, params=params)


async def _post(path, json=None):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.post(path, json=json)


@pytest.mark.asyncio
async def test_get_state(app_context):
    resp = await _get("/api/state")
    assert resp.status_code == 200
    data = resp.json()
    assert data["balance"] == 250
    assert data["cost"] == 75
    assert data["generations_remaining"] == 3
    assert data["low_balance"] is False
    assert data["progress"] == 50.0
    assert data["user_id"] == app_context.identity.identity.user_id
    assert data["session_id"] == app_context.session.session_id
    assert data["state"] == "idle"
    assert data["messages"] == []
    assert data["notice"] is None
    assert data["recent"] == []


@pytest.mark.asyncio
async def test_state_with_samples():
    data = (await _get("/api/state", samples="true")).json()
    assert len(data["recent"]) == 5
    assert "messages" not in data["recent"][0]


@pytest.mark.asyncio
async def test_send_message(app_context, success_with_files):
    app_context.orchestrator.provider.results.append(success_with_files)

    resp = await _post("/api/messages", {"text": "Trabalho tecnico sobre redes"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["balance"] == 175
    assert data["notice"] == {"kind": "success", "text": "Conteudo gerado com sucesso!", "transient": True}
    user, reply = data["messages"]
    assert user["role"] == "user"
    assert reply["artifactFiles"] == [{"file_url": "https://files.example/trabalho.docx"}]
    assert data["entry"]["level"] == "Tecnico"
    assert data["entry"]["pointCost"] == 75

    state = (await _get("/api/state")).json()
    assert len(state["messages"]) == 2
    assert state["recent"][0]["id"] == data["entry"]["id"]


@pytest.mark.asyncio
async def test_send_failure_is_502(app_context):
    app_context.orchestrator.provider.results.append(GenerationResult.failed("Agente sobrecarregado"))
    resp = await _post("/api/messages", {"text": "Tema"})
    assert resp.status_code == 502
    assert resp.json()["detail"] == "Agente sobrecarregado"
    assert app_context.ledger.balance == 250


@pytest.mark.asyncio
async def test_send_transport_error_is_502(app_context):
    app_context.orchestrator.provider.results.append(httpx.ConnectError("refused"))
    resp = await _post("/api/messages", {"text": "Tema"})
    assert resp.status_code == 502
    assert resp.json()["detail"].startswith("Erro de conexao")


@pytest.mark.asyncio
async def test_send_insufficient_balance_is_402(app_context):
    app_context.ledger.reset(10)
    resp = await _post("/api/messages", {"text": "Tema"})
    assert resp.status_code == 402
    assert app_context.orchestrator.provider.calls == []


@pytest.mark.asyncio
async def test_send_empty_is_422():
    assert (await _post("/api/messages", {"text": "   "})).status_code == 422
    assert (await _post("/api/messages", {})).status_code == 422


@pytest.mark.asyncio
async def test_send_while_busy_is_409(app_context):
    app_context.orchestrator.state = OrchestratorState.SENDING
    resp = await _post("/api/messages", {"text": "Tema"})
    assert resp.status_code == 409
    assert len(app_context.session) == 0


@pytest.mark.asyncio
async def test_new_work(app_context):
    await _post("/api/messages", {"text": "Tema"})
    old_session = app_context.session.session_id

    resp = await _post("/api/work")

    assert resp.status_code == 200
    data = resp.json()
    assert data["session_id"] != old_session
    assert data["messages"] == []
    assert len(app_context.archive) == 1


@pytest.mark.asyncio
async def test_new_work_while_busy_is_409(app_context):
    app_context.orchestrator.state = OrchestratorState.SENDING
    assert (await _post("/api/work")).status_code == 409


@pytest.mark.asyncio
async def test_history_filters():
    for text in ("Slides sobre fotossintese", "Trabalho tecnico sobre redes"):
        await _post("/api/work")
        await _post("/api/messages", {"text": text})

    data = (await _get("/api/history")).json()
    assert data["total"] == 2
    assert data["entries"][0]["topic"] == "Trabalho tecnico sobre redes"

    data = (await _get("/api/history", search="FOTOSSINTESE")).json()
    assert [e["topic"] for e in data["entries"]] == ["Slides sobre fotossintese"]

    data = (await _get("/api/history", format="slides")).json()
    assert data["total"] == 1

    data = (await _get("/api/history", level="Tecnico", format="slides")).json()
    assert data["total"] == 0


@pytest.mark.asyncio
async def test_history_pagination():
    for i in range(3):
        await _post("/api/work")
        await _post("/api/messages", {"text": f"Tema {i}"})
    data = (await _get("/api/history", limit=1, offset=1)).json()
    assert data["total"] == 3
    assert [e["topic"] for e in data["entries"]] == ["Tema 1"]


@pytest.mark.asyncio
async def test_history_samples_only_when_requested():
    assert (await _get("/api/history")).json()["total"] == 0
    assert (await _get("/api/history", samples="true")).json()["total"] == 5


@pytest.mark.asyncio
async def test_get_entry():
    sent = (await _post("/api/messages", {"text": "Tema"})).json()
    entry_id = sent["entry"]["id"]

    resp = await _get(f"/api/history/{entry_id}")
    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == entry_id
    assert [m["role"] for m in data["messages"]] == ["user", "assistant"]


@pytest.mark.asyncio
async def test_get_entry_not_found():
    assert (await _get("/api/history/nope")).status_code == 404
    assert (await _get("/api/history/sample-1")).status_code == 404
    assert (await _get("/api/history/sample-1", samples="true")).status_code == 200


@pytest.mark.asyncio
async def test_get_plans():
    plans = (await _get("/api/plans")).json()
    assert [p["key"] for p in plans] == ["basico", "popular", "premium"]
    popular = plans[1]
    assert popular["points"] == 2500
    assert popular["price"] == "R$10"
    assert popular["best_value"] is True
    assert popular["works"] == 33


@pytest.mark.asyncio
async def test_purchase(app_context):
    resp = await _post("/api/purchase/popular")
    assert resp.status_code == 200
    data = resp.json()
    assert data["balance"] == 2750
    assert data["notice"]["text"] == "2.500 pontos adicionados com sucesso!"
    assert app_context.ledger.balance == 2750


@pytest.mark.asyncio
async def test_purchase_unknown_plan():
    assert (await _post("/api/purchase/gold")).status_code == 404

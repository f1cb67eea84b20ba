"""End-to-end tests of the HTTP API and the HTML pages via TestClient."""

import threading

import pytest

from fifa_penalty.config import settings
from fifa_penalty.core.errors import LiveFeedError
from fifa_penalty.services import live_feed, telegram_client
from tests.fixtures.sample_feed import no_keyword_payload


PICKS = [
    {"matchId": "1000", "teamHome": "Home 0", "teamAway": "Away 0", "bet": "Más de 2.5 goles", "odd": 1.55, "confidence": 64},
    {"matchId": "1001", "teamHome": "Home 1", "teamAway": "Away 1", "bet": "X - Empate", "odd": 1.6, "confidence": 58},
]


class FakeResponse:
    status_code = 200
    ok = True

    def json(self):
        return {"ok": True, "result": {}}


@pytest.fixture
def broken_feed(monkeypatch):
    def fail(use_cache=True):
        raise LiveFeedError("Error al consultar el feed: timeout")

    monkeypatch.setattr(live_feed, "fetch_live_feed", fail)


class TestHealth:
    def test_health(self, client):
        body = client.get("/api/health").json()

        assert body["success"] is True
        assert body["status"] == "ok"
        assert body["llmProvider"] == "local"
        assert body["telegramConfigured"] is False

    def test_structure(self, client):
        body = client.get("/api/structure").json()

        assert body["topLevelKeys"] == ["Success", "Error", "Value"]
        assert body["shapes"]["firstEvent"]["type"] == "object"
        assert body["notes"]["listField"] == "Value"


class TestMatches:
    def test_keyword_filter(self, client):
        body = client.get("/api/matches").json()

        assert body["success"] is True
        assert body["filterMode"] == "keyword-penalty"
        assert body["totalFromApi"] == 8
        assert body["totalSport"] == 7
        assert body["totalPenalty"] == 7
        first = next(m for m in body["matches"] if m["id"] == "1000")
        assert first["teamHome"] == "Home 0"
        assert first["odds1x2"] == {"home": 1.95, "draw": 3.4, "away": 2.6}

    def test_group_fallback(self, client, monkeypatch):
        monkeypatch.setattr(live_feed, "fetch_live_feed", lambda use_cache=True: no_keyword_payload())
        body = client.get("/api/matches").json()

        assert body["filterMode"] == f"group-fallback-gr-{settings.fallback_group_id}"
        assert body["totalPenalty"] == 0
        assert {m["id"] for m in body["matches"]} == {"5000", "5001"}

    def test_feed_error(self, client, broken_feed):
        resp = client.get("/api/matches")

        assert resp.status_code == 500
        assert resp.json()["success"] is False
        assert "timeout" in resp.json()["error"]

    def test_details(self, client):
        body = client.get("/api/matches/1000/details").json()

        assert body["match"]["id"] == "1000"
        assert len(body["bettingMarkets"]) == 7
        assert set(body["prediction"]["bots"]) == {"unified", "contextual", "probabilities", "value", "statistics"}
        assert body["prediction"]["master"]["decision"]["action"]
        assert len(body["prediction"]["analysis"]["top3"]) <= 3
        probs = body["impliedProbabilities"]
        assert probs["home"] + probs["draw"] + probs["away"] == pytest.approx(100, abs=0.2)

    def test_unknown_match(self, client):
        resp = client.get("/api/matches/999999/details")

        assert resp.status_code == 404
        body = resp.json()
        assert body["success"] is False
        assert body["message"] == "Partido no encontrado."
        assert "999999" in body["error"]

    def test_leagues(self, client):
        assert client.get("/api/leagues").json()["leagues"] == [
            "FIFA Penalty - Champions",
            "FIFA Penalty - Liga Europea",
        ]

    def test_slow_feed_does_not_block_other_requests(self, client, monkeypatch, payload):
        started = threading.Event()
        release = threading.Event()

        def slow_fetch(use_cache=True):
            started.set()
            release.wait(timeout=5)
            return payload

        monkeypatch.setattr(live_feed, "fetch_live_feed", slow_fetch)
        results = {}
        worker = threading.Thread(target=lambda: results.update(matches=client.get("/api/matches")))
        worker.start()
        try:
            assert started.wait(timeout=5)
            health = client.get("/api/health")

            assert health.status_code == 200
            assert worker.is_alive()
        finally:
            release.set()
            worker.join(timeout=5)

        assert results["matches"].status_code == 200


class TestCoupon:
    def test_generate_safe_coupon(self, client):
        body = client.get("/api/coupon", params={"size": 2, "risk": "safe"}).json()

        assert body["riskProfile"] == "safe"
        assert body["requestedMatches"] == 2
        assert len(body["coupon"]) == 2
        for pick in body["coupon"]:
            assert 1.2 <= pick["odd"] <= 1.7
            assert pick["matchId"] != "2000"
        odds = [p["odd"] for p in body["coupon"]]
        assert body["summary"]["combinedOdd"] == round(odds[0] * odds[1], 3)
        assert body["warning"]

    def test_generate_with_feed_error(self, client, broken_feed):
        assert client.get("/api/coupon").status_code == 500

    def test_validate_empty(self, client):
        resp = client.post("/api/coupon/validate", json={"selections": []})

        assert resp.status_code == 400
        assert resp.json()["message"] == "Ticket inválido."

    def test_validate_started_match(self, client, feed):
        resp = client.post(
            "/api/coupon/validate",
            json={"selections": [{"matchId": "2000", "bet": "Más de 2.5 goles", "odd": 1.55}]},
        )
        body = resp.json()

        assert resp.status_code == 200
        assert body["status"] == "TICKET_A_CORREGIR"
        assert "MATCH_ALREADY_STARTED" in body["validatedSelections"][0]["reasonCodes"]
        assert False in feed

    @pytest.mark.parametrize("path", ["/api/coupon/pdf", "/api/pdf/coupon", "/api/download/coupon"])
    def test_pdf(self, client, path):
        resp = client.post(path, json={"coupon": PICKS, "riskProfile": "safe"})

        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert "attachment" in resp.headers["content-disposition"]
        assert resp.content.startswith(b"%PDF")

    def test_pdf_empty_coupon(self, client):
        resp = client.post("/api/coupon/pdf", json={"coupon": []})
        assert resp.status_code == 400

    def test_image_png(self, client):
        resp = client.post("/api/coupon/image", json={"coupon": PICKS})

        assert resp.headers["content-type"] == "image/png"
        assert resp.content.startswith(b"\x89PNG")

    def test_image_svg(self, client):
        resp = client.post("/api/coupon/image", json={"coupon": PICKS, "format": "svg"})

        assert resp.headers["content-type"].startswith("image/svg+xml")
        assert resp.text.startswith("<svg")

    def test_image_bad_format(self, client):
        resp = client.post("/api/coupon/image", json={"coupon": PICKS, "format": "gif"})

        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_telegram_not_configured(self, client):
        resp = client.post("/api/coupon/send-telegram", json={"coupon": PICKS})

        assert resp.status_code == 500
        assert "Telegram" in resp.json()["error"]

    def test_telegram_sent(self, client, monkeypatch):
        monkeypatch.setattr(settings, "telegram_bot_token", "123:abc")
        monkeypatch.setattr(settings, "telegram_chat_id", "42")
        methods = []

        def fake_post(url, **kwargs):
            methods.append(url.rsplit("/", 1)[-1])
            return FakeResponse()

        monkeypatch.setattr(telegram_client.requests, "post", fake_post)
        resp = client.post(
            "/api/coupon/send-telegram",
            json={"coupon": PICKS, "sendImage": True, "sendPdf": True},
        )

        assert resp.status_code == 200
        assert resp.json()["sent"] == ["text", "image", "pdf"]
        assert methods == ["sendMessage", "sendPhoto", "sendDocument"]


class TestChat:
    def test_rate_limit(self, client, no_llm):
        for _ in range(10):
            resp = client.post("/api/chat", json={"message": "hola"})
            assert resp.status_code == 200
            assert resp.json()["provider"] == "local"

        resp = client.post("/api/chat", json={"message": "hola"})
        assert resp.status_code == 429
        assert resp.json()["success"] is False

    def test_rate_limit_is_per_client(self, client, no_llm, monkeypatch):
        monkeypatch.setattr(settings, "trust_forwarded_for", True)
        for _ in range(10):
            client.post("/api/chat", json={"message": "hola"}, headers={"X-Forwarded-For": "1.1.1.1"})

        resp = client.post("/api/chat", json={"message": "hola"}, headers={"X-Forwarded-For": "2.2.2.2"})
        assert resp.status_code == 200

    def test_forwarded_header_ignored_by_default(self, client, no_llm):
        for i in range(10):
            headers = {"X-Forwarded-For": f"10.0.0.{i}"}
            assert client.post("/api/chat", json={"message": "hola"}, headers=headers).status_code == 200

        resp = client.post("/api/chat", json={"message": "hola"}, headers={"X-Forwarded-For": "10.0.0.99"})
        assert resp.status_code == 429
        assert len(client.app.state.chat_limiter) == 1

    def test_actions(self, client, no_llm):
        body = client.post(
            "/api/chat",
            json={"message": "cupón de 3 partidos seguro", "context": {"page": "/"}, "history": []},
        ).json()

        assert {"type": "open_page", "target": "/coupon"} in body["actions"]

    def test_empty_message(self, client, no_llm):
        assert client.post("/api/chat", json={"message": "   "}).status_code == 400

    def test_invalid_body(self, client):
        resp = client.post("/api/chat", json={})

        assert resp.status_code == 422
        assert resp.json()["success"] is False
        assert resp.json()["message"] == "Petición inválida."


class TestPatterns:
    RECORDS = [
        {"date": "2025-01-10", "league": "FC25 5x5 Rush", "home": "A", "away": "B", "score": "2-1",
         "option": "Handicap 1 (-1.5)", "odds": 2.3, "stake": 10, "issue": "win"},
        {"date": "2025-01-11", "league": "FC25 5x5 Rush", "home": "A", "away": "B", "score": "0-1",
         "option": "Handicap 1 (-1.5)", "odds": 2.3, "stake": 10, "issue": "loss"},
    ]

    def test_report(self, client):
        body = client.post("/api/patterns/report", json={"records": self.RECORDS}).json()

        assert body["success"] is True
        assert body["report"]["meta"]["totalRecordsDedup"] == 2
        assert body["report"]["meta"]["profit"] == pytest.approx(3.0)

    def test_decide_locked(self, client):
        body = client.post(
            "/api/patterns/decide",
            json={"records": self.RECORDS, "candidates": [self.RECORDS[0]]},
        ).json()

        assert body["decisions"][0]["status"] == "FILTER_LOCKED"

    def test_decide(self, client):
        body = client.post(
            "/api/patterns/decide",
            json={"records": self.RECORDS, "candidates": [self.RECORDS[0]], "totalValidated": 60},
        ).json()
        decision = body["decisions"][0]

        assert decision["tier"] == "SAFE"
        assert decision["features"]["optionType"] == "handicap"

    def test_csv(self, client):
        resp = client.post("/api/patterns/csv", json={"records": self.RECORDS})

        assert resp.headers["content-type"].startswith("text/csv")
        assert resp.text.splitlines()[0].startswith("id,date,league_family")


class TestPages:
    def test_index(self, client):
        resp = client.get("/")

        assert resp.status_code == 200
        assert "Home 0 vs Away 0" in resp.text

    def test_index_with_feed_error(self, client, broken_feed):
        resp = client.get("/")

        assert resp.status_code == 200
        assert "No se pudo leer el feed" in resp.text

    def test_match_page(self, client):
        resp = client.get("/match/1000")

        assert resp.status_code == 200
        assert "Home 0 vs Away 0" in resp.text

    def test_match_page_not_found(self, client):
        assert client.get("/match/nope").status_code == 404

    @pytest.mark.parametrize("path", ["/coupon", "/guide", "/some/unknown/page"])
    def test_other_pages(self, client, path):
        resp = client.get(path)

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")

    def test_coupon_page_prefilled_from_query(self, client):
        resp = client.get("/coupon", params={"size": 5, "risk": "safe", "league": "FIFA Penalty - Champions"})

        assert resp.status_code == 200
        assert 'id="sizeInput"' in resp.text
        assert 'value="5"' in resp.text
        assert '<option value="safe" selected>' in resp.text
        assert '<option value="FIFA Penalty - Champions" selected>' in resp.text

    def test_coupon_page_defaults(self, client):
        resp = client.get("/coupon", params={"size": 99, "risk": "nope"})

        assert f'value="{settings.coupon_max_size}"' in resp.text
        assert '<option value="balanced" selected>' in resp.text

    def test_static(self, client):
        resp = client.get("/static/style.css")
        assert resp.status_code == 200

    @pytest.mark.parametrize("path", ["/api/unknown", "/api", "/api/"])
    def test_unknown_api_route(self, client, path):
        resp = client.get(path)

        assert resp.status_code == 404
        assert resp.json()["success"] is False
        assert resp.json()["message"] == "Ruta API no encontrada."

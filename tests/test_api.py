"""Tests for biddingcrease.api — REST client over httpx.MockTransport."""

import json

import httpx
import pytest

from biddingcrease.api import AuctionAPI, _form_fields
from biddingcrease.config import APIConfig, BiddingCreaseConfig, SocketConfig
from biddingcrease.errors import APIError


BASE = "http://auction.test/api"


class Server:
    """Records requests and replies with queued responses (default: empty success)."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.replies: list = []

    def reply(self, status=200, body=None, content=None):
        self.replies.append((status, body, content))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.replies and isinstance(self.replies[0], Exception):
            raise self.replies.pop(0)
        status, body, content = self.replies.pop(0) if self.replies else (200, {"success": True, "data": {}}, None)
        if content is not None:
            return httpx.Response(status, content=content)
        return httpx.Response(status, json=body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self):
        return json.loads(self.last.content)


@pytest.fixture
def server():
    return Server()


@pytest.fixture
def api(server):
    return AuctionAPI(BASE, token="tok", transport=httpx.MockTransport(server))


# ============================================================================
# Envelope and transport
# ============================================================================


class TestEnvelope:
    def test_unwraps_data(self, server, api):
        server.reply(body={"success": True, "data": [{"_id": "t1"}]})
        assert api.tournaments.list() == [{"_id": "t1"}]

    def test_raw_keeps_pagination(self, server, api):
        body = {"success": True, "data": [{"_id": "p1"}], "total": 40}
        server.reply(body=body)
        assert api.players.list(raw=True, limit=5) == body

    def test_success_false_raises(self, server, api):
        server.reply(body={"success": False, "message": "Auction not running"})
        with pytest.raises(APIError, match="Auction not running"):
            api.auction.shuffle("tour-1")

    def test_body_without_data(self, server, api):
        server.reply(body={"success": True, "message": "Deleted"})
        assert api.teams.delete("t1") == {"success": True, "message": "Deleted"}

    def test_bearer_header(self, server, api):
        api.auth.verify()
        assert server.last.headers["Authorization"] == "Bearer tok"

    def test_no_header_without_token(self, server):
        api = AuctionAPI(BASE, transport=httpx.MockTransport(server))
        api.tournaments.list()
        assert "Authorization" not in server.last.headers

    def test_paths_under_base(self, server, api):
        api.auction.get_current("tour-1")
        assert server.last.url.path == "/api/auction/current"
        assert server.last.url.params["tournamentId"] == "tour-1"

    def test_none_params_dropped(self, server, api):
        api.players.list(tournamentId="tour-1", role=None)
        assert dict(server.last.url.params) == {"tournamentId": "tour-1"}

    def test_from_config(self, server):
        config = BiddingCreaseConfig(
            api=APIConfig(url=BASE + "/", timeout=2.0),
            socket=SocketConfig(url="http://auction.test"),
            token="cfg-token",
        )
        api = AuctionAPI.from_config(config, transport=httpx.MockTransport(server))
        api.teams.get("t1")
        assert api.base_url == BASE
        assert server.last.url.path == "/api/teams/t1"
        assert server.last.headers["Authorization"] == "Bearer cfg-token"

    def test_context_manager_closes(self, server):
        with AuctionAPI(BASE, transport=httpx.MockTransport(server)) as api:
            pass
        assert api._client.is_closed


# ============================================================================
# Errors
# ============================================================================


class TestErrors:
    def test_server_message_preferred(self, server, api):
        server.reply(400, {"success": False, "message": "Insufficient balance"})
        with pytest.raises(APIError) as exc:
            api.auction.place_bid("tour-1", "t1", 5000)
        assert exc.value.message == "Insufficient balance"
        assert exc.value.status_code == 400

    def test_fallback_when_body_empty(self, server, api):
        server.reply(500, content=b"<html>oops</html>")
        with pytest.raises(APIError) as exc:
            api.auction.place_bid("tour-1", "t1", 5000)
        assert exc.value.message == "Error placing bid"
        assert exc.value.status_code == 500

    def test_validation_errors_kept(self, server, api):
        errors = [{"field": "name", "msg": "required"}]
        server.reply(422, {"message": "Validation failed", "errors": errors})
        with pytest.raises(APIError) as exc:
            api.teams.create({"name": ""})
        assert exc.value.errors == errors

    def test_network_error(self, server, api):
        server.replies.append(httpx.ConnectError("refused"))
        with pytest.raises(APIError, match="Error starting auction"):
            api.auction.start("tour-1")

    def test_unauthorized_clears_token(self, server):
        cleared = []
        api = AuctionAPI(
            BASE, token="old", transport=httpx.MockTransport(server),
            on_unauthorized=lambda: cleared.append(True),
        )
        server.reply(401, {"message": "Token expired"})
        with pytest.raises(APIError, match="Token expired"):
            api.auction.start("tour-1")
        assert api.token is None
        assert cleared == [True]


# ============================================================================
# Endpoint groups
# ============================================================================


class TestAuth:
    def test_login_stores_token(self, server):
        api = AuctionAPI(BASE, transport=httpx.MockTransport(server))
        server.reply(body={"success": True, "data": {"token": "fresh", "admin": {"email": "a@b.c"}}})
        data = api.auth.login("a@b.c", "pw")
        assert data["admin"]["email"] == "a@b.c"
        assert api.token == "fresh"
        assert server.last_json() == {"email": "a@b.c", "password": "pw"}

    def test_failed_login(self, server):
        api = AuctionAPI(BASE, transport=httpx.MockTransport(server))
        server.reply(401, {})
        with pytest.raises(APIError, match="Login failed"):
            api.auth.login("a@b.c", "bad")


class TestAuctionEndpoints:
    @pytest.mark.parametrize("method,args,path,body", [
        ("start", (), "/api/auction/start", {"tournamentId": "tour-1"}),
        ("shuffle", (), "/api/auction/shuffle", {"tournamentId": "tour-1"}),
        ("select_player", ("p1",), "/api/auction/select-player", {"tournamentId": "tour-1", "playerId": "p1"}),
        ("place_bid", ("t1", 1500), "/api/auction/bid", {"tournamentId": "tour-1", "teamId": "t1", "bidAmount": 1500}),
        ("sell", ("t1",), "/api/auction/sell", {"tournamentId": "tour-1", "teamId": "t1"}),
        ("mark_unsold", (), "/api/auction/mark-unsold", {"tournamentId": "tour-1"}),
        ("cancel_player", (), "/api/auction/cancel-player", {"tournamentId": "tour-1"}),
    ])
    def test_commands(self, server, api, method, args, path, body):
        getattr(api.auction, method)("tour-1", *args)
        assert server.last.method == "POST"
        assert server.last.url.path == path
        assert server.last_json() == body

    @pytest.mark.parametrize("method,path", [
        ("get_current", "/api/auction/current"),
        ("get_unsold", "/api/auction/unsold"),
        ("get_max_bids", "/api/auction/max-bids"),
    ])
    def test_queries(self, server, api, method, path):
        getattr(api.auction, method)("tour-1")
        assert server.last.method == "GET"
        assert server.last.url.path == path
        assert server.last.url.params["tournamentId"] == "tour-1"


class TestUploadsAndDownloads:
    def test_json_write_without_files(self, server, api):
        api.players.create({"name": "Virat", "basePrice": 1000})
        assert server.last.headers["Content-Type"] == "application/json"
        assert server.last_json() == {"name": "Virat", "basePrice": 1000}

    def test_multipart_with_files(self, server, api):
        api.teams.update("t1", {"name": "Tigers", "active": True}, files={"logo": ("logo.png", b"PNG", "image/png")})
        assert server.last.method == "PUT"
        assert server.last.headers["Content-Type"].startswith("multipart/form-data")
        body = server.last.content
        assert b'name="logo"; filename="logo.png"' in body
        assert b"Tigers" in body

    def test_form_fields(self):
        fields = _form_fields({
            "name": "Cup", "active": False, "maxPlayers": 15, "logo": None,
            "bidIncrements": [{"minPrice": 1, "maxPrice": None, "increment": 100}],
        })
        assert fields == {
            "name": "Cup",
            "active": "false",
            "maxPlayers": "15",
            "bidIncrements": '[{"minPrice": 1, "maxPrice": null, "increment": 100}]',
        }

    def test_download_returns_bytes(self, server, api):
        server.reply(content=b"%PDF-1.4")
        assert api.teams.download_team_report("t1", include_prices=False) == b"%PDF-1.4"
        assert server.last.url.path == "/api/teams/t1/download/pdf"
        assert server.last.url.params["includePrices"] == "false"

    def test_invite_toggle(self, server, api):
        api.tournaments.toggle_player_invite("tour-1", "inv-1")
        assert server.last.method == "PATCH"
        assert server.last.url.path == "/api/tournaments/tour-1/player-invites/inv-1/toggle"

"""
biddingcrease/api.py - REST client for the auction server.

Endpoints are grouped the same way the server groups them:

    api = AuctionAPI("http://localhost:5000/api", token=token)
    api.tournaments.list()
    api.auction.start(tournament_id)
    api.auction.place_bid(tournament_id, team_id, 1500)

Every call returns the ``data`` member of the server's
``{"success": true, "data": ...}`` envelope (pass ``raw=True`` to list calls
to keep pagination fields). Failures raise ``APIError`` carrying the server's
message, or a per-operation fallback when the body has none.
"""

import json
import logging
from typing import Any, Callable

import httpx

from .config import BiddingCreaseConfig
from .errors import APIError

logger = logging.getLogger(__name__)


class AuctionAPI:
    """Blocking client. Holds one ``httpx.Client``; close it when done."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
        on_unauthorized: Callable[[], None] | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.on_unauthorized = on_unauthorized
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

        self.auth = AuthEndpoints(self)
        self.tournaments = TournamentEndpoints(self)
        self.teams = TeamEndpoints(self)
        self.players = PlayerEndpoints(self)
        self.rules = RuleEndpoints(self)
        self.auction = AuctionEndpoints(self)

    @classmethod
    def from_config(cls, config: BiddingCreaseConfig, **kwargs) -> "AuctionAPI":
        return cls(
            config.api.url,
            token=config.token,
            timeout=config.api.timeout,
            **kwargs,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def request(
        self,
        method: str,
        path: str,
        fallback: str,
        *,
        params: dict | None = None,
        json: Any = None,
        data: dict | None = None,
        files: dict | None = None,
    ) -> httpx.Response:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        try:
            resp = self._client.request(
                method,
                path.lstrip("/"),
                params=params or None,
                json=json,
                data=data,
                files=files,
                headers=headers,
            )
        except httpx.HTTPError as e:
            logger.debug(f"{method} {path} failed: {e}")
            raise APIError(f"{fallback}: {e}") from e

        if resp.status_code == 401:
            self._handle_unauthorized()

        if resp.is_error:
            body = _json_or_none(resp)
            message = fallback
            errors = None
            if isinstance(body, dict):
                message = body.get("message") or fallback
                errors = body.get("errors")
            logger.debug(f"{method} {path} -> {resp.status_code}: {message}")
            raise APIError(message, status_code=resp.status_code, errors=errors)

        return resp

    def call(self, method: str, path: str, fallback: str, raw: bool = False, **kwargs) -> Any:
        """Request and unwrap the JSON envelope."""
        resp = self.request(method, path, fallback, **kwargs)
        body = _json_or_none(resp)
        if raw or not isinstance(body, dict):
            return body
        if body.get("success") is False:
            raise APIError(body.get("message") or fallback, status_code=resp.status_code)
        return body.get("data", body)

    def download(self, path: str, fallback: str, params: dict | None = None) -> bytes:
        return self.request("GET", path, fallback, params=params).content

    def _handle_unauthorized(self) -> None:
        if self.token:
            logger.warning("Token rejected by server; clearing it")
        self.token = None
        if self.on_unauthorized is not None:
            self.on_unauthorized()


def _json_or_none(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None


def _form_fields(data: dict) -> dict:
    """Multipart form fields must be strings. Nones are dropped, lists and dicts JSON-encoded."""
    fields = {}
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, bool):
            fields[key] = "true" if value else "false"
        elif isinstance(value, (list, dict)):
            fields[key] = json.dumps(value)
        else:
            fields[key] = str(value)
    return fields


class _Endpoints:
    def __init__(self, api: AuctionAPI):
        self.api = api

    def _write(self, method: str, path: str, fallback: str, data: dict, files: dict | None):
        """JSON body, or multipart when uploading files (logos, photos)."""
        if files:
            return self.api.call(method, path, fallback, data=_form_fields(data), files=files)
        return self.api.call(method, path, fallback, json=data)


# ============================================================================
# Endpoint groups
# ============================================================================


class AuthEndpoints(_Endpoints):
    def login(self, email: str, password: str) -> dict:
        """Log in as admin. The returned token is kept on the client."""
        data = self.api.call(
            "POST", "/auth/login", "Login failed",
            json={"email": email, "password": password},
        )
        token = data.get("token") if isinstance(data, dict) else None
        if token:
            self.api.token = token
        return data

    def verify(self) -> dict:
        return self.api.call("GET", "/auth/verify", "Token verification failed")


class TournamentEndpoints(_Endpoints):
    def list(self, raw: bool = False, **params) -> Any:
        return self.api.call("GET", "/tournaments", "Error fetching tournaments", raw=raw, params=params)

    def get(self, tournament_id: str) -> dict:
        return self.api.call("GET", f"/tournaments/{tournament_id}", "Error fetching tournament")

    def create(self, data: dict, files: dict | None = None) -> dict:
        return self._write("POST", "/tournaments", "Error saving tournament", data, files)

    def update(self, tournament_id: str, data: dict, files: dict | None = None) -> dict:
        return self._write("PUT", f"/tournaments/{tournament_id}", "Error saving tournament", data, files)

    def delete(self, tournament_id: str) -> Any:
        return self.api.call("DELETE", f"/tournaments/{tournament_id}", "Error deleting tournament")

    def player_invites(self, tournament_id: str) -> Any:
        return self.api.call(
            "GET", f"/tournaments/{tournament_id}/player-invites", "Error fetching invites",
        )

    def create_player_invite(self, tournament_id: str, data: dict) -> dict:
        return self.api.call(
            "POST", f"/tournaments/{tournament_id}/player-invites", "Error creating invite",
            json=data,
        )

    def toggle_player_invite(self, tournament_id: str, invite_id: str) -> dict:
        return self.api.call(
            "PATCH", f"/tournaments/{tournament_id}/player-invites/{invite_id}/toggle",
            "Error updating invite",
        )

    def delete_player_invite(self, tournament_id: str, invite_id: str) -> Any:
        return self.api.call(
            "DELETE", f"/tournaments/{tournament_id}/player-invites/{invite_id}",
            "Error deleting invite",
        )

    def invite_by_token(self, token: str) -> dict:
        return self.api.call(
            "GET", f"/tournaments/player-invites/{token}", "Invalid or expired invite link",
        )


class TeamEndpoints(_Endpoints):
    def list(self, raw: bool = False, **params) -> Any:
        return self.api.call("GET", "/teams", "Error fetching teams", raw=raw, params=params)

    def get(self, team_id: str) -> dict:
        return self.api.call("GET", f"/teams/{team_id}", "Error fetching team")

    def create(self, data: dict, files: dict | None = None) -> dict:
        return self._write("POST", "/teams", "Error saving team", data, files)

    def update(self, team_id: str, data: dict, files: dict | None = None) -> dict:
        return self._write("PUT", f"/teams/{team_id}", "Error saving team", data, files)

    def delete(self, team_id: str) -> Any:
        return self.api.call("DELETE", f"/teams/{team_id}", "Error deleting team")

    def download_report(self, tournament_id: str) -> bytes:
        """PDF summary of every team in a tournament."""
        return self.api.download(
            "/teams/download/pdf", "Error downloading report",
            params={"tournamentId": tournament_id},
        )

    def download_team_report(self, team_id: str, include_prices: bool = True) -> bytes:
        return self.api.download(
            f"/teams/{team_id}/download/pdf", "Error downloading report",
            params={"includePrices": "true" if include_prices else "false"},
        )


class PlayerEndpoints(_Endpoints):
    def list(self, raw: bool = False, **params) -> Any:
        return self.api.call("GET", "/players", "Error fetching players", raw=raw, params=params)

    def get(self, player_id: str) -> dict:
        return self.api.call("GET", f"/players/{player_id}", "Error fetching player")

    def create(self, data: dict, files: dict | None = None) -> dict:
        return self._write("POST", "/players", "Error saving player", data, files)

    def update(self, player_id: str, data: dict, files: dict | None = None) -> dict:
        return self._write("PUT", f"/players/{player_id}", "Error saving player", data, files)

    def delete(self, player_id: str) -> Any:
        return self.api.call("DELETE", f"/players/{player_id}", "Error deleting player")

    def create_public(self, token: str, data: dict, files: dict | None = None) -> dict:
        """Self-registration through a tournament invite link."""
        return self._write("POST", f"/players/public/{token}", "Error submitting registration", data, files)

    def export_excel(self, **params) -> bytes:
        return self.api.download("/players/export/excel", "Error exporting players", params=params)


class RuleEndpoints(_Endpoints):
    def by_tournament(self, tournament_id: str, raw: bool = False, **params) -> Any:
        return self.api.call(
            "GET", f"/rules/tournament/{tournament_id}", "Error fetching rules",
            raw=raw, params=params,
        )

    def create(self, data: dict) -> dict:
        return self.api.call("POST", "/rules", "Error saving rule", json=data)

    def update(self, rule_id: str, data: dict) -> dict:
        return self.api.call("PUT", f"/rules/{rule_id}", "Error saving rule", json=data)

    def delete(self, rule_id: str) -> Any:
        return self.api.call("DELETE", f"/rules/{rule_id}", "Error deleting rule")


class AuctionEndpoints(_Endpoints):
    def get_current(self, tournament_id: str) -> dict:
        return self.api.call(
            "GET", "/auction/current", "Error fetching current auction",
            params={"tournamentId": tournament_id},
        )

    def get_unsold(self, tournament_id: str) -> list:
        return self.api.call(
            "GET", "/auction/unsold", "Error fetching unsold players",
            params={"tournamentId": tournament_id},
        )

    def get_max_bids(self, tournament_id: str) -> list:
        return self.api.call(
            "GET", "/auction/max-bids", "Error fetching max bids",
            params={"tournamentId": tournament_id},
        )

    def start(self, tournament_id: str) -> dict:
        return self.api.call(
            "POST", "/auction/start", "Error starting auction",
            json={"tournamentId": tournament_id},
        )

    def shuffle(self, tournament_id: str) -> dict:
        return self.api.call(
            "POST", "/auction/shuffle", "Error shuffling player",
            json={"tournamentId": tournament_id},
        )

    def select_player(self, tournament_id: str, player_id: str) -> dict:
        return self.api.call(
            "POST", "/auction/select-player", "Error selecting player",
            json={"tournamentId": tournament_id, "playerId": player_id},
        )

    def place_bid(self, tournament_id: str, team_id: str, bid_amount: int | float) -> dict:
        return self.api.call(
            "POST", "/auction/bid", "Error placing bid",
            json={"tournamentId": tournament_id, "teamId": team_id, "bidAmount": bid_amount},
        )

    def sell(self, tournament_id: str, team_id: str) -> dict:
        return self.api.call(
            "POST", "/auction/sell", "Error selling player",
            json={"tournamentId": tournament_id, "teamId": team_id},
        )

    def mark_unsold(self, tournament_id: str) -> dict:
        return self.api.call(
            "POST", "/auction/mark-unsold", "Error marking player as unsold",
            json={"tournamentId": tournament_id},
        )

    def cancel_player(self, tournament_id: str) -> dict:
        return self.api.call(
            "POST", "/auction/cancel-player", "Error cancelling player",
            json={"tournamentId": tournament_id},
        )

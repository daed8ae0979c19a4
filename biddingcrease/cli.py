#!/usr/bin/env python3
"""
biddingcrease/cli.py - Command line interface for BiddingCrease

Usage:
    biddingcrease increment <price> [--tournament ID]
    biddingcrease bands <tournament>
    biddingcrease login --email EMAIL
    biddingcrease status <tournament>
    biddingcrease auction <start|shuffle|select|bid|sell|unsold|cancel> <tournament> ...
    biddingcrease watch [tournament]
"""

import argparse
import getpass
import logging
import sys

from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

console = Console()


# ============================================================================
# Helpers
# ============================================================================


def _amount(value: str) -> int | float:
    """argparse type for rupee amounts: ints stay ints."""
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value}")


def _load_config(args):
    from biddingcrease.config import load_config

    config = load_config()
    if getattr(args, "api", None):
        config.api.url = args.api
    if getattr(args, "socket", None):
        config.socket.url = args.socket
    return config


def _make_api(config):
    from biddingcrease.api import AuctionAPI
    from biddingcrease.config import clear_token

    return AuctionAPI.from_config(config, on_unauthorized=clear_token)


def _resolve_tournament(api, tournament_id: str | None) -> str | None:
    """Use the given id, or fall back to the ongoing (else first) tournament."""
    if tournament_id:
        return tournament_id
    from consoles.viewer import pick_default_tournament

    tournament = pick_default_tournament(api.tournaments.list() or [])
    if tournament is None:
        logger.error("No tournaments found")
        return None
    logger.info(f"Using tournament: {tournament.get('name')} ({tournament['_id']})")
    return tournament["_id"]


def _teams_table(teams, max_bids=None) -> Table:
    from biddingcrease.pricing import format_currency

    table = Table(title="Teams", show_header=True, header_style="bold cyan")
    table.add_column("Team", style="bold", min_width=14)
    table.add_column("ID", style="dim")
    table.add_column("Remaining", justify="right")
    table.add_column("Players", justify="right")
    if max_bids is not None:
        table.add_column("Max Bid", justify="right")

    for team in teams:
        row = [
            team.get("name", "?"),
            team.get("_id", ""),
            format_currency(team.get("remainingAmount")),
            str(team.get("playerCount", 0)),
        ]
        if max_bids is not None:
            row.append(format_currency(max_bids.get(team.get("_id"))))
        table.add_row(*row)
    return table


def _print_lot(state, tournament=None) -> None:
    from biddingcrease.pricing import calculate_bid_increment, format_currency

    player = state.current_player
    if player is None:
        console.print("[dim]No player on the block.[/dim]")
        return
    star = " ⭐" if player.get("category") == "Icon" else ""
    console.print(f"[bold]{player.get('name')}[/bold]{star}  {player.get('role', '')}")
    console.print(f"   Base price:  {format_currency(player.get('basePrice'))}")
    console.print(f"   Current bid: [bold green]{format_currency(state.display_price)}[/bold green]")
    increment = calculate_bid_increment(state.display_price or 0, tournament)
    console.print(f"   Increment:   +{format_currency(increment)}")


# ============================================================================
# Commands
# ============================================================================


def cmd_increment(args):
    """Show the increment and next bid at a price."""
    from biddingcrease.errors import APIError
    from biddingcrease.pricing import (
        calculate_bid_increment,
        format_currency,
        get_next_bid_amount,
    )

    tournament = None
    if args.tournament:
        config = _load_config(args)
        try:
            with _make_api(config) as api:
                tournament = api.tournaments.get(args.tournament)
        except APIError as e:
            logger.error(e.message)
            return 1

    increment = calculate_bid_increment(args.price, tournament)
    next_bid = get_next_bid_amount(args.price, tournament)
    print(f"Increment: {format_currency(increment)}")
    print(f"Next bid:  {format_currency(next_bid)}")
    return 0


def cmd_bands(args):
    """Print a tournament's bid bands and any configuration problems."""
    from biddingcrease.errors import APIError
    from biddingcrease.pricing import bands_from_tournament, format_currency, validate_bands

    config = _load_config(args)
    try:
        with _make_api(config) as api:
            tournament = api.tournaments.get(args.tournament)
    except APIError as e:
        logger.error(e.message)
        return 1

    bands = sorted(bands_from_tournament(tournament), key=lambda b: b.min_price)
    if not bands:
        print("No bid bands configured; the default schedule applies.")
        return 0

    table = Table(title=f"Bid bands: {tournament.get('name', args.tournament)}", header_style="bold cyan")
    table.add_column("From", justify="right")
    table.add_column("To", justify="right")
    table.add_column("Increment", justify="right")
    for band in bands:
        to = "and above" if band.max_price is None else format_currency(band.max_price)
        table.add_row(format_currency(band.min_price), to, format_currency(band.increment))
    console.print(table)

    for problem in validate_bands(bands):
        console.print(f"[yellow]⚠ {problem}[/yellow]")
    return 0


def cmd_login(args):
    """Log in as admin and save the token."""
    from biddingcrease.config import save_token
    from biddingcrease.errors import APIError

    password = args.password or getpass.getpass("Password: ")
    config = _load_config(args)
    try:
        with _make_api(config) as api:
            api.auth.login(args.email, password)
            token = api.token
    except APIError as e:
        logger.error(e.message)
        return 1

    if not token:
        logger.error("Login succeeded but the server returned no token")
        return 1
    path = save_token(token)
    logger.info(f"Logged in. Token saved to {path}")
    return 0


def cmd_logout(args):
    """Forget the saved admin token."""
    from biddingcrease.config import clear_token

    if not clear_token():
        logger.info("No saved token")
    return 0


def cmd_status(args):
    """Show the lot on the block and every team's purse."""
    from biddingcrease.errors import APIError
    from consoles.admin import AuctionConsole

    config = _load_config(args)
    try:
        with _make_api(config) as api:
            panel = AuctionConsole(api, args.tournament)
            panel.refresh()
    except APIError as e:
        logger.error(e.message)
        return 1

    _print_lot(panel.state, panel.tournament)
    console.print()
    console.print(_teams_table(panel.state.teams, panel.max_bids))
    summary = panel.unsold_summary()
    console.print(
        f"Never auctioned: {summary['never_auctioned']}  "
        f"Auctioned but unsold: {summary['auctioned_unsold']}  "
        f"Sold: {summary['sold']}"
    )
    return 0


def cmd_max_bids(args):
    """Show each team's remaining purse and max bid."""
    from biddingcrease.errors import APIError
    from consoles.admin import AuctionConsole

    config = _load_config(args)
    try:
        with _make_api(config) as api:
            panel = AuctionConsole(api, args.tournament)
            panel.fetch_teams()
    except APIError as e:
        logger.error(e.message)
        return 1

    console.print(_teams_table(panel.state.teams, panel.max_bids))
    return 0


def cmd_unsold(args):
    """List players the server reports as unsold."""
    from biddingcrease.errors import APIError
    from biddingcrease.pricing import format_currency

    config = _load_config(args)
    try:
        with _make_api(config) as api:
            players = api.auction.get_unsold(args.tournament) or []
    except APIError as e:
        logger.error(e.message)
        return 1

    table = Table(title="Unsold players", header_style="bold cyan")
    table.add_column("Player", style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Role")
    table.add_column("Category")
    table.add_column("Base Price", justify="right")
    for p in players:
        table.add_row(
            p.get("name", "?"),
            p.get("_id", ""),
            p.get("role", ""),
            p.get("category", ""),
            format_currency(p.get("basePrice")),
        )
    console.print(table)
    return 0


def cmd_auction(args):
    """Drive the live auction: start, shuffle, select, bid, sell, unsold, cancel."""
    from biddingcrease.errors import BiddingCreaseError
    from consoles.admin import AuctionConsole, BidRejected

    config = _load_config(args)

    def confirm_over_max(check):
        if args.force:
            return True
        console.print(f"[yellow]⚠ {check.warning()}[/yellow]")
        if not sys.stdin.isatty():
            return False
        return Confirm.ask("Place the bid anyway?", default=False)

    try:
        with _make_api(config) as api:
            panel = AuctionConsole(api, args.tournament)
            panel.refresh()

            action = args.action
            if action == "start":
                panel.start()
            elif action == "shuffle":
                panel.shuffle()
            elif action == "select":
                panel.select_player(args.player)
            elif action == "bid":
                panel.place_bid(args.team, args.amount, confirm=confirm_over_max)
            elif action == "sell":
                panel.sell(args.team)
            elif action == "unsold":
                panel.mark_unsold()
            elif action == "cancel":
                panel.cancel_player()
    except BidRejected as e:
        logger.error(f"Bid not placed: {e}")
        return 1
    except BiddingCreaseError as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("\nCancelled.")
        return 130

    _print_lot(panel.state, panel.tournament)
    return 0


def cmd_watch(args):
    """Follow a tournament's auction live."""
    from biddingcrease.errors import BiddingCreaseError
    from biddingcrease.pricing import format_currency
    from biddingcrease.realtime import SocketConnection
    from consoles.viewer import LiveViewer

    config = _load_config(args)

    def on_update(data):
        kind = data.get("type")
        if kind == "playerSelected":
            player = data.get("player") or {}
            logger.info(f"🏏 On the block: {player.get('name')} (base {format_currency(player.get('basePrice'))})")
        elif kind == "bid":
            logger.info(f"   {data.get('teamName')} bids {format_currency(data.get('bidAmount'))}")
        elif kind == "sold":
            logger.info(f"🔨 SOLD: {data.get('playerName')} to {data.get('teamName')} for {format_currency(data.get('price'))}")
        elif kind == "unsold":
            logger.info(f"   UNSOLD: {data.get('playerName')}")

    connection = SocketConnection.from_config(config.socket)
    try:
        with _make_api(config) as api:
            tournament_id = _resolve_tournament(api, args.tournament)
            if tournament_id is None:
                return 1
            viewer = LiveViewer(api, connection, tournament_id, on_update=on_update)
            viewer.open()
            _print_lot(viewer.state)
            try:
                viewer.run()
            finally:
                viewer.close()
    except BiddingCreaseError as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("\nStopped watching.")
        return 130
    finally:
        connection.disconnect()
    return 0


# ============================================================================
# Entry point
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="biddingcrease",
        description="Live cricket auction client",
    )
    parser.add_argument("--api", default=None, help="API base URL (overrides config)")
    parser.add_argument("--socket", default=None, help="Socket.IO URL (overrides config)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # increment command
    inc_parser = subparsers.add_parser("increment", help="Show bid increment and next bid at a price")
    inc_parser.add_argument("price", type=_amount, help="Current bid or base price")
    inc_parser.add_argument("--tournament", "-t", default=None, help="Use this tournament's bid bands")
    inc_parser.set_defaults(func=cmd_increment)

    # bands command
    bands_parser = subparsers.add_parser("bands", help="Show a tournament's bid bands")
    bands_parser.add_argument("tournament", help="Tournament ID")
    bands_parser.set_defaults(func=cmd_bands)

    # login / logout
    login_parser = subparsers.add_parser("login", help="Log in as admin")
    login_parser.add_argument("--email", "-e", required=True, help="Admin email")
    login_parser.add_argument("--password", "-p", default=None, help="Password (prompted if omitted)")
    login_parser.set_defaults(func=cmd_login)

    logout_parser = subparsers.add_parser("logout", help="Forget the saved admin token")
    logout_parser.set_defaults(func=cmd_logout)

    # status / max-bids / unsold
    status_parser = subparsers.add_parser("status", help="Current lot and team purses")
    status_parser.add_argument("tournament", help="Tournament ID")
    status_parser.set_defaults(func=cmd_status)

    mb_parser = subparsers.add_parser("max-bids", help="Team purses and max bids")
    mb_parser.add_argument("tournament", help="Tournament ID")
    mb_parser.set_defaults(func=cmd_max_bids)

    unsold_parser = subparsers.add_parser("unsold", help="List unsold players")
    unsold_parser.add_argument("tournament", help="Tournament ID")
    unsold_parser.set_defaults(func=cmd_unsold)

    # auction command
    auction_parser = subparsers.add_parser("auction", help="Run the live auction (admin)")
    actions = auction_parser.add_subparsers(dest="action", required=True)
    for name, help_text in (
        ("start", "Start the auction with a random player"),
        ("shuffle", "Put a new random player on the block"),
        ("unsold", "Mark the current player unsold"),
        ("cancel", "Take the current player off the block"),
    ):
        p = actions.add_parser(name, help=help_text)
        p.add_argument("tournament", help="Tournament ID")

    select_parser = actions.add_parser("select", help="Put a specific player on the block")
    select_parser.add_argument("tournament", help="Tournament ID")
    select_parser.add_argument("player", help="Player ID")

    bid_parser = actions.add_parser("bid", help="Bid for a team")
    bid_parser.add_argument("tournament", help="Tournament ID")
    bid_parser.add_argument("team", help="Team ID")
    bid_parser.add_argument("amount", nargs="?", type=_amount, default=None, help="Bid amount (default: next increment)")

    sell_parser = actions.add_parser("sell", help="Sell the current player to a team")
    sell_parser.add_argument("tournament", help="Tournament ID")
    sell_parser.add_argument("team", help="Team ID")

    auction_parser.set_defaults(func=cmd_auction, force=False)
    bid_parser.add_argument("--force", "-f", action="store_true", help="Bid even above the team's max bid")

    # watch command
    watch_parser = subparsers.add_parser("watch", help="Follow the live auction")
    watch_parser.add_argument("tournament", nargs="?", default=None, help="Tournament ID (default: ongoing)")
    watch_parser.set_defaults(func=cmd_watch)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()

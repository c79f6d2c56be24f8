#!/usr/bin/env python3
"""Terminal client for the video voting platform.

Usage:
    # Sign in (the session is kept in ~/.videovote/session.json)
    python -m cli.videovote login --email me@example.com

    # Upload an MP4 and list your videos
    python -m cli.videovote upload clip.mp4 --title "My entry"
    python -m cli.videovote mine

    # Browse public videos, vote, check the ranking
    python -m cli.videovote public
    python -m cli.videovote vote 42
    python -m cli.videovote rankings --city Bogota

    # Interactive voting session
    python -m cli.videovote browse
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add src to path for imports
src_path = Path(__file__).parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from models.session import SignupRequest
from models.video import Video, VideoFile
from services.author_enrichment import author_city, author_country, author_display_name
from services.client import VideoVoteClient, build_client
from services.errors import VideoVoteError
from services.response_normalizer import resolve_media_url
from services.screens import Screen
from utils.config import load_config, validate_config
from utils.logging import get_logger, setup_logging

console = Console()
logger = get_logger(__name__)

STATUS_LABELS = {
    "uploaded": "[yellow]Subido[/yellow]",
    "processing": "[blue]Procesando[/blue]",
    "processed": "[green]Procesado[/green]",
}


def report(screen: Screen) -> bool:
    """Print the screen's error, if any. Returns True when the action succeeded."""
    if screen.error:
        console.print(f"[red]✗ {screen.error}[/red]")
        return False
    return True


def videos_table(title: str, videos: list[Video], with_authors: bool = False) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Título")
    table.add_column("Estado")
    table.add_column("Votos", justify="right")
    if with_authors:
        table.add_column("Autor")
        table.add_column("Ubicación")
        table.add_column("Votado")

    for video in videos:
        row = [
            video.id,
            video.title,
            STATUS_LABELS.get(video.status, video.status or "-"),
            str(video.vote_count),
        ]
        if with_authors:
            location = ", ".join(filter(None, [author_city(video), author_country(video)]))
            row += [
                author_display_name(video),
                location or "-",
                "✓" if video.voted_by_current_user else "",
            ]
        table.add_row(*row)
    return table


async def cmd_login(client: VideoVoteClient, args: argparse.Namespace) -> int:
    password = args.password or Prompt.ask("Contraseña", password=True)
    try:
        session = await client.session_store.login(args.email, password)
    except VideoVoteError as e:
        console.print(f"[red]✗ {e.message}[/red]")
        return 1
    console.print(f"[green]✓ Sesión iniciada como {session.identity.email}[/green]")
    return 0


async def cmd_logout(client: VideoVoteClient, args: argparse.Namespace) -> int:
    client.session_store.logout()
    console.print("Sesión cerrada.")
    return 0


async def cmd_whoami(client: VideoVoteClient, args: argparse.Namespace) -> int:
    identity = client.session_store.current_identity()
    if identity is None:
        console.print("[yellow]No has iniciado sesión.[/yellow]")
        return 1
    console.print(identity.display_name or identity.email)
    return 0


async def cmd_signup(client: VideoVoteClient, args: argparse.Namespace) -> int:
    password = args.password or Prompt.ask("Contraseña", password=True)
    password2 = args.password or Prompt.ask("Repite la contraseña", password=True)
    request = SignupRequest(
        first_name=args.first_name,
        last_name=args.last_name,
        email=args.email,
        password=password,
        password2=password2,
        city=args.city,
        country=args.country,
    )
    try:
        await client.session_store.register(request)
    except VideoVoteError as e:
        console.print(f"[red]✗ {e.message}[/red]")
        return 1
    console.print("[green]✓ Registro completado. Inicia sesión para continuar.[/green]")
    return 0


async def cmd_upload(client: VideoVoteClient, args: argparse.Namespace) -> int:
    path = Path(args.file)
    if not path.is_file():
        console.print(f"[red]✗ No existe el archivo {path}[/red]")
        return 1
    screen = client.upload_screen()
    with console.status("Subiendo video..."):
        receipt = await screen.submit(args.title, VideoFile.from_path(path))
    if not report(screen):
        return 1
    suffix = f" (task: {receipt.task_id})" if receipt.task_id else ""
    console.print(f"[green]✓ {receipt.message}{suffix}[/green]")
    return 0


async def cmd_mine(client: VideoVoteClient, args: argparse.Namespace) -> int:
    screen = client.my_videos_screen()
    await screen.load()
    if not report(screen):
        return 1
    console.print(videos_table("Mis videos", screen.videos))
    return 0


async def cmd_show(client: VideoVoteClient, args: argparse.Namespace) -> int:
    screen = client.video_detail_screen()
    video = await screen.load(args.video_id)
    if not report(screen) or video is None:
        return 1
    console.print(f"[bold]{video.title}[/bold]  {STATUS_LABELS.get(video.status, video.status)}")
    console.print(f"Votos: {video.vote_count}")
    for label, url in (("Original", video.original_url), ("Procesado", video.processed_url)):
        resolved = resolve_media_url(url, client.api.api_url)
        if resolved:
            console.print(f"{label}: {resolved}")
    return 0


async def cmd_delete(client: VideoVoteClient, args: argparse.Namespace) -> int:
    screen = client.my_videos_screen()
    await screen.load()
    if not report(screen):
        return 1
    video = next((v for v in screen.videos if v.id == args.video_id), None)
    if video is None:
        console.print("[red]✗ Video no encontrado.[/red]")
        return 1
    if not args.yes and Prompt.ask(
        f'¿Eliminar video "{video.title}"? Esta acción no se puede deshacer.',
        choices=["s", "n"],
        default="n",
    ) != "s":
        return 1
    deleted = await screen.delete(video)
    if not report(screen):
        return 1
    if deleted:
        console.print("[green]✓ Video eliminado.[/green]")
    return 0


async def cmd_public(client: VideoVoteClient, args: argparse.Namespace) -> int:
    screen = client.public_videos_screen()
    await screen.load()
    if not report(screen):
        return 1
    console.print(videos_table("Videos públicos", screen.videos, with_authors=True))
    return 0


async def cmd_vote(client: VideoVoteClient, args: argparse.Namespace) -> int:
    screen = client.public_videos_screen()
    await screen.load()
    if not report(screen):
        return 1
    video = screen.find(args.video_id)
    if video is None:
        console.print("[red]✗ Video no encontrado.[/red]")
        return 1
    await screen.vote(video)
    if not report(screen):
        return 1
    console.print(f"[green]✓ Voto registrado ({video.vote_count} votos).[/green]")
    return 0


async def cmd_unvote(client: VideoVoteClient, args: argparse.Namespace) -> int:
    # A fresh process has no local vote state, so go straight to the backend
    try:
        await client.gateway.unvote(args.video_id)
    except VideoVoteError as e:
        console.print(f"[red]✗ {e.message}[/red]")
        return 1
    console.print("[green]✓ Voto retirado.[/green]")
    return 0


async def cmd_rankings(client: VideoVoteClient, args: argparse.Namespace) -> int:
    screen = client.ranking_screen()
    params = {"page": args.page, "page_size": args.page_size, "city": args.city}
    await screen.load(params)
    if not report(screen):
        return 1

    table = Table(title="Ranking")
    table.add_column("#", justify="right")
    table.add_column("Título")
    table.add_column("Autor")
    table.add_column("Votos", justify="right")
    for entry in screen.rankings:
        style = "bold yellow" if 1 <= entry.position <= 3 else None
        table.add_row(
            str(entry.position), entry.title, entry.author_name, str(entry.vote_count), style=style
        )
    console.print(table)
    return 0


async def cmd_browse(client: VideoVoteClient, args: argparse.Namespace) -> int:
    """Interactive loop: list public videos, vote and unvote in one session."""
    screen = client.public_videos_screen()
    await screen.load()
    if not report(screen):
        return 1

    while True:
        console.print(videos_table("Videos públicos", screen.videos, with_authors=True))
        answer = Prompt.ask("[v]otar, [u]nvote, [r]ecargar, [q]salir", default="q").strip()
        if answer == "q":
            return 0
        if answer == "r":
            await screen.load()
            report(screen)
            continue
        if answer not in ("v", "u"):
            continue
        video = screen.find(Prompt.ask("ID del video").strip())
        if video is None:
            console.print("[red]✗ Video no encontrado.[/red]")
            continue
        if answer == "v":
            await screen.vote(video)
        else:
            await screen.unvote(video)
        report(screen)


COMMANDS = {
    "login": cmd_login,
    "logout": cmd_logout,
    "whoami": cmd_whoami,
    "signup": cmd_signup,
    "upload": cmd_upload,
    "mine": cmd_mine,
    "show": cmd_show,
    "delete": cmd_delete,
    "public": cmd_public,
    "vote": cmd_vote,
    "unvote": cmd_unvote,
    "rankings": cmd_rankings,
    "browse": cmd_browse,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Video voting platform client")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Sign in")
    login.add_argument("--email", required=True)
    login.add_argument("--password", help="Prompted for when omitted")

    sub.add_parser("logout", help="Sign out and clear the stored session")
    sub.add_parser("whoami", help="Show the signed-in user")

    signup = sub.add_parser("signup", help="Create an account")
    signup.add_argument("--first-name", required=True)
    signup.add_argument("--last-name", required=True)
    signup.add_argument("--email", required=True)
    signup.add_argument("--city", required=True)
    signup.add_argument("--country", required=True)
    signup.add_argument("--password", help="Prompted for (twice) when omitted")

    upload = sub.add_parser("upload", help="Upload an MP4 (max 100MB)")
    upload.add_argument("file")
    upload.add_argument("--title", required=True)

    sub.add_parser("mine", help="List your videos")

    show = sub.add_parser("show", help="Show one of your videos")
    show.add_argument("video_id")

    delete = sub.add_parser("delete", help="Delete a video that has not been processed yet")
    delete.add_argument("video_id")
    delete.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    sub.add_parser("public", help="List public videos")

    vote = sub.add_parser("vote", help="Vote for a public video")
    vote.add_argument("video_id")

    unvote = sub.add_parser("unvote", help="Withdraw your vote")
    unvote.add_argument("video_id")

    rankings = sub.add_parser("rankings", help="Show the ranking")
    rankings.add_argument("--page", type=int)
    rankings.add_argument("--page-size", type=int)
    rankings.add_argument("--city")

    sub.add_parser("browse", help="Interactive voting session")
    return parser


async def run(args: argparse.Namespace, config: dict) -> int:
    client = build_client(config)
    logger.debug("command_started", command=args.command, api_url=client.api.api_url)
    try:
        exit_code = await COMMANDS[args.command](client, args)
        logger.debug("command_finished", command=args.command, exit_code=exit_code)
        return exit_code
    finally:
        await client.close()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config()

    errors = validate_config(config)
    if errors:
        for error in errors:
            console.print(f"[red]Config error: {error}[/red]")
        return 2

    setup_logging(config["log_level"], json_output=config["log_json"])
    return asyncio.run(run(args, config))


if __name__ == "__main__":
    sys.exit(main())

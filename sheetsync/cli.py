import asyncio
from pathlib import Path

import click

from sheetsync.log import setup_logging
from sheetsync.settings import get_settings


@click.group()
def main() -> None:
    """sheetsync - markdown cheatsheet editor core and content service."""
    settings = get_settings()
    setup_logging(settings.log_level, json_logs=settings.log_json)


@main.command()
@click.option("--host", default=None, help="Bind host (default: from SHEETSYNC_HOST or 127.0.0.1).")
@click.option("--port", default=None, type=int, help="Bind port (default: from SHEETSYNC_PORT or 3001).")
@click.option("--reload", is_flag=True, default=False, help="Enable auto-reload for development.")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the content service."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "sheetsync.server.app:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level="warning",  # uvicorn's own logging is intercepted by loguru
    )


# ---------------------------------------------------------------------------
# Local editor commands
# ---------------------------------------------------------------------------


def _open_editor():
    from sheetsync.editor import Editor

    editor = Editor.from_settings(get_settings())
    editor.open()
    return editor


@main.command()
@click.argument("source", required=False, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write HTML here instead of stdout.",
)
def render(source: Path | None, output: Path | None) -> None:
    """Render SOURCE (default: the local document) to a standalone HTML preview."""

    async def _run() -> str:
        editor = _open_editor()
        try:
            document = editor.document
            if source is not None:
                document = document.model_copy(update={"text": source.read_text(encoding="utf-8")})
            preview = await editor.preview.render(document)
        finally:
            await editor.aclose()
        if preview.missing_ids:
            click.echo(f"warning: {len(preview.missing_ids)} image(s) not found in the local store", err=True)
        return preview.to_page()

    page = asyncio.run(_run())
    if output is None:
        click.echo(page, nl=False)
    else:
        output.write_text(page, encoding="utf-8")
        click.echo(f"Preview written to {output}")


@main.command()
@click.option(
    "-d",
    "--directory",
    default=".",
    type=click.Path(file_okay=False, path_type=Path),
    help="Where to write the backup file.",
)
@click.option("--markdown", is_flag=True, default=False, help="Save the raw markdown (cheatsheet.md) instead.")
def export(directory: Path, markdown: bool) -> None:
    """Back up the local workspace."""
    from sheetsync.portability import export_markdown, write_workspace_file

    async def _run() -> Path:
        editor = _open_editor()
        try:
            if markdown:
                path = directory / "cheatsheet.md"
                path.write_text(export_markdown(editor.document), encoding="utf-8")
                return path
            return await write_workspace_file(editor.document, directory)
        finally:
            await editor.aclose()

    directory.mkdir(parents=True, exist_ok=True)
    click.echo(f"Workspace saved to {asyncio.run(_run())}")


@main.command(name="import")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def import_(source: Path) -> None:
    """Restore the local workspace from a backup file."""
    from sheetsync.portability import WorkspaceFormatError, read_workspace_file

    async def _run() -> None:
        editor = _open_editor()
        try:
            document = await read_workspace_file(source)
            editor.state.replace(document)
        finally:
            await editor.aclose()

    try:
        asyncio.run(_run())
    except WorkspaceFormatError as exc:
        raise click.ClickException(f"Invalid workspace file format: {exc}") from None
    click.echo("Workspace loaded successfully!")


@main.command(name="load-md")
@click.argument("sources", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
def load_md(sources: tuple[Path, ...]) -> None:
    """Replace the document with up to three markdown files, joined in order."""
    from sheetsync.portability import MAX_MARKDOWN_FILES, load_markdown_files

    if len(sources) > MAX_MARKDOWN_FILES:
        click.echo(f"warning: only the first {MAX_MARKDOWN_FILES} files are loaded", err=True)

    async def _run() -> None:
        editor = _open_editor()
        try:
            editor.edit(await load_markdown_files(sources))
        finally:
            await editor.aclose()

    asyncio.run(_run())
    click.echo("Markdown loaded.")


@main.command(name="paste-image")
@click.argument("source", required=False, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--data-url", default=None, help="Paste a base64 data: URI (clipboard format) instead of a file.")
@click.option("--content-type", default=None, help="MIME type for SOURCE (default: guessed from the file name).")
@click.option("--alt", default="image", help="Alt text for the inserted reference.")
def paste_image(source: Path | None, data_url: str | None, content_type: str | None, alt: str) -> None:
    """Store an image locally and append a reference to it to the document.

    The image comes from SOURCE or from --data-url, exactly one of them.
    """
    import mimetypes

    from sheetsync.models.document import ImageBlob

    if (source is None) == (data_url is None):
        raise click.UsageError("Give either SOURCE or --data-url.")
    if data_url is not None:
        try:
            blob = ImageBlob.from_data_url(data_url)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--data-url") from None
    elif source is not None:
        blob = ImageBlob(
            content_type=content_type or mimetypes.guess_type(source.name)[0] or "application/octet-stream",
            data=source.read_bytes(),
        )

    async def _run() -> str:
        editor = _open_editor()
        try:
            return await editor.paste_image(blob, alt=alt)
        finally:
            await editor.aclose()

    click.echo(asyncio.run(_run()))


@main.command(name="clean-images")
def clean_images() -> None:
    """Delete stored images the document no longer references."""

    async def _run() -> set[str]:
        editor = _open_editor()
        try:
            return await editor.clean_up_images()
        finally:
            await editor.aclose()

    removed = asyncio.run(_run())
    click.echo(f"Removed {len(removed)} unreferenced image(s).")


@main.command()
@click.option("--yes", is_flag=True, default=False, help="Do not ask for confirmation.")
@click.option("--defaults", is_flag=True, default=False, help="Restore the example content instead of clearing.")
def reset(yes: bool, defaults: bool) -> None:
    """Start a new workspace (clears all local work)."""
    if not yes:
        if defaults:
            prompt = "This will restore the default example content. Continue?"
        else:
            prompt = "This will clear all your current work. Are you sure?"
        click.confirm(prompt, abort=True)
    editor = _open_editor()
    if defaults:
        editor.restore_defaults()
    else:
        editor.new_workspace()
    asyncio.run(editor.aclose())
    click.echo("Workspace reset.")


# ---------------------------------------------------------------------------
# Cloud sync
# ---------------------------------------------------------------------------


def _require_remote() -> None:
    if not get_settings().remote_url:
        raise click.ClickException("SHEETSYNC_REMOTE_URL is not set.")


@main.command()
def pull() -> None:
    """Sign in and replace the local document with the remote copy."""
    _require_remote()

    async def _run() -> bool:
        editor = _open_editor()
        try:
            return await editor.login()
        finally:
            await editor.aclose()

    if not asyncio.run(_run()):
        raise click.ClickException("Not signed in (check SHEETSYNC_SESSION_TOKEN).")
    click.echo("Local document replaced with the remote copy.")


@main.command()
def push() -> None:
    """Upload the local document, replacing the remote copy."""
    _require_remote()
    from sheetsync.sync.remote import RemoteUnavailableError

    async def _run() -> None:
        editor = _open_editor()
        try:
            await editor.upload()
        finally:
            await editor.aclose()

    try:
        asyncio.run(_run())
    except RemoteUnavailableError as exc:
        raise click.ClickException(str(exc)) from None
    click.echo("Remote copy updated.")


# ---------------------------------------------------------------------------
# Content service administration
# ---------------------------------------------------------------------------


def _require_database_url() -> str:
    url = get_settings().database_url
    if not url:
        raise click.ClickException("SHEETSYNC_DATABASE_URL is not set.")
    return url


@main.group()
def db() -> None:
    """Database management commands."""


@db.command(name="init")
def db_init() -> None:
    """Create the content service tables."""
    from sheetsync.server.db.engine import create_engine, init_schema

    async def _run() -> None:
        engine = create_engine(_require_database_url())
        try:
            await init_schema(engine)
        finally:
            await engine.dispose()

    asyncio.run(_run())
    click.echo("Database schema created.")


@main.group()
def users() -> None:
    """User management commands."""


@users.command(name="create")
@click.argument("username")
@click.option("--github-id", default=None, help="GitHub account id to link.")
def users_create(username: str, github_id: str | None) -> None:
    """Create a user and print a session token for it (development sign-in)."""
    from sheetsync.server.db.engine import create_engine, create_session_factory
    from sheetsync.server.managers.users import create_user, issue_session

    async def _run() -> str:
        engine = create_engine(_require_database_url())
        try:
            async with create_session_factory(engine)() as session:
                user = await create_user(session, username, github_id=github_id)
                return await issue_session(session, user.user_id)
        finally:
            await engine.dispose()

    click.echo(asyncio.run(_run()))


if __name__ == "__main__":
    main()

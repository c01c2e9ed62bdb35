"""dropy CLI entry point."""

import logging
import shutil
from pathlib import Path
from typing import NoReturn

import requests
import typer
from rich.console import Console
from rich.table import Table
from tqdm import tqdm

from dropy import __version__
from dropy.client import Client
from dropy.core.exceptions import DropyError
from dropy.core.models import CommitInfo, FileInfo, WriteMode
from dropy.core.upload.uploader import UploadPlan

app = typer.Typer(add_completion=False, help="Dropbox files command line interface.")
console = Console()


def _make_client() -> Client:
    return Client()


def _fail(exc: Exception) -> NoReturn:
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=1)


def _format_size(info: FileInfo) -> str:
    return "-" if info.is_dir else str(info.size)


def _format_time(info: FileInfo) -> str:
    if info.mod_time is None:
        return "-"
    return info.mod_time.strftime("%Y-%m-%d %H:%M:%S")


def _version_callback(value: bool) -> bool:
    if value:
        typer.echo(__version__)
        raise typer.Exit()
    return value


@app.callback()
def callback(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show the dropy version and exit.",
        callback=_version_callback,
        is_eager=True,
        is_flag=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log API calls to stderr."),
) -> None:
    """Handle global CLI options."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


@app.command("stat")
def stat_command(path: str = typer.Argument(..., help="Remote path.")) -> None:
    """Show metadata for a file or folder."""
    try:
        info = _make_client().stat(path)
    except (DropyError, requests.RequestException) as e:
        _fail(e)
    typer.echo(f"name:     {info.name}")
    typer.echo(f"path:     {info.path_display or path}")
    typer.echo(f"type:     {'folder' if info.is_dir else 'file'}")
    typer.echo(f"size:     {_format_size(info)}")
    typer.echo(f"modified: {_format_time(info)}")


@app.command("ls")
def ls_command(
    path: str = typer.Argument("/", help="Remote folder."),
    limit: int = typer.Option(0, "--limit", "-n", help="Maximum entries (0 = all)."),
    dirs: bool = typer.Option(False, "--dirs", help="Only show folders."),
    files: bool = typer.Option(False, "--files", help="Only show files."),
) -> None:
    """List a remote folder."""
    if dirs and files:
        typer.echo("Error: --dirs and --files are mutually exclusive", err=True)
        raise typer.Exit(code=2)
    client = _make_client()
    try:
        if dirs:
            entries = client.list_folders(path)
        elif files:
            entries = client.list_files(path)
        else:
            entries = client.list_n(path, limit)
    except (DropyError, requests.RequestException) as e:
        _fail(e)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Size", justify="right")
    table.add_column("Modified")
    for entry in entries:
        table.add_row(
            entry.name,
            "folder" if entry.is_dir else "file",
            _format_size(entry),
            _format_time(entry),
        )
    console.print(table)


@app.command("cat")
def cat_command(path: str = typer.Argument(..., help="Remote file.")) -> None:
    """Print a remote file to stdout."""
    try:
        data = _make_client().read(path)
    except (DropyError, requests.RequestException) as e:
        _fail(e)
    typer.echo(data, nl=False)


@app.command("get")
def get_command(
    path: str = typer.Argument(..., help="Remote file."),
    destination: Path = typer.Argument(..., help="Local destination."),
) -> None:
    """Download a remote file."""
    try:
        stream = _make_client().download(path)
        try:
            with destination.open("wb") as out:
                shutil.copyfileobj(stream, out)
        finally:
            stream.close()
    except (DropyError, requests.RequestException) as e:
        _fail(e)


@app.command("put")
def put_command(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    path: str = typer.Argument(..., help="Remote destination."),
    chunk_size: int = typer.Option(
        0, "--chunk-size", help="Upload session chunk size in bytes (0 = default)."
    ),
    add: bool = typer.Option(
        False, "--add", help="Keep an existing file instead of overwriting it."
    ),
) -> None:
    """Upload a local file, using an upload session when it is large."""
    size = source.stat().st_size
    commit = CommitInfo(
        path=path,
        mode=WriteMode.ADD if add else WriteMode.OVERWRITE,
        autorename=add,
    )
    client = _make_client()
    try:
        with source.open("rb") as f, tqdm(
            total=size, unit="B", unit_scale=True, desc=source.name, leave=False
        ) as progress:
            info = client.upload_session_options(
                UploadPlan(commit=commit, source=f, size=size, chunk_size=chunk_size),
                progress_callback=progress.update,
            )
    except (DropyError, requests.RequestException) as e:
        _fail(e)
    typer.echo(f"Uploaded {info.path_display or path} ({info.size} bytes)")


@app.command("mkdir")
def mkdir_command(path: str = typer.Argument(..., help="Remote folder.")) -> None:
    """Create a remote folder."""
    try:
        _make_client().mkdir(path)
    except (DropyError, requests.RequestException) as e:
        _fail(e)


@app.command("rm")
def rm_command(path: str = typer.Argument(..., help="Remote path.")) -> None:
    """Delete a remote file or folder."""
    try:
        _make_client().delete(path)
    except (DropyError, requests.RequestException) as e:
        _fail(e)


@app.command("cp")
def cp_command(src: str, dst: str) -> None:
    """Copy a remote file or folder."""
    try:
        _make_client().copy(src, dst)
    except (DropyError, requests.RequestException) as e:
        _fail(e)


@app.command("mv")
def mv_command(src: str, dst: str) -> None:
    """Move a remote file or folder."""
    try:
        _make_client().move(src, dst)
    except (DropyError, requests.RequestException) as e:
        _fail(e)


@app.command("search")
def search_command(
    query: str = typer.Argument(..., help="Filename to search for."),
    path: str = typer.Option("/", "--path", "-p", help="Folder to search in."),
) -> None:
    """Search for files by name."""
    try:
        for info in _make_client().iter_search(path, query):
            typer.echo(info.path_display or info.name)
    except (DropyError, requests.RequestException) as e:
        _fail(e)


def main() -> None:
    """CLI entrypoint for the dropy command."""
    app()


if __name__ == "__main__":
    main()

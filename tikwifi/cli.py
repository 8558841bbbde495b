from __future__ import annotations

import importlib.metadata as md
import json
import logging
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import TikwifiConfig, load_config, resolve_config_path
from .core.errors import TikwifiError
from .core.security import sanitize_ssid
from .domain.scan_csv import mark_known, parse_scan_csv
from .infrastructure.router import (
    RouterClient,
    SecurityProfileReconciler,
    WirelessInterfaceService,
)
from .infrastructure.scan import ScanOrchestrator, ScanSession, ScanStatus

# Typer application: tests import this
app = typer.Typer(no_args_is_help=True, add_completion=False, help="tikwifi - MikroTik Wi-Fi manager")
console = Console()

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
DEFAULT_CONFIG = Path("configs/tikwifi.yml")


def _bind_to_url(host: str, port: int, path: str = "") -> str:
    # If bound to 0.0.0.0 / ::, show localhost for a clickable URL.
    safe_host = "127.0.0.1" if host in ("0.0.0.0", "::") else host
    return f"http://{safe_host}:{port}{path}"


def _configure_logging(cfg: TikwifiConfig) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if cfg.logging.file is not None:
        cfg.logging.file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(cfg.logging.file, encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, cfg.logging.level),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
        force=True,
    )


def _load(config: Path) -> tuple[Path, TikwifiConfig]:
    resolved = resolve_config_path(config)
    try:
        cfg = load_config(resolved)
    except (OSError, ValueError) as exc:
        console.print(f"[red]Config error ({resolved}): {escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc
    _configure_logging(cfg)
    return resolved, cfg


def _fail(exc: TikwifiError) -> typer.Exit:
    console.print(f"[red]{exc.code}: {escape(str(exc))}[/red]")
    return typer.Exit(code=1)


@app.command()
def version() -> None:
    """Print version information."""
    try:
        console.print(f"tikwifi {md.version('tikwifi')}")
    except md.PackageNotFoundError:
        console.print("tikwifi dev")
    raise typer.Exit(code=0)


@app.command(name="config-validate")
def config_validate(path: Path = typer.Argument(DEFAULT_CONFIG)) -> None:
    """Validate and show resolved configuration."""
    resolved = resolve_config_path(path)
    console.print(f"Using config: {resolved}")
    try:
        cfg = load_config(resolved)
    except (OSError, ValueError) as exc:
        console.print(f"Config validation failed: {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    console.print("Config OK.")
    console.print(f"- router: {cfg.router.ip} ({cfg.router.wlan_interface})")
    console.print(f"- bands: {cfg.bands.band_2ghz}, {cfg.bands.band_5ghz}")
    console.print(f"- scan: {cfg.scan.duration_seconds}s -> {cfg.scan.csv_filename}")
    console.print(f"- web: {_bind_to_url(cfg.web.bind_host, cfg.web.bind_port)}")


@app.command(name="config-which")
def config_which(config: Path = typer.Option(DEFAULT_CONFIG, "--config", "-c")) -> None:
    """Print resolved config path by priority rules."""
    console.print(str(resolve_config_path(config)))


@app.command()
def serve(config: Path = typer.Option(DEFAULT_CONFIG, "--config", "-c")) -> None:
    """Run the web UI and API (single-threaded)."""
    from .apps.web import create_app

    resolved, cfg = _load(config)
    console.print(f"Using config: {resolved}")
    console.print(f"Web UI on {_bind_to_url(cfg.web.bind_host, cfg.web.bind_port)}")
    flask_app = create_app(cfg, config_path=resolved)
    flask_app.run(host=cfg.web.bind_host, port=cfg.web.bind_port, threaded=False)


@app.command()
def scan(
    config: Path = typer.Option(DEFAULT_CONFIG, "--config", "-c"),
    band: str | None = typer.Option(None, "--band", help="RouterOS band, defaults to the 2.4 GHz band"),
) -> None:
    """Scan for networks through the router and list them."""
    _, cfg = _load(config)
    client = RouterClient(cfg.router)
    orch = ScanOrchestrator(ScanSession(), client, cfg, clock=time.monotonic, sleep=time.sleep)
    try:
        started = orch.start(band)
        console.print(f"Scanning for {started['duration_ms'] / 1000:.0f}s ...")
        time.sleep(started["min_ready_ms"] / 1000.0)
        while True:
            outcome = orch.poll()
            status = outcome.payload.get("status")
            if outcome.delivered:
                outcome.complete()
                break
            if status != ScanStatus.PENDING.value:
                console.print(f"[red]Scan ended: {status}[/red]")
                raise typer.Exit(code=1)
            time.sleep(started["poll_interval_ms"] / 1000.0)
    except TikwifiError as exc:
        raise _fail(exc) from exc
    finally:
        client.close()

    payload = outcome.payload
    networks = mark_known(parse_scan_csv(payload["csv"]), payload["profiles"])
    table = Table(title=f"Networks on {payload['band']}")
    table.add_column("SSID")
    table.add_column("Signal", justify="right")
    table.add_column("MHz", justify="right")
    table.add_column("Security")
    table.add_column("Known")
    for net in networks:
        table.add_row(
            net.ssid,
            f"{net.signal} dBm",
            str(net.frequency or "-"),
            "secured" if net.privacy else "open",
            net.profile_name if net.known else "",
        )
    console.print(table)


@app.command()
def connect(
    ssid: str = typer.Argument(...),
    config: Path = typer.Option(DEFAULT_CONFIG, "--config", "-c"),
    password: str = typer.Option("", "--password", "-p"),
    open_network: bool = typer.Option(False, "--open", help="Network has no password"),
    band: str | None = typer.Option(None, "--band"),
    profile_name: str | None = typer.Option(None, "--profile-name"),
) -> None:
    """Join SSID: reconcile its security profile and switch the interface to station mode."""
    _, cfg = _load(config)
    ssid = sanitize_ssid(ssid)
    if not ssid:
        console.print("[red]SSID is empty[/red]")
        raise typer.Exit(code=1)
    client = RouterClient(cfg.router)
    try:
        name = SecurityProfileReconciler(client).reconcile(ssid, password, not open_network, profile_name)
        service = WirelessInterfaceService(client, cfg.router.wlan_interface)
        service.connect(service.resolve(), ssid, band or cfg.bands.band_2ghz, name)
    except TikwifiError as exc:
        raise _fail(exc) from exc
    finally:
        client.close()
    console.print(f"Joining '{ssid}' with profile {name}")


@app.command()
def disconnect(config: Path = typer.Option(DEFAULT_CONFIG, "--config", "-c")) -> None:
    """Disable the configured wireless interface."""
    _, cfg = _load(config)
    client = RouterClient(cfg.router)
    try:
        service = WirelessInterfaceService(client, cfg.router.wlan_interface)
        service.disconnect(service.resolve())
    except TikwifiError as exc:
        raise _fail(exc) from exc
    finally:
        client.close()
    console.print(f"{cfg.router.wlan_interface} disabled")


@app.command()
def forget(
    config: Path = typer.Option(DEFAULT_CONFIG, "--config", "-c"),
    ssid: str = typer.Option("", "--ssid"),
    profile_name: str = typer.Option("", "--profile-name"),
) -> None:
    """Delete a security profile created by tikwifi."""
    _, cfg = _load(config)
    client = RouterClient(cfg.router)
    try:
        SecurityProfileReconciler(client).delete_managed(ssid=sanitize_ssid(ssid), profile_name=profile_name.strip())
    except TikwifiError as exc:
        raise _fail(exc) from exc
    finally:
        client.close()
    console.print("Profile deleted")


@app.command()
def status(config: Path = typer.Option(DEFAULT_CONFIG, "--config", "-c")) -> None:
    """Show router interface, registration and IP state."""
    _, cfg = _load(config)
    client = RouterClient(cfg.router)
    try:
        snapshot = WirelessInterfaceService(client, cfg.router.wlan_interface).status_snapshot()
    finally:
        client.close()
    console.print_json(json.dumps(snapshot))


if __name__ == "__main__":
    app()

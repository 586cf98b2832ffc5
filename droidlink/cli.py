"""Command Line Interface for droidlink."""

import functools
import sys
import time
from pathlib import Path
from typing import List, Optional, Tuple

import click
from rich.console import Console
from rich.table import Table

from .access import AccessChecker, AccessReport
from .adb import ADBClient, check_adb_available, list_devices
from .config import DroidLinkConfig, TransportConfig, load_config, save_config
from .exceptions import DroidLinkError, NoDeviceError
from .mount import CleanupStatus, MountManager
from .resolver import PathResolver, PathStatus
from .transfer import MoveOutcome, TransferEngine, TransferJob
from .util import format_duration, format_size, get_logger, setup_logging
from .worlds import ExportMode, WorldBackupService

console = Console()
logger = get_logger(__name__)

SETUP_TEXT = """\
[bold]SSH server setup for Android[/bold]

[bold]1. Install an SSH server app[/bold]
  Termux (recommended): pkg update && pkg install openssh && sshd   (port 8022)
  SSHelper: tap "Start"; user 'sshelper', password shown in the app (port 2222)

[bold]2. Find your SSH username[/bold]
  Termux: run 'whoami' (e.g. u0_a123)

[bold]3. Get the device IP[/bold]
  droidlink device ip

[bold]4. Mount[/bold]
  droidlink sshfs mount -u your_username
  droidlink sshfs mount -u your_username -i 192.168.1.xxx -p 8022

Remote roots tried in order: /storage/emulated/0, /sdcard,
Termux shared storage, /storage/self/primary, Termux home.
Android/data and Android/obb stay blocked over SSH; use 'droidlink files' (adb) for those.
"""


def setup_cli_logging(verbose: bool = False, level: str = "INFO", log_file: Optional[Path] = None):
    """Setup logging for CLI."""
    setup_logging(level="DEBUG" if verbose else level, log_file=log_file)


def handle_errors(func):
    """Print droidlink errors with their remediation hint and exit 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DroidLinkError as e:
            logger.debug(f"{func.__name__} failed", exc_info=True)
            console.print(f"[red]Error: {e}[/red]")
            if e.hint:
                console.print(f"[yellow]{e.hint}[/yellow]")
            sys.exit(1)

    return wrapper


def _config(ctx: click.Context) -> DroidLinkConfig:
    return ctx.obj["config"]


def _bridge(config: DroidLinkConfig) -> ADBClient:
    return ADBClient(
        adb_path=config.bridge.adb_path,
        serial=config.bridge.serial,
        timeout=config.bridge.timeout,
        transfer_timeout=config.bridge.transfer_timeout,
    )


def _connected_bridge(config: DroidLinkConfig) -> ADBClient:
    """adb client bound to exactly one ready device."""
    if not check_adb_available(config.bridge.adb_path):
        raise DroidLinkError(
            "ADB is not available or not in PATH",
            hint="Install Android platform tools (macOS: brew install android-platform-tools).",
        )

    devices = list_devices(config.bridge.adb_path)
    if not devices:
        raise NoDeviceError()

    bridge = _bridge(config)
    if bridge.serial is None:
        if len(devices) > 1:
            raise DroidLinkError(
                "Multiple devices found",
                hint="Pass --serial with one of: " + ", ".join(d.serial for d in devices),
            )
        bridge.serial = devices[0].serial
    elif not any(d.serial == bridge.serial for d in devices):
        raise DroidLinkError(f"Device with serial {bridge.serial} not found")

    return bridge


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, path_type=Path), help="Configuration file path")
@click.option("--serial", "-s", help="Device serial number")
@click.option("--log-file", type=click.Path(path_type=Path), help="Also write a detailed log to this file")
@click.pass_context
def cli(ctx, verbose: bool, config_path: Optional[Path], serial: Optional[str], log_file: Optional[Path]):
    """droidlink - get files off Android devices over adb and sshfs."""
    ctx.ensure_object(dict)
    config = load_config(config_path)
    if serial:
        config.bridge.serial = serial

    setup_cli_logging(verbose, config.log_level, log_file)
    ctx.obj["config"] = config


@cli.command("init-config")
@click.option("--path", "-p", type=click.Path(path_type=Path), help="Where to write the config file")
@click.pass_context
def init_config(ctx, path: Optional[Path]):
    """Write the current configuration (defaults plus overrides) to disk."""
    written = save_config(_config(ctx), path)
    console.print(f"Configuration written to {written}")


# ------------------------------------------------------------------ device


@cli.group()
def device():
    """Device commands."""
    pass


@device.command("list")
@click.pass_context
@handle_errors
def device_list(ctx):
    """List attached devices."""
    devices = list_devices(_config(ctx).bridge.adb_path, include_unauthorized=True)

    if not devices:
        console.print("[yellow]No devices found[/yellow]")
        return

    table = Table(title="Connected Devices")
    table.add_column("Serial", style="cyan")
    table.add_column("State", style="green")

    for info in devices:
        state = info.state if info.is_ready else f"[red]{info.state}[/red]"
        table.add_row(info.serial, state)

    console.print(table)


@device.command("ip")
@click.pass_context
@handle_errors
def device_ip(ctx):
    """Detect the device Wi-Fi IP address."""
    address = _connected_bridge(_config(ctx)).get_ip_address()
    if address is None:
        raise DroidLinkError(
            "Could not detect Android IP address automatically",
            hint="On Android: Settings > Wi-Fi > (tap network) > IP address, then pass --android-ip.",
        )
    console.print(address)


@cli.command("paths")
@click.argument("candidates", nargs=-1)
@click.pass_context
@handle_errors
def paths(ctx, candidates: Tuple[str, ...]):
    """Find which storage roots exist on the device."""
    config = _config(ctx)
    resolver = PathResolver(_connected_bridge(config))
    candidates = candidates or tuple(config.storage_candidates)

    table = Table(title="Android storage paths")
    table.add_column("Path", style="cyan")
    table.add_column("Exists")
    table.add_column("Status")
    table.add_column("Sample files")

    for probe in resolver.probe(candidates):
        sample = " ".join(probe.sample)
        if len(sample) > 30:
            sample = sample[:27] + "..."
        style = "green" if probe.status == PathStatus.ACCESSIBLE else "yellow"
        table.add_row(
            probe.path,
            "YES" if probe.exists else "NO",
            f"[{style}]{probe.status.value}[/{style}]",
            sample or "-",
        )

    console.print(table)
    console.print(f"First reachable path: [bold green]{resolver.resolve(candidates)}[/bold green]")


def _print_access(report: AccessReport):
    for warning in report.warnings:
        console.print(f"[yellow]{warning}[/yellow]")

    table = Table(title=f"Access via {report.channel}")
    table.add_column("Path", style="cyan")
    table.add_column("Result")
    table.add_column("Items", justify="right")

    for result in report.results:
        if result.exists:
            table.add_row(result.path, "[green]EXISTS[/green]", str(result.item_count))
        else:
            table.add_row(result.path, "[red]NOT FOUND or NOT ACCESSIBLE[/red]", "-")

    console.print(table)
    console.print(
        "Android 11+ scoped storage blocks Android/data and Android/obb for apps (and SSH); adb can read them."
    )


@cli.command("access")
@click.argument("channel", type=click.Choice(["adb", "ssh"]))
@click.option("--ssh-user", "-u", help="SSH username")
@click.option("--android-ip", "-i", help="Android device IP address")
@click.option("--ssh-port", "-p", type=int, help="SSH port")
@click.pass_context
@handle_errors
def access(ctx, channel: str, ssh_user: Optional[str], android_ip: Optional[str], ssh_port: Optional[int]):
    """Check which directories adb or ssh can reach."""
    config = _config(ctx)

    if channel == "adb":
        checker = AccessChecker(_connected_bridge(config))
        _print_access(checker.check_adb(config.access_paths_adb))
        return

    transport = _transport(config.mount.transport, ssh_user, android_ip, ssh_port)
    _print_access(AccessChecker().check_ssh(config.access_paths_ssh, transport))


# ------------------------------------------------------------------ files


@cli.group()
def files():
    """File access over adb (reaches Android/data)."""
    pass


@files.command("list")
@click.argument("path", default="/sdcard")
@click.pass_context
@handle_errors
def files_list(ctx, path: str):
    """List files in PATH."""
    engine = TransferEngine(_connected_bridge(_config(ctx)))
    entries = engine.list_directory(path)

    if not entries:
        console.print(f"No files or directories found in: {path}")
        return

    table = Table(title=f"Listing: {path.rstrip('/') or '/'}")
    table.add_column("Permissions", style="dim")
    table.add_column("Size", justify="right")
    table.add_column("Modified")
    table.add_column("Name", style="cyan")

    for entry in entries:
        name = f"{entry.name}/" if entry.is_directory else entry.name
        table.add_row(entry.permissions, entry.size, entry.date, name)

    console.print(table)
    console.print(f"Total items: {len(entries)}")


@files.command("pull")
@click.argument("remote")
@click.argument("local", type=click.Path(path_type=Path))
@click.pass_context
@handle_errors
def files_pull(ctx, remote: str, local: Path):
    """Pull a file or directory from the device."""
    engine = TransferEngine(_connected_bridge(_config(ctx)))
    with console.status(f"Pulling {remote}..."):
        engine.pull(remote, local)
    console.print(f"[green]Done.[/green] Files are in: {local}")


@files.command("push")
@click.argument("local", type=click.Path(path_type=Path))
@click.argument("remote")
@click.pass_context
@handle_errors
def files_push(ctx, local: Path, remote: str):
    """Push a file or directory to the device."""
    engine = TransferEngine(_connected_bridge(_config(ctx)))
    with console.status(f"Pushing {local}..."):
        engine.push(local, remote)
    console.print("[green]Done.[/green]")


def _confirm_delete(job: TransferJob) -> bool:
    console.rule("Copy complete")
    console.print(f"{len(job.copied)} file(s) copied to: {job.destination}")
    if job.failed:
        console.print(f"[yellow]{len(job.failed)} file(s) failed to copy and will stay on the device[/yellow]")
    console.print("Please verify the copied files before they are deleted from the Android device.")
    return click.confirm(f"Delete {len(job.copied)} copied file(s) from {job.source}?", default=False)


@files.command("move")
@click.argument("remote")
@click.argument("local", type=click.Path(path_type=Path))
@click.option("--yes", "-y", is_flag=True, help="Delete without asking after the copy")
@click.pass_context
@handle_errors
def files_move(ctx, remote: str, local: Path, yes: bool):
    """Move all non-hidden files from REMOTE on the device to LOCAL."""
    confirm = (lambda job: True) if yes else _confirm_delete
    engine = TransferEngine(_connected_bridge(_config(ctx)), confirm=confirm)

    console.print(f"Scanning Android directory: {remote} (excluding hidden files)")
    result = engine.move(remote, local)

    for warning in result.warnings:
        console.print(f"[yellow]Warning: {warning}[/yellow]")

    if result.outcome == MoveOutcome.NOTHING_TO_MOVE:
        console.print(f"No non-hidden files found in: {remote}")
    elif result.outcome == MoveOutcome.DECLINED:
        console.print(f"Nothing deleted. Copies are in: {local}")
    else:
        console.print(
            f"[green]Done.[/green] {len(result.deleted)} file(s) moved from {remote} to {local}"
        )


@files.command("shell")
@click.pass_context
@handle_errors
def files_shell(ctx):
    """Open an interactive adb shell."""
    console.print("Opening adb shell...")
    sys.exit(_connected_bridge(_config(ctx)).open_shell())


@files.command("explore")
@click.argument("directory", required=False, type=click.Path(path_type=Path))
@click.pass_context
@handle_errors
def files_explore(ctx, directory: Optional[Path]):
    """Pull common directories (DCIM, Download, ...) into a local folder."""
    config = _config(ctx)
    dest = directory or config.explore_dir
    engine = TransferEngine(_connected_bridge(config))

    console.print(f"Pulling common Android directories to: {dest}")
    with console.status("Pulling (this may take a while)..."):
        results = engine.explore(config.explore_paths, dest)

    for remote, ok in results.items():
        name = remote.rstrip("/").rsplit("/", 1)[-1]
        if ok:
            console.print(f"  [green]✓[/green] {name}")
        else:
            console.print(f"  [red]✗[/red] {name} (not accessible or empty)")

    console.print(f"Files are in: {dest} (delete the folder when done browsing)")


# ------------------------------------------------------------------ sshfs


def _transport(
    base: TransportConfig,
    user: Optional[str],
    host: Optional[str],
    port: Optional[int],
) -> TransportConfig:
    updates = {}
    if user:
        updates["user"] = user
    if host:
        updates["host"] = host
    if port:
        updates["port"] = port
    return base.model_copy(update=updates)


@cli.group()
def sshfs():
    """Mount device storage over sshfs."""
    pass


@sshfs.command("mount")
@click.option("--ssh-user", "-u", help="SSH username (e.g. u0_a123 for Termux)")
@click.option("--android-ip", "-i", help="Android device IP address (auto-detected if omitted)")
@click.option("--ssh-port", "-p", type=int, help="SSH port (default: 8022)")
@click.option("--mount-point", "-m", type=click.Path(path_type=Path), help="Local mount point")
@click.option("--use-sudo", "-s", is_flag=True, help="Use sudo for mounting")
@click.option("--remote-path", "-r", "remote_paths", multiple=True, help="Remote root to try (repeatable)")
@click.pass_context
@handle_errors
def sshfs_mount(ctx, ssh_user, android_ip, ssh_port, mount_point, use_sudo, remote_paths: List[str]):
    """Mount the device at MOUNT_POINT."""
    config = _config(ctx)
    mount_config = config.mount.model_copy(update={"sudo_mode": use_sudo or config.mount.sudo_mode})
    transport = _transport(mount_config.transport, ssh_user, android_ip, ssh_port)

    if not transport.host:
        console.print("Getting Android device IP address via ADB...")
        transport.host = _connected_bridge(config).get_ip_address()
        if not transport.host:
            raise DroidLinkError(
                "Could not detect Android IP address automatically",
                hint="Provide it with --android-ip 192.168.1.xxx",
            )
        console.print(f"Android IP address: {transport.host}")

    if not transport.user:
        transport.user = click.prompt("SSH username (e.g. u0_a123 for Termux, sshelper for SSHelper)")

    manager = MountManager(mount_config)
    if mount_config.sudo_mode:
        console.print("(Using sudo - you will be prompted for your password)")

    session = manager.mount(remote_paths or None, mount_point, transport)
    console.print(f"[bold green]SUCCESS![/bold green] Android device mounted at: {session.mount_point}")
    console.print(f"Remote path: {session.remote_root}")


@sshfs.command("unmount")
@click.option("--mount-point", "-m", type=click.Path(path_type=Path), help="Local mount point")
@click.pass_context
@handle_errors
def sshfs_unmount(ctx, mount_point: Optional[Path]):
    """Unmount the device."""
    manager = MountManager(_config(ctx).mount)
    target = mount_point or manager.config.mount_point

    if manager.unmount(mount_point):
        console.print(f"[bold green]SUCCESS![/bold green] Unmounted {target}")
    else:
        console.print(f"{target} is not mounted")


@sshfs.command("cleanup")
@click.argument("directories", nargs=-1, type=click.Path(path_type=Path))
@click.pass_context
@handle_errors
def sshfs_cleanup(ctx, directories: Tuple[Path, ...]):
    """Clean up stale sshfs mount points."""
    manager = MountManager(_config(ctx).mount)
    targets = directories or (manager.config.mount_point,)
    failed = False

    for target in targets:
        console.print(f"=== Cleaning up: {target} ===")
        try:
            result = manager.cleanup(target)
        except DroidLinkError as e:
            console.print(f"  [yellow]⚠ {e}[/yellow]")
            failed = True
            continue

        if result.unmounted:
            console.print("  ✓ Unmounted successfully")
        if result.status == CleanupStatus.ABSENT:
            console.print("  ✓ Does not exist, nothing to clean")
        elif result.status == CleanupStatus.REMOVED:
            console.print("  ✓ Removed empty directory")
        elif result.status == CleanupStatus.KEPT_RESERVED:
            console.print("  ✓ System-managed location left in place")
        else:
            failed = True
            console.print("  [yellow]⚠ Directory is not empty. Contents:[/yellow]")
            for name in result.contents:
                console.print(f"    {name}")
            console.print(f"  → Remove manually with: rm -rf '{result.mount_point}'")

    if failed:
        sys.exit(1)


@sshfs.command("setup")
def sshfs_setup():
    """Show setup instructions for an SSH server on Android."""
    console.print(SETUP_TEXT)


# ------------------------------------------------------------------ worlds


@cli.group()
def worlds():
    """Minecraft Bedrock world backups."""
    pass


def _world_service(ctx) -> WorldBackupService:
    config = _config(ctx)
    return WorldBackupService(_connected_bridge(config), config.worlds)


@worlds.command("list")
@click.pass_context
@handle_errors
def worlds_list(ctx):
    """List worlds on the device."""
    entries = _world_service(ctx).list_worlds()

    if not entries:
        console.print("[yellow]No worlds found. Make sure Minecraft is installed and has worlds.[/yellow]")
        return

    table = Table(title="Minecraft worlds")
    table.add_column("#", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Folder", style="dim")

    for i, entry in enumerate(entries, 1):
        table.add_row(str(i), entry.display_name, entry.identifier)

    console.print(table)


@worlds.command("backup")
@click.option("--world", "-w", "identifier", help="World folder name to back up")
@click.option("--all", "all_worlds", is_flag=True, help="Back up every world")
@click.option("--archive", is_flag=True, help="Export as .mcworld files instead of folders")
@click.pass_context
@handle_errors
def worlds_backup(ctx, identifier: Optional[str], all_worlds: bool, archive: bool):
    """Back up one world or all worlds."""
    if bool(identifier) == all_worlds:
        raise click.UsageError("Pass exactly one of --world or --all")

    service = _world_service(ctx)
    entries = service.list_worlds()
    mode = ExportMode.ALL if all_worlds else ExportMode.SINGLE
    selection = service.catalog.select_for_export(entries, mode, identifier)

    with console.status(f"Backing up {len(selection)} world(s)..."):
        result = service.backup_selection(selection, archive=archive)

    for world_id, path in result.succeeded.items():
        console.print(f"  [green]✓[/green] {world_id} -> {path}")
    for world_id, message in result.failures.items():
        console.print(f"  [yellow]⚠ {world_id}: {message}[/yellow]")

    if not result.succeeded:
        console.print("[red]No world was backed up[/red]")
        sys.exit(1)
    if result.partial:
        console.print(f"[yellow]{len(result.failures)} world(s) failed; the rest were backed up[/yellow]")
    console.print(f"Backup folder: {result.backup_dir}")


@worlds.command("full")
@click.option("--out-dir", "-o", type=click.Path(path_type=Path), default=Path("./mc_backups"), show_default=True)
@click.option("--export-archives", is_flag=True, help="Also export each world as a .mcworld file")
@click.pass_context
@handle_errors
def worlds_full(ctx, out_dir: Path, export_archives: bool):
    """Pull all Minecraft data (worlds, packs) and write a report."""
    config = _config(ctx)
    bridge = _connected_bridge(config)
    service = WorldBackupService(bridge, config.worlds)

    start_time = time.time()
    with console.status("Pulling com.mojang data..."):
        result = service.full_backup(out_dir, export_archives=export_archives, host=bridge.serial)
    duration = time.time() - start_time

    report = result.report
    console.print(f"Pulled from: {report.source}")
    console.print(f"Worlds: {report.total_worlds} ({report.healthy_worlds} passed the integrity check)")
    for path in result.archives:
        console.print(f"Exported: {path}")
    for world_id, message in report.export_failures.items():
        console.print(f"[yellow]Export failed for {world_id}: {message}[/yellow]")

    size = sum(p.stat().st_size for p in result.backup_dir.rglob("*") if p.is_file())
    console.print(
        f"[bold green]Done in {format_duration(duration)}.[/bold green] "
        f"Backup folder: {result.backup_dir} ({format_size(size)})"
    )
    console.print(f"Report: {result.report_path}")


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()

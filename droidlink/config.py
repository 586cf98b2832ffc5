"""Configuration management for droidlink."""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from ruamel.yaml import YAML

DEFAULT_CONFIG_PATH = Path.home() / ".config/droidlink/config.yaml"

MOJANG_DATA = "Android/data/com.mojang.minecraftpe/files/games/com.mojang"


class BridgeConfig(BaseModel):
    """Configuration for the adb debug bridge."""

    adb_path: str = Field(default="adb", description="Path to ADB binary")
    serial: Optional[str] = Field(default=None, description="Device serial when several are attached")
    timeout: int = Field(default=30, description="Timeout for shell queries in seconds")
    transfer_timeout: int = Field(default=1800, description="Timeout for pull/push in seconds")


class TransportConfig(BaseModel):
    """SSH transport parameters used by sshfs."""

    host: Optional[str] = Field(default=None, description="Device IP (auto-detected over adb if empty)")
    port: int = Field(default=8022, description="SSH port (Termux: 8022, SSHelper: 2222)")
    user: Optional[str] = Field(default=None, description="SSH user, e.g. u0_a123 for Termux")
    options: List[str] = Field(
        default=["reconnect", "ServerAliveInterval=15", "ServerAliveCountMax=3"],
        description="sshfs -o options"
    )
    sudo_options: List[str] = Field(
        default=["allow_other", "defer_permissions"],
        description="Extra sshfs -o options when mounting with sudo"
    )


class MountConfig(BaseModel):
    """Configuration for the sshfs mount lifecycle."""

    remote_candidates: List[str] = Field(
        default=[
            "/storage/emulated/0",
            "/sdcard",
            "/data/data/com.termux/files/home/storage/shared",
            "/storage/self/primary",
            "/data/data/com.termux/files/home",
        ],
        description="Remote roots tried in order"
    )
    mount_point: Path = Field(
        default_factory=lambda: Path.home() / "AndroidDevice",
        description="Local mount point"
    )
    transport: TransportConfig = Field(default_factory=TransportConfig)
    sudo_mode: bool = Field(default=False, description="Run sshfs through sudo")
    settle_delay: float = Field(default=0.3, description="Seconds to wait before verifying a mount")
    reserved_prefixes: List[str] = Field(
        default=["/Volumes/"],
        description="System-managed locations that are never created or removed"
    )
    sshfs_path: str = Field(default="sshfs", description="Path to sshfs binary")


class WorldsConfig(BaseModel):
    """Configuration for Minecraft Bedrock world backups."""

    data_candidates: List[str] = Field(
        default=[f"/sdcard/{MOJANG_DATA}", f"/storage/emulated/0/{MOJANG_DATA}"],
        description="Remote com.mojang directories tried in order"
    )
    worlds_dirname: str = Field(default="minecraftWorlds", description="World folder under com.mojang")
    name_file: str = Field(default="levelname.txt", description="Per-world display name file")
    archive_suffix: str = Field(default=".mcworld", description="Suffix for exported archives")
    backup_root: Path = Field(
        default_factory=lambda: Path.home() / "Downloads/Minecraft-Worlds-Backups",
        description="Root directory for world backups"
    )
    timestamp_format: str = Field(default="%Y-%m-%d__%I-%M-%S-%p", description="Backup folder timestamp")


class DroidLinkConfig(BaseModel):
    """Main configuration for droidlink."""

    model_config = ConfigDict(validate_assignment=True)

    bridge: BridgeConfig = Field(default_factory=BridgeConfig)
    mount: MountConfig = Field(default_factory=MountConfig)
    worlds: WorldsConfig = Field(default_factory=WorldsConfig)

    storage_candidates: List[str] = Field(
        default=[
            "/sdcard",
            "/storage/emulated/0",
            "/storage/self/primary",
            "/storage/emulated/0/DCIM",
            "/storage/emulated/0/Download",
            "/mnt/sdcard",
        ],
        description="Storage roots probed by the paths command"
    )
    explore_paths: List[str] = Field(
        default=[
            "/sdcard/DCIM",
            "/sdcard/Download",
            "/sdcard/Movies",
            "/sdcard/Music",
            "/sdcard/Pictures",
            "/sdcard/Documents",
        ],
        description="Directories pulled by the explore command"
    )
    explore_dir: Path = Field(
        default_factory=lambda: Path.home() / "Downloads/files-downloaded-by-droidlink",
        description="Local folder for explore downloads"
    )
    access_paths_adb: List[str] = Field(
        default=[
            "/storage/emulated/0",
            "/storage/emulated/0/DCIM",
            "/storage/emulated/0/Download",
            "/storage/emulated/0/Android/data",
            "/storage/emulated/0/Android/data/com.mojang.minecraftpe",
            "/storage/emulated/0/Android/data/com.mojang.minecraftpe/files",
            f"/sdcard/{MOJANG_DATA}",
        ],
        description="Paths checked by 'access adb'"
    )
    access_paths_ssh: List[str] = Field(
        default=[
            "/storage/emulated/0",
            "/storage/emulated/0/DCIM",
            "/storage/emulated/0/Download",
            "/storage/emulated/0/Android/data",
            "/storage/emulated/0/Android/data/com.mojang.minecraftpe",
            "/data/data/com.termux/files/home/storage/shared",
            "/data/data/com.termux/files/home/storage/shared/Android/data",
        ],
        description="Paths checked by 'access ssh'"
    )
    log_level: str = Field(default="INFO", description="Logging level")


def load_config(config_path: Optional[Path] = None) -> DroidLinkConfig:
    """Load configuration from file, falling back to defaults."""

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if config_path.exists():
        yaml = YAML(typ="safe")
        with open(config_path, "r") as f:
            data = yaml.load(f) or {}
        return DroidLinkConfig(**data)

    return DroidLinkConfig()


def save_config(config: DroidLinkConfig, config_path: Optional[Path] = None) -> Path:
    """Save configuration to file."""

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    config_path.parent.mkdir(parents=True, exist_ok=True)

    yaml = YAML()
    yaml.default_flow_style = False

    with open(config_path, "w") as f:
        yaml.dump(config.model_dump(mode="json"), f)

    return config_path

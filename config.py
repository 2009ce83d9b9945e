"""Configuration management for Budget Buddy.

Reads configuration from ~/.config/budget-buddy.toml and creates default config if needed.
"""

from pathlib import Path
from dataclasses import dataclass
import tomllib
import tomli_w

_DIRECTIONS = ("ascending", "descending")


@dataclass
class Config:
    """Application configuration."""

    base_dir: Path
    db_data_dir: Path
    db_filename: str
    log_level: str
    log_dir: Path
    owner_id: str = "default"
    priority_direction: str = "ascending"
    include_earmarked: bool = False

    @property
    def db_path(self) -> Path:
        """Get the full database path (data_dir/filename)."""
        return self.db_data_dir / self.db_filename

    @classmethod
    def default(cls) -> "Config":
        """Create a Config with default values."""
        home = Path.home()
        base_dir = home / "data" / "budget-buddy"
        return cls(
            base_dir=base_dir,
            db_data_dir=base_dir / "db",
            db_filename="budget-buddy.db",
            log_level="INFO",
            log_dir=base_dir / "logs",
        )


def get_config_path() -> Path:
    """Get the path to the config file."""
    return Path.home() / ".config" / "budget-buddy.toml"


def get_migrations_dir() -> Path:
    """Get the path to the migrations directory.

    This is always relative to the code location, not configurable.
    """
    return Path(__file__).parent / "db" / "migrations"


def load_config() -> Config:
    """Load configuration from file, creating default if it doesn't exist.

    Returns:
        Config object with loaded or default values.

    Raises:
        ValueError: If priority_direction is not "ascending" or "descending".
    """
    config_path = get_config_path()

    # If config doesn't exist, create it with defaults
    if not config_path.exists():
        config = Config.default()
        _write_config(config)
        return config

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    return parse_config(data)


def parse_config(data: dict) -> Config:
    """Build a Config from parsed TOML data, filling defaults for missing values.

    Args:
        data: Dictionary as returned by tomllib.load.

    Returns:
        Config object.
    """
    base_dir = Path(data.get("base_dir", Path.home() / "data" / "budget-buddy"))

    db_config = data.get("database", {})
    db_data_dir = Path(db_config.get("data_dir", base_dir / "db"))
    db_filename = db_config.get("filename", "budget-buddy.db")

    log_config = data.get("logging", {})
    log_level = log_config.get("level", "INFO")
    log_dir = Path(log_config.get("log_dir", base_dir / "logs"))

    budget_config = data.get("budget", {})
    owner_id = str(budget_config.get("owner_id", "default"))
    priority_direction = budget_config.get("priority_direction", "ascending").lower()
    include_earmarked = bool(budget_config.get("include_earmarked", False))

    if priority_direction not in _DIRECTIONS:
        raise ValueError(
            f"Invalid priority_direction '{priority_direction}' "
            f"(expected one of: {', '.join(_DIRECTIONS)})"
        )

    return Config(
        base_dir=base_dir,
        db_data_dir=db_data_dir,
        db_filename=db_filename,
        log_level=log_level,
        log_dir=log_dir,
        owner_id=owner_id,
        priority_direction=priority_direction,
        include_earmarked=include_earmarked,
    )


def _write_config(config: Config) -> None:
    """Write config to the config file.

    Args:
        config: Config object to write.
    """
    config_path = get_config_path()

    # Ensure config directory exists
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "base_dir": str(config.base_dir),
        "database": {
            "data_dir": str(config.db_data_dir),
            "filename": config.db_filename,
        },
        "logging": {
            "level": config.log_level,
            "log_dir": str(config.log_dir),
        },
        "budget": {
            "owner_id": config.owner_id,
            "priority_direction": config.priority_direction,
            "include_earmarked": config.include_earmarked,
        },
    }

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)

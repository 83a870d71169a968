#region Imports
import os
from pathlib import Path
from typing import Final
#endregion


#region Constants
# Base directory for everything clusage writes or reads
APP_HOME: Final[Path] = Path(os.environ.get("CLUSAGE_HOME", Path.home() / ".claudeusage"))

# One JSON snapshot file per day: data/daily/YYYY-MM-DD.json
DATA_DIR: Final[Path] = APP_HOME / "data"
DAILY_DIR: Final[Path] = DATA_DIR / "daily"

CONFIG_DIR: Final[Path] = APP_HOME / "config"
SETTINGS_PATH: Final[Path] = CONFIG_DIR / "settings.json"

LOGS_DIR: Final[Path] = APP_HOME / "logs"

# Utilization at or above this fraction renders in warning colour
WARNING_THRESHOLD: Final[float] = 0.8
#endregion

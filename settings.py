from pathlib import Path
from config.loader import get_config_loader

# Get the config loader instance
config = get_config_loader()

# Logging
LOG_LEVEL = config.get("LOG_LEVEL", "info")
LOG_FILE = config.get("LOG_FILE", str(Path.home() / ".waystation" / "session_debug.log"))

# Native credential broker bridge
# The broker performs the OAuth exchange and owns credential persistence;
# this process only invokes its commands.
BROKER_URL = config.get("BROKER_URL", "http://127.0.0.1:8765")
BROKER_TIMEOUT = config.get("BROKER_TIMEOUT", 30.0)

# Event listener (native auth events, deep links, local control)
EVENT_BIND_ADDRESS = config.get("EVENT_BIND_ADDRESS", "127.0.0.1")
EVENT_PORT = config.get("EVENT_PORT", 8766)

# Refresh this many seconds before the access token expires
REFRESH_MARGIN_SECONDS = config.get("REFRESH_MARGIN_SECONDS", 300)

# Deep link sentinels (hardcoded - registered with the OS URL scheme)
REDIRECT_URI = "waystation://oauth/callback"
HOME_URL = "waystation://home"
ONBOARDING_URL = "waystation://onboarding"

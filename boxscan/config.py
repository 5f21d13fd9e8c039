"""Configuration: env, inventory service endpoint, scan and capture timing."""
import os
from pathlib import Path

# Base paths (project root = parent of boxscan package)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env from project root so BOXSCAN_INVENTORY_URL etc. are set
try:
    from dotenv import load_dotenv
    load_dotenv(BASE_DIR / ".env")
except ImportError:
    pass

# Local API (polled by the scanner overlay / capture screen)
API_HOST = os.getenv("BOXSCAN_API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("BOXSCAN_API_PORT", "8000"))
# Browser origin allowed to call the local API ("*" when unset)
BOXSCAN_WEB_ORIGIN = os.getenv("BOXSCAN_WEB_ORIGIN", "")

# Remote inventory service
INVENTORY_URL = os.getenv("BOXSCAN_INVENTORY_URL", "http://localhost:5000").rstrip("/")
INVENTORY_TOKEN = os.getenv("BOXSCAN_API_TOKEN", "")
HTTP_TIMEOUT_SEC = float(os.getenv("BOXSCAN_HTTP_TIMEOUT_SEC", "10"))

# Label host printed on pre-made QR labels: <host>/<uuid>?c=<code>
LABEL_HOST = os.getenv("BOXSCAN_LABEL_HOST", "c0h.de")

# Decode cooldown: same payload is ignored for COOLDOWN_SEC after it was accepted;
# entries are purged COOLDOWN_GRACE_SEC after they expire.
COOLDOWN_SEC = float(os.getenv("BOXSCAN_COOLDOWN_SEC", "5"))
COOLDOWN_GRACE_SEC = float(os.getenv("BOXSCAN_COOLDOWN_GRACE_SEC", "5"))

# No accepted decode for this long -> scanner reported as inactive
SCANNER_INACTIVITY_SEC = float(os.getenv("BOXSCAN_SCANNER_INACTIVITY_SEC", "90"))

# Power Mode
RECORDING_MAX_SEC = float(os.getenv("BOXSCAN_RECORDING_MAX_SEC", "300"))
AUDIO_SAMPLE_RATE = int(os.getenv("BOXSCAN_AUDIO_SAMPLE_RATE", "16000"))
UPLOAD_RETRY_DELAY_SEC = float(os.getenv("BOXSCAN_UPLOAD_RETRY_DELAY_SEC", "20"))

# Camera decode source (off by default; the browser overlay posts decodes itself)
CAMERA_ENABLED = os.getenv("BOXSCAN_CAMERA_ENABLED", "0").lower() in ("1", "true", "yes")
CAMERA_INDEX = int(os.getenv("BOXSCAN_CAMERA_INDEX", "0"))
CAMERA_POLL_INTERVAL_SEC = 0.1  # ~10 decode attempts per second

# Hardware simulation (for development without camera / microphone)
SIMULATE_HARDWARE = os.getenv("BOXSCAN_SIMULATE_HARDWARE", "0").lower() in ("1", "true", "yes")

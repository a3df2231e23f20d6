import os


API_TOKEN = os.getenv("API_TOKEN", "dev-token")
EFFECTS_LOG_PATH = os.getenv("EFFECTS_LOG_PATH", "data/effects.log")

SERVICE_NAME = os.getenv("SERVICE_NAME", "destination-effects")
REPORT_DEFAULT_LIMIT = int(os.getenv("REPORT_DEFAULT_LIMIT", "100"))

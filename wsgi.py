import os
from dotenv import load_dotenv

load_dotenv()

from billing_sync import create_app  # noqa: E402

config = os.getenv("APP_ENV", "production")

app = create_app(config)

# federation/__init__.py
from dotenv import load_dotenv, find_dotenv

# Load .env ONCE, before any submodule reads os.getenv at import time.
# Real environment variables win over the file.
load_dotenv(find_dotenv(usecwd=True), override=False)

__version__ = "0.1.0"

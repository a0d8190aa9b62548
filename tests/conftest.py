"""Root conftest — sets env vars BEFORE any autotag module is imported.

settings.load_settings() reads AUTOTAG_DIR / AUTOTAG_VAULT_DIR and any .env
it finds, so point the config dir at an empty temp dir and clear the vault
override to keep a developer's real configuration out of the tests.
"""

import os
import tempfile

# Force-set (not setdefault) to prevent real env vars from leaking into tests
os.environ["AUTOTAG_DIR"] = tempfile.mkdtemp(prefix="autotag-test-")
os.environ.pop("AUTOTAG_VAULT_DIR", None)

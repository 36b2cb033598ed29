import os
from pathlib import Path
import tempfile

# One isolated SQLite file and blob root for the whole test session. Settings
# and the engine are built on first import, so these must be set before any
# test module imports the application.
_TMP_ROOT = Path(tempfile.mkdtemp(prefix="hr_records_tests_"))
DB_PATH = _TMP_ROOT / "hr_records_test.db"

os.environ.setdefault("DATABASE_URL", f"sqlite+pysqlite:///{DB_PATH}")
os.environ.setdefault("DOCUMENT_STORAGE_DIR", str(_TMP_ROOT / "documents"))
os.environ.setdefault("HR_ENV", "dev")
os.environ.setdefault("HR_JWT_SECRET", "test-jwt-secret-strong-value-123456")
os.environ.setdefault("HR_PASSWORD_HASH_ROUNDS", "1000")
os.environ.setdefault("AUTO_CREATE_DB", "true")
os.environ.setdefault("AUTO_SEED_ADMIN_USER", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

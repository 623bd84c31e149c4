from pathlib import Path

# This will give the absolute path to the project root, assuming this file is in delivery/core/
PROJECT_PATH = Path(__file__).resolve().parent.parent.parent

ALEMBIC_INI_PATH = PROJECT_PATH / "alembic.ini"

import os
from pathlib import Path


BASE_DIR = Path(__file__).resolve().parent.parent


class Config:
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", f"sqlite:///{BASE_DIR / 'markgrove.db'}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # "legacy" matches folders by title across the whole store,
    # "strict" only among folders sharing the same parent.
    FOLDER_MATCH_POLICY = os.environ.get("FOLDER_MATCH_POLICY", "legacy")
    MAX_IMPORT_BYTES = int(os.environ.get("MAX_IMPORT_BYTES", "20000000"))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    LOG_LEVEL = "DEBUG"

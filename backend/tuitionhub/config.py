"""Application settings and validation."""

import os
from pathlib import Path

BASE = Path(__file__).resolve().parent.parent


class Settings:
    ENV: str
    DATABASE_URL: str
    LOG_LEVEL: str
    ALLOW_DEV_CORS: bool
    CODE_GAP_START: int
    CODE_SEQUENTIAL_START: int
    CODE_UPPER_BOUND: int
    CODE_ALLOCATION_RETRIES: int
    CODE_REPORT_START: int
    CODE_REPORT_END: int
    CODE_REPORT_LIMIT: int

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE / 'app.db'}")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        # ST110..ST149 backfills numbers skipped before sequential codes started at ST150
        self.CODE_GAP_START = int(os.getenv("CODE_GAP_START", "110"))
        self.CODE_SEQUENTIAL_START = int(os.getenv("CODE_SEQUENTIAL_START", "150"))
        self.CODE_UPPER_BOUND = int(os.getenv("CODE_UPPER_BOUND", "2000"))
        self.CODE_ALLOCATION_RETRIES = int(os.getenv("CODE_ALLOCATION_RETRIES", "3"))
        self.CODE_REPORT_START = int(os.getenv("CODE_REPORT_START", "150"))
        self.CODE_REPORT_END = int(os.getenv("CODE_REPORT_END", "1000"))
        self.CODE_REPORT_LIMIT = int(os.getenv("CODE_REPORT_LIMIT", "50"))
        self._validate()

    def _validate(self):
        if not (self.CODE_GAP_START <= self.CODE_SEQUENTIAL_START <= self.CODE_UPPER_BOUND):
            raise RuntimeError("CODE_GAP_START <= CODE_SEQUENTIAL_START <= CODE_UPPER_BOUND must hold")
        if self.CODE_REPORT_START > self.CODE_REPORT_END:
            raise RuntimeError("CODE_REPORT_START must not exceed CODE_REPORT_END")
        if self.CODE_ALLOCATION_RETRIES < 1:
            raise RuntimeError("CODE_ALLOCATION_RETRIES must be at least 1")


settings = Settings()

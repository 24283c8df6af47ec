# backend/retailpos/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the process by default
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///retailpos.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # OHADA chart-of-accounts code every completed sale is booked against
    SALES_REVENUE_CODE = os.environ.get("SALES_REVENUE_CODE", "701")

    # Applied when a product is created without a reorder point
    DEFAULT_REORDER_POINT = int(os.environ.get("DEFAULT_REORDER_POINT", "10"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

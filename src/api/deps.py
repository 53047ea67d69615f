import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status

from src.adapters.clock import SystemClock
from src.adapters.sqlite.ledger import SQLiteViewLedger
from src.components.views import ViewAggregator, ViewLedgerPort, ViewRecorder
from src.rules.loader import ledger_config, load_rules
from src.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("VIEWS_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "views.db")
        self.migrations_dir = str(self.base_dir / "migrations")
        self.rules_path = Path(os.environ.get("VIEWS_RULES_PATH", str(self.base_dir / "rules.yaml")))


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return cached_rules(settings.rules_path)


@lru_cache
def cached_rules(path: Path) -> Rules:
    return load_rules(path)


# --- Ledger ---
def get_ledger(settings: Settings = Depends(get_settings)) -> ViewLedgerPort:
    return SQLiteViewLedger(settings.db_path)


# --- Component Services ---
def get_recorder(
    ledger: ViewLedgerPort = Depends(get_ledger),
    rules: Rules = Depends(get_rules),
) -> ViewRecorder:
    return ViewRecorder(ledger, clock=SystemClock(), config=ledger_config(rules))


def get_aggregator(
    ledger: ViewLedgerPort = Depends(get_ledger),
    rules: Rules = Depends(get_rules),
) -> ViewAggregator:
    return ViewAggregator(ledger, config=ledger_config(rules))


# --- Identity ---
def get_current_viewer_id(
    x_viewer_id: Annotated[str | None, Header()] = None,
) -> UUID | None:
    """Viewer forwarded by the upstream auth layer; None when anonymous."""
    if not x_viewer_id:
        return None
    try:
        return UUID(x_viewer_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-Viewer-Id header",
        ) from None

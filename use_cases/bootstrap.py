"""Startup orchestration for application bootstrap."""

from dataclasses import dataclass
from typing import Literal, Tuple

import auth
from utils import session_manager

StartupStatus = Literal["CONTINUE", "STOP"]


@dataclass(frozen=True)
class StartupResult:
    """Result contract for startup/bootstrap orchestration."""

    status: StartupStatus
    planned_steps: Tuple[str, ...]


def run_startup() -> StartupResult:
    """Prepare persistence and session state before the auth gate runs."""
    executed_steps = []

    # Schema must exist before the persisted session is looked up.
    auth.init_auth_db()
    executed_steps.append("init_auth_db")

    session_manager.init_session_state()
    executed_steps.append("init_session_state")

    return StartupResult(status="CONTINUE", planned_steps=tuple(executed_steps))

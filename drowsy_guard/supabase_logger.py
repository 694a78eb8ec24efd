"""
Supabase Cloud Integration Module
Logs monitoring sessions and drowsiness alert episodes to Supabase

Tables:
- monitoring_sessions: One row per engine run
- alert_events: Alert entries and exits
"""

import logging
import os
import time
from datetime import datetime, timezone
from typing import Optional

from dotenv import load_dotenv
from supabase import Client, create_client

from .config import SUPABASE_ENABLED
from .observation import Transition

logger = logging.getLogger(__name__)


def _utcnow():
    return datetime.now(timezone.utc).isoformat()


class SupabaseLogger:
    """
    Logs alert episodes to Supabase.

    Every method is a no-op when the logger is not initialized, and network
    errors are logged rather than raised.
    """

    def __init__(
        self,
        supabase_url: Optional[str] = None,
        supabase_key: Optional[str] = None,
        client: Optional[Client] = None,
        enabled: bool = SUPABASE_ENABLED,
    ):
        """
        Initialize Supabase logger.

        Args:
            supabase_url: Supabase project URL (or from SUPABASE_URL env var)
            supabase_key: Supabase anon key (or from SUPABASE_KEY env var)
            client: Pre-built client, bypassing credential lookup
            enabled: Master switch
        """
        self.initialized = False
        self.client: Optional[Client] = None
        self.current_session_id: Optional[str] = None
        self.session_start_time: Optional[float] = None

        if not enabled:
            logger.info("Supabase logging disabled by configuration")
            return

        if client is not None:
            self.client = client
            self.initialized = True
            return

        load_dotenv()
        url = supabase_url or os.getenv("SUPABASE_URL")
        key = supabase_key or os.getenv("SUPABASE_KEY")

        if not url or not key:
            logger.warning(
                "Supabase credentials not provided (set SUPABASE_URL and SUPABASE_KEY). "
                "Logging disabled."
            )
            return

        try:
            self.client = create_client(url, key)
            self.initialized = True
            logger.info("Supabase logger initialized")
        except Exception as e:
            logger.error("Failed to initialize Supabase logger: %s", e)

    def start_session(self) -> Optional[str]:
        """
        Start a new monitoring session.

        Returns:
            Session ID (str) or None if not initialized
        """
        if not self.initialized:
            return None

        try:
            self.session_start_time = time.time()
            session_id = f"session_{int(self.session_start_time * 1000)}"
            self.current_session_id = session_id

            self.client.table("monitoring_sessions").insert({
                "session_id": session_id,
                "started_at": _utcnow(),
                "status": "active",
            }).execute()
            logger.info("Started monitoring session: %s", session_id)
            return session_id
        except Exception as e:
            logger.error("Error starting session: %s", e)
            return None

    def log_alert(self, transition: Transition, is_night: bool = False, closed_eye_run: int = 0):
        """
        Log an alert entry or exit.

        Args:
            transition: ENTERED_ALERT or EXITED_ALERT (others are ignored)
            is_night: Whether night sensitivity was in effect
            closed_eye_run: Consecutive closed-eye frames at the time
        """
        if not self.initialized:
            return
        if transition not in (Transition.ENTERED_ALERT, Transition.EXITED_ALERT):
            return

        try:
            self.client.table("alert_events").insert({
                "session_id": self.current_session_id,
                "event": transition.value,
                "timestamp": _utcnow(),
                "night_mode": is_night,
                "closed_eye_frames": closed_eye_run,
            }).execute()
        except Exception as e:
            logger.error("Error logging alert: %s", e)

    def end_session(self, alert_count: int = 0):
        """
        End current session and log summary.

        Args:
            alert_count: Number of alert episodes in the session
        """
        if not self.initialized or not self.current_session_id:
            return

        try:
            duration = time.time() - self.session_start_time if self.session_start_time else 0
            self.client.table("monitoring_sessions").update({
                "ended_at": _utcnow(),
                "status": "completed",
                "duration_seconds": round(duration, 2),
                "total_alerts": alert_count,
            }).eq("session_id", self.current_session_id).execute()

            logger.info("Session ended: %s (%.1fs)", self.current_session_id, duration)
            self.current_session_id = None
            self.session_start_time = None
        except Exception as e:
            logger.error("Error ending session: %s", e)

    def is_initialized(self) -> bool:
        """Check if logger is initialized and ready."""
        return self.initialized

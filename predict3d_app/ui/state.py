from __future__ import annotations
import time
from typing import List
import streamlit as st
from segmentation_client import AuthError, JobOrchestrator, JobStatus, Settings, TokenSession, configure_logging
from services import loop_runner
from config import REFRESH_SECONDS

def _build(api_base: str, token: str, poll_interval: float) -> JobOrchestrator:
    settings = Settings(
        api_base_url=api_base, api_token=token or None, poll_interval_seconds=poll_interval
    )
    auth = TokenSession(settings.api_token)
    # called on the loop thread, so only append to a list owned by this session
    expired: List[AuthError] = []
    auth.on_expired(expired.append)
    st.session_state.expired_signals = expired
    st.session_state.orchestrator_key = (api_base, token, poll_interval)
    return JobOrchestrator.from_settings(settings, auth=auth)

def init_session_state(api_base: str, token: str, poll_interval: float) -> JobOrchestrator:
    if "orchestrator" not in st.session_state:
        configure_logging()
        loop_runner.start_once()
        st.session_state.orchestrator = _build(api_base, token, poll_interval)
    elif st.session_state.orchestrator_key != (api_base, token, poll_interval):
        # settings changed: tear the old one down so its poll task stops
        loop_runner.run(st.session_state.orchestrator.aclose())
        st.session_state.orchestrator = _build(api_base, token, poll_interval)

    st.session_state.setdefault("last_error", None)
    st.session_state.setdefault("uploader_epoch", 0)
    return st.session_state.orchestrator

def session_expired() -> bool:
    return bool(st.session_state.get("expired_signals"))

def auto_refresh_if_active(orch: JobOrchestrator) -> None:
    if orch.job.status in (JobStatus.SUBMITTING, JobStatus.PROCESSING) and orch.poller.active:
        time.sleep(REFRESH_SECONDS)
        st.rerun()

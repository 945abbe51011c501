from __future__ import annotations
import streamlit as st
from segmentation_client import JobStatus, settings
from config import APP_TITLE
from ui.state import init_session_state, auto_refresh_if_active
from ui.sections import upload_section, action_buttons, status_section, metrics_block, artifacts_section

st.set_page_config(page_title=APP_TITLE, layout="wide")
st.title(APP_TITLE)
st.caption("Upload multi-modal MRI scans for 3D tumor analysis and segmentation")

with st.sidebar:
    st.header("Settings")
    api_base = st.text_input("API base URL", value=settings.api_base_url, placeholder="http://host:port")
    api_token = st.text_input("API token", value=settings.api_token or "", type="password")
    poll_interval = st.slider("Status check interval (s)", 1.0, 10.0, float(settings.poll_interval_seconds))

orch = init_session_state(api_base, api_token, poll_interval)

with st.container(border=True):
    upload_section(orch)
    action_buttons(orch)

job = orch.job
status_section(job, polling=orch.poller.active)

if job.status is JobStatus.COMPLETED and job.metrics is not None:
    with st.container(border=True):
        metrics_block(job.metrics)
    with st.container(border=True):
        artifacts_section(orch, job)

auto_refresh_if_active(orch)

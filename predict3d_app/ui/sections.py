from __future__ import annotations
from typing import Optional
import pandas as pd
import streamlit as st
from segmentation_client import (
    MODALITY_KEYS, MODALITY_NAMES, Job, JobMetrics, JobOrchestrator, JobStatus,
    ModalityFile, SegmentationClientError,
)
from segmentation_client.orchestrator import MASK_ARTIFACT, modality_artifact
from services import loop_runner
from config import ACCEPTED_TYPES, MODALITY_LABELS
from ui.state import session_expired

def _fail(err: SegmentationClientError) -> None:
    st.session_state.last_error = err.message

def upload_section(orch: JobOrchestrator) -> None:
    st.subheader("Upload MRI modalities")
    st.caption("Select the four required NIfTI files (.nii.gz or .nii)")
    epoch = st.session_state.uploader_epoch
    cols = st.columns(2)
    for i, key in enumerate(MODALITY_KEYS):
        with cols[i % 2]:
            uploaded = st.file_uploader(
                f"{MODALITY_LABELS[key]} *", type=ACCEPTED_TYPES, key=f"upload_{key}_{epoch}"
            )
        orch.set_input(key, ModalityFile(uploaded.name, uploaded.getvalue()) if uploaded else None)

def action_buttons(orch: JobOrchestrator) -> None:
    running = orch.poller.active
    c1, c2, c3 = st.columns(3)
    with c1:
        if st.button("Start 3D analysis", type="primary", disabled=running, use_container_width=True):
            st.session_state.last_error = None
            try:
                loop_runner.run(orch.submit())
            except SegmentationClientError as e:
                _fail(e)
    with c2:
        if st.button("Stop waiting", disabled=not running, use_container_width=True):
            loop_runner.call(orch.cancel)
            st.toast("Stopped checking for results. The server may still finish the job.")
    with c3:
        if st.button("Clear all data", use_container_width=True):
            try:
                resp = loop_runner.run(orch.clear())
            except SegmentationClientError as e:
                _fail(e)
            else:
                st.session_state.last_error = None
                st.session_state.uploader_epoch += 1
                st.toast(resp.message or "All data cleared")
                st.rerun()

def status_section(job: Job, polling: bool) -> None:
    if session_expired():
        st.warning("Your session has expired. Please log in again.")
    if st.session_state.last_error:
        st.error(st.session_state.last_error)

    if job.status is JobStatus.PROCESSING:
        note = "" if polling else " (no longer checking for updates)"
        st.info(f"Job {job.job_id} is processing{note}…")
    elif job.status is JobStatus.COMPLETED:
        st.success(f"Job {job.job_id} completed.")
    elif job.status is JobStatus.FAILED and job.error is not None and job.error.message != st.session_state.last_error:
        st.error(job.error.message)

def metrics_block(metrics: JobMetrics) -> None:
    st.subheader("Tumor volumes")
    df = pd.DataFrame(metrics.tissue_rows())
    df["confidence"] = (df["confidence"] * 100).round(1)
    st.dataframe(
        df.rename(columns={"label": "Region", "volume_cm3": "Volume (cm³)", "confidence": "Confidence (%)"}),
        hide_index=True,
        width="stretch",
    )
    c1, c2 = st.columns(2)
    with c1:
        st.metric("Tumor type", metrics.tumor_type)
    with c2:
        st.metric("Classification confidence", f"{metrics.classification_confidence * 100:.1f}%")

def _artifact(orch: JobOrchestrator, key: str, fetch) -> Optional[bytes]:
    data = orch.artifacts.get(key)
    if data is None:
        try:
            data = loop_runner.run(fetch())
        except SegmentationClientError as e:
            _fail(e)
            return None
    return data

def artifacts_section(orch: JobOrchestrator, job: Job) -> None:
    st.subheader("Results")
    if st.button("Prepare segmentation mask"):
        _artifact(orch, MASK_ARTIFACT, orch.download_mask)
    mask = orch.artifacts.get(MASK_ARTIFACT)
    if mask is not None:
        st.download_button(
            "Download mask", data=mask, file_name=f"segmentation_{job.job_id}.nii.gz",
            mime="application/octet-stream",
        )

    st.caption("Original modalities")
    cols = st.columns(len(MODALITY_NAMES))
    for index, name in enumerate(MODALITY_NAMES):
        with cols[index]:
            key = modality_artifact(index)
            if key not in orch.artifacts:
                if st.button(f"Load {name}", key=f"view_{index}"):
                    _artifact(orch, key, lambda i=index: orch.view_modality(i))
            data = orch.artifacts.get(key)
            if data is not None:
                st.download_button(
                    f"Open {name}", data=data, file_name=f"{name.lower()}_{job.job_id}.nii.gz",
                    key=f"open_{index}",
                )

from __future__ import annotations

APP_TITLE = "3D Brain Tumor Segmentation"

# streamlit checks the last suffix only, so ".nii.gz" passes as "gz"
ACCEPTED_TYPES = ["nii", "gz"]

MODALITY_LABELS = {
    "t1": "T1-weighted",
    "t1gd": "T1 contrast-enhanced (T1GD)",
    "t2": "T2-weighted",
    "flair": "FLAIR",
}

# how long the page waits before re-reading the job while it is running
REFRESH_SECONDS = 2.0

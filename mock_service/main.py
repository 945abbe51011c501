import gzip, logging, uuid
from typing import Optional
from fastapi import FastAPI, HTTPException, Depends, File, Header, Path, UploadFile
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from segmentation_client.errors import HTTP_ERROR_MESSAGES
from segmentation_client.modalities import MODALITY_KEYS, MODALITY_NAMES
from segmentation_client.schemas import (
    STATUS_COMPLETED, STATUS_ERROR, STATUS_PROCESSING,
    ClearResponse, StatusResponse, SubmitResponse,
)

from .settings import settings
from .db import SessionLocal, init_db
from .schemas import CANNED_METRICS, SimulatedFailure

logger = logging.getLogger(__name__)

app = FastAPI(title="3D Segmentation Mock Service", version="1.0.0")

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def require_token(authorization: Optional[str] = Header(default=None)):
    if settings.api_token and authorization != f"Bearer {settings.api_token}":
        raise HTTPException(status_code=401, detail=HTTP_ERROR_MESSAGES[401])

@app.exception_handler(StarletteHTTPException)
async def _http_error(request, exc: StarletteHTTPException):
    # same error body shape as the real backend
    return JSONResponse({"message": exc.detail}, status_code=exc.status_code, headers=exc.headers)

@app.on_event("startup")
def _startup():
    init_db()

@app.get("/healthz")
def healthz():
    return {"status": "ok"}

def _get_job(db: Session, job_id: str):
    row = db.execute(text("SELECT * FROM jobs WHERE id=:id"), {"id": job_id}).mappings().first()
    if not row:
        raise HTTPException(status_code=404, detail=f"Job {job_id} not found.")
    return row

@app.post("/3dpredict", response_model=SubmitResponse, dependencies=[Depends(require_token)])
async def submit_job(
    t1: Optional[UploadFile] = File(default=None),
    t1gd: Optional[UploadFile] = File(default=None),
    t2: Optional[UploadFile] = File(default=None),
    flair: Optional[UploadFile] = File(default=None),
    db: Session = Depends(get_db),
):
    uploads = dict(zip(MODALITY_KEYS, (t1, t1gd, t2, flair)))
    contents = {}
    for key, upload in uploads.items():
        data = await upload.read() if upload is not None else b""
        if data:
            contents[key] = (upload.filename or f"{key}.nii.gz", data)
    missing = [k for k in MODALITY_KEYS if k not in contents]
    if missing:
        return JSONResponse(
            {"success": False, "message": f"Missing modalities: {', '.join(missing)}"}, status_code=400
        )

    job_id = "job_" + uuid.uuid4().hex[:24]
    prediction_id = "pred_" + uuid.uuid4().hex[:24]
    db.execute(
        text("INSERT INTO jobs (id, prediction_id, status, polls) VALUES (:id, :pid, :status, 0)"),
        {"id": job_id, "pid": prediction_id, "status": STATUS_PROCESSING},
    )
    for idx, key in enumerate(MODALITY_KEYS):
        filename, data = contents[key]
        db.execute(
            text("""INSERT INTO job_inputs (job_id, idx, modality, filename, content)
                     VALUES (:job_id, :idx, :modality, :filename, :content)"""),
            {"job_id": job_id, "idx": idx, "modality": key, "filename": filename, "content": data},
        )
    db.commit()
    logger.info("Accepted job %s", job_id)
    return SubmitResponse(success=True, job_id=job_id, prediction_id=prediction_id)

@app.get("/3dpredict/status/{job_id}", response_model=StatusResponse,
         response_model_exclude_none=True, dependencies=[Depends(require_token)])
def job_status(job_id: str, db: Session = Depends(get_db)):
    row = _get_job(db, job_id)
    status = row["status"]
    if status == STATUS_PROCESSING:
        if row["polls"] >= settings.polls_until_complete:
            status = STATUS_COMPLETED
        db.execute(
            text("UPDATE jobs SET status=:status, polls=polls+1, updated_at=CURRENT_TIMESTAMP WHERE id=:id"),
            {"id": job_id, "status": status},
        )
        db.commit()

    if status == STATUS_COMPLETED:
        return StatusResponse(status=status, metrics=CANNED_METRICS)
    if status == STATUS_ERROR:
        return StatusResponse(status=status, message=row["message"])
    return StatusResponse(status=status)

@app.get("/3dpredict/download/{job_id}", dependencies=[Depends(require_token)])
def download_mask(job_id: str, db: Session = Depends(get_db)):
    row = _get_job(db, job_id)
    if row["status"] != STATUS_COMPLETED:
        raise HTTPException(status_code=409, detail="Job is not completed yet.")
    mask = gzip.compress(f"segmentation mask for {job_id}".encode("utf-8"))
    return Response(
        content=mask,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="segmentation_{job_id}.nii.gz"'},
    )

@app.get("/3dpredict/view/{job_id}/{index}", dependencies=[Depends(require_token)])
def view_modality(job_id: str, index: int = Path(..., ge=0, le=3), db: Session = Depends(get_db)):
    _get_job(db, job_id)
    row = db.execute(
        text("SELECT filename, content FROM job_inputs WHERE job_id=:id AND idx=:idx"),
        {"id": job_id, "idx": index},
    ).mappings().first()
    if not row:
        raise HTTPException(status_code=404, detail=f"{MODALITY_NAMES[index]} not found for job {job_id}.")
    return Response(
        content=bytes(row["content"]),
        media_type="application/octet-stream",
        headers={"Content-Disposition": f'inline; filename="{row["filename"]}"'},
    )

@app.delete("/3dpredict/clear", response_model=ClearResponse, dependencies=[Depends(require_token)])
def clear_all(db: Session = Depends(get_db)):
    db.execute(text("DELETE FROM job_inputs"))
    db.execute(text("DELETE FROM jobs"))
    db.commit()
    return ClearResponse(message="All 3D prediction data cleared.")

# Debug helper: force a job into the server-side error state
@app.post("/simulate/{job_id}/error")
def simulate_error(job_id: str, body: Optional[SimulatedFailure] = None, db: Session = Depends(get_db)):
    _get_job(db, job_id)
    body = body or SimulatedFailure()
    db.execute(
        text("UPDATE jobs SET status=:status, message=:message, updated_at=CURRENT_TIMESTAMP WHERE id=:id"),
        {"id": job_id, "status": STATUS_ERROR, "message": body.message},
    )
    db.commit()
    return {"job_id": job_id, "status": STATUS_ERROR}

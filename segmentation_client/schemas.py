from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, List, Optional

STATUS_PROCESSING = "processing"
STATUS_COMPLETED = "completed"
STATUS_ERROR = "error"

class SubmitResponse(BaseModel):
    success: bool
    job_id: Optional[str] = None
    prediction_id: Optional[str] = None
    message: Optional[str] = None

class TissueMetrics(BaseModel):
    volume_cm3: float
    confidence: float

class JobMetrics(BaseModel):
    # extra keys from the server are kept as-is
    model_config = ConfigDict(extra="allow")

    NCR: TissueMetrics
    ED: TissueMetrics
    ET: TissueMetrics
    Total: TissueMetrics
    tumor_type: str
    classification_confidence: float

    def tissue_rows(self) -> List[Dict[str, Any]]:
        return [
            {"label": label, "volume_cm3": m.volume_cm3, "confidence": m.confidence}
            for label, m in (("NCR", self.NCR), ("ED", self.ED), ("ET", self.ET), ("Total", self.Total))
        ]

class StatusResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str
    metrics: Optional[JobMetrics] = None
    message: Optional[str] = None
    error: Optional[str] = None

class ClearResponse(BaseModel):
    message: str = ""

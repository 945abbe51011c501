from pydantic import BaseModel, Field

from segmentation_client.schemas import JobMetrics, TissueMetrics

class SimulatedFailure(BaseModel):
    message: str = Field(default="Processing failed on server.", min_length=1)

# returned for every completed job
CANNED_METRICS = JobMetrics(
    NCR=TissueMetrics(volume_cm3=3.2, confidence=0.9),
    ED=TissueMetrics(volume_cm3=6.8, confidence=0.87),
    ET=TissueMetrics(volume_cm3=2.4, confidence=0.91),
    Total=TissueMetrics(volume_cm3=12.4, confidence=0.88),
    tumor_type="glioma",
    classification_confidence=0.93,
)

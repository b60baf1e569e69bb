from pydantic import BaseModel
from typing import Optional


class EmergencyAlertRequest(BaseModel):
    email: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

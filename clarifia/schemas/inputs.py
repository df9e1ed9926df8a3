from pydantic import BaseModel
from typing import Optional


class AnalyzeRequest(BaseModel):
    # Emptiness and length are checked after trimming, by the analyzer.
    text: Optional[str] = None

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel


class Error(BaseModel):
    error: str
    message: str
    details: Optional[Dict[str, Any]] = None

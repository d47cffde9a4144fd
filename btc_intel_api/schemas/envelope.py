"""Status envelope wrapped around every entrypoint result."""

from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, Field


class InvokeResponse(BaseModel):
    """``{"status": "succeeded", "output": ...}`` or ``{"status": "failed", "error": ...}``."""
    status: Literal["succeeded", "failed"] = Field(..., description="Invocation outcome")
    output: Optional[Dict[str, Any]] = Field(None, description="Query output when succeeded")
    error: Optional[str] = Field(None, description="Human-readable failure message")

    @classmethod
    def succeeded(cls, output: Dict[str, Any]) -> "InvokeResponse":
        return cls(status="succeeded", output=output)

    @classmethod
    def failed(cls, error: str) -> "InvokeResponse":
        return cls(status="failed", error=error)

    def to_dict(self) -> Dict[str, Any]:
        # nulls inside output are kept
        if self.status == "succeeded":
            return {"status": self.status, "output": self.output}
        return {"status": self.status, "error": self.error}

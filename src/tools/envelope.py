"""
Uniform tool response envelope

Every tool returns exactly one of:

    {"status": "success", ...payload, "timestamp": ...}
    {"status": "error", "message": ..., "code": ...}
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional

from utils.helpers import utc_now_iso


SUCCESS: Literal["success"] = "success"
ERROR: Literal["error"] = "error"


@dataclass(frozen=True)
class ToolResult:
    status: Literal["success", "error"]
    payload: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, **payload: Any) -> "ToolResult":
        payload.setdefault('timestamp', utc_now_iso())
        return cls(status=SUCCESS, payload=payload)

    @classmethod
    def error(cls, message: str, code: Optional[str] = None, **extra: Any) -> "ToolResult":
        payload = {'message': message, 'code': code}
        payload.update(extra)
        return cls(status=ERROR, payload=payload)

    @property
    def ok(self) -> bool:
        return self.status == SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        # status always wins over a payload key of the same name
        return {**self.payload, 'status': self.status}

    def to_json(self, indent: Optional[int] = 2) -> str:
        data = self.to_dict()
        ordered = {'status': data.pop('status'), **data}
        return json.dumps(ordered, indent=indent, default=str)

from typing import Optional
from pydantic import BaseModel

from docshare.db.enums import RejectReason


class ValidationResult(BaseModel):
    '''
    上传前校验的结构化结果

    ok: bool - 候选文件是否可以上传
    reason: Optional[RejectReason] - 第一条失败规则
    message: Optional[str] - 面向用户的提示
    '''
    ok: bool

    reason: Optional[RejectReason] = None
    message: Optional[str] = None

    @classmethod
    def accept(cls) -> "ValidationResult":
        return cls(ok=True)

    @classmethod
    def reject(cls, reason: RejectReason, message: str) -> "ValidationResult":
        return cls(ok=False, reason=reason, message=message)

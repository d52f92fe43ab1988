# app/core/exceptions.py
# Service 層使用的領域錯誤。
# Service 不直接拋 HTTPException，由 main.py 的 exception handler 轉成 HTTP 狀態碼。
# 資料庫錯誤 (SQLAlchemyError) 不在此包裝，原樣往上拋。


class AppError(Exception):
    """所有領域錯誤的基底類別"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(AppError):
    """引用的 id 不存在"""


class ForbiddenError(AppError):
    """擁有者 / 角色檢查失敗"""


class ConflictError(AppError):
    """違反業務規則 (例如嚴格模式下接受已處理的提案)"""


class ValidationFailedError(AppError):
    """輸入格式正確，但內容不合法"""

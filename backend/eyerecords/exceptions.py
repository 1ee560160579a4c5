"""
统一异常体系。

所有业务异常继承 BaseAppException，包含：
- type:        错误类型标识（validation_error / persistence_error / not_found）
- code:        业务错误码（VALIDATION_ERROR / PERSISTENCE_ERROR / RECORD_NOT_FOUND / ...）
- message:     人类可读的描述，直接展示给操作员
- detail:      可选的附加信息（dict / list / None）
- http_status: HTTP 状态码

Repository / Store 只需 raise，exception_handler 统一捕获并格式化响应。
"""


class BaseAppException(Exception):
    """所有业务异常的基类。"""

    type = 'error'
    code = 'UNKNOWN_ERROR'
    http_status = 500

    def __init__(self, message, code=None, detail=None, http_status=None):
        self.message = message
        if code is not None:
            self.code = code
        if http_status is not None:
            self.http_status = http_status
        self.detail = detail
        super().__init__(message)


class ValidationError(BaseAppException):
    """记录不满足业务规则（必填字段、手机号格式...）。写库之前抛出，400。"""

    type = 'validation_error'
    code = 'VALIDATION_ERROR'
    http_status = 400


class PersistenceError(BaseAppException):
    """
    后端存储拒绝或未能完成读写。503。

    message 是给操作员看的通用提示；cause 保存底层错误信息，只进日志，不进响应体。
    Store 实现里用 `raise PersistenceError(...) from exc` 保留原始异常链。
    """

    type = 'persistence_error'
    code = 'PERSISTENCE_ERROR'
    http_status = 503

    def __init__(self, message, cause=None, **kwargs):
        self.cause = cause
        super().__init__(message, **kwargs)


class RecordNotFound(BaseAppException):
    """
    HTTP 层专用：按 mobile 查不到记录。404。

    Repository 本身把"查不到"当作正常结果（返回 None），不会抛这个异常。
    """

    type = 'not_found'
    code = 'RECORD_NOT_FOUND'
    http_status = 404

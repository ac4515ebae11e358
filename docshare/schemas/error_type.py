from enum import Enum


class ErrorType(str, Enum):
    '''
    失败的结构化分类，决定返回给调用方的状态码和提示方式

    VALIDATION_ERROR: 类型/大小不符、评论为空等，用户可自行修正，不重试
    TRANSIENT_IO_ERROR: 存储或网络失败，提示后由用户手动重试整个操作
    NOT_FOUND: 引用的文件不存在，该页面终止
    UNSUPPORTED_TYPE: 没有对应渲染能力，降级为只提供下载
    INCONSISTENCY: blob 已写入但元数据写入失败，只记录，不自动修复
    '''
    VALIDATION_ERROR = "VALIDATION_ERROR"
    TRANSIENT_IO_ERROR = "TRANSIENT_IO_ERROR"
    NOT_FOUND = "NOT_FOUND"
    UNSUPPORTED_TYPE = "UNSUPPORTED_TYPE"
    INCONSISTENCY = "INCONSISTENCY"

"""
日志消息模板模块
统一管理所有存储日志消息模板，便于维护和国际化
"""

from typing import Any, Dict


class LogMessages:
    """日志消息模板类"""

    # ==================== 通用日志消息 ====================
    OPERATION_SUCCESS = "操作成功完成: {operation_name}"

    # ==================== 驱动注册相关 ====================
    DRIVER_REGISTERED = "已注册存储驱动"
    DRIVER_CREATED = "存储驱动创建成功"
    DRIVER_CREATE_FAILED = "创建存储驱动失败"
    STORAGE_SERVICE_READY = "存储服务初始化完成"

    # ==================== 文件写入相关 ====================
    FILE_PUT_SUCCESS = "文件写入成功"
    FILE_PUT_FAILED = "文件写入失败"

    # ==================== 分片上传相关 ====================
    MULTIPART_CREATED = "分片上传已创建"
    MULTIPART_CREATE_FAILED = "创建分片上传失败"
    MULTIPART_PART_UPLOADED = "分片上传成功"
    MULTIPART_PART_FAILED = "分片上传失败"
    MULTIPART_COMPLETED = "分片上传已完成"
    MULTIPART_COMPLETE_FAILED = "完成分片上传失败"
    MULTIPART_ABORTED = "分片上传已取消"
    MULTIPART_ABORT_FAILED = "取消分片上传失败"

    # ==================== 读取相关 ====================
    FILE_GET_FAILED = "读取文件失败"
    FILE_STREAM_FAILED = "流式读取文件失败"
    FILE_LIST_FAILED = "列举文件失败"
    FILE_LIST_OUTSIDE_PREFIX = "列举结果包含前缀之外的对象，已丢弃整个结果"
    FILE_META_FAILED = "获取文件元数据失败"

    # ==================== URL相关 ====================
    SIGNED_URL_CREATED = "已生成签名URL"
    SIGNED_URL_FAILED = "生成签名URL失败"

    # ==================== 删除相关 ====================
    FILE_DELETE_SUCCESS = "文件删除成功"
    FILE_DELETE_FAILED = "文件删除失败"
    BATCH_DELETE_FAILED = "批量删除失败"
    BATCH_DELETE_PARTIAL = "批量删除存在失败的对象"
    PATH_DELETE_FAILED = "目录删除未全部成功"

    # ==================== 复制移动相关 ====================
    FILE_COPY_FAILED = "文件复制失败"
    FILE_MOVE_SOURCE_LEFT = "文件已复制但源文件删除失败"

    @classmethod
    def format_message(cls, message_template: str, **kwargs: Any) -> str:
        """格式化日志消息模板"""
        return message_template.format(**kwargs)

    @classmethod
    def get_structured_data(cls, **kwargs: Any) -> Dict[str, Any]:
        """获取结构化日志数据"""
        return kwargs


# 全局实例
log_messages = LogMessages()

"""
配置工具模块
处理配置字符串解析、路径计算等工具方法
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)


def get_project_root() -> Path:
    """获取项目根目录路径"""
    return Path(__file__).parent.parent.parent.parent


def parse_json_object_config(value: Any) -> Dict[str, Any]:
    """
    解析JSON对象格式的配置

    环境变量中的值为字符串，需要反序列化；已经是字典的值原样返回。

    Args:
        value: 配置值（JSON字符串或字典）

    Returns:
        Dict[str, Any]: 解析后的字典，解析失败或类型不符时返回空字典
    """
    if not value:
        return {}
    if isinstance(value, dict):
        return value
    try:
        parsed = json.loads(value)
    except (TypeError, json.JSONDecodeError):
        logger.warning(f"JSON配置解析失败: {value}")
        return {}
    if not isinstance(parsed, dict):
        logger.warning(f"JSON配置不是对象: {value}")
        return {}
    return parsed


def strip_slashes(value: str) -> str:
    """去除首尾斜杠，用于拼接存储路径前缀"""
    return (value or "").strip().strip("/")

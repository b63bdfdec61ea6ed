# src/jreit_mcp/utils/responses.py
"""ツール応答の共通エンベロープ

成功: {"success": true, "data": ...}
失敗: {"success": false, "error": {"code": ..., "message": ..., "details"?: ...}}
"""

import json
from enum import Enum
from typing import Any, Dict

_UNSET: Any = object()


class ErrorCode(str, Enum):
    """エラーコード"""

    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"


def create_error_response(
    code: ErrorCode, message: str, details: Any = _UNSET
) -> Dict[str, Any]:
    """エラー応答 (details は指定時のみ付与)"""
    error: Dict[str, Any] = {"code": code.value, "message": message}
    if details is not _UNSET:
        error["details"] = details
    return {"success": False, "error": error}


def create_success_response(data: Any) -> Dict[str, Any]:
    """成功応答"""
    return {"success": True, "data": data}


def to_json_text(response: Dict[str, Any]) -> str:
    """応答を JSON 文字列へ (日本語はそのまま)"""
    return json.dumps(response, ensure_ascii=False, indent=2, default=str)


class _ErrorHandlers:  # pylint: disable=too-few-public-methods
    """よく使うエラー応答のショートカット"""

    @staticmethod
    def bad_request(message: str, details: Any = _UNSET) -> Dict[str, Any]:
        """BAD_REQUEST"""
        return create_error_response(ErrorCode.BAD_REQUEST, message, details)

    @staticmethod
    def not_found(message: str, details: Any = _UNSET) -> Dict[str, Any]:
        """NOT_FOUND"""
        return create_error_response(ErrorCode.NOT_FOUND, message, details)

    @staticmethod
    def internal_error(message: str, details: Any = _UNSET) -> Dict[str, Any]:
        """INTERNAL_ERROR"""
        return create_error_response(ErrorCode.INTERNAL_ERROR, message, details)

    @staticmethod
    def validation_error(message: str, details: Any = _UNSET) -> Dict[str, Any]:
        """VALIDATION_ERROR"""
        return create_error_response(ErrorCode.VALIDATION_ERROR, message, details)


error_handlers = _ErrorHandlers()

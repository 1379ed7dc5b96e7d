"""
弹窗请求/响应协议模型

MCP 侧把待确认的弹窗请求写入 JSON 文件，再以 `--mcp-request <文件>` 启动本程序；
处理结果以 JSON 形式写到 stdout。

类清单:
    PopupRequest(id, message, predefined_options?, is_markdown)
        弹窗请求描述
    ImageAttachment(data, media_type, filename?)
        用户随响应附带的图片 (base64)
    ResponseMetadata(timestamp?, request_id?, source?)
        响应元数据
    McpResponse(user_input?, selected_options, images, metadata)
        弹窗响应

函数清单:
    build_continue_response(request_id, text) -> McpResponse
        构造"继续"决策 (source=popup_continue)
    build_send_response(user_input, selected_options, images, request_id, source) -> McpResponse
        构造用户提交的响应
    load_popup_request(path) -> PopupRequest
        读取请求文件，失败抛出 McpRequestError
"""

from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..models.errors import McpRequestError


CONTINUE_TEXT = "继续"


class PopupRequest(BaseModel):
    """弹窗请求"""

    model_config = ConfigDict(extra="ignore")

    id: str
    message: str
    predefined_options: list[str] | None = None
    is_markdown: bool = True


class ImageAttachment(BaseModel):
    data: str
    media_type: str
    filename: str | None = None


class ResponseMetadata(BaseModel):
    timestamp: str | None = None
    request_id: str | None = None
    source: str | None = None


class McpResponse(BaseModel):
    """弹窗响应"""

    user_input: str | None = None
    selected_options: list[str] = Field(default_factory=list)
    images: list[ImageAttachment] = Field(default_factory=list)
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_continue_response(
    request_id: str | None = None, text: str = CONTINUE_TEXT
) -> McpResponse:
    """构造"继续"决策，用于无需用户交互的场景"""
    return McpResponse(
        user_input=text,
        metadata=ResponseMetadata(
            timestamp=_now(),
            request_id=request_id,
            source="popup_continue",
        ),
    )


def build_send_response(
    user_input: str | None,
    selected_options: list[str] | None = None,
    images: list[ImageAttachment] | None = None,
    request_id: str | None = None,
    source: str = "popup",
) -> McpResponse:
    """构造用户提交的响应"""
    return McpResponse(
        user_input=user_input,
        selected_options=selected_options or [],
        images=images or [],
        metadata=ResponseMetadata(
            timestamp=_now(),
            request_id=request_id,
            source=source,
        ),
    )


def load_popup_request(path: str | Path) -> PopupRequest:
    """
    读取弹窗请求文件

    Raises:
        McpRequestError: 文件不存在、无法读取或不是合法的请求 JSON
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise McpRequestError(f"读取请求文件失败: {e}", details={"path": str(path)}) from e

    try:
        return PopupRequest.model_validate_json(raw)
    except ValidationError as e:
        raise McpRequestError(f"请求文件格式错误: {e}", details={"path": str(path)}) from e

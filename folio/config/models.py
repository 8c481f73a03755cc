from pydantic import BaseModel, Field
from typing import Optional, Dict, Any


class ContentConfig(BaseModel):
    origin: str = "http://localhost:8000"
    timeout_sec: int = 20


class AssistantConfig(BaseModel):
    provider: str = "openai"
    name: str = "gpt-4o"
    base_url: str = "https://api.openai.com/v1"
    timeout_sec: int = 60
    parameters: Dict[str, Any] = Field(default_factory=dict)
    canned_reply: Optional[Dict[str, Any]] = Field(None, description="dummy 后端返回的固定回复")


class HostingConfig(BaseModel):
    provider: str = "github"
    api_url: str = "https://api.github.com"
    timeout_sec: int = 20


class RenderConfig(BaseModel):
    template: str = "site.html.j2"
    template_dir: Optional[str] = None
    output: str = "index.html"


class SettingsConfig(BaseModel):
    path: str = Field("~/.folio/settings.yaml", description="本地凭据文件的路径")


class Config(BaseModel):
    content: ContentConfig = Field(default_factory=ContentConfig, description="文档来源相关配置")
    assistant: AssistantConfig = Field(default_factory=AssistantConfig, description="助手模型相关配置")
    hosting: HostingConfig = Field(default_factory=HostingConfig, description="代码托管 API 相关配置")
    render: RenderConfig = Field(default_factory=RenderConfig, description="页面渲染相关配置")
    settings: SettingsConfig = Field(default_factory=SettingsConfig, description="凭据存储相关配置")


class SessionCredentials(BaseModel):
    """The four values persisted between runs."""
    hosting_token: Optional[str] = None
    assistant_key: Optional[str] = None
    repo_owner: Optional[str] = None
    repo_name: Optional[str] = None

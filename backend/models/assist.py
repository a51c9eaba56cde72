from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AIAssistRequest(_CamelModel):
    field_name: str = Field(min_length=1)
    current_value: str = ""
    context: Dict[str, Any] = {}
    ai_model: Optional[str] = None


class AIAssistResponse(_CamelModel):
    success: bool
    improved_value: str = ""
    error: Optional[str] = None


class WireframeRenderRequest(_CamelModel):
    html: str = Field(min_length=1)
    # Viewport preset name ("search", "form") or explicit size
    kind: str = "default"
    width: Optional[int] = Field(default=None, gt=0, le=4000)
    height: Optional[int] = Field(default=None, gt=0, le=4000)


class WireframeRenderResponse(_CamelModel):
    success: bool
    image: Optional[str] = None
    error: Optional[str] = None

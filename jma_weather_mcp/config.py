from dotenv import load_dotenv
load_dotenv()

import os
from typing import Optional
from pydantic import BaseModel, Field, HttpUrl, ValidationError


class Settings(BaseModel):
    # JMA "bosai" JSON root; endpoint paths are appended to it
    base_url: HttpUrl = Field(default="https://www.jma.go.jp/bosai/")

    # HTTP: a single bounded attempt, never retried
    timeout_s: float = Field(10.0, gt=0)
    user_agent: str = "jma-weather-mcp/0.1.0"

    # hierarchy snapshot override (only env knob)
    area_json_path: Optional[str] = Field(default=None, alias="JMA_AREA_JSON")

    # tool responses above this are truncated
    max_response_bytes: int = 1024 * 1024


def load_settings() -> Settings:
    env = {
        "JMA_AREA_JSON": os.getenv("JMA_AREA_JSON") or None,
    }
    try:
        return Settings.model_validate(env)
    except ValidationError as e:
        raise RuntimeError(
            "Config error: JMA_AREA_JSON must be a path to area.json (or unset)."
        ) from e

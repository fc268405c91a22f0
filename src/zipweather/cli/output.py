from __future__ import annotations

import json
from enum import Enum

import yaml
from pydantic import BaseModel


class OutputFormat(str, Enum):
    TEXT = "text"
    JSON = "json"
    YAML = "yaml"


def render(result: BaseModel, output: OutputFormat) -> str:
    if output is OutputFormat.TEXT:
        return str(result)

    payload = result.model_dump(mode="json", by_alias=True)
    if output is OutputFormat.JSON:
        return json.dumps(payload, indent=2)
    return yaml.safe_dump(payload, sort_keys=False).rstrip()

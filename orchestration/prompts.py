import os
from typing import Dict

import yaml
from pydantic import BaseModel


class PromptSet(BaseModel):
    """Prompt texts used by the orchestrator."""
    system: str
    strict_json_retry: str


def load_prompts(prompts_dir: str, name: str = "deal_finder") -> PromptSet:
    # Load from YAML
    with open(os.path.join(prompts_dir, f"{name}.yaml"), "r", encoding="utf-8") as f:
        data: Dict[str, str] = yaml.safe_load(f) or {}
    return PromptSet(
        system=data.get("system", "").strip(),
        strict_json_retry=data.get("strict_json_retry", "").strip(),
    )

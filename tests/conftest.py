import pytest

from orchestration.prompts import PromptSet


@pytest.fixture
def prompts():
    return PromptSet(
        system="You are a deal finder. Reply with JSON.",
        strict_json_retry="Reply with ONLY a JSON object.",
    )

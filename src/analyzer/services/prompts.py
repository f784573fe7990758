"""Prompts sent to the text-generation service."""
from __future__ import annotations

import json

from src.shared.constants import (
    MAX_PROCESSES,
    MAX_SUBPROCESSES_PER_PROCESS,
    MAX_USE_CASES_PER_SUBPROCESS,
)

RESPONSE_SCHEMA: dict = {
    "processes": [
        {
            "name": "string",
            "description": "string",
            "subprocesses": [
                {
                    "name": "string",
                    "description": "string",
                    "use_cases": [
                        {
                            "name": "string",
                            "description": "string",
                            "primary_actor": "string",
                            "kind": 1,
                            "preconditions": "string",
                            "postconditions": "string",
                            "acceptance_criteria": "string",
                        }
                    ],
                }
            ],
        }
    ]
}

SYSTEM_PROMPT: str = "\n".join([
    "You are a senior requirements analyst.",
    "Return ONLY valid JSON matching this schema:",
    json.dumps(RESPONSE_SCHEMA),
    "Rules:",
    "- kind: 1=Functional, 2=Non-functional, 3=System",
    (
        f"- At most {MAX_PROCESSES} processes, {MAX_SUBPROCESSES_PER_PROCESS} "
        f"subprocesses per process and {MAX_USE_CASES_PER_SUBPROCESS} use cases "
        "per subprocess."
    ),
    "- Do not include comments, markdown or any text outside the JSON.",
])


def build_user_prompt(spec_text: str) -> str:
    """Wrap the user's specification text for the model."""
    return f"User specification:\n\n{spec_text}\n\nReturn the requested JSON."

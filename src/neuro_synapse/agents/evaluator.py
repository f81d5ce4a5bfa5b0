from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


def evaluate_content(content: Any, criteria: Optional[List[str]] = None) -> Dict[str, Any]:
    score = random.random() * 0.5 + 0.5
    considered = ", ".join(criteria) if criteria else "general quality"
    feedback = (
        f"Mock evaluation feedback for content. Criteria considered: {considered}. "
        f"This content seems {'good' if score > 0.75 else 'okay'}."
    )
    return {"evaluationScore": round(score, 2), "feedback": feedback, "passed": score > 0.6}


def generate_code_snippet(description: str, language: str = "python") -> Dict[str, Any]:
    code = (
        f"\n# Mock {language} code for: {description}\n"
        "def mock_function():\n"
        f'  print("Hello from mock {language} code!")\n\n'
        "mock_function()\n    "
    )
    return {
        "generatedCode": code,
        "languageUsed": language,
        "executionNotes": "This is mock generated code. Replace with actual AI code generation logic.",
    }

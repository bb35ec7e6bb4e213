"""
Chat assistant answering questions about the QA data using OpenAI
"""
import json
import logging
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI
from config import get_settings

logger = logging.getLogger(__name__)

MISSING_KEY_REPLY = "I'm currently unable to connect to my AI brain. The API key is missing."
EMPTY_REPLY = "I apologize, but I couldn't generate a response. Please try again."
FAILURE_REPLY = "There was an issue communicating with the AI service. Please try again later."

ISSUE_CATEGORIES = [
    "NonEnglishCharacters",
    "Part Number Validation",
    "Part Numbers Missing Extension",
    "Surface Parts Report",
    "Toolbox Parts",
]


def build_data_context(parts: List[Dict[str, Any]], reports: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Summary, per-report stats and the part list handed to the model.

    Args:
        parts: Grouped parts (``part_number``, ``issue_types``, ``status``,
            ``report_id`` ...)
        reports: Report rows (``id``, ``file_name``, ``uploaded_at``,
            ``total_issues``)
    """
    open_parts = [part for part in parts if part.get("status") == "open"]
    corrected_parts = [part for part in parts if part.get("status") == "corrected"]

    reports_with_stats = []
    for report in reports:
        report_parts = [part for part in parts if part.get("report_id") == report.get("id")]
        reports_with_stats.append({
            "id": report.get("id"),
            "fileName": report.get("file_name"),
            "uploadDate": report.get("uploaded_at"),
            "totalPartsAnalyzed": report.get("total_issues") or 0,
            "issueCount": len(report_parts),
            "openIssues": sum(1 for part in report_parts if part.get("status") == "open"),
        })

    correction_rate = "N/A"
    if parts:
        correction_rate = f"{len(corrected_parts) / len(parts) * 100:.1f}%"

    return {
        "summary": {
            "totalReports": len(reports),
            "totalPartsAnalyzed": sum(report.get("total_issues") or 0 for report in reports),
            "totalIssues": len(parts),
            "openIssues": len(open_parts),
            "correctedIssues": len(corrected_parts),
            "correctionRate": correction_rate,
            "issuesByCategory": {
                category: sum(1 for part in open_parts if category in (part.get("issue_types") or []))
                for category in ISSUE_CATEGORIES
            },
        },
        "reports": reports_with_stats,
        "parts": parts,
    }


def build_system_prompt(context: Dict[str, Any]) -> str:
    return f"""
You are "Q-Bot", an expert assistant for the SolidWorks QA Portal. Be helpful, insightful and strictly
data-driven: answer questions based ONLY on the Data Context below.

Issue categories:
1. "NonEnglishCharacters" - Parts with non-English characters in their names
2. "Part Number Validation" - Parts with invalid part number formats
3. "Part Numbers Missing Extension" - Parts missing file extensions
4. "Surface Parts Report" - Parts with surface body issues
5. "Toolbox Parts" - Parts with toolbox-related issues

Rules:
1. NEVER make up information. If the answer is not in the data, say you don't have enough information.
2. Do not mention that you are reading a JSON context. Respond as a helpful analyst.
3. Write numbers as plain text (no bold, no asterisks, no underscores).

For summary questions use the summary object (open issues, correction rate, most common category).
For report questions use the reports array and its issueCount values.
For part lookups search the parts array; if nothing matches reply
"I couldn't find any information for that part number in the uploaded reports."
For category questions give the count from summary.issuesByCategory and at most four example part numbers.

Data Context:
```json
{json.dumps(context, indent=2, default=str)}
```
"""


class AssistantService:
    """Thin wrapper around the chat completion call"""

    def __init__(self, client: Optional[Any] = None):
        settings = get_settings()
        self.model = settings.openai_model
        self.enabled = bool(settings.enable_ai_assistant and (client is not None or settings.openai_api_key))
        self.client = client
        if self.enabled and self.client is None:
            self.client = AsyncOpenAI(api_key=settings.openai_api_key)
        if not self.enabled:
            logger.warning("OpenAI API key not found. Chat assistant functionality will be limited.")

    async def answer(self, question: str, parts: List[Dict[str, Any]], reports: List[Dict[str, Any]]) -> str:
        if not self.enabled:
            return MISSING_KEY_REPLY

        context = build_data_context(parts, reports)
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": build_system_prompt(context)},
                    {"role": "user", "content": question},
                ],
                temperature=0.3,
            )
            return response.choices[0].message.content or EMPTY_REPLY
        except Exception as e:
            logger.error(f"Error calling OpenAI API: {e}")
            return FAILURE_REPLY

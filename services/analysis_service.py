import logging
from typing import Dict, List, Optional, Sequence

from groq import Groq

from config import GROQ_API_KEY, GROQ_MODEL, GROQ_TEMPERATURE
from models.chat_models import GREETING_ID, ChatMessage
from models.workbook_models import Workbook
from .context_service import format_workbook_context
from .domain_logic_service import describe_metrics
from .errors import AnalysisError

logger = logging.getLogger(__name__)

CHART_TAG = "chart"

# Groq client (if key not set, every analysis request fails with AnalysisError)
client: Optional[Groq] = None
if GROQ_API_KEY:
    client = Groq(api_key=GROQ_API_KEY)


CHART_INSTRUCTIONS = f"""CHARTS:
If the question asks for a chart, graph, plot or visual comparison, add ONE fenced block tagged `{CHART_TAG}` to your answer, containing only JSON:
```{CHART_TAG}
{{"type": "bar", "title": "Revenue by Region", "xAxisLabel": "Region", "yAxisLabel": "Revenue", "data": [{{"name": "North", "value": 1200}}, {{"name": "South", "value": 950}}]}}
```
- "type" must be one of "bar", "line", "pie", "area".
- "data" is a list of objects with a string "name" and a numeric "value".
- Use at most one chart block per answer and explain the chart in the text around it."""


def build_system_instruction(workbook: Workbook) -> str:
    context = format_workbook_context(workbook)
    metrics = describe_metrics(workbook)

    return f"""You are an expert Data Analyst and Excel Assistant.
You have been provided with data from an Excel file named "{workbook.file_name}" which may contain multiple sheets.
Only a preview of each sheet is included below; "Total Rows" is the real size of each sheet, so do not assume the preview is the whole dataset.

Your goal is to answer the user's questions based on this data.

CRITICAL INSTRUCTIONS FOR MULTI-SHEET ANALYSIS:
1. Look for relationships between sheets (e.g., common ID columns, names, dates).
2. If the user asks a question that requires data from multiple sheets, mentally "join" the datasets based on these common columns.
3. Explicitly mention which sheets you are combining to find the answer.

{metrics}

GENERAL RULES:
- Reply in the language the user asks in.
- Format your response using Markdown. Use tables for lists of numbers.
- Be concise and professional.

{CHART_INSTRUCTIONS}

Data Context:
{context}
"""


def build_history(messages: Sequence[ChatMessage]) -> List[Dict[str, str]]:
    """Map transcript messages onto chat-completion turns, skipping the greeting."""
    return [
        {"role": "assistant" if m.role == "model" else "user", "content": m.content}
        for m in messages
        if m.id != GREETING_ID
    ]


def generate_data_analysis(question: str, workbook: Workbook, history: List[Dict[str, str]]) -> str:
    """
    Ask the LLM one question about the workbook and return the raw reply text.
    Single attempt, no retry. Any failure is logged and raised as AnalysisError.
    """
    if client is None:
        logger.error("GROQ_API_KEY is not set; cannot run analysis.")
        raise AnalysisError()

    messages = [{"role": "system", "content": build_system_instruction(workbook)}]
    messages.extend(history)
    messages.append({"role": "user", "content": question})

    try:
        response = client.chat.completions.create(
            model=GROQ_MODEL,
            messages=messages,
            temperature=GROQ_TEMPERATURE,
        )
    except Exception as e:
        logger.exception("Groq API error: %s", e)
        raise AnalysisError() from e

    try:
        raw = response.choices[0].message.content
    except (AttributeError, IndexError, TypeError) as e:
        logger.error("Unexpected Groq response shape: %r", response)
        raise AnalysisError() from e

    if not raw or not raw.strip():
        logger.error("Groq returned an empty reply for question %r", question)
        raise AnalysisError()

    logger.debug("Raw LLM reply: %s", raw)
    return raw

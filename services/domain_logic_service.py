from typing import Dict, List, Literal, Optional, Sequence

from models.workbook_models import Workbook

DomainType = Literal["marketing", "retail", "manufacturing", "education", "unknown"]

DOMAIN_KEYWORDS: Dict[str, List[str]] = {
    "marketing": ["spend", "campaign", "impression", "click", "conversion", "lead"],
    "retail": ["product_id", "sale_id", "store_id", "inventory", "sku", "order"],
    "manufacturing": ["equipment_id", "downtime", "parts_replaced", "technician_id", "defect"],
    "education": ["student_id", "module_name", "module_id", "resource_type", "enrol"],
}

# Named ratios the analyst is told about. A metric is "detected" when one
# sheet has a column matching the numerator keywords and another column
# matching the denominator keywords.
METRICS: List[Dict] = [
    {
        "name": "CAC (Customer Acquisition Cost)",
        "formula": "marketing spend / new customers acquired",
        "numerator": ["spend", "cost", "budget"],
        "denominator": ["new_customer", "new customer", "customers", "clientes"],
    },
    {
        "name": "CPC (Cost per Click)",
        "formula": "spend / clicks",
        "numerator": ["spend", "cost"],
        "denominator": ["click"],
    },
    {
        "name": "CTR (Click-Through Rate)",
        "formula": "clicks / impressions, as a percentage",
        "numerator": ["click"],
        "denominator": ["impression"],
    },
    {
        "name": "Conversion Rate",
        "formula": "conversions / clicks (or / leads), as a percentage",
        "numerator": ["conversion", "converted"],
        "denominator": ["click", "lead"],
    },
    {
        "name": "ROAS (Return on Ad Spend)",
        "formula": "revenue / spend",
        "numerator": ["revenue", "sales"],
        "denominator": ["spend"],
    },
    {
        "name": "AOV (Average Order Value)",
        "formula": "revenue / number of orders",
        "numerator": ["revenue", "sales", "amount"],
        "denominator": ["orders", "order_count", "transactions"],
    },
    {
        "name": "Gross Margin",
        "formula": "(revenue - cost) / revenue, as a percentage",
        "numerator": ["revenue", "sales"],
        "denominator": ["cost", "cogs"],
    },
    {
        "name": "Downtime Ratio",
        "formula": "downtime hours / scheduled operating hours",
        "numerator": ["downtime"],
        "denominator": ["operating", "scheduled", "uptime"],
    },
    {
        "name": "Completion Rate",
        "formula": "students who completed / students enrolled",
        "numerator": ["completed", "completion"],
        "denominator": ["enrolled", "enrolment", "enrollment"],
    },
]


def infer_domain_from_columns(columns: Sequence[str]) -> DomainType:
    cols_str = " ".join([c.lower() for c in columns])

    best: DomainType = "unknown"
    best_hits = 0
    for domain, keywords in DOMAIN_KEYWORDS.items():
        hits = sum(1 for k in keywords if k in cols_str)
        if hits > best_hits:
            best, best_hits = domain, hits
    return best


def infer_domain(workbook: Workbook) -> DomainType:
    """Guess the business domain from the columns of every sheet."""
    columns = [c for sheet in workbook.sheets for c in sheet.columns]
    return infer_domain_from_columns(columns)


def _find_column(columns: Sequence[str], keywords: Sequence[str], exclude: Optional[str] = None) -> Optional[str]:
    for col in columns:
        if col == exclude:
            continue
        lowered = col.lower()
        if any(k in lowered for k in keywords):
            return col
    return None


def detect_metrics(workbook: Workbook) -> List[Dict[str, str]]:
    """
    Return the metrics computable from a single sheet of this workbook,
    with the sheet and the matched numerator/denominator columns.
    """
    found: List[Dict[str, str]] = []
    for metric in METRICS:
        for sheet in workbook.sheets:
            num = _find_column(sheet.columns, metric["numerator"])
            den = _find_column(sheet.columns, metric["denominator"], exclude=num)
            if num and den:
                found.append({
                    "name": metric["name"],
                    "formula": metric["formula"],
                    "sheet": sheet.sheet_name,
                    "numerator": num,
                    "denominator": den,
                })
                break
    return found


def describe_metrics(workbook: Workbook) -> str:
    lines = ["Business metric definitions (use these exact formulas when asked):"]
    for metric in METRICS:
        lines.append(f"- {metric['name']} = {metric['formula']}")

    detected = detect_metrics(workbook)
    if detected:
        lines.append("")
        lines.append("Metrics that can be computed from this file:")
        for m in detected:
            lines.append(
                f'- {m["name"]}: sheet "{m["sheet"]}", '
                f'"{m["numerator"]}" / "{m["denominator"]}"'
            )
    return "\n".join(lines)

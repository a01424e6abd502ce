# flowpack/model/catalog.py
# Static lookup tables keyed by node/credential type, plus the categorizer
# and slug helper. New node types are added here as data.

from __future__ import annotations

import re
from typing import List, Tuple

TRIGGERS = "triggers"
AI = "ai"
INTEGRATIONS = "integrations"
PROCESSORS = "processors"

NODE_CATEGORIES = (TRIGGERS, PROCESSORS, INTEGRATIONS, AI)

# (category, keywords, case_insensitive); first match wins, order matters.
CATEGORY_RULES: List[Tuple[str, Tuple[str, ...], bool]] = [
    (TRIGGERS, ("trigger", "webhook", "cron"), False),
    (AI, ("langchain", "openai", "anthropic"), False),
    (INTEGRATIONS, ("google", "slack", "gmail", "notion", "airtable", "sheets", "firecrawl"), True),
]

NODE_DESCRIPTIONS = {
    "n8n-nodes-base.manualTrigger": "Manually triggers workflow execution",
    "n8n-nodes-base.webhook": "Webhook trigger",
    "n8n-nodes-base.cron": "Scheduled trigger",
    "n8n-nodes-base.scheduleTrigger": "Scheduled trigger",
    "n8n-nodes-base.set": "Set / edit fields",
    "n8n-nodes-base.code": "Runs custom code",
    "n8n-nodes-base.function": "Function node",
    "n8n-nodes-base.if": "Conditional branch",
    "n8n-nodes-base.switch": "Multi-way branch",
    "n8n-nodes-base.merge": "Merges incoming branches",
    "n8n-nodes-base.httpRequest": "HTTP request",
    "n8n-nodes-base.googleSheets": "Google Sheets integration",
    "n8n-nodes-base.slack": "Slack integration",
    "n8n-nodes-base.splitInBatches": "Splits items into batches",
    "n8n-nodes-base.wait": "Waits before continuing",
    "n8n-nodes-base.noOp": "No operation",
    "n8n-nodes-base.stickyNote": "Sticky note",
    "@n8n/n8n-nodes-langchain.openAi": "OpenAI integration",
    "@mendable/n8n-nodes-firecrawl.firecrawl": "Firecrawl website crawler",
}

CREDENTIAL_NAMES = {
    "googleSheetsOAuth2Api": "Google Sheets API",
    "gmailOAuth2": "Gmail API",
    "openAiApi": "OpenAI API",
    "anthropicApi": "Anthropic API",
    "firecrawlApi": "Firecrawl API",
    "slackOAuth2Api": "Slack API",
    "slackApi": "Slack API",
    "notionApi": "Notion API",
    "airtableTokenApi": "Airtable API",
    "httpHeaderAuth": "HTTP Header Auth",
}


def categorize(node_type: str) -> str:
    """Map a node type string to one of NODE_CATEGORIES. Never fails."""
    t = node_type or ""
    lowered = t.lower()
    for category, keywords, case_insensitive in CATEGORY_RULES:
        haystack = lowered if case_insensitive else t
        if any(k in haystack for k in keywords):
            return category
    return PROCESSORS


def describe_node_type(node_type: str) -> str:
    return NODE_DESCRIPTIONS.get(node_type, f"Node type: {node_type}")


def node_tags(node_type: str) -> List[str]:
    """Coarse informational tags written next to each node file."""
    t = node_type or ""
    if "trigger" in t:
        return ["trigger"]
    if "langchain" in t or "openai" in t:
        return ["ai"]
    if "google" in t or "slack" in t:
        return ["integration"]
    return ["processor"]


def credential_display_name(cred_type: str) -> str:
    return CREDENTIAL_NAMES.get(cred_type, cred_type)


def credential_env_var(cred_type: str) -> str:
    """openAiApi -> OPEN_AI_API_KEY"""
    snake = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", cred_type)
    snake = re.sub(r"[^A-Za-z0-9]+", "_", snake).strip("_")
    return f"{snake.upper()}_KEY"


_NOT_SLUG = re.compile(r"[^a-z0-9\s-]")
_SPACES = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


def slugify_name(name: str) -> str:
    """
    Filesystem-safe slug of a human-readable name:
    "Send to Slack!" -> "send-to-slack".
    """
    s = _NOT_SLUG.sub("", (name or "").lower())
    s = _SPACES.sub("-", s.strip())
    s = _HYPHENS.sub("-", s)
    return s.strip("-")

"""Turn a free-text business research document into an intake document."""

import logging

from roma_crm.agents.base import AgentResult, BaseAgent

logger = logging.getLogger(__name__)

INTAKE_PARSER_PROMPT = """Convert this business research document into an intake JSON document.

Return a single JSON object with these sections. Use the literal string "<>"
for any value that is NOT explicitly stated in the document. Never invent facts.
{
  "hero": {
    "business_name": "string",
    "tagline": "string",
    "logo_url": "string (absolute URL)",
    "quick_actions": {
      "call_tel": "tel:+1XXXXXXXXXX",
      "email_mailto": "mailto:address",
      "website_url": "string",
      "maps_link": "string"
    }
  },
  "ai_overview": {"overview_line": "one sentence summary"},
  "about_and_badges": {
    "ai_summary_120w": "about text, max 120 words",
    "company_badges": ["up to four short badges"]
  },
  "locations_and_hours": {
    "primary_location": {
      "full_address": "string", "city": "string", "state": "2-letter code",
      "zip": "string", "phone": "string", "hours": "string"
    }
  },
  "pricing_information": {"summary_line": "string"},
  "footer": {
    "phone_e164": "string", "email": "string",
    "social": {"facebook": "url", "instagram": "url", "youtube": "url"}
  },
  "featured_reviews": {
    "items": [{"reviewer": "string", "stars": 5, "excerpt": "string", "date": "string", "source": "Google"}]
  },
  "photo_gallery": {"images": [{"url": "absolute URL", "alt": "string"}]},
  "services": [{"title": "string", "description": "string", "included": ["string"]}],
  "faqs": {"all_questions": {"General": [{"question": "string", "answer": "string"}]}}
}

Company name (if known): "{company_name}"

Document:
\"\"\"
{document}
\"\"\"
"""


class IntakeDocumentParser(BaseAgent):
    """Builds an intake document from pasted research text via Gemini."""

    def __init__(self):
        super().__init__(
            agent_name="intake_document_parser",
            temperature=0.1,
        )

    async def parse(self, document: str, company_name: str | None = None) -> AgentResult:
        """Parse *document* into an intake dict.

        Empty input succeeds with ``{}``. A model failure, or a response
        that is not a JSON object, is returned as a failure result.
        """
        if not document or not document.strip():
            return AgentResult.success(data={})

        prompt = (
            INTAKE_PARSER_PROMPT
            .replace("{company_name}", company_name or "<>")
            .replace("{document}", document.strip())
        )
        result = await self.generate_json(prompt=prompt)
        if not result.ok:
            logger.warning("Intake document parsing failed: %s", result.error)
            return result

        if not isinstance(result.data, dict):
            return AgentResult.failure("Model did not return a JSON object", latency_ms=result.latency_ms)

        return AgentResult.success(
            data=result.data,
            tokens_used=result.tokens_used,
            latency_ms=result.latency_ms,
        )

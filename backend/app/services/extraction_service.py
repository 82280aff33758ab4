"""
Extraction Service - converts a PDF invoice into an ExtractedInvoice with one LLM call.

Providers:
- "claude": Anthropic Messages API with a base64 document block (default)
- "openai": OpenAI chat completions with a base64 file part
"""
import base64
import json
import logging
import re
from typing import Dict, Optional

from anthropic import AsyncAnthropic, APIError as AnthropicAPIError
from openai import AsyncOpenAI, OpenAIError

from app.config import settings
from app.schemas.invoice import ExtractedInvoice
from app.services.exceptions import ExtractionError

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = """Extract the following information from this supplier/vendor invoice and return ONLY a JSON object with no markdown formatting or backticks:

{
  "vendorName": "vendor/supplier name",
  "invoiceNumber": "invoice/bill number",
  "invoiceDate": "YYYY-MM-DD format",
  "dueDate": "YYYY-MM-DD format or null",
  "referenceNumber": "PO number or reference if available, else null",
  "currency": "currency code like USD, EUR, CAD, etc",
  "subtotal": numeric value,
  "tax": numeric value,
  "total": numeric value,
  "lineItems": [
    {
      "description": "item/service description",
      "quantity": numeric value,
      "rate": numeric value (unit price),
      "amount": numeric value (total for this line)
    }
  ],
  "notes": "any notes or additional information on the invoice, or null"
}

If any field is not found, use null. Return only the JSON object."""


def parse_extraction_json(content: str) -> Dict:
    """Parse the JSON object out of a model reply, tolerating markdown fences"""
    cleaned = re.sub(r'```(?:json)?\s*', '', content or '').strip()
    match = re.search(r'\{.*\}', cleaned, re.DOTALL)
    if match:
        cleaned = match.group(0)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ExtractionError("Failed to parse extracted data", details=(content or '')[:1000]) from e
    if not isinstance(data, dict):
        raise ExtractionError("Extracted data is not a JSON object", details=(content or '')[:1000])
    return data


class ExtractionService:
    def __init__(
        self,
        provider: Optional[str] = None,
        anthropic_client: Optional[AsyncAnthropic] = None,
        openai_client: Optional[AsyncOpenAI] = None
    ):
        self.provider = provider or settings.extraction_provider
        self.anthropic_client = anthropic_client
        self.openai_client = openai_client

        if self.provider == "claude" and self.anthropic_client is None:
            if settings.anthropic_api_key:
                self.anthropic_client = AsyncAnthropic(
                    api_key=settings.anthropic_api_key,
                    timeout=settings.extraction_timeout_seconds
                )
            else:
                logger.warning("ANTHROPIC_API_KEY not set. Invoice extraction will not function.")
        elif self.provider == "openai" and self.openai_client is None:
            if settings.openai_api_key:
                self.openai_client = AsyncOpenAI(
                    api_key=settings.openai_api_key,
                    timeout=settings.extraction_timeout_seconds
                )
            else:
                logger.warning("OPENAI_API_KEY not set. Invoice extraction will not function.")

    async def extract(self, file_content: bytes, filename: str) -> ExtractedInvoice:
        """
        Extract structured invoice data from PDF bytes.

        Raises:
            ExtractionError: provider not configured, API failure, or unparseable reply
        """
        base64_data = base64.b64encode(file_content).decode('utf-8')
        logger.info(f"Extracting invoice data from {filename} ({len(file_content)} bytes) via {self.provider}")

        if self.provider == "claude":
            content = await self._extract_with_claude(base64_data)
        elif self.provider == "openai":
            content = await self._extract_with_openai(base64_data, filename)
        else:
            raise ExtractionError(f"Unknown extraction provider: {self.provider}")

        raw = parse_extraction_json(content)
        try:
            invoice = ExtractedInvoice.from_extraction(raw)
        except ValueError as e:
            raise ExtractionError(f"Extracted data failed validation: {str(e)}") from e

        logger.info(
            f"Extracted invoice {invoice.invoice_number} from {invoice.vendor_name} "
            f"with {len(invoice.line_items)} line items"
        )
        return invoice

    async def _extract_with_claude(self, base64_data: str) -> str:
        if not self.anthropic_client:
            raise ExtractionError("Claude API key not configured. Set ANTHROPIC_API_KEY.")

        try:
            response = await self.anthropic_client.messages.create(
                model=settings.claude_model,
                max_tokens=settings.extraction_max_tokens,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "document",
                                "source": {
                                    "type": "base64",
                                    "media_type": "application/pdf",
                                    "data": base64_data
                                }
                            },
                            {"type": "text", "text": EXTRACTION_PROMPT}
                        ]
                    }
                ]
            )
        except AnthropicAPIError as e:
            logger.error(f"Claude API error: {str(e)}")
            raise ExtractionError(f"Failed to extract invoice data: {str(e)}") from e

        text_blocks = [block.text for block in response.content if getattr(block, "type", None) == "text"]
        if not text_blocks:
            raise ExtractionError("No text response from Claude")
        return text_blocks[0]

    async def _extract_with_openai(self, base64_data: str, filename: str) -> str:
        if not self.openai_client:
            raise ExtractionError("OpenAI API key not configured. Set OPENAI_API_KEY.")

        try:
            response = await self.openai_client.chat.completions.create(
                model=settings.openai_model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "file",
                                "file": {
                                    "filename": filename,
                                    "file_data": f"data:application/pdf;base64,{base64_data}"
                                }
                            },
                            {"type": "text", "text": EXTRACTION_PROMPT}
                        ]
                    }
                ],
                temperature=0.0,
                max_tokens=settings.extraction_max_tokens
            )
        except OpenAIError as e:
            logger.error(f"OpenAI API error: {str(e)}")
            raise ExtractionError(f"Failed to extract invoice data: {str(e)}") from e

        if not response.choices or not response.choices[0].message.content:
            raise ExtractionError("No text response from OpenAI")
        return response.choices[0].message.content


_extraction_service: Optional[ExtractionService] = None


def get_extraction_service() -> ExtractionService:
    """Lazily build the process-wide extraction service"""
    global _extraction_service
    if _extraction_service is None:
        _extraction_service = ExtractionService()
    return _extraction_service

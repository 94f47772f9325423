"""
AWS Bedrock client wrapper for LLM operations
"""

import json
import boto3
from typing import Any, Dict, List, Optional
from botocore.exceptions import BotoCoreError, ClientError


JSON_MODE_INSTRUCTION = (
    "Respond with a single valid JSON object only. "
    "Do not wrap it in markdown and do not add any text before or after it."
)


class BedrockError(Exception):
    """Raised when a Bedrock call fails"""


class EmptyCompletionError(BedrockError):
    """Raised when Bedrock answers without any text content"""


class BedrockClient:
    """
    Wrapper for AWS Bedrock API calls.

    Every call performs exactly one request; retries and fallbacks are left to callers.
    """

    def __init__(self, region_name: str = "us-east-1",
                 model_id: str = "anthropic.claude-3-haiku-20240307-v1:0",
                 max_tokens: int = 2048, client: Any = None):
        """
        Initialize Bedrock client

        Args:
            region_name: AWS region
            model_id: Bedrock model identifier
            max_tokens: Default maximum tokens to generate
            client: Optional pre-built bedrock-runtime client
        """
        self.region_name = region_name
        self.model_id = model_id
        self.max_tokens = max_tokens
        self.bedrock_runtime = client or boto3.client(
            'bedrock-runtime',
            region_name=region_name
        )

    @property
    def _is_claude(self) -> bool:
        return "claude" in self.model_id.lower()

    @property
    def _is_titan(self) -> bool:
        return "titan" in self.model_id.lower()

    def _build_body(self, prompt: str, system: Optional[str], max_tokens: int,
                    temperature: float, prefill: Optional[str] = None) -> Dict[str, Any]:
        """Prepare request body based on model type"""
        if self._is_claude:
            messages: List[Dict[str, str]] = [{"role": "user", "content": prompt}]
            if prefill:
                messages.append({"role": "assistant", "content": prefill})
            body = {
                "anthropic_version": "bedrock-2023-05-31",
                "max_tokens": max_tokens,
                "temperature": temperature,
                "messages": messages
            }
            if system:
                body["system"] = system
            return body

        full_prompt = f"{system}\n\n{prompt}" if system else prompt
        if self._is_titan:
            return {
                "inputText": full_prompt,
                "textGenerationConfig": {
                    "maxTokenCount": max_tokens,
                    "temperature": temperature
                }
            }
        # Default format
        return {
            "prompt": full_prompt,
            "max_tokens": max_tokens,
            "temperature": temperature
        }

    def _extract_text(self, response_body: Dict[str, Any]) -> Optional[str]:
        """Extract text based on model type"""
        try:
            if self._is_claude:
                parts = response_body.get('content') or []
                return "".join(part.get('text', '') for part in parts if part.get('type', 'text') == 'text')
            if self._is_titan:
                return response_body['results'][0]['outputText']
            return response_body.get('text')
        except (KeyError, IndexError, TypeError, AttributeError):
            return None

    def _invoke(self, prompt: str, system: Optional[str], max_tokens: Optional[int],
                temperature: float, prefill: Optional[str] = None) -> str:
        body = self._build_body(prompt, system, max_tokens or self.max_tokens, temperature, prefill)
        try:
            response = self.bedrock_runtime.invoke_model(
                modelId=self.model_id,
                body=json.dumps(body)
            )
            response_body = json.loads(response['body'].read())
        except ClientError as e:
            error_code = e.response['Error']['Code']
            error_message = e.response['Error']['Message']
            raise BedrockError(f"Bedrock API error ({error_code}): {error_message}") from e
        except BotoCoreError as e:
            raise BedrockError(f"Bedrock request failed: {str(e)}") from e
        except (ValueError, KeyError) as e:
            raise BedrockError(f"Malformed Bedrock response: {str(e)}") from e

        text = self._extract_text(response_body)
        if not text or not text.strip():
            raise EmptyCompletionError("Empty response from Bedrock")
        return text

    def invoke_model(self, prompt: str, system: Optional[str] = None,
                     max_tokens: Optional[int] = None, temperature: float = 0.7) -> str:
        """
        Invoke Bedrock model for a free-text completion

        Args:
            prompt: User payload
            system: Optional system instruction
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature

        Returns:
            Model response text
        """
        return self._invoke(prompt, system, max_tokens, temperature)

    def invoke_model_json(self, prompt: str, system: Optional[str] = None,
                          max_tokens: Optional[int] = None, temperature: float = 0.2) -> str:
        """
        Invoke Bedrock model in JSON mode

        Claude models get their answer prefilled with an opening brace so the
        completion starts inside a JSON object.

        Args:
            prompt: User payload
            system: Optional system instruction
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature

        Returns:
            Raw response text expected to hold a JSON object
        """
        system = f"{system}\n\n{JSON_MODE_INSTRUCTION}" if system else JSON_MODE_INSTRUCTION
        if self._is_claude:
            text = self._invoke(prompt, system, max_tokens, temperature, prefill="{")
            return text if text.lstrip().startswith("{") else "{" + text
        return self._invoke(prompt, system, max_tokens, temperature)
